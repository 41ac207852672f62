# src/listing_store/core/logging/context.py
"""
Correlation scope for one unit of work.

The HTTP layer is not part of this package, so there is no middleware here.
Instead, any caller (an HTTP handler, a CLI command, a test) can wrap one unit of
work in `request_context()`:

    with request_context(incoming_header_value) as rid:
        listing = await service.create_listing(**payload)

Every record logged inside the block, including records from the repository and
the error mapper, carries `request_id == rid`. The previous value is restored on
exit, also when the block raises.
"""

import re
import uuid
from contextlib import contextmanager
from typing import Iterator

from .filters import reset_request_id, set_request_id

# Accept opaque ids made of safe characters only (no newlines / control chars in logs).
_SAFE_ID_RX = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def new_request_id() -> str:
    return str(uuid.uuid4())


def sanitize_request_id(candidate: str | None) -> str:
    """Return `candidate` when it is a safe opaque id, otherwise a fresh UUID4."""
    if candidate and _SAFE_ID_RX.match(candidate):
        return candidate
    return new_request_id()


@contextmanager
def request_context(request_id: str | None = None) -> Iterator[str]:
    rid = sanitize_request_id(request_id)
    token = set_request_id(rid)
    try:
        yield rid
    finally:
        reset_request_id(token)
