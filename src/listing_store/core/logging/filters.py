# src/listing_store/core/logging/filters.py
"""
Logging filters

RequestIdFilter attaches a correlation id (`request_id`) to every LogRecord, read
from a contextvar so it follows a unit of work across `await` boundaries and
asyncio tasks. The id is set by whoever owns the unit of work: the excluded HTTP
layer, a CLI command, or `request_context()` (see context.py).

When no id is set the record gets the sentinel "-", so formatters that reference
`%(request_id)s` never raise KeyError.

RedactFilter masks record attributes whose names look sensitive (password, token,
...). It only touches attributes passed via `extra=`; message text is left as is.

Testing
-------
- With no id set, a filtered record has request_id == "-".
- After set_request_id("abc"), a filtered record has request_id == "abc".
- An explicit `extra={"request_id": ...}` wins over the contextvar.
"""

import logging
from logging import LogRecord
import contextvars

# Default None means "no correlation id for this context".
_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None):
    """
    Set the correlation id in the current context.

    Returns:
        token: pass it to reset_request_id(token) to restore the previous value
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token):
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantee every LogRecord has a `request_id` attribute.

    Precedence: an id passed explicitly via `extra`, then the contextvar, then "-".
    Always returns True; the filter annotates records, it never drops them.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization", "dsn"}
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
