"""
Field validator: a small error accumulator plus pure predicate helpers.

A `Validator` is created per validation run (never shared between callers). Checks
are recorded with `check(ok, key, message)`; only the first failure for a given
field is kept, so the caller sees one actionable message per field.

The validator itself never raises. Callers decide what to do once `valid()` is
False (the service layer raises ValidationFailedError carrying `errors`).
"""

import re
from collections.abc import Hashable, Iterable

from pydantic import HttpUrl, TypeAdapter, ValidationError

# https://html.spec.whatwg.org/#valid-e-mail-address
EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

# 7 to 15 digits, optional leading '+', common separators (space . - ( ))
PHONE_RX = re.compile(r"^(?=(?:\D*\d){7,15}\D*$)\+?[\d\s().-]+$")

_HTTP_URL = TypeAdapter(HttpUrl)


class Validator:
    """Collects field -> message errors for one validation run."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        # keep the first message recorded for a field
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def __repr__(self) -> str:
        return f"Validator(errors={self.errors!r})"


# -----------------------
# Pure helpers
# -----------------------

def matches(value: str, rx: re.Pattern) -> bool:
    return rx.match(value) is not None


def unique(values: Iterable[Hashable]) -> bool:
    """True if no value appears twice."""
    seen = set()
    for value in values:
        if value in seen:
            return False
        seen.add(value)
    return True


def permitted_value(value, *permitted) -> bool:
    return value in permitted


def byte_length(value: str) -> int:
    """Length in UTF-8 bytes (limits on text fields are expressed in bytes)."""
    return len(value.encode("utf-8"))


def valid_website(value: str) -> bool:
    """
    Absolute http(s) URL with a host.

    Parsing is delegated to pydantic's HttpUrl, which rejects relative references,
    other schemes and URLs without a host.
    """
    if not value:
        return False
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError:
        return False
    return True


__all__ = [
    "EMAIL_RX",
    "PHONE_RX",
    "Validator",
    "matches",
    "unique",
    "permitted_value",
    "byte_length",
    "valid_website",
]
