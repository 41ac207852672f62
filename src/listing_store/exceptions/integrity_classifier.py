"""
Classification of SQLAlchemy IntegrityErrors.

PostgreSQL reports a SQLSTATE (and usually the constraint name) on the driver
exception, which is authoritative. SQLite only has message text, so the fallback
matches known phrases. Every result is a ConstraintViolationError subclass and
therefore a StorageError.
"""

import logging
from enum import Enum
from typing import Type

from sqlalchemy.exc import IntegrityError

from .base import ConstraintViolationError

logger = logging.getLogger(__name__)


class UniqueConstraintError(ConstraintViolationError):
    """Unique constraint / duplicate value."""


class NotNullConstraintError(ConstraintViolationError):
    """NOT NULL violation (missing required column)."""


class ForeignKeyConstraintError(ConstraintViolationError):
    """Foreign key constraint violated."""


class CheckConstraintError(ConstraintViolationError):
    """CHECK constraint violated (e.g. version >= 1)."""


class UnknownIntegrityError(ConstraintViolationError):
    """Unrecognized integrity error."""


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


SQLSTATE_TO_ERROR: dict[str, Type[ConstraintViolationError]] = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION.value: CheckConstraintError,
}

# Checked in order; the first phrase found in the lower-cased message wins.
MESSAGE_PHRASES: tuple[tuple[Type[ConstraintViolationError], tuple[str, ...]], ...] = (
    (UniqueConstraintError, ("unique constraint", "unique failed", "unique violation", "duplicate")),
    (NotNullConstraintError, ("not null constraint", "not null", "null value in column")),
    (ForeignKeyConstraintError, ("foreign key", "is not present in table")),
    (CheckConstraintError, ("check constraint", "check failed")),
)


def _sqlstate(orig) -> str | None:
    # psycopg 3 exposes `sqlstate`, psycopg2 `pgcode`
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _from_sqlstate(orig) -> tuple[Type[ConstraintViolationError] | None, str | None]:
    code = _sqlstate(orig)
    if not code:
        return None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None

    exc_cls = SQLSTATE_TO_ERROR.get(code)
    if exc_cls is None:
        logger.warning(
            "integrity.unknown_sqlstate",
            extra={"sqlstate": code, "constraint_name": constraint_name},
        )
        return UnknownIntegrityError, constraint_name

    logger.debug("integrity.sqlstate", extra={"sqlstate": code, "constraint_name": constraint_name})
    return exc_cls, constraint_name


def _from_message(msg: str) -> Type[ConstraintViolationError]:
    normalized = (msg or "").lower()
    for exc_cls, phrases in MESSAGE_PHRASES:
        if any(phrase in normalized for phrase in phrases):
            return exc_cls

    logger.warning("integrity.unknown_message", extra={"message_snippet": (msg or "")[:200]})
    return UnknownIntegrityError


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolationError], str | None]:
    """
    Returns:
        (ConstraintViolationError subclass, constraint name or None)
    """
    exc_cls, constraint_name = _from_sqlstate(exc.orig)
    if exc_cls is not None:
        return exc_cls, constraint_name
    return _from_message(str(exc.orig)), None
