import re
import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .integrity_classifier import (
    classify_integrity_error,
    UniqueConstraintError,
    NotNullConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError,
)
from .base import RepositoryError, StorageError, StorageTimeoutError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Extract column names from common Postgres messages:
      - 'null value in column "name" of relation "listings" violates not-null constraint'
      - 'DETAIL:  Key (email)=(a@b.com) already exists.'
    """
    if not msg:
        return None

    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # 'NOT NULL constraint failed: listings.name' / 'UNIQUE constraint failed: listings.email'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite).
    """
    orig = exc.orig
    msg = str(orig) if orig is not None else str(exc)
    return _extract_columns_postgres(msg) or _extract_columns_sqlite(msg)


# -----------------------
# Mapper
# -----------------------

def raise_mapped_integrity_error(exc: IntegrityError, model_name: str | None = None) -> None:
    """
    Map a SQLAlchemy IntegrityError to a ConstraintViolationError subclass and raise it.
    Populates `.fields` and `.constraint` where possible; the public message never
    contains raw database text.
    """
    exc_cls, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    if exc_cls is UniqueConstraintError:
        message = f"{model_part} already exists"
    elif exc_cls is NotNullConstraintError:
        message = f"Missing required column(s) for {model_part}"
    elif exc_cls is ForeignKeyConstraintError:
        message = f"{model_part} references a missing record"
    elif exc_cls is CheckConstraintError:
        message = f"{model_part} business rule violated (check constraint)"
    else:
        message = f"{model_part} database integrity error"

    if columns:
        message = f"{message}: {', '.join(columns)}"

    # constraint violations are surfaced as storage failures; keep raw text at DEBUG only
    logger.warning(
        "mapper.integrity_violation",
        extra={
            "model": model_part,
            "kind": exc_cls.__name__,
            "fields": columns,
            "constraint": constraint_name,
        },
    )
    logger.debug(
        "mapper.integrity_raw",
        extra={"model": model_part, "raw": str(exc.orig) if exc.orig is not None else str(exc)},
    )

    raise exc_cls(message, fields=columns, constraint=constraint_name) from exc


async def _invalidate_quietly(db: AsyncSession, model_name: str | None, timeout: float | None) -> None:
    try:
        async with asyncio.timeout(timeout):
            await db.invalidate()
    except Exception:
        logger.exception("Failed to invalidate session connection", extra={"model": model_name})


async def rollback_quietly(db: AsyncSession, model_name: str | None, reason: str,
                           timeout: float | None = None) -> None:
    """
    Roll back within `timeout`. A rollback that stalls as well gets its connection
    invalidated, so the caller is never held past a bounded number of deadlines.
    """
    try:
        async with asyncio.timeout(timeout):
            await db.rollback()
    except TimeoutError:
        logger.warning(
            "mapper.rollback_timeout",
            extra={"model": model_name, "reason": reason, "timeout_s": timeout},
        )
        await _invalidate_quietly(db, model_name, timeout)
    except Exception:
        logger.exception("Failed to rollback session after %s", reason, extra={"model": model_name})


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None, timeout: float | None = None):
    """
    Usage:
        async with db_error_handler(self.db, "Listing", self.timeout):
            ... DB ops ...

    - taxonomy errors raised inside the block (NotFoundError, EditConflictError) pass through
    - IntegrityError -> rollback + ConstraintViolationError subclass
    - deadline exceeded -> rollback (itself bounded by `timeout`) + StorageTimeoutError
    - anything else -> rollback + StorageError
    """
    try:
        async with asyncio.timeout(timeout):
            yield
    except RepositoryError:
        raise
    except IntegrityError as exc:
        await rollback_quietly(db, model_name, "IntegrityError", timeout)
        raise_mapped_integrity_error(exc, model_name)
    except TimeoutError as exc:
        await rollback_quietly(db, model_name, "timeout", timeout)
        logger.warning(
            "mapper.timeout",
            extra={"model": model_name, "timeout_s": timeout},
        )
        raise StorageTimeoutError() from exc
    except Exception as exc:
        await rollback_quietly(db, model_name, "unexpected error", timeout)
        logger.exception("Unexpected DB error for %s", model_name, extra={"model": model_name})
        raise StorageError(f"Failed to operate on {model_name or 'database'}") from exc
