"""
Resource store for listings.

`ListingRepository` issues one parameterised Core statement per operation against
the `listings` table and translates every backend outcome into the error taxonomy:

  - no row for an id            -> NotFoundError
  - version mismatch on update  -> EditConflictError
  - constraint violation        -> ConstraintViolationError (a StorageError)
  - deadline exceeded           -> StorageTimeoutError (a StorageError)
  - anything else               -> StorageError

Concurrency control is optimistic: `update` is a single conditional
`UPDATE ... WHERE id = :id AND version = :version RETURNING version`, so of two
writers holding the same version at most one succeeds. The store holds no
in-process state; the database is the only coordination point.

The repository only flushes statements into the session's transaction. Committing
(or rolling back) is the caller's decision, see `ListingService`.
"""

from __future__ import annotations

import time
import logging

from sqlalchemy import delete, exists, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listing_store.config import get_settings
from listing_store.exceptions import EditConflictError, NotFoundError
from listing_store.exceptions.mapper import db_error_handler
from listing_store.models.listing import Listing, ListingRecord

from .filters import Filters, Metadata, calculate_metadata
from .search import mode_contains, token_match

logger = logging.getLogger(__name__)


class ListingRepository:
    """
    Optimistic-concurrency CRUD plus filtered, sorted, paginated listing.

    Args:
        db: The async database session (its transaction is owned by the caller).
        timeout: Per-operation deadline in seconds; defaults to STORE_TIMEOUT_SECONDS.
    """

    model_name = "Listing"

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        self.db = db
        self.timeout = timeout if timeout is not None else get_settings().STORE_TIMEOUT_SECONDS
        self.table = ListingRecord.__table__

    # =================================================================================================================
    # Insert
    # =================================================================================================================

    async def insert(self, listing: Listing) -> Listing:
        """
        Persist a new listing and write the store-owned id, created_at and version
        back into the passed entity.

        Returns:
            The same entity, now carrying its store-assigned values.

        Raises:
            StorageError: on any backend failure (constraint violations included).
        """
        t = self.table
        stmt = (
            insert(t)
            .values(**listing.column_values())
            .returning(t.c.id, t.c.created_at, t.c.version)
        )

        start = time.perf_counter()
        async with db_error_handler(self.db, self.model_name, self.timeout):
            result = await self.db.execute(stmt)
            row = result.one()

        listing.id, listing.created_at, listing.version = row.id, row.created_at, row.version

        logger.info(
            "repo.listing.insert.success",
            extra={
                "model": self.model_name,
                "operation": "insert",
                "id": listing.id,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return listing

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def get(self, listing_id: int) -> Listing:
        """
        Fetch one listing by id.

        Ids below 1 can never exist, so they fail with NotFoundError without a round trip.
        """
        if listing_id < 1:
            logger.info(
                "repo.listing.get.invalid_id",
                extra={"model": self.model_name, "operation": "get", "id": listing_id},
            )
            raise NotFoundError()

        stmt = select(self.table).where(self.table.c.id == listing_id)

        async with db_error_handler(self.db, self.model_name, self.timeout):
            result = await self.db.execute(stmt)
            row = result.mappings().one_or_none()
            if row is None:
                logger.info(
                    "repo.listing.get.not_found",
                    extra={"model": self.model_name, "operation": "get", "id": listing_id},
                )
                raise NotFoundError()

        logger.debug("repo.listing.get.success", extra={"model": self.model_name, "id": listing_id})
        return Listing.from_row(row)

    async def exists(self, listing_id: int) -> bool:
        if listing_id < 1:
            return False

        stmt = select(exists().where(self.table.c.id == listing_id))
        async with db_error_handler(self.db, self.model_name, self.timeout):
            result = await self.db.execute(stmt)
            return bool(result.scalar())

    # =================================================================================================================
    # Update (optimistic concurrency)
    # =================================================================================================================

    async def update(self, listing: Listing) -> Listing:
        """
        Overwrite every caller-owned column of `listing.id`, provided the stored version
        still equals `listing.version`. On success the new version is written back.

        Raises:
            EditConflictError: the row was changed (or deleted) since `listing.version` was read.
            StorageError: on any other backend failure.
        """
        t = self.table
        stmt = (
            update(t)
            .where(t.c.id == listing.id, t.c.version == listing.version)
            .values(**listing.column_values(), version=t.c.version + 1)
            .returning(t.c.version)
        )

        async with db_error_handler(self.db, self.model_name, self.timeout):
            result = await self.db.execute(stmt)
            new_version = result.scalar_one_or_none()
            if new_version is None:
                logger.info(
                    "repo.listing.update.conflict",
                    extra={
                        "model": self.model_name,
                        "operation": "update",
                        "id": listing.id,
                        "expected_version": listing.version,
                    },
                )
                raise EditConflictError()

        listing.version = new_version
        logger.info(
            "repo.listing.update.success",
            extra={"model": self.model_name, "operation": "update", "id": listing.id, "version": new_version},
        )
        return listing

    # =================================================================================================================
    # Delete
    # =================================================================================================================

    async def delete(self, listing_id: int) -> None:
        """
        Physically remove a listing. Not version-checked.

        Raises:
            NotFoundError: id below 1 (no round trip) or no row was removed.
        """
        if listing_id < 1:
            raise NotFoundError()

        stmt = delete(self.table).where(self.table.c.id == listing_id)

        async with db_error_handler(self.db, self.model_name, self.timeout):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                logger.info(
                    "repo.listing.delete.not_found",
                    extra={"model": self.model_name, "operation": "delete", "id": listing_id},
                )
                raise NotFoundError()

        logger.info(
            "repo.listing.delete.success",
            extra={"model": self.model_name, "operation": "delete", "id": listing_id},
        )

    # =================================================================================================================
    # List
    # =================================================================================================================

    async def list(
        self,
        name: str = "",
        level: str = "",
        mode=(),
        filters: Filters | None = None,
    ) -> tuple[list[Listing], Metadata]:
        """
        Return one page of listings matching every non-empty filter, plus metadata.

        Matching:
          - name / level: at least one shared word token (case-insensitive)
          - mode: stored modes must contain every requested mode
        Ordering is the validated sort column and direction, then id ascending, so
        pages never overlap or skip rows. The total comes from `COUNT(*) OVER ()` in
        the same statement.

        Raises:
            InvalidFieldError: the sort key is not in the filter's allow-list.
        """
        filters = filters if filters is not None else Filters(sort_safelist=("id",))
        t = self.table

        sort_column = t.c[filters.sort_column()]
        ordering = sort_column.desc() if filters.sort_direction() == "DESC" else sort_column.asc()

        stmt = select(func.count().over().label("total_records"), *t.c)
        predicates = [
            p
            for p in (
                token_match(t.c.name, name),
                token_match(t.c.level, level),
                mode_contains(t.c.mode, mode),
            )
            if p is not None
        ]
        if predicates:
            stmt = stmt.where(*predicates)
        stmt = stmt.order_by(ordering, t.c.id.asc()).limit(filters.limit()).offset(filters.offset())

        start = time.perf_counter()
        async with db_error_handler(self.db, self.model_name, self.timeout):
            result = await self.db.execute(stmt)
            rows = result.mappings().all()

        total_records = rows[0]["total_records"] if rows else 0
        listings = [Listing.from_row(row) for row in rows]
        metadata = calculate_metadata(total_records, filters.page, filters.page_size)

        logger.debug(
            "repo.listing.list.success",
            extra={
                "model": self.model_name,
                "operation": "list",
                "returned": len(listings),
                "total_records": total_records,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return listings, metadata
