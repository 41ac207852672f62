"""
Listing service: the unit of work a request handler calls.

Each public method runs raw input through the Validator, calls the resource store
and then commits the session's transaction, or rolls it back on any failure.
Validation failures surface as ValidationFailedError carrying the field -> message
map; everything else is already in the store's error taxonomy.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from listing_store.exceptions import (
    EditConflictError,
    InvalidFieldError,
    RepositoryError,
    StorageError,
    StorageTimeoutError,
    ValidationFailedError,
)
from listing_store.exceptions.mapper import rollback_quietly
from listing_store.models.listing import STORE_FIELDS, Listing, ListingDraft, ListingRecord
from listing_store.repositories.filters import Filters, Metadata, validate_filters
from listing_store.repositories.listing_repository import ListingRepository
from listing_store.validators.exception_validators import find_unknown_model_kwargs
from listing_store.validators.listing_validators import validate_listing
from listing_store.validators.validator import Validator

logger = logging.getLogger(__name__)

SORT_SAFELIST = (
    "id", "name", "level", "contact", "created_at",
    "-id", "-name", "-level", "-contact", "-created_at",
)
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
DEFAULT_SORT = "id"


class ListingService:
    def __init__(self, db: AsyncSession, timeout: float | None = None):
        self.db = db
        self.repository = ListingRepository(db, timeout=timeout)
        self.timeout = self.repository.timeout

    # -----------------------
    # helpers
    # -----------------------

    @asynccontextmanager
    async def _unit_of_work(self, operation: str):
        """
        Commit when the block succeeds, roll back when it raises. Commit and rollback
        are bounded by the store deadline like every statement.
        """
        try:
            yield
            async with asyncio.timeout(self.timeout):
                await self.db.commit()
        except RepositoryError:
            await rollback_quietly(self.db, "Listing", operation, self.timeout)
            raise
        except TimeoutError as exc:
            await rollback_quietly(self.db, "Listing", operation, self.timeout)
            logger.warning("service.listing.commit_timeout", extra={"operation": operation, "timeout_s": self.timeout})
            raise StorageTimeoutError() from exc
        except Exception as exc:
            await rollback_quietly(self.db, "Listing", operation, self.timeout)
            logger.exception("service.listing.commit_failed", extra={"operation": operation})
            raise StorageError("the listing store could not complete the operation") from exc

    @staticmethod
    def _reject_unknown_fields(fields: dict[str, Any], operation: str) -> None:
        unknown = find_unknown_model_kwargs(ListingRecord, fields, exclude=STORE_FIELDS)
        if unknown:
            logger.info(
                "service.listing.invalid_fields",
                extra={"operation": operation, "invalid_fields": unknown},
            )
            raise InvalidFieldError(f"Unknown or read-only field(s) for Listing: {', '.join(unknown)}", fields=unknown)

    @staticmethod
    def _validated(draft: ListingDraft, operation: str) -> None:
        v = Validator()
        validate_listing(v, draft)
        if not v.valid():
            logger.info(
                "service.listing.failed_validation",
                extra={"operation": operation, "invalid_fields": sorted(v.errors)},
            )
            raise ValidationFailedError(v.errors)

    # =================================================================================================================
    # Operations
    # =================================================================================================================

    async def create_listing(self, **fields: Any) -> Listing:
        """
        Validate and persist a new listing.

        Raises:
            InvalidFieldError: unknown keys, or store-owned ones (id, created_at, version).
            ValidationFailedError: one or more fields break the listing invariants.
            StorageError: the backend failed.
        """
        self._reject_unknown_fields(fields, "create")
        draft = ListingDraft.from_fields(fields)
        self._validated(draft, "create")

        async with self._unit_of_work("create"):
            listing = await self.repository.insert(draft.to_listing())
        return listing

    async def get_listing(self, listing_id: int) -> Listing:
        return await self.repository.get(listing_id)

    async def update_listing(self, listing_id: int, *, expected_version: int | None = None, **changes: Any) -> Listing:
        """
        Apply a partial update: provided fields replace the stored ones, omitted
        (or None) fields are kept. The merged result is validated as a whole.

        If `expected_version` is given it must equal the stored version, otherwise
        EditConflictError is raised before anything is written. Either way the write
        itself is conditional on the version read here.
        """
        self._reject_unknown_fields(changes, "update")

        async with self._unit_of_work("update"):
            current = await self.repository.get(listing_id)
            if expected_version is not None and expected_version != current.version:
                logger.info(
                    "service.listing.update.stale_version",
                    extra={"id": listing_id, "expected_version": expected_version, "version": current.version},
                )
                raise EditConflictError()

            draft = ListingDraft.from_listing(current).merge(changes)
            self._validated(draft, "update")

            listing = draft.to_listing(id=current.id, created_at=current.created_at, version=current.version)
            await self.repository.update(listing)
        return listing

    async def delete_listing(self, listing_id: int) -> None:
        async with self._unit_of_work("delete"):
            await self.repository.delete(listing_id)

    async def list_listings(
        self,
        *,
        name: str = "",
        level: str = "",
        mode: Iterable[str] = (),
        page: int = DEFAULT_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: str = DEFAULT_SORT,
    ) -> tuple[list[Listing], Metadata]:
        """
        Validate pagination input and return one page of matching listings.

        Raises:
            ValidationFailedError: page, page_size or sort out of bounds / not allowed.
        """
        filters = Filters(page=page, page_size=page_size, sort=sort, sort_safelist=SORT_SAFELIST)
        v = Validator()
        validate_filters(v, filters)
        if not v.valid():
            logger.info(
                "service.listing.list.failed_validation",
                extra={"operation": "list", "invalid_fields": sorted(v.errors)},
            )
            raise ValidationFailedError(v.errors)

        modes = [mode] if isinstance(mode, str) else list(mode or ())
        return await self.repository.list(name=name or "", level=level or "", mode=modes, filters=filters)
