"""
listing-store: optimistic-concurrency CRUD and paginated search for listings.

Usage:
    from listing_store import ListingService
    from listing_store.database.session import get_async_session

    async for db in get_async_session():
        service = ListingService(db)
        listing = await service.create_listing(name="Example Academy", ...)
"""

from .models import Listing, ListingDraft
from .repositories import Filters, ListingRepository, Metadata
from .services import ListingService

__all__ = [
    "Filters",
    "Listing",
    "ListingDraft",
    "ListingRepository",
    "ListingService",
    "Metadata",
]
