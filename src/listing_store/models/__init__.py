"""
Listing models: the `listings` table mapping, the domain entity and raw caller input.

Usage:
    from listing_store.models import Listing, ListingDraft, ListingRecord
"""

from .listing import CALLER_FIELDS, STORE_FIELDS, Listing, ListingDraft, ListingRecord

__all__ = [
    "CALLER_FIELDS",
    "STORE_FIELDS",
    "Listing",
    "ListingDraft",
    "ListingRecord",
]
