"""
Repository layer: the listing resource store and its query helpers.

Usage:
    from listing_store.repositories import ListingRepository, Filters
"""

from .filters import Filters, Metadata, calculate_metadata, validate_filters
from .listing_repository import ListingRepository

__all__ = [
    "Filters",
    "Metadata",
    "calculate_metadata",
    "validate_filters",
    "ListingRepository",
]
