from .listing_service import SORT_SAFELIST, ListingService

__all__ = ["SORT_SAFELIST", "ListingService"]
