# Engine/session helpers live in `listing_store.database.session`.
from .base import Base

__all__ = ["Base"]
