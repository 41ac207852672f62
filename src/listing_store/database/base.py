"""
Declarative base for the listing store's SQLAlchemy mappings.

Constraint names are derived from the naming convention, so the CHECK on
`listings.version` is created as `ck_listings_version_positive` on every backend
and integrity errors can be traced back to it.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
