"""
The listing: persistence mapping, domain entity and raw caller input.

Three shapes of the same record live here:

  - `ListingRecord`: the SQLAlchemy mapping of the `listings` table. The repository
    only uses its `__table__` for Core statements (INSERT/UPDATE ... RETURNING),
    the ORM identity map is never involved.
  - `Listing`: the in-memory entity handed to and returned by the store. Modes are
    a genuine set (`frozenset`), so equality ignores order.
  - `ListingDraft`: unvalidated caller input. Every caller-owned field is optional
    and `mode` keeps the submitted list so duplicates can still be detected.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    JSON,
    Text,
    func,
    literal_column,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from listing_store.database.base import Base

# Column type for the mode set: TEXT[] on PostgreSQL, JSON text on SQLite.
ModeArray = ARRAY(Text).with_variant(JSON(), "sqlite")

# Fields callers may set; id / created_at / version belong to the store.
CALLER_FIELDS = ("name", "level", "contact", "phone", "email", "website", "address", "mode")
STORE_FIELDS = ("id", "created_at", "version")


class ListingRecord(Base):
    """
    SQLAlchemy model for the `listings` table.
    """
    __tablename__ = "listings"

    # BIGINT identity on PostgreSQL; INTEGER on SQLite so it aliases ROWID
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[str] = mapped_column(Text, nullable=False)
    contact: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    website: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Stored sorted so the persisted form is deterministic
    mode: Mapped[list[str]] = mapped_column(ModeArray, nullable=False)

    version: Mapped[int] = mapped_column(
        Integer,
        server_default=text("1"),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("version >= 1", name="version_positive"),
    )

    def __repr__(self) -> str:
        return f"<ListingRecord id={self.id} name={self.name!r} version={self.version}>"


TEXT_SEARCH_CONFIG = "simple"

# Any run of characters that are not letters or digits separates two tokens
TOKEN_SEPARATOR_PG = "[^[:alnum:]]+"


def searchable_text(column):
    """
    `to_tsvector` of `column` with every non-alphanumeric run replaced by a space.

    Shared by the PostgreSQL search predicate and the GIN indexes below; an
    expression index only serves queries that repeat the exact expression.
    """
    return func.to_tsvector(
        literal_column(f"'{TEXT_SEARCH_CONFIG}'"),
        func.regexp_replace(
            column,
            literal_column(f"'{TOKEN_SEPARATOR_PG}'"),
            literal_column("' '"),
            literal_column("'g'"),
        ),
    )


# Full-text and containment indexes only exist on PostgreSQL.
Index(
    "ix_listings_name_search",
    searchable_text(ListingRecord.name),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
Index(
    "ix_listings_level_search",
    searchable_text(ListingRecord.level),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
Index(
    "ix_listings_mode",
    ListingRecord.mode,
    postgresql_using="gin",
).ddl_if(dialect="postgresql")


# =================================================================================================================
# Domain entity
# =================================================================================================================

@dataclass
class Listing:
    name: str
    level: str
    contact: str
    phone: str
    email: str
    website: str
    address: str
    mode: frozenset[str] = field(default_factory=frozenset)
    id: int = 0
    created_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.mode, frozenset):
            self.mode = frozenset(self.mode)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Listing":
        """Build an entity from a result row mapping (`result.mappings()`)."""
        return cls(
            id=row["id"],
            created_at=row["created_at"],
            name=row["name"],
            level=row["level"],
            contact=row["contact"],
            phone=row["phone"],
            email=row["email"],
            website=row["website"],
            address=row["address"],
            mode=frozenset(row["mode"] or ()),
            version=row["version"],
        )

    def column_values(self) -> dict[str, Any]:
        """Values for the caller-owned columns, mode as a sorted list."""
        return {
            "name": self.name,
            "level": self.level,
            "contact": self.contact,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "address": self.address,
            "mode": sorted(self.mode),
        }

    def to_dict(self) -> dict[str, Any]:
        data = {"id": self.id, "created_at": self.created_at}
        data.update(self.column_values())
        data["version"] = self.version
        return data


# =================================================================================================================
# Raw caller input
# =================================================================================================================

@dataclass
class ListingDraft:
    name: str | None = None
    level: str | None = None
    contact: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    address: str | None = None
    mode: list[str] | None = None

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "ListingDraft":
        """
        Build a draft from caller keyword input. Unknown keys must have been rejected
        beforehand; a non-string iterable for `mode` is kept in submitted order.
        """
        data = {k: fields[k] for k in CALLER_FIELDS if k in fields}
        if "mode" in data:
            data["mode"] = _as_mode_list(data["mode"])
        return cls(**data)

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingDraft":
        """Seed a draft from a stored entity (the base of a partial update)."""
        return cls(
            name=listing.name,
            level=listing.level,
            contact=listing.contact,
            phone=listing.phone,
            email=listing.email,
            website=listing.website,
            address=listing.address,
            mode=sorted(listing.mode),
        )

    def merge(self, changes: Mapping[str, Any]) -> "ListingDraft":
        """Return a copy with the provided fields replaced (None means 'not provided')."""
        updates = {k: changes[k] for k in CALLER_FIELDS if k in changes and changes[k] is not None}
        if "mode" in updates:
            updates["mode"] = _as_mode_list(updates["mode"])
        return dataclasses.replace(self, **updates)

    def to_listing(self, *, id: int = 0, created_at: datetime | None = None, version: int = 0) -> Listing:
        return Listing(
            name=self.name or "",
            level=self.level or "",
            contact=self.contact or "",
            phone=self.phone or "",
            email=self.email or "",
            website=self.website or "",
            address=self.address or "",
            mode=frozenset(self.mode or ()),
            id=id,
            created_at=created_at,
            version=version,
        )


def _as_mode_list(value: Any) -> Any:
    # strings stay as-is so validation can reject them instead of splitting characters
    if value is None or isinstance(value, (str, bytes)):
        return value
    if isinstance(value, Iterable):
        return list(value)
    return value
