from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from listing_store.config import get_settings
from listing_store.repositories.search import register_sqlite_functions


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Create the AsyncEngine for `url`.

    On SQLite the search helper functions (token overlap, mode containment) are
    registered on every new DBAPI connection, so list queries compile to the same
    predicates on both backends.
    """
    engine = create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,              # Enables connection health checks
    )

    if make_url(url).get_backend_name() == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            register_sqlite_functions(dbapi_connection)

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return build_engine(settings.DATABASE_URL, echo=settings.SQLALCHEMY_ECHO)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session bound to the configured engine and close it afterwards.

    Usage:
        async for db in get_async_session():
            service = ListingService(db)
    """
    maker = build_session_maker(get_engine())
    async with maker() as session:
        yield session
