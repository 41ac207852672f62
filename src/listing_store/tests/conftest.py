"""
Core pytest configuration for the listing store test suite.

Provides the database engine / session fixtures and installs the application
logging once per session. Listing-specific fixtures (factories, repository and
service instances) live in tests/test_fixtures/listing_fixtures.py and are
re-exported at the bottom of this module.

Database under test:
  - TEST_DATABASE_URL when set (e.g. postgresql+psycopg://.../listings_test in CI)
  - otherwise a fresh SQLite file per test (sqlite+aiosqlite, search functions registered)
"""

from __future__ import annotations

import os
import logging
from urllib.parse import urlparse
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning
# -------------------------------
# Keep third-party loggers quiet before anything imports them.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "asyncio",
    "aiosqlite",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from pytest import FixtureRequest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from listing_store.config import get_settings
from listing_store.core.logging.builder import setup_logging
from listing_store.database.base import Base
from listing_store.database.session import build_engine, build_session_maker
from listing_store.models import listing  # noqa: F401 - registers the listings table on Base.metadata

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install the application logging for the whole session, then re-attach pytest's
    capture handler (dictConfig removes it) so `caplog` keeps working.
    """
    setup_logging(settings)

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None) if caplog_plugin else None
    if handler is not None:
        logging.getLogger().addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    yield


def safe_log_db_url(db_url: str) -> str:
    """
    Database URL without credentials, for logging.
    """
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path) -> str:
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return f"sqlite+aiosqlite:///{tmp_path / 'test_listings.db'}"


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh `listings` table per test."""
    url = get_test_database_url(tmp_path)
    logger.debug(f"Using test DB: {safe_log_db_url(url)}")
    engine = build_engine(url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Factory for additional independent sessions (concurrency tests)."""
    return build_session_maker(async_engine)


@pytest.fixture()
async def db_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


# Listing fixtures
from .test_fixtures.listing_fixtures import (  # noqa: E402,F401
    listing_fields,
    listing_repository,
    listing_service,
    make_listing,
    created_listing,
)
