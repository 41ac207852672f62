import pytest
from pydantic import ValidationError

from listing_store.config.settings import Settings
from listing_store.validators.config_validators import to_positive_float


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_database_url():
    settings = make_settings(
        POSTGRES_USERNAME="u",
        POSTGRES_PASSWORD="p",
        POSTGRES_HOST="db",
        POSTGRES_PORT=5433,
        POSTGRES_DB="listings",
    )
    assert settings.DATABASE_URL == "postgresql+psycopg://u:p@db:5433/listings"


def test_database_url_points_at_test_db_when_testing():
    settings = make_settings(POSTGRES_DB="listings", TEST_POSTGRES_DB="listings_test", TESTING=True)
    assert settings.DATABASE_URL.endswith("/listings_test")

    not_testing = make_settings(POSTGRES_DB="listings", TEST_POSTGRES_DB="listings_test", TESTING=False)
    assert not_testing.DATABASE_URL.endswith("/listings")


def test_log_settings_are_normalized():
    settings = make_settings(LOG_LEVEL="debug", LOG_FORMAT="TEXT")
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.LOG_FORMAT == "text"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError):
        make_settings(LOG_LEVEL="verbose")


def test_store_timeout():
    assert make_settings().STORE_TIMEOUT_SECONDS == 3.0
    assert make_settings(STORE_TIMEOUT_SECONDS=0.5).STORE_TIMEOUT_SECONDS == 0.5

    with pytest.raises(ValidationError):
        make_settings(STORE_TIMEOUT_SECONDS=0)


def test_to_positive_float():
    assert to_positive_float(1) == 1.0
    with pytest.raises(ValueError):
        to_positive_float(-2.5)
