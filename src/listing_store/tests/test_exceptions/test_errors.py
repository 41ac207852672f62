from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from listing_store.exceptions import (
    ConstraintViolationError,
    EditConflictError,
    InvalidFieldError,
    NotFoundError,
    RepositoryError,
    StorageError,
    StorageTimeoutError,
    ValidationFailedError,
)
from listing_store.exceptions.integrity_classifier import (
    CheckConstraintError,
    ForeignKeyConstraintError,
    NotNullConstraintError,
    UniqueConstraintError,
    UnknownIntegrityError,
    classify_integrity_error,
)
from listing_store.exceptions.mapper import extract_columns_from_integrity, raise_mapped_integrity_error


class TestTaxonomy:

    @pytest.mark.parametrize(
        "error, code, status",
        [
            (NotFoundError(), "not_found", 404),
            (EditConflictError(), "edit_conflict", 409),
            (InvalidFieldError("bad", fields=["colour"]), "invalid_field", 422),
            (ValidationFailedError({"phone": "must be a valid phone number"}), "failed_validation", 422),
            (StorageError(), "storage", 500),
            (StorageTimeoutError(), "storage_timeout", 504),
            (ConstraintViolationError("refused"), "constraint", 500),
        ],
    )
    def test_codes_and_statuses(self, error, code, status):
        assert error.error_code == code
        assert error.http_status() == status
        assert error.to_payload()["code"] == code

    def test_storage_family(self):
        assert issubclass(StorageTimeoutError, StorageError)
        assert issubclass(ConstraintViolationError, StorageError)
        assert issubclass(CheckConstraintError, StorageError)

    def test_plain_repository_error_defaults_to_400(self):
        assert RepositoryError("odd").http_status() == 400

    def test_validation_payload_carries_every_field(self):
        err = ValidationFailedError({"phone": "must be a valid phone number", "mode": "must be provided"})

        payload = err.to_payload()

        assert payload["errors"] == {"phone": "must be a valid phone number", "mode": "must be provided"}
        assert payload["fields"] == ["mode", "phone"]

    def test_edit_conflict_points_at_version(self):
        assert EditConflictError().to_payload()["fields"] == ["version"]

    def test_constraint_name_stays_out_of_payload(self):
        err = ConstraintViolationError("refused", constraint="ck_listings_version_positive")

        assert "constraint" not in err.to_payload()
        assert "ck_listings_version_positive" in str(err)


def _integrity(orig) -> IntegrityError:
    return IntegrityError("INSERT INTO listings ...", params={}, orig=orig)


class TestIntegrityClassifier:

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("23505", UniqueConstraintError),
            ("23502", NotNullConstraintError),
            ("23503", ForeignKeyConstraintError),
            ("23514", CheckConstraintError),
            ("23000", UnknownIntegrityError),
        ],
    )
    def test_postgres_sqlstate(self, code, expected):
        orig = SimpleNamespace(sqlstate=code, diag=SimpleNamespace(constraint_name="some_constraint"))

        exc_cls, constraint = classify_integrity_error(_integrity(orig))

        assert exc_cls is expected
        assert constraint == "some_constraint"

    def test_psycopg2_style_pgcode(self):
        orig = SimpleNamespace(pgcode="23502", diag=None)
        assert classify_integrity_error(_integrity(orig)) == (NotNullConstraintError, None)

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("NOT NULL constraint failed: listings.name", NotNullConstraintError),
            ("UNIQUE constraint failed: listings.email", UniqueConstraintError),
            ("CHECK constraint failed: version_positive", CheckConstraintError),
            ("FOREIGN KEY constraint failed", ForeignKeyConstraintError),
            ("something else entirely", UnknownIntegrityError),
        ],
    )
    def test_generic_messages(self, message, expected):
        exc_cls, constraint = classify_integrity_error(_integrity(Exception(message)))
        assert exc_cls is expected
        assert constraint is None

    @pytest.mark.parametrize(
        "message, columns",
        [
            ("NOT NULL constraint failed: listings.name", ["name"]),
            ('null value in column "phone" of relation "listings" violates not-null constraint', ["phone"]),
            ("DETAIL:  Key (email)=(a@b.co) already exists.", ["email"]),
            ("CHECK constraint failed: version_positive", None),
        ],
    )
    def test_column_extraction(self, message, columns):
        assert extract_columns_from_integrity(_integrity(Exception(message))) == columns

    def test_mapped_error_hides_raw_message(self):
        raw = Exception("NOT NULL constraint failed: listings.address")

        with pytest.raises(NotNullConstraintError) as exc_info:
            raise_mapped_integrity_error(_integrity(raw), "Listing")

        err = exc_info.value
        assert err.message == "Missing required column(s) for Listing: address"
        assert err.fields == ["address"]
        assert err.__cause__.orig is raw
