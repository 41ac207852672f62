import pytest

from listing_store.validators.validator import (
    EMAIL_RX,
    PHONE_RX,
    Validator,
    byte_length,
    matches,
    permitted_value,
    unique,
    valid_website,
)


class TestValidator:

    def test_new_validator_is_valid(self):
        v = Validator()
        assert v.valid() is True
        assert v.errors == {}

    def test_check_records_failure(self):
        v = Validator()
        v.check(False, "name", "must be provided")
        assert v.valid() is False
        assert v.errors == {"name": "must be provided"}

    def test_check_passing_records_nothing(self):
        v = Validator()
        v.check(True, "name", "must be provided")
        assert v.valid()

    def test_first_error_per_field_wins(self):
        """
        Behavior:
            - Two failures for the same field: only the first message is kept.
            - A failure for another field is still recorded.
        """
        v = Validator()
        v.check(False, "mode", "must contain at least 1 entry")
        v.check(False, "mode", "must not contain duplicate entries")
        v.add_error("phone", "must be a valid phone number")

        assert v.errors == {
            "mode": "must contain at least 1 entry",
            "phone": "must be a valid phone number",
        }


class TestHelpers:

    @pytest.mark.parametrize("phone", ["601-4411", "+501 601-4411", "(501) 601 4411", "5016014411"])
    def test_phone_accepts(self, phone):
        assert matches(phone, PHONE_RX)

    @pytest.mark.parametrize("phone", ["abc", "12-34", "601-4411x", "+" + "1" * 16])
    def test_phone_rejects(self, phone):
        assert not matches(phone, PHONE_RX)

    @pytest.mark.parametrize("email", ["a@b.co", "first.last+tag@example.org"])
    def test_email_accepts(self, email):
        assert matches(email, EMAIL_RX)

    @pytest.mark.parametrize("email", ["plainaddress", "@example.org", "user@", "user@-bad-.org"])
    def test_email_rejects(self, email):
        assert not matches(email, EMAIL_RX)

    @pytest.mark.parametrize("url", ["https://example.org", "http://localhost:8000/path?q=1"])
    def test_website_accepts(self, url):
        assert valid_website(url)

    @pytest.mark.parametrize("url", ["", "example.org", "ftp://example.org", "https://", "not a url"])
    def test_website_rejects(self, url):
        assert not valid_website(url)

    def test_unique(self):
        assert unique(["online", "blended"])
        assert unique([])
        assert not unique(["online", "online"])

    def test_permitted_value(self):
        assert permitted_value("id", "id", "-id")
        assert not permitted_value("password", "id", "-id")

    def test_byte_length_counts_utf8_bytes(self):
        assert byte_length("abc") == 3
        # 'é' is two bytes in UTF-8
        assert byte_length("é") == 2
