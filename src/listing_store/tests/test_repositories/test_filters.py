import pytest

from listing_store.exceptions import InvalidFieldError
from listing_store.repositories.filters import Filters, Metadata, calculate_metadata, validate_filters
from listing_store.validators.validator import Validator

SAFELIST = ("id", "name", "-id", "-name")


def errors_for(**kwargs) -> dict[str, str]:
    v = Validator()
    validate_filters(v, Filters(sort_safelist=SAFELIST, **kwargs))
    return v.errors


class TestValidateFilters:

    def test_defaults_are_valid(self):
        assert errors_for() == {}

    @pytest.mark.parametrize(
        "kwargs, field, message",
        [
            ({"page": 0}, "page", "must be greater than zero"),
            ({"page": 10_000_001}, "page", "must be a maximum of 10 million"),
            ({"page_size": 0}, "page_size", "must be greater than zero"),
            ({"page_size": 101}, "page_size", "must be a maximum of 100"),
            ({"sort": "password"}, "sort", "invalid sort value"),
            ({"sort": "-password"}, "sort", "invalid sort value"),
        ],
    )
    def test_out_of_bounds(self, kwargs, field, message):
        assert errors_for(**kwargs) == {field: message}

    def test_bounds_inclusive(self):
        assert errors_for(page=10_000_000, page_size=100) == {}
        assert errors_for(page=1, page_size=1) == {}


class TestDerivedValues:

    def test_limit_and_offset(self):
        f = Filters(page=3, page_size=20, sort="id", sort_safelist=SAFELIST)
        assert f.limit() == 20
        assert f.offset() == 40

    def test_ascending_sort(self):
        f = Filters(sort="name", sort_safelist=SAFELIST)
        assert f.sort_column() == "name"
        assert f.sort_direction() == "ASC"

    def test_descending_sort(self):
        f = Filters(sort="-name", sort_safelist=SAFELIST)
        assert f.sort_column() == "name"
        assert f.sort_direction() == "DESC"

    def test_sort_column_refuses_unlisted_key(self):
        """
        Behavior:
            - A sort key that never went through validation must not reach ORDER BY.
        """
        f = Filters(sort="name; DROP TABLE listings", sort_safelist=SAFELIST)
        with pytest.raises(InvalidFieldError) as exc_info:
            f.sort_column()
        assert exc_info.value.fields == ["sort"]


class TestCalculateMetadata:

    def test_zero_records(self):
        assert calculate_metadata(0, 1, 20) == Metadata(0, 0, 0, 0, 0)

    @pytest.mark.parametrize(
        "total, page_size, last_page",
        [(1, 20, 1), (20, 20, 1), (21, 20, 2), (100, 7, 15)],
    )
    def test_last_page_rounds_up(self, total, page_size, last_page):
        metadata = calculate_metadata(total, 1, page_size)
        assert metadata.last_page == last_page
        assert metadata.first_page == 1
        assert metadata.total_records == total

    def test_to_dict(self):
        assert calculate_metadata(1, 1, 20).to_dict() == {
            "current_page": 1,
            "page_size": 20,
            "first_page": 1,
            "last_page": 1,
            "total_records": 1,
        }
