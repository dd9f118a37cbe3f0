"""
MovieGo API: Validation Rule Tests
==================================

Covers:
    ✅ Validator keeps the first message per field
    ✅ Movie rules: presence, year range, runtime, genre count/uniqueness
    ✅ Filter rules: page bounds, page size bounds, sort safelist
    ✅ User rules: email pattern, password byte length, name length
    ✅ Pagination metadata arithmetic
"""

from datetime import datetime, timezone

import pytest

from moviego.exceptions import ValidationError
from moviego.schemas.filters import MovieFilters, PaginationMetadata
from moviego.validation import (
    Validator,
    validate_filters,
    validate_movie,
    validate_token_plaintext,
    validate_user,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def movie_errors(**overrides):
    fields = {"title": "Moana", "year": 2016, "runtime": 107, "genres": ["animation", "adventure"]}
    fields.update(overrides)
    v = Validator()
    validate_movie(v, now=NOW, **fields)
    return v.errors


class TestValidator:
    def test_first_error_per_field_wins(self):
        v = Validator()
        v.add_error("year", "first")
        v.add_error("year", "second")

        assert v.errors == {"year": "first"}

    def test_raise_if_invalid_carries_all_fields(self):
        v = Validator()
        v.check(False, "title", "must be provided")
        v.check(False, "year", "must be provided")
        v.check(True, "runtime", "never recorded")

        with pytest.raises(ValidationError) as exc_info:
            v.raise_if_invalid()

        assert exc_info.value.status_code == 422
        assert exc_info.value.errors == {"title": "must be provided", "year": "must be provided"}

    def test_valid_validator_does_not_raise(self):
        v = Validator()
        v.raise_if_invalid()
        assert v.valid


class TestMovieRules:
    def test_valid_movie_has_no_errors(self):
        assert movie_errors() == {}

    def test_missing_fields(self):
        errors = movie_errors(title=None, year=None, runtime=None, genres=None)

        assert errors == {
            "title": "must be provided",
            "year": "must be provided",
            "runtime": "must be provided",
            "genres": "must be provided",
        }

    def test_title_longer_than_500_bytes(self):
        assert movie_errors(title="é" * 251) == {"title": "must not be more than 500 bytes long"}

    @pytest.mark.parametrize(
        "year, message",
        [(1887, "must be greater than 1888"), (2025, "must not be in the future")],
    )
    def test_year_bounds(self, year, message):
        assert movie_errors(year=year) == {"year": message}

    def test_year_boundaries_are_inclusive(self):
        assert movie_errors(year=1888) == {}
        assert movie_errors(year=2024) == {}

    def test_negative_runtime(self):
        assert movie_errors(runtime=-5) == {"runtime": "must be a positive integer"}

    @pytest.mark.parametrize(
        "genres, message",
        [
            ([], "must contain at least 1 genre"),
            (["a", "b", "c", "d", "e", "f"], "must not contain more than 5 genres"),
            (["drama", "drama"], "must not contain duplicate values"),
        ],
    )
    def test_genre_rules(self, genres, message):
        assert movie_errors(genres=genres) == {"genres": message}


class TestFilterRules:
    def errors(self, **kwargs):
        v = Validator()
        validate_filters(v, MovieFilters(**kwargs))
        return v.errors

    def test_defaults_are_valid(self):
        assert self.errors() == {}

    def test_page_bounds(self):
        assert self.errors(page=0) == {"page": "must be greater than zero"}
        assert self.errors(page=10_000_001) == {"page": "must be a maximum of 10 million"}

    def test_page_size_bounds(self):
        assert self.errors(page_size=0) == {"page_size": "must be greater than zero"}
        assert self.errors(page_size=101) == {"page_size": "must be a maximum of 100"}

    def test_sort_outside_safelist(self):
        assert self.errors(sort="genres") == {"sort": "invalid sort value"}

    def test_sort_helpers(self):
        filters = MovieFilters(page=3, page_size=10, sort="-year")

        assert filters.sort_column() == "year"
        assert filters.sort_direction() == "DESC"
        assert filters.limit() == 10
        assert filters.offset() == 20

    def test_sort_column_refuses_unsafe_value(self):
        with pytest.raises(ValueError):
            MovieFilters(sort="title; DROP TABLE movies").sort_column()


class TestPaginationMetadata:
    def test_empty_result_set_has_empty_metadata(self):
        assert PaginationMetadata.calculate(0, 1, 20).to_dict() == {}

    def test_last_page_rounds_up(self):
        metadata = PaginationMetadata.calculate(total_records=21, page=2, page_size=10)

        assert metadata.to_dict() == {
            "current_page": 2,
            "page_size": 10,
            "first_page": 1,
            "last_page": 3,
            "total_records": 21,
        }


class TestUserRules:
    def errors(self, **overrides):
        fields = {"name": "Alice", "email": "alice@example.com", "password": "pa55word"}
        fields.update(overrides)
        v = Validator()
        validate_user(v, **fields)
        return v.errors

    def test_valid_user(self):
        assert self.errors() == {}

    @pytest.mark.parametrize("email", ["alice", "alice@", "@example.com", "alice@-example.com"])
    def test_malformed_email(self, email):
        assert self.errors(email=email) == {"email": "must be a valid email address"}

    def test_password_byte_length(self):
        assert self.errors(password="short") == {"password": "must be at least 8 bytes long"}
        assert self.errors(password="x" * 73) == {"password": "must not be more than 72 bytes long"}
        assert self.errors(password="x" * 72) == {}

    def test_name_length(self):
        assert self.errors(name="n" * 501) == {"name": "must not be more than 500 bytes long"}

    def test_token_plaintext_rules(self):
        v = Validator()
        validate_token_plaintext(v, "")
        assert v.errors == {"token": "must be provided"}

        v = Validator()
        validate_token_plaintext(v, "TOOSHORT")
        assert v.errors == {"token": "must be 26 bytes long"}
