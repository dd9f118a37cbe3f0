"""
MovieGo API: Field Validation
=============================

What:  A small error collector plus the validation rules for every input the
       API accepts (movies, users, tokens, list filters).
How:   Each rule calls `Validator.check(ok, field, message)`; the first
       message per field wins. `raise_if_invalid()` raises ValidationError
       (HTTP 422) carrying the whole field → message map.

Example:
    v = Validator()
    v.check(year >= 1888, "year", "must be greater than 1888")
    v.raise_if_invalid()
"""

import re
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from moviego.exceptions import ValidationError
from moviego.schemas.filters import MAX_PAGE, MAX_PAGE_SIZE, MovieFilters
from moviego.services.credentials import TOKEN_PLAINTEXT_LENGTH

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+\/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

FIRST_FILM_YEAR = 1888
MAX_TITLE_BYTES = 500
MAX_NAME_BYTES = 500
MIN_PASSWORD_BYTES = 8
# bcrypt ignores everything after the 72nd byte
MAX_PASSWORD_BYTES = 72


class Validator:
    """Collects field errors; the first error recorded for a field is kept."""

    def __init__(self) -> None:
        self.errors: Dict[str, str] = {}

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def check(self, ok: bool, field: str, message: str) -> None:
        if not ok:
            self.add_error(field, message)

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise ValidationError(errors=self.errors)


def unique(values: Iterable[str]) -> bool:
    values = list(values)
    return len(values) == len(set(values))


def _byte_len(value: str) -> int:
    return len(value.encode("utf-8"))


# ── Movies ────────────────────────────────────────────────────────────────


def validate_movie(
    v: Validator,
    title: Optional[str],
    year: Optional[int],
    runtime: Optional[int],
    genres: Optional[list],
    now: Optional[datetime] = None,
) -> None:
    current_year = (now or datetime.now(timezone.utc)).year

    v.check(bool(title), "title", "must be provided")
    if title:
        v.check(_byte_len(title) <= MAX_TITLE_BYTES, "title", "must not be more than 500 bytes long")

    v.check(bool(year), "year", "must be provided")
    if year:
        v.check(year >= FIRST_FILM_YEAR, "year", "must be greater than 1888")
        v.check(year <= current_year, "year", "must not be in the future")

    v.check(bool(runtime), "runtime", "must be provided")
    if runtime:
        v.check(runtime > 0, "runtime", "must be a positive integer")

    v.check(genres is not None, "genres", "must be provided")
    if genres is not None:
        v.check(len(genres) >= 1, "genres", "must contain at least 1 genre")
        v.check(len(genres) <= 5, "genres", "must not contain more than 5 genres")
        v.check(unique(genres), "genres", "must not contain duplicate values")


# ── Listing ───────────────────────────────────────────────────────────────


def validate_filters(v: Validator, filters: MovieFilters) -> None:
    v.check(filters.page > 0, "page", "must be greater than zero")
    v.check(filters.page <= MAX_PAGE, "page", "must be a maximum of 10 million")
    v.check(filters.page_size > 0, "page_size", "must be greater than zero")
    v.check(filters.page_size <= MAX_PAGE_SIZE, "page_size", "must be a maximum of 100")
    v.check(filters.sort in filters.sort_safelist, "sort", "invalid sort value")


# ── Users and tokens ──────────────────────────────────────────────────────


def validate_email(v: Validator, email: Optional[str]) -> None:
    v.check(bool(email), "email", "must be provided")
    if email:
        v.check(bool(EMAIL_RX.match(email)), "email", "must be a valid email address")


def validate_password_plaintext(v: Validator, password: Optional[str]) -> None:
    v.check(bool(password), "password", "must be provided")
    if password:
        size = _byte_len(password)
        v.check(size >= MIN_PASSWORD_BYTES, "password", "must be at least 8 bytes long")
        v.check(size <= MAX_PASSWORD_BYTES, "password", "must not be more than 72 bytes long")


def validate_user(v: Validator, name: Optional[str], email: Optional[str], password: Optional[str]) -> None:
    v.check(bool(name), "name", "must be provided")
    if name:
        v.check(_byte_len(name) <= MAX_NAME_BYTES, "name", "must not be more than 500 bytes long")
    validate_email(v, email)
    validate_password_plaintext(v, password)


def validate_token_plaintext(v: Validator, plaintext: Optional[str]) -> None:
    v.check(bool(plaintext), "token", "must be provided")
    if plaintext:
        v.check(len(plaintext) == TOKEN_PLAINTEXT_LENGTH, "token", "must be 26 bytes long")
