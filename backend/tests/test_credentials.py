"""
MovieGo API: Credential Primitive Tests
=======================================

Tests for password hashing and token generation.

Covers:
    ✅ bcrypt round trip, mismatch, and unparseable stored hashes
    ✅ Invalid cost surfaces as PasswordHashingError
    ✅ Token plaintext shape (26 chars, base32) and SHA-256 digest
    ✅ Token uniqueness
"""

import hashlib
import string

import pytest

from moviego.exceptions import PasswordHashingError, PasswordVerificationError
from moviego.services.credentials import (
    TOKEN_PLAINTEXT_LENGTH,
    generate_token,
    hash_password,
    hash_token,
    password_matches,
    set_password,
    validate_token_plaintext,
    verify_password,
)

BASE32_ALPHABET = set(string.ascii_uppercase + "234567")


class TestPasswords:
    """bcrypt hashing runs at cost 4 to keep the suite fast."""

    @pytest.mark.asyncio
    async def test_matching_password_verifies(self):
        digest = await set_password("pa55word", cost=4)

        assert digest.startswith(b"$2")
        assert await password_matches("pa55word", digest) is True

    @pytest.mark.asyncio
    async def test_wrong_password_does_not_verify(self):
        digest = await set_password("pa55word", cost=4)

        assert await password_matches("pa55wordX", digest) is False

    def test_same_password_hashes_differently(self):
        """Each hash carries its own salt."""
        assert hash_password("pa55word", 4) != hash_password("pa55word", 4)

    def test_corrupt_stored_hash_is_an_error_not_a_mismatch(self):
        with pytest.raises(PasswordVerificationError):
            verify_password("pa55word", b"not-a-bcrypt-hash")

    def test_out_of_range_cost_raises_hashing_error(self):
        with pytest.raises(PasswordHashingError) as exc_info:
            hash_password("pa55word", cost=2)

        assert exc_info.value.status_code == 500
        assert exc_info.value.public is False


class TestTokens:
    def test_plaintext_is_26_base32_characters(self):
        plaintext, _ = generate_token()

        assert len(plaintext) == TOKEN_PLAINTEXT_LENGTH == 26
        assert set(plaintext) <= BASE32_ALPHABET

    def test_hash_is_sha256_of_plaintext(self):
        plaintext, token_hash = generate_token()

        assert token_hash == hashlib.sha256(plaintext.encode()).digest()
        assert hash_token(plaintext) == token_hash
        assert len(token_hash) == 32

    def test_tokens_are_unique(self):
        plaintexts = {generate_token()[0] for _ in range(200)}

        assert len(plaintexts) == 200

    @pytest.mark.parametrize(
        "plaintext, expected",
        [
            ("", False),
            ("ABCDEFGHIJKLMNOPQRSTUVWXY", False),
            ("ABCDEFGHIJKLMNOPQRSTUVWXYZ", True),
            ("ABCDEFGHIJKLMNOPQRSTUVWXYZ2", False),
        ],
    )
    def test_plaintext_shape_check(self, plaintext, expected):
        assert validate_token_plaintext(plaintext) is expected
