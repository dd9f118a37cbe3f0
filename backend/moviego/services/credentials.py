"""
MovieGo API: Credential Primitives
==================================

What:  Password hashing/verification (bcrypt) and opaque token generation.
How:   bcrypt is CPU-bound (hundreds of milliseconds at cost 12), so the async
       helpers run it in Starlette's thread pool; the event loop keeps
       serving other requests while a hash is computed.

Token format:
    16 bytes from the OS CSPRNG, base32-encoded without padding, giving a
    26-character plaintext. Only its SHA-256 digest is ever stored.

Example:
    digest = await set_password("pa55word", cost=12)
    await password_matches("pa55word", digest)   → True
    plaintext, token_hash = generate_token()
"""

import base64
import hashlib
import logging
import secrets
from typing import Tuple

import bcrypt
from starlette.concurrency import run_in_threadpool

from moviego.exceptions import PasswordHashingError, PasswordVerificationError

logger = logging.getLogger(__name__)

TOKEN_ENTROPY_BYTES = 16
TOKEN_PLAINTEXT_LENGTH = 26


# ── Passwords ─────────────────────────────────────────────────────────────


def hash_password(plaintext: str, cost: int) -> bytes:
    """Synchronous bcrypt hash. Raises PasswordHashingError on any failure."""
    try:
        return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=cost))
    except (ValueError, TypeError) as exc:
        raise PasswordHashingError(context={"error_type": type(exc).__name__}) from exc


def verify_password(plaintext: str, password_hash: bytes) -> bool:
    """
    Synchronous bcrypt comparison.

    A wrong password returns False. A hash that bcrypt cannot parse is not a
    mismatch; it raises PasswordVerificationError.
    """
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), password_hash)
    except (ValueError, TypeError) as exc:
        raise PasswordVerificationError(context={"error_type": type(exc).__name__}) from exc


async def set_password(plaintext: str, cost: int) -> bytes:
    return await run_in_threadpool(hash_password, plaintext, cost)


async def password_matches(plaintext: str, password_hash: bytes) -> bool:
    return await run_in_threadpool(verify_password, plaintext, password_hash)


# ── Tokens ────────────────────────────────────────────────────────────────


def hash_token(plaintext: str) -> bytes:
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def generate_token() -> Tuple[str, bytes]:
    """Returns (plaintext, sha256 digest) for a fresh random token."""
    raw = secrets.token_bytes(TOKEN_ENTROPY_BYTES)
    plaintext = base64.b32encode(raw).decode("ascii").rstrip("=")
    return plaintext, hash_token(plaintext)


def validate_token_plaintext(plaintext: str) -> bool:
    """Cheap shape check before a store lookup: non-empty and 26 characters."""
    return bool(plaintext) and len(plaintext) == TOKEN_PLAINTEXT_LENGTH
