"""
MovieGo API: User and Permission Schemas
========================================

What:  The User domain record, the anonymous identity, the Permissions set
       and the request bodies for registration, activation and login.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class User(BaseModel):
    """
    A registered account.

    `password_hash` and `version` stay on the record for the stores and
    services but are excluded from every response body.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = 0
    created_at: Optional[datetime] = None
    name: str
    email: str
    password_hash: bytes = Field(default=b"", exclude=True, repr=False)
    activated: bool = False
    version: int = Field(default=1, exclude=True)

    @property
    def is_anonymous(self) -> bool:
        """Anonymous callers are represented by the id-less ANONYMOUS_USER."""
        return self.id == 0


# The identity attached to a request that carried no Authorization header.
ANONYMOUS_USER = User(
    id=0,
    created_at=datetime(1970, 1, 1, tzinfo=timezone.utc),
    name="",
    email="",
    activated=False,
    version=0,
)


class Permissions(frozenset):
    """
    The capability strings granted to one user.

    Membership is an exact string comparison: "movies:write" does not imply
    "movies:read".
    """

    def __new__(cls, codes: Iterable[str] = ()):
        return super().__new__(cls, codes)

    def includes(self, code: str) -> bool:
        return code in self

    def __repr__(self) -> str:
        return f"Permissions({sorted(self)!r})"


# ── Request bodies ────────────────────────────────────────────────────────


class UserCreate(BaseModel):
    """Body of POST /v1/users."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[StrictStr] = None
    email: Optional[StrictStr] = None
    password: Optional[StrictStr] = None


class ActivationRequest(BaseModel):
    """Body of PUT /v1/users/activated."""

    model_config = ConfigDict(extra="forbid")

    token: Optional[StrictStr] = None


class CredentialsRequest(BaseModel):
    """Body of POST /v1/tokens/authentication."""

    model_config = ConfigDict(extra="forbid")

    email: Optional[StrictStr] = None
    password: Optional[StrictStr] = None
