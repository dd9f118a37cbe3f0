"""
MovieGo API: Token Schemas
==========================

What:  The Token domain record and the response shape for issued tokens.
How:   The plaintext is only populated on the record returned by
       `TokenStore.new`; records read back from a store carry the hash only.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

SCOPE_ACTIVATION = "activation"
SCOPE_AUTHENTICATION = "authentication"


class Token(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plaintext: str = ""
    hash: bytes = Field(repr=False)
    user_id: int
    expiry: datetime
    scope: str


class TokenResponse(BaseModel):
    """What a client sees: the plaintext (once) and when it stops working."""

    token: str
    expiry: datetime

    @classmethod
    def from_token(cls, token: Token) -> "TokenResponse":
        return cls(token=token.plaintext, expiry=token.expiry)
