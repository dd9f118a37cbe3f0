"""
MovieGo API: Token Service
==========================

What:  Issues authentication tokens (login) and resolves bearer tokens to
       users (authenticate middleware).

Failure mapping:
    unknown email / wrong password       → InvalidCredentialsError (401)
    malformed or unknown bearer token    → InvalidTokenError (401, WWW-Authenticate)
"""

import logging
from datetime import timedelta

from moviego.exceptions import InvalidCredentialsError, InvalidTokenError, NotFoundError
from moviego.schemas.token import SCOPE_AUTHENTICATION, Token
from moviego.schemas.user import User
from moviego.services.credentials import password_matches, validate_token_plaintext
from moviego.store.base import Stores
from moviego.validation import Validator, validate_email, validate_password_plaintext

logger = logging.getLogger(__name__)


class TokenService:
    def __init__(self, stores: Stores, authentication_ttl: timedelta):
        self._stores = stores
        self._authentication_ttl = authentication_ttl

    async def create_authentication_token(self, email: str, password: str) -> Token:
        v = Validator()
        validate_email(v, email)
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        try:
            user = await self._stores.users.get_by_email(email.lower())
        except NotFoundError:
            raise InvalidCredentialsError()

        if not await password_matches(password, user.password_hash):
            raise InvalidCredentialsError(context={"user_id": user.id})

        token = await self._stores.tokens.new(user.id, self._authentication_ttl, SCOPE_AUTHENTICATION)
        logger.info("Issued authentication token for user %d", user.id)
        return token

    async def authenticate(self, token_plaintext: str) -> User:
        """Resolve a bearer token. Expired, revoked and wrong-scope tokens all fail alike."""
        if not validate_token_plaintext(token_plaintext):
            raise InvalidTokenError()
        try:
            return await self._stores.users.get_for_token(SCOPE_AUTHENTICATION, token_plaintext)
        except NotFoundError:
            raise InvalidTokenError()
