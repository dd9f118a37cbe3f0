"""
MovieGo API: User Service
=========================

What:  Registration and activation workflows.
Who:   Called by routes/users.py.

Registration:
    validate → hash password → insert (inactive) → grant movies:read →
    issue activation token → queue welcome mail on the background supervisor
    → 201 with the user (the token only travels by mail)

Activation:
    validate token shape → resolve activation token → set activated →
    conditional update → revoke every activation token of the user
"""

import logging
from datetime import timedelta

from moviego.exceptions import NotFoundError, ValidationError
from moviego.schemas.token import SCOPE_ACTIVATION
from moviego.schemas.user import User, UserCreate
from moviego.services.background import BackgroundTaskSupervisor
from moviego.services.credentials import set_password
from moviego.store.base import Stores
from moviego.validation import Validator, validate_token_plaintext, validate_user

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = ("movies:read",)
WELCOME_TEMPLATE = "user_welcome.j2"


class UserService:
    def __init__(
        self,
        stores: Stores,
        mailer,
        supervisor: BackgroundTaskSupervisor,
        bcrypt_cost: int,
        activation_ttl: timedelta,
    ):
        self._stores = stores
        self._mailer = mailer
        self._supervisor = supervisor
        self._bcrypt_cost = bcrypt_cost
        self._activation_ttl = activation_ttl

    async def register(self, data: UserCreate) -> User:
        v = Validator()
        validate_user(v, data.name, data.email, data.password)
        v.raise_if_invalid()

        password_hash = await set_password(data.password, self._bcrypt_cost)
        user = await self._stores.users.insert(
            User(
                name=data.name,
                email=data.email.lower(),
                password_hash=password_hash,
                activated=False,
            )
        )

        await self._stores.permissions.add_for_user(user.id, *DEFAULT_PERMISSIONS)
        token = await self._stores.tokens.new(user.id, self._activation_ttl, SCOPE_ACTIVATION)

        self._supervisor.spawn(
            self._mailer.send(
                user.email,
                WELCOME_TEMPLATE,
                {"name": user.name, "user_id": user.id, "activation_token": token.plaintext},
            ),
            name=f"welcome-mail-{user.id}",
        )
        logger.info("Registered user %d", user.id)
        return user

    async def activate(self, token_plaintext: str) -> User:
        v = Validator()
        validate_token_plaintext(v, token_plaintext)
        v.raise_if_invalid()

        try:
            user = await self._stores.users.get_for_token(SCOPE_ACTIVATION, token_plaintext)
        except NotFoundError:
            raise ValidationError(field="token", message="invalid or expired activation token")

        user = await self._stores.users.update(user.model_copy(update={"activated": True}))
        await self._stores.tokens.delete_all_for_user(SCOPE_ACTIVATION, user.id)
        logger.info("Activated user %d", user.id)
        return user
