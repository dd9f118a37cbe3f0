"""
MovieGo API: Route Dependencies
===============================

What:  FastAPI dependencies for reaching the container and for the three
       composable authorization gates.

Gate composition:
    require_permission(code)
        └── require_activated_user
                └── require_authenticated_user

    anonymous             → AuthenticationRequiredError (401)
    not activated         → InactiveAccountError (403)
    missing permission    → NotPermittedError (403)

Example:
    @router.get("/v1/movies", dependencies=[Depends(require_permission("movies:read"))])
"""

from typing import Awaitable, Callable

from fastapi import Depends, Request

from moviego.container import Container
from moviego.context import get_request_user
from moviego.exceptions import (
    AuthenticationRequiredError,
    InactiveAccountError,
    NotFoundError,
    NotPermittedError,
)
from moviego.schemas.user import User


def get_container(request: Request) -> Container:
    return request.app.state.container


def require_authenticated_user(request: Request) -> User:
    user = get_request_user(request)
    if user.is_anonymous:
        raise AuthenticationRequiredError()
    return user


def require_activated_user(user: User = Depends(require_authenticated_user)) -> User:
    if not user.activated:
        raise InactiveAccountError(context={"user_id": user.id})
    return user


def require_permission(code: str) -> Callable[..., Awaitable[User]]:
    async def check_permission(
        user: User = Depends(require_activated_user),
        container: Container = Depends(get_container),
    ) -> User:
        permissions = await container.stores.permissions.get_all_for_user(user.id)
        if not permissions.includes(code):
            raise NotPermittedError(permission=code, context={"user_id": user.id})
        return user

    return check_permission


def read_id_param(id: str) -> int:
    """Path ids must be positive integers; anything else is a 404."""
    try:
        value = int(id)
    except ValueError:
        raise NotFoundError("resource", id)
    if value < 1:
        raise NotFoundError("resource", id)
    return value
