"""
MovieGo API: Request User Context
=================================

What:  Typed accessors for the user attached to a request by the
       authenticate middleware.
How:   The user lives on `request.state`, which Starlette backs with the
       ASGI scope, so every middleware and the endpoint see the same value.
       Reading it before authentication ran is a wiring bug and raises
       MissingRequestUserError (reported as a 500 by the recovery stage).
"""

from starlette.requests import Request

from moviego.exceptions import MissingRequestUserError
from moviego.schemas.user import User

_STATE_KEY = "user"


def set_request_user(request: Request, user: User) -> None:
    setattr(request.state, _STATE_KEY, user)


def get_request_user(request: Request) -> User:
    user = getattr(request.state, _STATE_KEY, None)
    if user is None:
        raise MissingRequestUserError("request user read before the authenticate stage ran")
    return user
