"""
MovieGo API: JSON Envelopes
===========================

What:  Builders for the two response shapes the API ever returns.
       Success: {"<key>": payload}    Failure: {"error": message-or-field-map}
Who:   Exception handlers (main.py) and middleware that short-circuits a
       request (rate limit, authenticate, recovery, drain). Middleware runs
       outside FastAPI's exception handling, so it answers with these
       builders instead of raising.
"""

from typing import Dict, Optional

from starlette.responses import JSONResponse

from moviego.exceptions import AuthenticationError, MovieGoError, TransientStoreError

SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"


def error_response(exc: MovieGoError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """
    Envelope for an application error.

    Non-public errors (DatabaseError, PasswordHashingError, ...) always get
    the generic server-error message; their details stay in the logs.
    """
    merged: Dict[str, str] = {}
    if isinstance(exc, AuthenticationError):
        merged.update(exc.headers)
    if isinstance(exc, TransientStoreError):
        merged["Retry-After"] = str(exc.retry_after)
    if headers:
        merged.update(headers)

    payload = exc.to_payload() if exc.public else SERVER_ERROR_MESSAGE
    return JSONResponse(status_code=exc.status_code, content={"error": payload}, headers=merged)


def message_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def server_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": SERVER_ERROR_MESSAGE},
        headers={"Connection": "close"},
    )
