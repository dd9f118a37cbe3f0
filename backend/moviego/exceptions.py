"""
MovieGo API: Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for every error category the API reports.
How:   Each exception carries a message, an optional context dict (logged, not
       returned) and a class-level `status_code`. Global exception handlers
       (registered in main.py) turn them into `{"error": ...}` envelopes.
Who:   Raised by stores, services, dependencies and middleware.

Exception Hierarchy:
    MovieGoError (base)
    ├── BadRequestError               → 400 Bad Request (malformed request)
    ├── ValidationError               → 422 Unprocessable Entity (field errors)
    │   └── DuplicateKeyError         → 422 (uniqueness violation, e.g. email)
    ├── NotFoundError                 → 404 Not Found
    ├── EditConflictError             → 409 Conflict (lost-update race)
    ├── AuthenticationError           → 401 Unauthorized
    │   ├── InvalidCredentialsError   → 401 (wrong email/password)
    │   └── InvalidTokenError         → 401 + WWW-Authenticate: Bearer
    ├── AuthorizationError            → 403 Forbidden
    │   ├── AuthenticationRequiredError → 401 (anonymous on a gated route)
    │   ├── InactiveAccountError      → 403
    │   └── NotPermittedError         → 403
    ├── RateLimitExceededError        → 429 Too Many Requests
    ├── TransientStoreError           → 503 Service Unavailable (safe to retry)
    ├── DatabaseError                 → 500 (opaque)
    ├── PasswordHashingError          → 500 (opaque)
    └── PasswordVerificationError     → 500 (opaque)

    MissingRequestUserError is deliberately NOT a MovieGoError: it signals a
    wiring bug (a handler read the request user before the authenticate stage
    ran) and is reported as an internal fault.

Anonymous callers hitting a permission-gated route get
AuthenticationRequiredError. It is an AuthorizationError (the caller's
identity is known: anonymous, and anonymous lacks the permission), but its
HTTP status is 401 so clients know that logging in can fix it.
"""

from typing import Any, Dict, Optional


class MovieGoError(Exception):
    """
    Base exception for all MovieGo application errors.

    Attributes:
        message:  Client-facing description (safe to return in the response body)
        context:  Additional debug info (logged but NOT returned to client)
        status_code: HTTP status the global handler responds with
    """

    status_code: int = 500
    public: bool = False

    def __init__(
        self,
        message: str = "the server encountered a problem and could not process your request",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_payload(self) -> Any:
        """The value placed under the `error` key of the response envelope."""
        return self.message


# ── Client errors ─────────────────────────────────────────────────────────


class BadRequestError(MovieGoError):
    """
    Raised when the request itself is malformed (bad JSON, unknown keys, wrong types).
    HTTP: 400 Bad Request
    """

    status_code = 400
    public = True

    def __init__(self, message: str = "bad request", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class ValidationError(MovieGoError):
    """
    Raised when client-supplied data violates a field invariant.

    What:    Carries a mapping of field name → message, returned verbatim.
    HTTP:    422 Unprocessable Entity

    Example response:
        {"error": {"year": "must not be in the future", "genres": "must not contain duplicate values"}}
    """

    status_code = 422
    public = True

    def __init__(
        self,
        errors: Optional[Dict[str, str]] = None,
        field: Optional[str] = None,
        message: str = "validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors: Dict[str, str] = dict(errors or {})
        if field and field not in self.errors:
            self.errors[field] = message
        super().__init__(message=message, context=context)
        self.field = field

    def to_payload(self) -> Any:
        return self.errors


class DuplicateKeyError(ValidationError):
    """
    Raised by a store when a uniqueness constraint is violated.

    When:    Inserting or updating a user with an email that already exists.
    HTTP:    422 with a field-level message, so clients can highlight the field.
    """

    def __init__(
        self,
        field: str = "email",
        message: str = "a user with this email address already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(field=field, message=message, context=context)


class NotFoundError(MovieGoError):
    """
    Raised when a referenced record does not exist.

    Distinct from DatabaseError/TransientStoreError so handlers can answer
    404 instead of 500/503.
    """

    status_code = 404
    public = True

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message="the requested resource could not be found", context=ctx)
        self.resource = resource


class EditConflictError(MovieGoError):
    """
    Raised when an update's (id, version) precondition no longer holds.

    When:    Another writer updated the record after the caller read it, or
             the client's X-Expected-Version header is stale.
    HTTP:    409 Conflict. The client should re-fetch and retry.
    """

    status_code = 409
    public = True

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="unable to update the record due to an edit conflict, please try again",
            context=context,
        )


# ── Authentication / authorization ────────────────────────────────────────


class AuthenticationError(MovieGoError):
    """Missing, invalid or expired credential. HTTP 401."""

    status_code = 401
    public = True
    headers: Dict[str, str] = {}

    def __init__(
        self,
        message: str = "invalid authentication credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(AuthenticationError):
    """Login with an unknown email or wrong password."""


class InvalidTokenError(AuthenticationError):
    """
    Malformed Authorization header, or a bearer token that does not resolve.

    Sends `WWW-Authenticate: Bearer` so clients know which scheme to use.
    """

    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="invalid or missing authentication token", context=context)


class AuthorizationError(MovieGoError):
    """Caller's identity is known but lacks the required state or permission. HTTP 403."""

    status_code = 403
    public = True

    def __init__(
        self,
        message: str = "your user account doesn't have the necessary permissions to access this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationRequiredError(AuthorizationError):
    """Anonymous identity on a route that needs a real user."""

    status_code = 401

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="you must be authenticated to access this resource", context=context)


class InactiveAccountError(AuthorizationError):
    """Authenticated user whose account has not been activated yet."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="your user account must be activated to access this resource",
            context=context,
        )


class NotPermittedError(AuthorizationError):
    """Activated user without the route's capability string."""

    def __init__(self, permission: str = "", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        if permission:
            ctx["permission"] = permission
        super().__init__(context=ctx)
        self.permission = permission


# ── Throttling / infrastructure ───────────────────────────────────────────


class RateLimitExceededError(MovieGoError):
    """
    Raised when a client address has exhausted its token bucket.
    HTTP: 429 Too Many Requests
    """

    status_code = 429
    public = True

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="rate limit exceeded", context=context)


class TransientStoreError(MovieGoError):
    """
    Raised when a store call times out or loses its connection.

    What:    The operation may or may not have been applied; it is safe to retry
             reads, and updates are protected by the version check.
    HTTP:    503 Service Unavailable with Retry-After.
    """

    status_code = 503
    public = True

    def __init__(
        self,
        message: str = "the service is temporarily unavailable, please try again",
        retry_after: int = 1,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(MovieGoError):
    """
    Raised when a store operation fails for a non-transient reason.

    The message returned to the client is always generic. The original
    error type is kept in `context` and logged server-side only.
    """


class PasswordHashingError(MovieGoError):
    """bcrypt could not produce a hash (entropy or computation failure)."""


class PasswordVerificationError(MovieGoError):
    """bcrypt could not compare a password against a stored hash (corrupt hash)."""


class ServiceUnavailableError(MovieGoError):
    """The process is draining and refuses new requests."""

    status_code = 503
    public = True

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="the server is shutting down, please retry shortly", context=context)


class MissingRequestUserError(RuntimeError):
    """The request user was read before the authenticate stage attached one."""
