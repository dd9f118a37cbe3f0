"""
MovieGo API: FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() wires settings, stores, services and the
       middleware chain into a FastAPI app and returns it.
Who:   uvicorn (`--factory moviego.main:create_app`), `python -m moviego` and the test suite.

Application Architecture:
    ┌───────────────────────────────────────────────────────────────┐
    │                         FastAPI App                           │
    │                                                               │
    │  Middleware Chain (outermost first):                          │
    │  Drain → Recovery → Request ID → Logging → CORS →             │
    │  Rate Limit → Authenticate → Metrics                          │
    │                                                               │
    │  Routes:                                                      │
    │  /v1/healthcheck  /v1/movies  /v1/users  /v1/tokens           │
    │  /debug/metrics                                               │
    │                                                               │
    │  Exception Handlers:                                          │
    │  MovieGoError → envelope with its status │ request errors→400 │
    └───────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (production only)
    3. Start the rate limiter sweeper

    Shutdown:
    1. Begin draining (new requests get 503 + Connection: close)
    2. Wait for background mail up to `shutdown_timeout`
    3. Stop the sweeper and dispose of the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from moviego import __version__
from moviego.config import Settings, get_settings
from moviego.container import Container
from moviego.database import dispose_engine
from moviego.exceptions import BadRequestError, MovieGoError
from moviego.middleware.authenticate import AuthenticateMiddleware
from moviego.middleware.logging import RequestLoggingMiddleware
from moviego.middleware.metrics import MetricsMiddleware
from moviego.middleware.rate_limit import RateLimitMiddleware
from moviego.middleware.recovery import RecoveryMiddleware, ShutdownDrainMiddleware
from moviego.middleware.request_id import RequestIDMiddleware
from moviego.responses import error_response, message_response
from moviego.routes import healthcheck, metrics, movies, tokens, users
from moviego.services.mailer import Mailer
from moviego.services.metrics import MetricsCollector
from moviego.services.rate_limiter import RateLimiterRegistry
from moviego.store import Stores, create_stores

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Handlers write to stdout; the container runtime collects it.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    container: Container = app.state.container
    settings = container.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("MovieGo API %s starting (env=%s, store=%s)", __version__, settings.env, settings.store_backend)

    # Fail fast: a misconfigured production instance must not take traffic
    settings.validate_required_for_production()

    if settings.limiter_enabled:
        container.limiter.start_sweeper(settings.limiter_sweep_interval)

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MovieGo API shutting down...")
    await container.supervisor.shutdown(timeout=settings.shutdown_timeout)
    await container.limiter.stop_sweeper()
    if container.engine is not None:
        await dispose_engine(container.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def describe_request_error(exc: RequestValidationError) -> str:
    """
    Turn FastAPI's request parsing errors into one readable sentence.

    Examples:
        body contains badly-formed JSON (at character 12)
        body contains incorrect JSON type for field "year"
        body contains unknown key "rating"
        body must not be empty
    """
    errors = exc.errors()
    if not errors:
        return "bad request"
    first = errors[0]
    kind = first.get("type", "")
    loc = tuple(first.get("loc", ()))
    where = loc[0] if loc else "body"

    if where != "body":
        return f'invalid {where} parameter "{loc[-1]}"'
    if kind == "json_invalid":
        position = loc[1] if len(loc) > 1 and isinstance(loc[1], int) else None
        if position is None:
            return "body contains badly-formed JSON"
        return f"body contains badly-formed JSON (at character {position})"
    if kind == "missing" and len(loc) == 1:
        return "body must not be empty"
    if kind == "extra_forbidden":
        return f'body contains unknown key "{loc[-1]}"'
    if len(loc) == 1:
        return "body contains incorrect JSON type"
    field = next((part for part in loc[1:] if isinstance(part, str)), loc[-1])
    return f'body contains incorrect JSON type for field "{field}"'


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception families to envelope responses.

    Handler hierarchy:
        MovieGoError (and subclasses) → its own status_code, `{"error": ...}`
        RequestValidationError        → 400 Bad Request (unparseable request)
        StarletteHTTPException        → routing errors (404 / 405) as envelopes

    Unexpected exceptions are not handled here: they propagate to
    RecoveryMiddleware, which logs the stack and answers 500.
    """

    @app.exception_handler(MovieGoError)
    async def handle_movie_go_error(request: Request, exc: MovieGoError) -> JSONResponse:
        rid = getattr(request.state, "request_id", "")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s during %s %s | Context: %s",
                rid,
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.context,
                exc_info=exc.__cause__ is not None,
            )
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(BadRequestError(describe_request_error(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            message = "the requested resource could not be found"
        elif exc.status_code == 405:
            message = f"the {request.method} method is not supported for this resource"
        else:
            message = str(exc.detail)
        return message_response(exc.status_code, message, headers=getattr(exc, "headers", None))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    stores: Optional[Stores] = None,
    mailer: Any = None,
    limiter: Optional[RateLimiterRegistry] = None,
    metrics_collector: Optional[MetricsCollector] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Every collaborator can be injected, which is how the tests run the full
    pipeline against in-memory stores, a recording mailer and a rate limiter
    driven by a fake clock.
    """
    settings = settings or get_settings()

    engine = None
    if stores is None:
        stores, engine = create_stores(settings)
    if mailer is None:
        mailer = Mailer.from_settings(settings)

    container = Container.build(
        settings,
        stores,
        mailer,
        limiter=limiter,
        metrics=metrics_collector,
        engine=engine,
    )

    app = FastAPI(
        title="MovieGo API",
        description="JSON API for a movie catalog with user accounts and permission-scoped access.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.container = container

    # ── Register Middleware ───────────────────────────────────────────────
    # Starlette runs middleware in REVERSE order of addition: the last one
    # added is the outermost. Metrics is added first so it sits innermost.
    app.add_middleware(MetricsMiddleware, collector=container.metrics)
    app.add_middleware(AuthenticateMiddleware, tokens=container.tokens)
    app.add_middleware(RateLimitMiddleware, registry=container.limiter, enabled=settings.limiter_enabled)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_trusted_origins_list,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["X-Request-ID", "Location", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(ShutdownDrainMiddleware, is_draining=lambda: container.supervisor.closing)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(healthcheck.router)
    app.include_router(movies.router)
    app.include_router(users.router)
    app.include_router(tokens.router)
    app.include_router(metrics.router)

    return app


def main() -> None:
    """Entry point for `python -m moviego`: settings from env + CLI flags."""
    settings = Settings.from_cli()
    setup_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
