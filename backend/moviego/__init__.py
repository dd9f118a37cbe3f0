"""
MovieGo API: Application Package Initializer
=============================================

What: Marks the `moviego` directory as a Python package.
Who:  Used by uvicorn (`--factory moviego.main:create_app`), Alembic, pytest, and `python -m moviego`.

Architecture Note:
    The backend is layered; each layer only calls the one below it.

    ┌─────────────────────────────────────┐
    │   Middleware (request pipeline)     │  ← recovery, CORS, rate limit, auth, metrics
    ├─────────────────────────────────────┤
    │   Routes + Dependencies (HTTP)      │  ← envelopes, permission gates
    ├─────────────────────────────────────┤
    │   Services (orchestration)          │  ← validation, tokens, mail
    ├─────────────────────────────────────┤
    │   Stores (optimistic concurrency)   │  ← SQL or in-memory implementations
    └─────────────────────────────────────┘

    Shared mutable state (rate limiter registry, metrics collector, background
    task supervisor, stores) is created by `create_app()` and injected into the
    layers that need it. Nothing in this package keeps per-process globals
    apart from the lazily built default `settings`.
"""

__version__ = "1.0.0"
