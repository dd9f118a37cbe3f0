"""
MovieGo API: Middleware Package
===============================

What:  The request pipeline wrapped around every route.

Middleware Chain (outermost first):
    Request → [Drain] → [Recovery] → [Request ID] → [Logging] → [CORS]
            → [Rate Limit] → [Authenticate] → [Metrics] → Route Handler

    1. Drain: 503 + Connection: close once shutdown has begun
    2. Recovery: any uncaught exception becomes a 500 envelope
    3. Request ID / Logging: correlation id and one access log line
    4. CORS: exact-match origin allow-list, preflight short-circuit
    5. Rate Limit: per-client token bucket, 429 when empty
    6. Authenticate: attaches the request user (anonymous or resolved)
    7. Metrics: counts what reaches the handler stage

    Permission checks are route dependencies (see dependencies.py) and so
    run inside the metrics stage.
"""
