"""
MovieGo API: Services Layer
===========================

What:  Business logic sitting between routes (HTTP) and stores (persistence).
How:   Services take their collaborators (stores, mailer, supervisor,
       settings) as constructor arguments; `create_app()` wires them.

Service Inventory:
    - credentials: password hashing and token generation primitives
    - RateLimiterRegistry: per-client token buckets plus the idle sweeper
    - Mailer: templated SMTP delivery with retry
    - BackgroundTaskSupervisor: tracked fire-and-forget work (mail)
    - MetricsCollector: request/response counters on a private registry
    - MovieService / UserService / TokenService: per-resource orchestration
"""
