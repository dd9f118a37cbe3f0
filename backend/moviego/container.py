"""
MovieGo API: Application Container
==================================

What:  Holds every long-lived collaborator of one application instance.
How:   `create_app()` builds a Container and stores it on `app.state`;
       route dependencies read it from there. Nothing here is a module
       global, so two apps in one process (tests) share no state.
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from moviego.config import Settings
from moviego.services.background import BackgroundTaskSupervisor
from moviego.services.metrics import MetricsCollector
from moviego.services.movie_service import MovieService
from moviego.services.rate_limiter import RateLimiterRegistry
from moviego.services.token_service import TokenService
from moviego.services.user_service import UserService
from moviego.store.base import Stores


@dataclass
class Container:
    settings: Settings
    stores: Stores
    mailer: Any
    supervisor: BackgroundTaskSupervisor
    limiter: RateLimiterRegistry
    metrics: MetricsCollector
    movies: MovieService
    users: UserService
    tokens: TokenService
    engine: Optional[AsyncEngine] = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        stores: Stores,
        mailer: Any,
        limiter: Optional[RateLimiterRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
        engine: Optional[AsyncEngine] = None,
    ) -> "Container":
        supervisor = BackgroundTaskSupervisor(max_concurrency=settings.background_max_concurrency)
        # An empty registry has len() == 0, so test for None explicitly
        if limiter is None:
            limiter = RateLimiterRegistry(
                rate=settings.limiter_rps,
                burst=settings.limiter_burst,
                idle_ttl=settings.limiter_idle_ttl,
            )
        if metrics is None:
            metrics = MetricsCollector()
        return cls(
            settings=settings,
            stores=stores,
            mailer=mailer,
            supervisor=supervisor,
            limiter=limiter,
            metrics=metrics,
            movies=MovieService(stores.movies),
            users=UserService(
                stores,
                mailer,
                supervisor,
                bcrypt_cost=settings.bcrypt_cost,
                activation_ttl=settings.activation_token_ttl,
            ),
            tokens=TokenService(stores, authentication_ttl=settings.authentication_token_ttl),
            engine=engine,
        )
