"""
MovieGo API: Health Check Route
===============================

What:  Liveness endpoint for load balancers and uptime monitors.
How:   Reports the configured environment and the running version. It does
       not touch the database, so a slow database never fails liveness.
"""

from fastapi import APIRouter, Depends

from moviego import __version__
from moviego.container import Container
from moviego.dependencies import get_container
from moviego.schemas.common import HealthResponse, SystemInfo

router = APIRouter(tags=["Health"])


@router.get("/v1/healthcheck", response_model=HealthResponse, summary="Service health check")
async def healthcheck(container: Container = Depends(get_container)) -> HealthResponse:
    return HealthResponse(
        status="available",
        system_info=SystemInfo(environment=container.settings.env, version=__version__),
    )
