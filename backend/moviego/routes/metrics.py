"""
MovieGo API: Metrics Route
==========================

Prometheus text exposition of the application's MetricsCollector.
"""

from fastapi import APIRouter, Depends, Response

from moviego.container import Container
from moviego.dependencies import get_container

router = APIRouter(tags=["Debug"])


@router.get("/debug/metrics", summary="Prometheus metrics", include_in_schema=False)
async def metrics(container: Container = Depends(get_container)) -> Response:
    return Response(content=container.metrics.render(), media_type=container.metrics.content_type)
