"""
MovieGo API: Shared Response Schemas
====================================
"""

from pydantic import BaseModel, Field


class SystemInfo(BaseModel):
    environment: str = Field(description="Deployment environment name")
    version: str = Field(description="Application version")


class HealthResponse(BaseModel):
    """
    What:  Body of GET /v1/healthcheck.
    Who:   Load balancers and uptime monitors.
    """

    status: str = Field(default="available")
    system_info: SystemInfo


class MessageResponse(BaseModel):
    message: str
