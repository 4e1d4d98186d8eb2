"""Health check response."""

from typing import Literal

from pydantic import Field

from app.schemas.base import ApiModel


class HealthResponse(ApiModel):
    status: Literal["ok", "degraded"] = Field(default="ok", description="ok when every dependency answers")
    service: str = Field(default="compliance-mait", description="Service name")
    environment: str = Field(description="APP_ENV of the running instance")
    database: Literal["connected", "disconnected"] = Field(description="Result of a SELECT 1 round trip")
