"""Pydantic response models for the HTTP API.

WHY: Non-streaming endpoints need typed schemas for response
serialization and the OpenAPI docs. The streamed /tags body is described
by TagRecord in taginfo_stream.core.models.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response.

    WHY: Load balancers and orchestrators need a simple endpoint
    to verify the service is alive and ready.
    """

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    tool: str = Field(
        description="Path of the exiftool executable the service runs.",
        json_schema_extra={"example": "/usr/bin/exiftool"},
    )
