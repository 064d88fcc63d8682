"""
API Request / Response Models

Pydantic models for the non-channel endpoints. Channel payloads are
returned as plain JSON (they are cached verbatim and replayed on hit).
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class InvalidateRequest(BaseModel):
    """
    Cache invalidation request.

    Exactly one of ``key`` (single key, both tiers) or ``pattern``
    (substring, memory tier) must be given.
    """

    key: str | None = Field(default=None, description="Exact cache key to drop")
    pattern: str | None = Field(default=None, description="Substring; every matching key is dropped")

    @model_validator(mode="after")
    def exactly_one_target(self) -> "InvalidateRequest":
        if (self.key is None) == (self.pattern is None):
            raise ValueError("Provide exactly one of 'key' or 'pattern'")
        return self


class InvalidateResponse(BaseModel):
    target: str = Field(..., description="The key or pattern that was invalidated")
    mode: str = Field(..., description="'key' or 'pattern'")
    removed: int = Field(..., ge=0, description="Memory entries removed")


class HealthResponse(BaseModel):
    status: str  # "healthy" or "degraded"
    timestamp: str
    version: str
    environment: str
    components: dict[str, Any] | None = None


class MetricsResponse(BaseModel):
    performance: dict[str, Any]
    operations: dict[str, dict[str, Any]]
    cache: dict[str, Any]
    warnings: list[str] = Field(default_factory=list)
