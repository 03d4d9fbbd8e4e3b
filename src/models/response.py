"""Common response envelope."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResponseMeta(BaseModel):
    """Counts and diagnostics attached to every API response."""

    model_config = ConfigDict(populate_by_name=True)

    count: Optional[int] = None
    total: Optional[int] = None
    cache_hit: Optional[bool] = Field(default=None, alias="cacheHit")
    response_time: Optional[str] = Field(default=None, alias="responseTime")


class ApiResponse(BaseModel):
    """Envelope the dashboard expects: ``{success, data, error, meta}``."""

    success: bool = True
    data: Optional[Any] = None
    error: Optional[str] = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
