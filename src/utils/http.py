"""Lambda proxy response helpers for the JSON envelope."""

import time
from typing import Any, Dict, Optional

from models.response import ApiResponse, ResponseMeta


def elapsed_ms(started: float) -> int:
    """Milliseconds since ``started`` (a ``time.perf_counter()`` value)."""
    return int((time.perf_counter() - started) * 1000)


def json_response(
    data: Any,
    *,
    status_code: int = 200,
    error: Optional[str] = None,
    count: Optional[int] = None,
    total: Optional[int] = None,
    cache_hit: Optional[bool] = None,
    response_time_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """Wrap ``data`` in ``{success, data, error, meta}``."""
    envelope = ApiResponse(
        success=error is None,
        data=data,
        error=error,
        meta=ResponseMeta(
            count=count,
            total=total,
            cache_hit=cache_hit,
            response_time=f"{response_time_ms}ms" if response_time_ms is not None else None,
        ),
    )
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": envelope.model_dump_json(by_alias=True),
    }
