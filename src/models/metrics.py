"""Metrics cache maintenance models."""

from typing import List

from pydantic import BaseModel, Field


class MetricsBatchResult(BaseModel):
    """Summary of one stream batch (or backfill run)."""

    processed_customers: List[str] = Field(default_factory=list)
    skipped: int = 0
    skipped_empty: int = 0
    failed: int = 0
