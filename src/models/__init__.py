"""Pydantic models for orders, customer metrics and API payloads."""

from models.customer import (  # noqa: F401
    CustomerFilters,
    CustomerListResult,
    CustomerMetricsRecord,
    CustomerMetricsView,
    CustomerSegmentation,
    CustomerWithMetrics,
    PurchaseFrequency,
    Segment,
)
from models.metrics import MetricsBatchResult  # noqa: F401
from models.order import CustomerSnapshot, Order, OrderTotals  # noqa: F401
from models.response import ApiResponse, ResponseMeta  # noqa: F401
