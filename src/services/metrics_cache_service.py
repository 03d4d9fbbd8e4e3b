"""
Customer Metrics Cache Maintainer.

Consumes change events from the orders table stream and keeps one
denormalized metrics record per customer in the cache table.

Each affected customer is fully recomputed from the orders table rather
than patched with a delta, so reprocessing a record (at-least-once
delivery) or two overlapping batches both converge on the same result.
Per-record failures are logged and skipped; the batch as a whole never
fails.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Set

from models.customer import CustomerMetricsRecord
from models.metrics import MetricsBatchResult
from repositories.dynamodb_repo import MetricsCacheRepository, OrdersRepository
from services.metrics_service import (
    DEFAULT_TTL_DAYS,
    build_metrics_record,
    group_orders_by_customer,
)
from utils.logging_config import get_logger
from utils.settings import RuntimeSettings
from utils.stream_records import extract_contact_id

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricsCacheMaintainer:
    """Recompute and store customer metrics on order changes."""

    def __init__(
        self,
        orders_repo: OrdersRepository,
        cache_repo: MetricsCacheRepository,
        clock: Callable[[], datetime] = _utcnow,
        ttl_days: int = DEFAULT_TTL_DAYS,
    ):
        self.orders_repo = orders_repo
        self.cache_repo = cache_repo
        self.clock = clock
        self.ttl_days = ttl_days

    @classmethod
    def from_settings(cls, settings: Optional[RuntimeSettings] = None) -> "MetricsCacheMaintainer":
        settings = settings or RuntimeSettings.from_environment()
        if not settings.cache_enabled:
            raise RuntimeError("CACHE_TABLE_NAME must be set for the metrics updater")
        return cls(
            orders_repo=OrdersRepository(
                settings.orders_table_name, settings.customer_index_name
            ),
            cache_repo=MetricsCacheRepository(settings.cache_table_name),
            ttl_days=settings.metrics_ttl_days,
        )

    def recompute(self, contact_id: str) -> Optional[CustomerMetricsRecord]:
        """Rebuild one customer's record from all of their current orders."""
        orders = self.orders_repo.query_by_customer(contact_id)
        return build_metrics_record(
            contact_id, orders, now=self.clock(), ttl_days=self.ttl_days
        )

    def process_records(self, records: Iterable[Dict[str, Any]]) -> MetricsBatchResult:
        """Process one stream batch sequentially."""
        result = MetricsBatchResult()
        seen: Set[str] = set()

        for record in records:
            event_name = record.get("eventName")
            contact_id = extract_contact_id(record)
            if not contact_id:
                logger.info(
                    "No contactID in stream record, skipping",
                    extra={"event_name": event_name, "event_id": record.get("eventID")},
                )
                result.skipped += 1
                continue

            if contact_id in seen:
                logger.debug(
                    "Customer already recomputed in this batch",
                    extra={"contact_id": contact_id},
                )
                result.skipped += 1
                continue

            try:
                metrics = self.recompute(contact_id)
                if metrics is None:
                    # Orders all gone: leave the last record to expire via TTL.
                    logger.info(
                        "No orders for customer, cache write skipped",
                        extra={"contact_id": contact_id, "event_name": event_name},
                    )
                    result.skipped_empty += 1
                else:
                    self.cache_repo.put(metrics.to_item())
                    result.processed_customers.append(contact_id)
                    logger.info(
                        "Customer metrics cached",
                        extra={
                            "contact_id": contact_id,
                            "event_name": event_name,
                            "segment": metrics.segment,
                            "order_count": metrics.order_count,
                        },
                    )
                seen.add(contact_id)
            except Exception as exc:
                logger.exception(
                    "Failed to update customer metrics",
                    extra={
                        "contact_id": contact_id,
                        "event_name": event_name,
                        "error": str(exc),
                    },
                )
                result.failed += 1

        logger.info(
            "Stream batch processed",
            extra={
                "processed": len(result.processed_customers),
                "skipped": result.skipped,
                "skipped_empty": result.skipped_empty,
                "failed": result.failed,
            },
        )
        return result

    def rebuild_all(self) -> MetricsBatchResult:
        """
        Backfill the cache for every customer with orders.

        A single scan of the orders table is grouped in memory, so the cost
        is one read of the table plus one write per customer.
        """
        result = MetricsBatchResult()
        now = self.clock()
        grouped = group_orders_by_customer(self.orders_repo.scan_all())

        for contact_id, orders in grouped.items():
            try:
                metrics = build_metrics_record(
                    contact_id, orders, now=now, ttl_days=self.ttl_days
                )
                self.cache_repo.put(metrics.to_item())
                result.processed_customers.append(contact_id)
            except Exception as exc:
                logger.exception(
                    "Backfill failed for customer",
                    extra={"contact_id": contact_id, "error": str(exc)},
                )
                result.failed += 1

        logger.info(
            "Metrics backfill complete",
            extra={
                "processed": len(result.processed_customers),
                "failed": result.failed,
            },
        )
        return result
