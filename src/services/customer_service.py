"""
Customer Service.

Serves customers with their order metrics. Reads go to the metrics cache
table first and fall back to aggregating the orders table live when the
cache is not configured, errors, or has no (unexpired) entry. Both paths
build the same CustomerMetricsRecord, so callers only see the difference
through the ``cache_hit`` flag.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from functools import partial
from typing import Callable, List, Optional, Tuple

from models.customer import (
    CustomerFilters,
    CustomerListResult,
    CustomerMetricsRecord,
    CustomerWithMetrics,
)
from models.order import Order
from repositories.dynamodb_repo import MetricsCacheRepository, OrdersRepository
from services.metrics_service import (
    build_metrics_record,
    group_orders_by_customer,
    valid_orders,
)
from utils.cache_service import read_through
from utils.error_handling import NotFoundError
from utils.logging_config import get_logger
from utils.settings import RuntimeSettings

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _by_spend_desc(customer: CustomerWithMetrics) -> Tuple[Decimal, str]:
    return (-Decimal(customer.metrics.total_spend), customer.contact_id)


class CustomerService:
    """Service for customer lookups with metrics."""

    def __init__(
        self,
        settings: Optional[RuntimeSettings] = None,
        orders_repo: Optional[OrdersRepository] = None,
        cache_repo: Optional[MetricsCacheRepository] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or RuntimeSettings.from_environment()
        self.orders_repo = orders_repo or OrdersRepository(
            self.settings.orders_table_name, self.settings.customer_index_name
        )
        if cache_repo is None and self.settings.cache_enabled:
            cache_repo = MetricsCacheRepository(self.settings.cache_table_name)
        self.cache_repo = cache_repo
        self.clock = clock

    def get_customer(self, contact_id: str) -> Tuple[CustomerWithMetrics, bool]:
        """Return ``(customer, cache_hit)``; raises NotFoundError if they have no orders."""
        lookup = None
        populate = None
        if self.cache_repo is not None:
            lookup = partial(self._cached_record, contact_id)
            if self.settings.populate_cache_on_miss:
                populate = self._populate

        outcome = read_through(
            lookup,
            partial(self._live_record, contact_id),
            populate,
            label=f"customer:{contact_id}",
        )
        if outcome.value is None:
            raise NotFoundError(f"Customer not found: {contact_id}")

        return CustomerWithMetrics.from_record(outcome.value), outcome.cache_hit

    def list_customers(self, filters: CustomerFilters) -> CustomerListResult:
        """List customers matching ``filters``, highest spend first."""
        lookup = self._cached_customers if self.cache_repo is not None else None
        outcome = read_through(lookup, self._live_customers, label="customers")

        customers = [c for c in outcome.value or [] if filters.matches(c)]
        customers.sort(key=_by_spend_desc)

        return CustomerListResult(
            customers=customers[: filters.limit],
            total=len(customers),
            cache_hit=outcome.cache_hit,
        )

    def get_customer_orders(self, contact_id: str, limit: int) -> List[Order]:
        """A customer's most recent orders, newest first."""
        items = self.orders_repo.query_by_customer(contact_id, newest_first=True, limit=limit)
        return list(valid_orders(items))

    def _cached_record(self, contact_id: str) -> Optional[CustomerMetricsRecord]:
        item = self.cache_repo.get(contact_id)
        if not item:
            return None
        record = CustomerMetricsRecord.model_validate(item)
        if record.is_expired(self.clock()):
            logger.info("Cached metrics expired", extra={"contact_id": contact_id})
            return None
        return record

    def _live_record(self, contact_id: str) -> Optional[CustomerMetricsRecord]:
        orders = self.orders_repo.query_by_customer(contact_id)
        return build_metrics_record(
            contact_id, orders, now=self.clock(), ttl_days=self.settings.metrics_ttl_days
        )

    def _populate(self, record: CustomerMetricsRecord) -> None:
        self.cache_repo.put(record.to_item())

    def _cached_customers(self) -> Optional[List[CustomerWithMetrics]]:
        now = self.clock()
        customers = []
        for item in self.cache_repo.scan_all():
            try:
                record = CustomerMetricsRecord.model_validate(item)
            except ValueError as exc:
                logger.warning(
                    "Skipping malformed cache record",
                    extra={"contact_id": item.get("contactID"), "error": str(exc)},
                )
                continue
            if not record.is_expired(now):
                customers.append(CustomerWithMetrics.from_record(record))
        # An empty cache most likely means it has not been backfilled yet.
        return customers or None

    def _live_customers(self) -> List[CustomerWithMetrics]:
        logger.info("Aggregating customers from orders table")
        now = self.clock()
        grouped = group_orders_by_customer(self.orders_repo.scan_all())
        customers = []
        for contact_id, orders in grouped.items():
            try:
                record = build_metrics_record(
                    contact_id, orders, now=now, ttl_days=self.settings.metrics_ttl_days
                )
                customers.append(CustomerWithMetrics.from_record(record))
            except ValueError as exc:
                logger.warning(
                    "Skipping customer with unusable orders",
                    extra={"contact_id": contact_id, "error": str(exc)},
                )
        return customers
