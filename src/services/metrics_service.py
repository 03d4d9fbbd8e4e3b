"""
Order aggregation.

Turns a customer's full order set into a CustomerMetricsRecord. Both the
stream-driven cache maintainer and the read-path fallback call this, so a
cached record and a live computation always have the same shape.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional

from models.customer import CustomerMetricsRecord
from models.order import Order
from services.segmentation_service import classify, parse_timestamp
from utils.decimals import quantize_cents, to_decimal
from utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_DAYS = 90

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def valid_orders(orders: Iterable[Any]) -> Iterator[Order]:
    """Yield validated orders, logging and dropping documents that do not parse."""
    for raw in orders:
        if isinstance(raw, Order):
            yield raw
            continue
        try:
            order = Order.model_validate(raw)
        except ValueError as exc:
            order_id = raw.get("orderID") if isinstance(raw, dict) else None
            logger.warning(
                "Skipping invalid order document",
                extra={"order_id": order_id, "error": str(exc)},
            )
            continue
        yield order


def _created_key(order: Order) -> datetime:
    # Unparseable timestamps sort as the oldest order.
    return parse_timestamp(order.created_at) or _OLDEST


def sort_orders_newest_first(orders: Iterable[Any]) -> List[Order]:
    """Validate raw order documents and sort them most recent first."""
    return sorted(valid_orders(orders), key=_created_key, reverse=True)


def group_orders_by_customer(orders: Iterable[Any]) -> Dict[str, List[Order]]:
    """Group order documents by contactID, dropping orders without one."""
    grouped: Dict[str, List[Order]] = defaultdict(list)
    for order in valid_orders(orders):
        if order.contact_id:
            grouped[order.contact_id].append(order)
    return dict(grouped)


def build_metrics_record(
    contact_id: str,
    orders: Iterable[Any],
    now: Optional[datetime] = None,
    ttl_days: int = DEFAULT_TTL_DAYS,
) -> Optional[CustomerMetricsRecord]:
    """
    Aggregate one customer's orders into a cache record.

    Returns None when the customer has no orders. ``now`` drives both the
    segmentation and the ``lastUpdated``/``ttl`` stamps, so a fixed clock
    gives a fully reproducible record.
    """
    ordered = sort_orders_newest_first(orders)
    if not ordered:
        return None

    now = now or datetime.now(timezone.utc)
    last_order = ordered[0]
    first_order = ordered[-1]

    order_count = len(ordered)
    total_spend = sum((to_decimal(o.totals.total) for o in ordered), Decimal("0"))

    segmentation = classify(
        order_count,
        total_spend,
        last_order.created_at,
        first_order.created_at,
        now=now,
    )

    snapshot = last_order.customer
    expires_at = now + timedelta(days=ttl_days)

    return CustomerMetricsRecord(
        contact_id=contact_id,
        name=snapshot.display_name,
        first_name=snapshot.first_name,
        last_name=snapshot.last_name,
        email=snapshot.email,
        phone=snapshot.phone,
        company=snapshot.company,
        account_name=snapshot.account_name,
        account_code=snapshot.account_code,
        order_count=order_count,
        total_spend=quantize_cents(total_spend),
        first_order_date=first_order.created_at,
        last_order_date=last_order.created_at,
        last_order_reference=last_order.order_reference,
        segment=segmentation.segment,
        last_order_days_ago=segmentation.last_order_days_ago,
        purchase_frequency=segmentation.purchase_frequency,
        last_updated=now.isoformat(),
        ttl=int(expires_at.timestamp()),
    )
