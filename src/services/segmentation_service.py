"""
Customer Segmentation.

Classifies a customer's lifecycle segment and purchase cadence from four
numbers derived from their order history. This is the single ruleset used
by both the stream-driven metrics cache and the live read path.

Rules (first match wins):
- VIP: total spend above $5,000, regardless of recency
- Dormant: last order more than 90 days ago
- New: first order within the last 30 days
- Active: ordered within the last 90 days

The older "$500 and 5+ orders" VIP rule is superseded by this one.

Day counts are floored 24-hour blocks of elapsed time, not calendar days:
an order placed 23 hours ago is 0 days old.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Union

from models.customer import CustomerSegmentation, PurchaseFrequency, Segment
from utils.decimals import to_decimal

VIP_SPEND_THRESHOLD = Decimal("5000")
DORMANT_AFTER_DAYS = 90
NEW_CUSTOMER_WINDOW_DAYS = 30

WEEKLY_MAX_GAP_DAYS = 7
MONTHLY_MAX_GAP_DAYS = 30
QUARTERLY_MAX_GAP_DAYS = 90

_ONE_DAY = timedelta(days=1)

Timestamp = Union[str, datetime, None]


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` or offset) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> int:
    """Whole 24-hour periods from ``start`` to ``end`` (floored)."""
    return (end - start) // _ONE_DAY


def frequency_for_gap(avg_gap_days: float) -> PurchaseFrequency:
    """Map an average gap between orders to a frequency bucket."""
    if avg_gap_days <= WEEKLY_MAX_GAP_DAYS:
        return PurchaseFrequency.WEEKLY
    if avg_gap_days <= MONTHLY_MAX_GAP_DAYS:
        return PurchaseFrequency.MONTHLY
    if avg_gap_days <= QUARTERLY_MAX_GAP_DAYS:
        return PurchaseFrequency.QUARTERLY
    return PurchaseFrequency.OCCASIONAL


def purchase_frequency(
    order_count: int,
    last_order: datetime,
    first_order: Optional[datetime],
) -> PurchaseFrequency:
    """Estimate reorder cadence from the first-to-last order span."""
    if order_count == 1:
        return PurchaseFrequency.ONE_TIME
    if order_count >= 2 and first_order is not None:
        lifespan_days = days_between(first_order, last_order)
        if lifespan_days > 0:
            return frequency_for_gap(lifespan_days / (order_count - 1))
    # Same-day repeat orders and missing first dates both land here.
    return PurchaseFrequency.OCCASIONAL


def _segment(
    total_spend: Decimal,
    last_order_days_ago: int,
    first_order: Optional[datetime],
    now: datetime,
) -> Segment:
    if total_spend > VIP_SPEND_THRESHOLD:
        return Segment.VIP
    if last_order_days_ago > DORMANT_AFTER_DAYS:
        return Segment.DORMANT
    if first_order is not None and days_between(first_order, now) <= NEW_CUSTOMER_WINDOW_DAYS:
        return Segment.NEW
    if last_order_days_ago <= DORMANT_AFTER_DAYS:
        return Segment.ACTIVE
    return Segment.NEW


def classify(
    order_count: int,
    total_spend: Union[Decimal, int, float, str],
    last_order_date: Timestamp,
    first_order_date: Timestamp,
    now: Optional[datetime] = None,
) -> CustomerSegmentation:
    """
    Derive segment, days since last order and purchase frequency.

    Pure and total: bad or missing dates degrade to the "New / None" result
    rather than raising. ``now`` defaults to the current UTC time.
    """
    last_order = parse_timestamp(last_order_date)
    if order_count == 0 or last_order is None:
        return CustomerSegmentation(
            segment=Segment.NEW,
            last_order_days_ago=None,
            purchase_frequency=PurchaseFrequency.NONE,
        )

    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    first_order = parse_timestamp(first_order_date)
    spend = to_decimal(total_spend)

    last_order_days_ago = days_between(last_order, now)

    return CustomerSegmentation(
        segment=_segment(spend, last_order_days_ago, first_order, now),
        last_order_days_ago=last_order_days_ago,
        purchase_frequency=purchase_frequency(order_count, last_order, first_order),
    )
