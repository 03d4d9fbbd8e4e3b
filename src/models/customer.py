"""Customer metrics models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Segment(str, Enum):
    """Customer lifecycle segment."""

    NEW = "New"
    ACTIVE = "Active"
    DORMANT = "Dormant"
    VIP = "VIP"


class PurchaseFrequency(str, Enum):
    """Bucketed reorder cadence."""

    NONE = "None"
    ONE_TIME = "One-time"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    OCCASIONAL = "Occasional"


class CustomerSegmentation(BaseModel):
    """Output of the segmentation engine."""

    segment: Segment
    last_order_days_ago: Optional[int] = None
    purchase_frequency: PurchaseFrequency


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )


class _CustomerIdentity(_CamelModel):
    """Denormalized identity fields copied from the latest order."""

    contact_id: str = Field(alias="contactID")
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    account_name: str = ""
    account_code: str = ""

    @field_validator(
        "name",
        "first_name",
        "last_name",
        "email",
        "phone",
        "company",
        "account_name",
        "account_code",
        mode="before",
    )
    @classmethod
    def _blank_when_missing(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class CustomerMetricsRecord(_CustomerIdentity):
    """
    One row of the metrics cache table, keyed by contactID.

    Always written whole (put_item), never patched field by field.
    """

    order_count: int
    total_spend: Decimal
    first_order_date: Optional[str] = None
    last_order_date: Optional[str] = None
    last_order_reference: Optional[str] = None
    segment: Segment
    last_order_days_ago: Optional[int] = None
    purchase_frequency: PurchaseFrequency
    last_updated: str
    ttl: int

    def is_expired(self, now: datetime) -> bool:
        """DynamoDB deletes expired rows lazily, so check the TTL ourselves."""
        return self.ttl <= int(now.timestamp())

    def to_item(self) -> Dict[str, Any]:
        """Serialize for put_item (Decimals kept, enums as strings)."""
        return self.model_dump(by_alias=True)


class CustomerMetricsView(_CamelModel):
    """The ``metrics`` block of the customer API response."""

    order_count: int
    total_spend: str
    last_order_date: Optional[str] = None
    last_order_reference: Optional[str] = None
    segment: Segment
    last_order_days_ago: Optional[int] = None
    purchase_frequency: PurchaseFrequency


class CustomerWithMetrics(_CustomerIdentity):
    """Customer as returned by GET /customers and GET /customers/{contactID}."""

    metrics: CustomerMetricsView

    @classmethod
    def from_record(cls, record: CustomerMetricsRecord) -> "CustomerWithMetrics":
        return cls(
            contact_id=record.contact_id,
            name=record.name,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            phone=record.phone,
            company=record.company,
            account_name=record.account_name,
            account_code=record.account_code,
            metrics=CustomerMetricsView(
                order_count=record.order_count,
                total_spend=f"{Decimal(record.total_spend):.2f}",
                last_order_date=record.last_order_date,
                last_order_reference=record.last_order_reference,
                segment=record.segment,
                last_order_days_ago=record.last_order_days_ago,
                purchase_frequency=record.purchase_frequency,
            ),
        )


class CustomerFilters(BaseModel):
    """Filters accepted by the customer list endpoint."""

    search: Optional[str] = None
    segment: Optional[Segment] = None
    limit: int = 50

    def matches(self, customer: CustomerWithMetrics) -> bool:
        if self.segment is not None and customer.metrics.segment != self.segment.value:
            return False
        if self.search:
            needle = self.search.lower()
            haystack = (customer.name, customer.email, customer.company)
            if not any(needle in field.lower() for field in haystack):
                return False
        return True


class CustomerListResult(BaseModel):
    """A page of customers plus how it was served."""

    customers: List[CustomerWithMetrics]
    total: int
    cache_hit: bool
