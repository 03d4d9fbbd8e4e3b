"""Order models (documents owned by the order intake pipeline)."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _stringify(value: Any) -> Any:
    """DynamoDB may hand back numbers (Decimal) for phone/code style fields."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


class CustomerSnapshot(BaseModel):
    """Customer details captured on the order at intake time."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    contact_name: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    account_name: Optional[str] = None
    account_code: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        return _stringify(value)

    @property
    def display_name(self) -> str:
        if self.contact_name:
            return self.contact_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class OrderTotals(BaseModel):
    """Totals block; values arrive as decimal strings or numbers."""

    model_config = ConfigDict(extra="allow")

    subtotal: Optional[Any] = None
    freight: Optional[Any] = None
    gst: Optional[Any] = None
    total: Optional[Any] = None


class Order(BaseModel):
    """A web order as stored in the orders table."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    order_id: Optional[str] = Field(default=None, alias="orderID")
    contact_id: Optional[str] = Field(default=None, alias="contactID")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    order_reference: Optional[str] = None
    customer: CustomerSnapshot = Field(default_factory=CustomerSnapshot)
    totals: OrderTotals = Field(default_factory=OrderTotals)
    items: List[dict] = Field(default_factory=list)

    @field_validator("customer", "totals", mode="before")
    @classmethod
    def _empty_when_missing(cls, value: Any) -> Any:
        # Anything other than an object (None, a bare string total) reads as empty.
        return value if isinstance(value, dict) else {}

    @field_validator("items", mode="before")
    @classmethod
    def _list_when_missing(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("order_id", "contact_id", "created_at", "order_reference", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        return _stringify(value)
