"""
Domain models for the sales query service.

Defines the stored sale record (aligned with `db/init.sql`), the declarative
query request with its filter set, and the query result handed back to the
transport layer. Field names are snake_case in Python and camelCase on the
wire.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel


class SortKey(str, Enum):
    """Allow-listed sort keys, valued by their wire names."""

    CUSTOMER_NAME = "customerName"
    FINAL_AMOUNT = "finalAmount"
    DATE = "date"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SaleRecord(BaseModel):
    """
    Representation of a single row in the `sales` table.

    Rows are written only by the bulk loader; the query engine never mutates them.
    """

    id: int = Field(..., description="Primary key (SERIAL).")
    transaction_id: str = Field(..., description="Unique transaction identifier.")
    date: dt.date = Field(..., description="Calendar day of the sale.")

    customer_id: str
    customer_name: str
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    customer_region: Optional[str] = None
    customer_type: Optional[str] = None

    product_id: str
    product_name: Optional[str] = None
    brand: Optional[str] = None
    product_category: Optional[str] = None
    tags: Optional[str] = Field(None, description="Comma-separated tag list.")

    quantity: int = 0
    price_per_unit: Decimal = Decimal("0")
    discount_percentage: Optional[Decimal] = None
    total_amount: Decimal = Field(..., description="Amount before discount.")
    final_amount: Decimal = Field(..., description="Amount after discount.")

    payment_method: Optional[str] = None
    order_status: Optional[str] = None
    delivery_type: Optional[str] = None
    store_id: Optional[str] = None
    store_location: Optional[str] = None
    salesperson_id: Optional[str] = None
    employee_name: Optional[str] = None

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class AgeRange(BaseModel):
    """Inclusive age bounds; either side may be open."""

    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_order(self) -> "AgeRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(
                "Invalid age range: Minimum age cannot be greater than maximum age."
            )
        return self

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


class DateRange(BaseModel):
    """
    Calendar-day bounds. `max` is an inclusive day; the engine turns it into
    an exclusive upper bound of the following day.
    """

    min: Optional[dt.date] = None
    max: Optional[dt.date] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(
                "Invalid date range: Start date cannot be after end date."
            )
        return self

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


class FilterSet(BaseModel):
    """
    Per-dimension constraints. An empty tuple or a missing range means the
    dimension does not constrain the result.
    """

    region: Tuple[str, ...] = ()
    gender: Tuple[str, ...] = ()
    category: Tuple[str, ...] = ()
    payment_method: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    age: Optional[AgeRange] = None
    date: Optional[DateRange] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_empty(self) -> bool:
        return not any(
            (self.region, self.gender, self.category, self.payment_method, self.tags)
        ) and (self.age is None or self.age.is_open) and (
            self.date is None or self.date.is_open
        )


class QueryRequest(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)
    search: str = ""
    sort_key: SortKey = SortKey.DATE
    sort_direction: SortDirection = SortDirection.DESC
    filters: FilterSet = Field(default_factory=FilterSet)

    model_config = ConfigDict(frozen=True, extra="forbid")


class QueryResult(BaseModel):
    """
    One page of matching rows plus totals computed over every matching row.
    """

    rows: List[SaleRecord] = Field(default_factory=list, alias="data")
    total_count: int = 0
    total_final_amount: Decimal = Decimal("0")
    total_discount: Decimal = Decimal("0")
    current_page: int = 1
    total_pages: int = 0

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @field_serializer("total_final_amount", "total_discount", when_used="json")
    def _money_as_number(self, value: Decimal) -> float:
        return float(value)

    def to_payload(self) -> dict:
        """Render the result in the shape the transport layer sends out."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "AgeRange",
    "DateRange",
    "FilterSet",
    "QueryRequest",
    "QueryResult",
    "SaleRecord",
    "SortDirection",
    "SortKey",
]
