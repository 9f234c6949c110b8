"""
Domain package for the sales query service.

Exports the record, request and result models used across the engine, the
storage adapter and the CLI. Keep this package focused on data definitions
and validation concerns.
"""

from sales_query.domain.models import (
    AgeRange,
    DateRange,
    FilterSet,
    QueryRequest,
    QueryResult,
    SaleRecord,
    SortDirection,
    SortKey,
)

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
