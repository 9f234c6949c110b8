"""
Sales query service: paginated, filtered, sorted queries over a flat table of
sale transactions, returning a page of rows plus totals (final amount and
discount) computed over the whole matching set.

- Predicate building from a declarative filter set and search text
- Allow-listed, injection-safe ordering
- Windowed fetch and full-match aggregation from one predicate
- Postgres storage via a psycopg connection pool
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

from sales_query.config import Settings, get_settings
from sales_query.domain.models import FilterSet, QueryRequest, QueryResult, SaleRecord
from sales_query.engine.service import run_query
from sales_query.errors import InvalidRequestError, SalesQueryError, StorageError
from sales_query.request import parse_query_params
from sales_query.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "FilterSet",
    "QueryRequest",
    "QueryResult",
    "SaleRecord",
    # Query entry points
    "parse_query_params",
    "run_query",
    # Errors
    "InvalidRequestError",
    "SalesQueryError",
    "StorageError",
    # Logging
    "configure_logging",
    "get_logger",
]
