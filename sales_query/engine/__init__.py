"""
Query engine package.

- predicate: FilterSet + search text -> Predicate
- ordering: sort key + direction -> OrderSpec
- executor: windowed read + aggregate read -> QueryResult
- sql: Predicate / OrderSpec -> parameterised Postgres SQL
"""

from sales_query.engine.abstract import Page, ReadSession, SalesStore, Totals
from sales_query.engine.executor import QueryExecutor, total_pages
from sales_query.engine.ordering import OrderSpec, resolve
from sales_query.engine.predicate import Column, Predicate, build
from sales_query.engine.service import run_query

__all__ = [
    "Column",
    "OrderSpec",
    "Page",
    "Predicate",
    "QueryExecutor",
    "ReadSession",
    "SalesStore",
    "Totals",
    "build",
    "resolve",
    "run_query",
    "total_pages",
]
