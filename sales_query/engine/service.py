"""
Query service: the single entry point that turns a validated QueryRequest
into a QueryResult.

    from sales_query.engine.service import run_query
    from sales_query.infrastructure.store import PostgresSalesStore

    result = run_query(request, PostgresSalesStore())
"""

from __future__ import annotations

from sales_query.domain.models import QueryRequest, QueryResult
from sales_query.engine import ordering, predicate
from sales_query.engine.abstract import SalesStore
from sales_query.engine.executor import QueryExecutor
from sales_query.utils.logging import get_logger

log = get_logger(__name__)


def run_query(request: QueryRequest, store: SalesStore) -> QueryResult:
    """
    Build the predicate, resolve the ordering and execute against `store`.

    The request holds no state beyond this call; each call re-derives its
    predicate and re-reads storage.
    """
    where = predicate.build(request.search, request.filters)
    order = ordering.resolve(request.sort_key, request.sort_direction)

    result = QueryExecutor(store).execute(where, order, request.page, request.page_size)

    if result.total_count == 0 and (request.search.strip() or not request.filters.is_empty):
        log.info(
            "No results found for current criteria.",
            extra={"search": request.search, "clauses": len(where.clauses)},
        )
    return result


__all__ = ["run_query"]
