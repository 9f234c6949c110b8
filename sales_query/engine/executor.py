"""
Paginated fetch and aggregation.

Runs one Predicate through the store twice: a windowed read for the page (which
also reports the full match count) and an unwindowed aggregate read for the
totals. Both reads happen inside a single store session; whether that session
is a snapshot is the store's configuration, not the executor's.
"""

from __future__ import annotations

import math
import time

from sales_query.domain.models import QueryResult
from sales_query.engine.abstract import SalesStore
from sales_query.engine.ordering import OrderSpec
from sales_query.engine.predicate import Predicate
from sales_query.utils.logging import get_logger

log = get_logger(__name__)


def total_pages(total_count: int, page_size: int) -> int:
    """Ceiling of count / page size; zero matches gives zero pages."""
    return math.ceil(total_count / page_size)


class QueryExecutor:
    """
    Execute a resolved query against a SalesStore.

    Storage errors propagate unchanged; a failed aggregate read after a
    successful page read fails the whole call.
    """

    def __init__(self, store: SalesStore) -> None:
        self._store = store

    def execute(
        self, predicate: Predicate, order: OrderSpec, page: int, page_size: int
    ) -> QueryResult:
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive integers")

        offset = (page - 1) * page_size
        start = time.perf_counter()

        with self._store.session() as session:
            window = session.fetch_page(predicate, order, limit=page_size, offset=offset)
            totals = session.aggregate(predicate)

        # Discount is derived from the two sums; per-row percentages do not add up.
        total_discount = totals.total_amount - totals.final_amount

        result = QueryResult(
            rows=window.rows,
            total_count=window.total_count,
            total_final_amount=totals.final_amount,
            total_discount=total_discount,
            current_page=page,
            total_pages=total_pages(window.total_count, page_size),
        )

        duration = time.perf_counter() - start
        log.info(
            f"[QUERY] page {page}/{result.total_pages} ({len(result.rows)} rows)",
            extra={
                "page": page,
                "page_size": page_size,
                "offset": offset,
                "clauses": len(predicate.clauses),
                "order_by": order.column.value,
                "descending": order.descending,
                "total_count": result.total_count,
                "duration_ms": round(duration * 1000, 2),
            },
        )
        return result


__all__ = ["QueryExecutor", "total_pages"]
