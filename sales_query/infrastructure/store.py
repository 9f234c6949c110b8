"""
Postgres-backed SalesStore.

Each session borrows one pooled connection and runs both engine reads on it:
a COUNT plus a LIMIT/OFFSET select for the page, then a SUM aggregate. With
snapshot reads enabled the session is a REPEATABLE READ, READ ONLY
transaction, so the page and the totals observe the same data.

Every psycopg error (including pool timeouts) is re-raised as StorageError.
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, Optional

import psycopg
from psycopg import Cursor
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from sales_query.config import get_settings
from sales_query.domain.models import SaleRecord
from sales_query.engine.abstract import Page, Totals
from sales_query.engine.ordering import OrderSpec
from sales_query.engine.predicate import Predicate
from sales_query.engine.sql import aggregate_query, count_query, page_query
from sales_query.errors import StorageError
from sales_query.infrastructure.db_factory import apply_statement_timeout, get_pool
from sales_query.utils.logging import get_logger

log = get_logger(__name__)


class PostgresReadSession:
    """Read operations bound to one open cursor."""

    def __init__(self, cursor: Cursor) -> None:
        self._cur = cursor

    def fetch_page(
        self, predicate: Predicate, order: OrderSpec, limit: int, offset: int
    ) -> Page:
        query, params = count_query(predicate)
        self._cur.execute(query, params)
        total_count = int(self._cur.fetchone()["total_count"])

        if offset >= total_count:
            return Page(rows=[], total_count=total_count)

        query, params = page_query(predicate, order, limit, offset)
        self._cur.execute(query, params)
        rows = [SaleRecord.model_validate(row) for row in self._cur.fetchall()]
        return Page(rows=rows, total_count=total_count)

    def aggregate(self, predicate: Predicate) -> Totals:
        query, params = aggregate_query(predicate)
        self._cur.execute(query, params)
        row = self._cur.fetchone()
        return Totals(
            final_amount=Decimal(row["total_final_amount"]),
            total_amount=Decimal(row["total_amount"]),
        )


class PostgresSalesStore:
    """
    SalesStore over the `public.sales` table.

    Parameters
    ----------
    pool : ConnectionPool, optional
        Pool to borrow connections from. Defaults to the shared PoolManager pool.
    snapshot_reads : bool, optional
        Run each session in one REPEATABLE READ, READ ONLY transaction.
        Defaults to settings.query_snapshot_reads.
    statement_timeout_ms : int, optional
        Server-side statement timeout per session. Defaults to settings.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        snapshot_reads: Optional[bool] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._pool = pool
        self.snapshot_reads = (
            settings.query_snapshot_reads if snapshot_reads is None else snapshot_reads
        )
        self.statement_timeout_ms = (
            settings.db_statement_timeout_ms
            if statement_timeout_ms is None
            else statement_timeout_ms
        )

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_pool()
        return self._pool

    @contextmanager
    def session(self) -> Iterator[PostgresReadSession]:
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    if self.snapshot_reads:
                        cur.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ, READ ONLY")
                    apply_statement_timeout(cur, self.statement_timeout_ms)
                    yield PostgresReadSession(cur)
        except psycopg.Error as exc:
            log.exception(
                "[STORAGE FAILED] sales read",
                extra={"error_type": type(exc).__name__, "snapshot": self.snapshot_reads},
            )
            raise StorageError(f"Sales query failed: {exc}") from exc


__all__ = ["PostgresReadSession", "PostgresSalesStore"]
