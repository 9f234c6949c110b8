"""
Storage contracts for the query engine.

A SalesStore hands out read sessions; the executor performs its windowed read
and its aggregate read inside one session. Concrete stores (Postgres, or an
in-memory fake in tests) implement these protocols.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Protocol, runtime_checkable

from sales_query.domain.models import SaleRecord
from sales_query.engine.ordering import OrderSpec
from sales_query.engine.predicate import Predicate


@dataclass(frozen=True)
class Page:
    """Rows inside the window plus the size of the full matching set."""

    rows: List[SaleRecord] = field(default_factory=list)
    total_count: int = 0


@dataclass(frozen=True)
class Totals:
    """Sums over every matching row. Empty matches sum to zero."""

    final_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")


@runtime_checkable
class ReadSession(Protocol):
    def fetch_page(
        self, predicate: Predicate, order: OrderSpec, limit: int, offset: int
    ) -> Page:
        """
        Return the rows matching `predicate`, ordered by `order`, skipping
        `offset` and taking at most `limit`, together with the total count of
        matching rows regardless of the window.
        """
        ...

    def aggregate(self, predicate: Predicate) -> Totals:
        """Sum final and total amounts over all rows matching `predicate`."""
        ...


@runtime_checkable
class SalesStore(Protocol):
    def session(self) -> AbstractContextManager[ReadSession]:
        """Open a read session; errors surface as StorageError."""
        ...


__all__ = ["Page", "ReadSession", "SalesStore", "Totals"]
