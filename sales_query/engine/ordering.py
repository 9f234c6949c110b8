"""
Ordering resolver: maps an allow-listed sort key and a direction to an
OrderSpec the store can apply.

Ordering is single-key. Rows with equal sort values come back in whatever
relative order the store produces; Postgres gives no stability guarantee
for such ties across repeated queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sales_query.domain.models import SortDirection, SortKey
from sales_query.engine.predicate import Column
from sales_query.errors import InvalidRequestError

SORT_COLUMNS: dict[SortKey, Column] = {
    SortKey.CUSTOMER_NAME: Column.CUSTOMER_NAME,
    SortKey.FINAL_AMOUNT: Column.FINAL_AMOUNT,
    SortKey.DATE: Column.DATE,
}


@dataclass(frozen=True)
class OrderSpec:
    column: Column
    direction: SortDirection

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


def _coerce_key(sort_key: Union[SortKey, str]) -> SortKey:
    if isinstance(sort_key, SortKey):
        return sort_key
    try:
        return SortKey(sort_key)
    except ValueError:
        allowed = ", ".join(key.value for key in SortKey)
        raise InvalidRequestError(
            f"Unsupported sort field '{sort_key}'. Allowed: {allowed}."
        ) from None


def _coerce_direction(direction: Union[SortDirection, str, None]) -> SortDirection:
    if isinstance(direction, SortDirection):
        return direction
    if not direction:
        return SortDirection.ASC
    try:
        return SortDirection(direction.strip().lower())
    except ValueError:
        return SortDirection.ASC


def resolve(
    sort_key: Union[SortKey, str],
    direction: Optional[Union[SortDirection, str]] = None,
) -> OrderSpec:
    """
    Resolve a sort key and direction.

    Unknown keys raise InvalidRequestError and are never forwarded to storage.
    A missing or unrecognized direction falls back to ascending.
    """
    key = _coerce_key(sort_key)
    return OrderSpec(column=SORT_COLUMNS[key], direction=_coerce_direction(direction))


__all__ = ["OrderSpec", "SORT_COLUMNS", "resolve"]
