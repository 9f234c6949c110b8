"""
Predicate builder for sales queries.

Turns a search string and a FilterSet into a storage-agnostic Predicate: a
conjunction of clauses, where a clause may itself be a disjunction. Every
clause can evaluate itself against a SaleRecord, and `sales_query.engine.sql`
compiles the same tree to SQL, so both evaluations share one definition of
"matching".

Stored field names only ever come from the closed `Column` enum; the mapping
from filter dimension to column is the static `MEMBERSHIP_DIMENSIONS` table.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from sales_query.domain.models import FilterSet, SaleRecord


class Column(str, Enum):
    """Columns of the `sales` table the engine may filter, sort or sum on."""

    CUSTOMER_NAME = "customer_name"
    PHONE_NUMBER = "phone_number"
    CUSTOMER_REGION = "customer_region"
    GENDER = "gender"
    PRODUCT_CATEGORY = "product_category"
    PAYMENT_METHOD = "payment_method"
    TAGS = "tags"
    AGE = "age"
    DATE = "date"
    FINAL_AMOUNT = "final_amount"
    TOTAL_AMOUNT = "total_amount"

    def read(self, record: SaleRecord) -> Any:
        return _COLUMN_READERS[self](record)


_COLUMN_READERS: dict[Column, Callable[[SaleRecord], Any]] = {
    Column.CUSTOMER_NAME: attrgetter("customer_name"),
    Column.PHONE_NUMBER: attrgetter("phone_number"),
    Column.CUSTOMER_REGION: attrgetter("customer_region"),
    Column.GENDER: attrgetter("gender"),
    Column.PRODUCT_CATEGORY: attrgetter("product_category"),
    Column.PAYMENT_METHOD: attrgetter("payment_method"),
    Column.TAGS: attrgetter("tags"),
    Column.AGE: attrgetter("age"),
    Column.DATE: attrgetter("date"),
    Column.FINAL_AMOUNT: attrgetter("final_amount"),
    Column.TOTAL_AMOUNT: attrgetter("total_amount"),
}


class Comparison(str, Enum):
    GE = ">="
    LE = "<="
    LT = "<"


_COMPARATORS: dict[Comparison, Callable[[Any, Any], bool]] = {
    Comparison.GE: lambda left, right: left >= right,
    Comparison.LE: lambda left, right: left <= right,
    Comparison.LT: lambda left, right: left < right,
}


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring test; NULL never matches."""

    column: Column
    needle: str

    def matches(self, record: SaleRecord) -> bool:
        value = self.column.read(record)
        if value is None:
            return False
        return self.needle.lower() in str(value).lower()


@dataclass(frozen=True)
class AnyOf:
    """Exact equality against one of `values`."""

    column: Column
    values: Tuple[str, ...]

    def matches(self, record: SaleRecord) -> bool:
        return self.column.read(record) in self.values


@dataclass(frozen=True)
class Compare:
    column: Column
    op: Comparison
    value: Any

    def matches(self, record: SaleRecord) -> bool:
        current = self.column.read(record)
        if current is None:
            return False
        return _COMPARATORS[self.op](current, self.value)


@dataclass(frozen=True)
class AnyClause:
    """Disjunction of simple clauses."""

    clauses: Tuple["Clause", ...]

    def matches(self, record: SaleRecord) -> bool:
        return any(clause.matches(record) for clause in self.clauses)


@dataclass(frozen=True)
class AllClause:
    """Conjunction of simple clauses (used for two-sided ranges)."""

    clauses: Tuple["Clause", ...]

    def matches(self, record: SaleRecord) -> bool:
        return all(clause.matches(record) for clause in self.clauses)


Clause = Union[Contains, AnyOf, Compare, AnyClause, AllClause]


@dataclass(frozen=True)
class Predicate:
    """
    Conjunction of clauses. No clauses means every record matches.
    """

    clauses: Tuple[Clause, ...] = ()

    @property
    def matches_everything(self) -> bool:
        return not self.clauses

    def matches(self, record: SaleRecord) -> bool:
        return all(clause.matches(record) for clause in self.clauses)


# Filter dimension -> stored column. Fixed at import time, never user-controlled.
MEMBERSHIP_DIMENSIONS: Tuple[Tuple[Callable[[FilterSet], Tuple[str, ...]], Column], ...] = (
    (attrgetter("region"), Column.CUSTOMER_REGION),
    (attrgetter("gender"), Column.GENDER),
    (attrgetter("category"), Column.PRODUCT_CATEGORY),
    (attrgetter("payment_method"), Column.PAYMENT_METHOD),
)

SEARCH_COLUMNS: Tuple[Column, ...] = (Column.CUSTOMER_NAME, Column.PHONE_NUMBER)


def _normalized(values: Iterable[str]) -> Tuple[str, ...]:
    """Strip, drop blanks, de-duplicate and sort so equal inputs compare equal."""
    return tuple(sorted({value.strip() for value in values if value and value.strip()}))


def _search_clause(search_text: str) -> Optional[Clause]:
    needle = search_text.strip()
    if not needle:
        return None
    return AnyClause(tuple(Contains(column, needle) for column in SEARCH_COLUMNS))


def _tag_clause(tags: Iterable[str]) -> Optional[Clause]:
    needles = _normalized(tags)
    if not needles:
        return None
    return AnyClause(tuple(Contains(Column.TAGS, needle) for needle in needles))


def _range_clause(bounds: List[Compare]) -> Optional[Clause]:
    if not bounds:
        return None
    if len(bounds) == 1:
        return bounds[0]
    return AllClause(tuple(bounds))


def _age_clause(filters: FilterSet) -> Optional[Clause]:
    if filters.age is None:
        return None
    bounds: List[Compare] = []
    if filters.age.min is not None:
        bounds.append(Compare(Column.AGE, Comparison.GE, filters.age.min))
    if filters.age.max is not None:
        bounds.append(Compare(Column.AGE, Comparison.LE, filters.age.max))
    return _range_clause(bounds)


def _date_clause(filters: FilterSet) -> Optional[Clause]:
    if filters.date is None:
        return None
    bounds: List[Compare] = []
    if filters.date.min is not None:
        bounds.append(Compare(Column.DATE, Comparison.GE, filters.date.min))
    if filters.date.max is not None and filters.date.max < dt.date.max:
        # The max day is inclusive whatever the stored granularity.
        # The last representable day bounds nothing, so it adds no clause.
        next_day = filters.date.max + dt.timedelta(days=1)
        bounds.append(Compare(Column.DATE, Comparison.LT, next_day))
    return _range_clause(bounds)


def build(search_text: str, filters: FilterSet) -> Predicate:
    """
    Build the Predicate for a search string and filter set.

    Clause order is fixed (search, membership dimensions in table order, tags,
    age, date) so the same inputs always give a structurally equal Predicate.
    """
    clauses: List[Clause] = []

    search = _search_clause(search_text)
    if search is not None:
        clauses.append(search)

    for read_values, column in MEMBERSHIP_DIMENSIONS:
        accepted = _normalized(read_values(filters))
        if accepted:
            clauses.append(AnyOf(column, accepted))

    for clause in (_tag_clause(filters.tags), _age_clause(filters), _date_clause(filters)):
        if clause is not None:
            clauses.append(clause)

    return Predicate(tuple(clauses))


__all__ = [
    "AllClause",
    "AnyClause",
    "AnyOf",
    "Clause",
    "Column",
    "Compare",
    "Comparison",
    "Contains",
    "MEMBERSHIP_DIMENSIONS",
    "Predicate",
    "SEARCH_COLUMNS",
    "build",
]
