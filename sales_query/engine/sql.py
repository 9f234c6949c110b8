"""
Compile predicates and order specs to parameterised Postgres SQL.

Identifiers are produced only from the `Column` enum via `sql.Identifier`;
every user-supplied value travels as a bound parameter. Substring needles are
LIKE-escaped so `%` and `_` in search text match literally.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from psycopg import sql

from sales_query.domain.models import SaleRecord
from sales_query.engine.ordering import OrderSpec
from sales_query.engine.predicate import (
    AllClause,
    AnyClause,
    AnyOf,
    Clause,
    Column,
    Compare,
    Contains,
    Predicate,
)

SALES_TABLE = sql.Identifier("public", "sales")

# Stored columns share their names with the record fields.
RECORD_COLUMNS: Tuple[str, ...] = tuple(SaleRecord.model_fields)

Query = Tuple[sql.Composable, List[Any]]


def escape_like(text: str) -> str:
    """Escape LIKE metacharacters using the default backslash escape."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _ident(column: Column) -> sql.Identifier:
    return sql.Identifier(column.value)


def _compile_clause(clause: Clause, params: List[Any]) -> sql.Composable:
    if isinstance(clause, Contains):
        params.append(f"%{escape_like(clause.needle)}%")
        return sql.SQL("{} ILIKE %s").format(_ident(clause.column))
    if isinstance(clause, AnyOf):
        params.append(list(clause.values))
        return sql.SQL("{} = ANY(%s)").format(_ident(clause.column))
    if isinstance(clause, Compare):
        params.append(clause.value)
        return sql.SQL("{} {} %s").format(_ident(clause.column), sql.SQL(clause.op.value))
    if isinstance(clause, AnyClause):
        parts = [_compile_clause(inner, params) for inner in clause.clauses]
        return sql.SQL("({})").format(sql.SQL(" OR ").join(parts))
    if isinstance(clause, AllClause):
        parts = [_compile_clause(inner, params) for inner in clause.clauses]
        return sql.SQL("({})").format(sql.SQL(" AND ").join(parts))
    raise TypeError(f"Unsupported clause type: {type(clause).__name__}")


def compile_where(predicate: Predicate) -> Query:
    """Return the WHERE body for `predicate` and its parameters, in order."""
    if predicate.matches_everything:
        return sql.SQL("TRUE"), []
    params: List[Any] = []
    parts = [_compile_clause(clause, params) for clause in predicate.clauses]
    return sql.SQL(" AND ").join(parts), params


def compile_order(order: OrderSpec) -> sql.Composable:
    direction = sql.SQL("DESC") if order.descending else sql.SQL("ASC")
    return sql.SQL("{} {}").format(_ident(order.column), direction)


def count_query(predicate: Predicate) -> Query:
    where, params = compile_where(predicate)
    query = sql.SQL("SELECT COUNT(*) AS total_count FROM {} WHERE {}").format(
        SALES_TABLE, where
    )
    return query, params


def page_query(predicate: Predicate, order: OrderSpec, limit: int, offset: int) -> Query:
    where, params = compile_where(predicate)
    query = sql.SQL("SELECT {} FROM {} WHERE {} ORDER BY {} LIMIT %s OFFSET %s").format(
        sql.SQL(", ").join(sql.Identifier(name) for name in RECORD_COLUMNS),
        SALES_TABLE,
        where,
        compile_order(order),
    )
    return query, [*params, limit, offset]


def aggregate_query(predicate: Predicate) -> Query:
    where, params = compile_where(predicate)
    query = sql.SQL(
        "SELECT COALESCE(SUM({final}), 0) AS total_final_amount, "
        "COALESCE(SUM({total}), 0) AS total_amount FROM {table} WHERE {where}"
    ).format(
        final=_ident(Column.FINAL_AMOUNT),
        total=_ident(Column.TOTAL_AMOUNT),
        table=SALES_TABLE,
        where=where,
    )
    return query, params


__all__ = [
    "RECORD_COLUMNS",
    "SALES_TABLE",
    "aggregate_query",
    "compile_order",
    "compile_where",
    "count_query",
    "escape_like",
    "page_query",
]
