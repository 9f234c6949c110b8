from __future__ import annotations

from decimal import Decimal
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from sales_query.domain.models import QueryResult

_COLUMNS = (
    ("Date", "date"),
    ("Transaction", "transaction_id"),
    ("Customer", "customer_name"),
    ("Phone", "phone_number"),
    ("Region", "customer_region"),
    ("Category", "product_category"),
    ("Qty", "quantity"),
    ("Total", "total_amount"),
    ("Final", "final_amount"),
)


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def build_table(result: QueryResult) -> Table:
    """
    Render one page of a QueryResult as a rich table with the totals in the caption.
    """
    table = Table(
        title=f"Sales: page {result.current_page} of {result.total_pages}",
        box=box.SIMPLE_HEAVY,
        caption=(
            f"{result.total_count:,} matching | final amount {_money(result.total_final_amount)} "
            f"| discount {_money(result.total_discount)}"
        ),
    )
    for header, field in _COLUMNS:
        justify = "right" if field in {"quantity", "total_amount", "final_amount"} else "left"
        table.add_column(header, justify=justify, no_wrap=field == "date")

    for row in result.rows:
        cells = []
        for _, field in _COLUMNS:
            value = getattr(row, field)
            if isinstance(value, Decimal):
                cells.append(_money(value))
            else:
                cells.append("" if value is None else str(value))
        table.add_row(*cells)
    return table


def print_result(result: QueryResult, console: Optional[Console] = None) -> None:
    (console or Console()).print(build_table(result))


__all__ = ["build_table", "print_result"]
