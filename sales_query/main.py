from __future__ import annotations

import json
import sys
from typing import Optional

import typer

from sales_query.config import get_settings
from sales_query.engine.service import run_query
from sales_query.errors import InvalidRequestError, StorageError
from sales_query.infrastructure.store import PostgresSalesStore
from sales_query.reporter import print_result
from sales_query.request import parse_query_params
from sales_query.utils.logging import configure_logging

app = typer.Typer(help="Sales query CLI: paginated, filtered, sorted sales with totals.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"page_size={settings.query_default_page_size} max={settings.query_max_page_size} "
        f"sort={settings.query_default_sort} snapshot={settings.query_snapshot_reads}"
    )


@app.command()
def query(
    page: Optional[str] = typer.Option(None, "--page", "-p", help="Page number (1-based)."),
    page_size: Optional[str] = typer.Option(None, "--page-size", "-n", help="Rows per page."),
    search: str = typer.Option("", "--search", "-q", help="Customer name or phone substring."),
    sort: Optional[str] = typer.Option(
        None, "--sort", "-s", help="field:direction, field in customerName, finalAmount, date."
    ),
    region: Optional[str] = typer.Option(None, help="Comma-separated customer regions."),
    gender: Optional[str] = typer.Option(None, help="Comma-separated genders."),
    category: Optional[str] = typer.Option(None, help="Comma-separated product categories."),
    tags: Optional[str] = typer.Option(None, help="Comma-separated tag substrings (any)."),
    payment_method: Optional[str] = typer.Option(
        None, "--payment-method", help="Comma-separated payment methods."
    ),
    age_min: Optional[str] = typer.Option(None, "--age-min", help="Minimum age (inclusive)."),
    age_max: Optional[str] = typer.Option(None, "--age-max", help="Maximum age (inclusive)."),
    date_min: Optional[str] = typer.Option(None, "--date-min", help="First day, YYYY-MM-DD."),
    date_max: Optional[str] = typer.Option(None, "--date-max", help="Last day, YYYY-MM-DD."),
    as_table: bool = typer.Option(False, "--table", help="Render a table instead of JSON."),
) -> None:
    """
    Run one sales query and print the page with its totals.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    params = {
        "page": page,
        "pageSize": page_size,
        "search": search,
        "sort": sort,
        "region": region,
        "gender": gender,
        "category": category,
        "tags": tags,
        "paymentMethod": payment_method,
        "ageMin": age_min,
        "ageMax": age_max,
        "dateMin": date_min,
        "dateMax": date_max,
    }
    try:
        request = parse_query_params(params, settings)
    except InvalidRequestError as exc:
        typer.echo(json.dumps({"message": str(exc)}), err=True)
        raise typer.Exit(code=2)

    try:
        result = run_query(request, PostgresSalesStore())
    except StorageError as exc:
        typer.echo(
            json.dumps(
                {
                    "message": "Internal Server Error while processing sales query.",
                    "details": str(exc),
                }
            ),
            err=True,
        )
        raise typer.Exit(code=1)

    if as_table:
        print_result(result)
    else:
        typer.echo(json.dumps(result.to_payload(), indent=2))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
