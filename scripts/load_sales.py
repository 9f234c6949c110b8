"""
Sales data generation and loading script.

Produces a loadable CSV either from deterministic pseudo-random rows or by
normalising the raw sales dataset export ("Transaction ID", "Customer Name",
... headers), then loads it into Postgres with COPY.
"""

from __future__ import annotations

import csv
import datetime as dt
import random
import sys
import tempfile
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Optional

import typer
from psycopg import sql

from sales_query.config import build_dsn
from sales_query.engine.sql import RECORD_COLUMNS, SALES_TABLE
from sales_query.infrastructure.db_factory import get_sync_connection

app = typer.Typer(help="Generate or normalise sales CSV data and load it into Postgres (COPY).")

# Everything but the serial primary key.
CSV_COLUMNS = tuple(name for name in RECORD_COLUMNS if name != "id")

SOURCE_HEADERS: Dict[str, str] = {
    "Transaction ID": "transaction_id",
    "Date": "date",
    "Customer ID": "customer_id",
    "Customer Name": "customer_name",
    "Phone Number": "phone_number",
    "Gender": "gender",
    "Age": "age",
    "Customer Region": "customer_region",
    "Customer Type": "customer_type",
    "Product ID": "product_id",
    "Product Name": "product_name",
    "Brand": "brand",
    "Product Category": "product_category",
    "Tags": "tags",
    "Quantity": "quantity",
    "Price per Unit": "price_per_unit",
    "Discount Percentage": "discount_percentage",
    "Total Amount": "total_amount",
    "Final Amount": "final_amount",
    "Payment Method": "payment_method",
    "Order Status": "order_status",
    "Delivery Type": "delivery_type",
    "Store ID": "store_id",
    "Store Location": "store_location",
    "Salesperson ID": "salesperson_id",
    "Employee Name": "employee_name",
}

INT_COLUMNS = frozenset({"age", "quantity"})
MONEY_COLUMNS = frozenset(
    {"price_per_unit", "discount_percentage", "total_amount", "final_amount"}
)

REGIONS = ["North", "South", "East", "West", "Central"]
GENDERS = ["Male", "Female"]
CATEGORIES = ["Clothing", "Electronics", "Beauty"]
TAGS = [
    "organic", "wireless", "fashion", "casual", "gadgets", "skincare",
    "portable", "cotton", "smart", "accessories", "formal", "unisex", "makeup",
]
PAYMENT_METHODS = ["Cash", "Credit Card", "Debit Card", "UPI", "Wallet", "Net Banking"]
ORDER_STATUSES = ["Completed", "Pending", "Cancelled", "Returned"]
DELIVERY_TYPES = ["Standard", "Express", "Store Pickup"]
FIRST_NAMES = ["Aarav", "Diya", "Ishaan", "Meera", "Kabir", "Anaya", "Rohan", "Sara", "Vikram", "Neha"]
LAST_NAMES = ["Sharma", "Patel", "Iyer", "Khan", "Reddy", "Gupta", "Das", "Mehta", "Nair", "Singh"]
CUSTOMER_TYPES = ["New", "Returning", "Loyal"]

_CENT = Decimal("0.01")


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _money(value: Decimal) -> str:
    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _generate_rows_csv(csv_path: Path, rows: int, batch_size: int, seed: int) -> None:
    rng = random.Random(seed)
    first_day = dt.date(2021, 1, 1)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

        buffer: list[list[str]] = []
        for i in range(rows):
            quantity = rng.randint(1, 10)
            price = Decimal(rng.randint(1_000, 500_000)) / 100
            discount = Decimal(rng.choice(range(0, 45, 5)))
            total = price * quantity
            final = total * (100 - discount) / 100
            customer = rng.randrange(1, max(rows // 3, 2))
            record = {
                "transaction_id": f"TXN{i + 1:08d}",
                "date": (first_day + dt.timedelta(days=rng.randint(0, 3 * 365))).isoformat(),
                "customer_id": f"CUST{customer:06d}",
                "customer_name": f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                "phone_number": f"9{rng.randint(100_000_000, 999_999_999)}",
                "gender": rng.choice(GENDERS),
                "age": str(rng.randint(18, 70)),
                "customer_region": rng.choice(REGIONS),
                "customer_type": rng.choice(CUSTOMER_TYPES),
                "product_id": f"PROD{rng.randint(1, 500):04d}",
                "product_name": f"Item {rng.randint(1, 500)}",
                "brand": f"Brand {rng.choice('ABCDEFG')}",
                "product_category": rng.choice(CATEGORIES),
                "tags": ",".join(rng.sample(TAGS, rng.randint(1, 3))),
                "quantity": str(quantity),
                "price_per_unit": _money(price),
                "discount_percentage": _money(discount),
                "total_amount": _money(total),
                "final_amount": _money(final),
                "payment_method": rng.choice(PAYMENT_METHODS),
                "order_status": rng.choice(ORDER_STATUSES),
                "delivery_type": rng.choice(DELIVERY_TYPES),
                "store_id": f"ST{rng.randint(1, 40):03d}",
                "store_location": rng.choice(REGIONS),
                "salesperson_id": f"EMP{rng.randint(1, 120):04d}",
                "employee_name": f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            }
            buffer.append([record[name] for name in CSV_COLUMNS])
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


SOURCE_DATE_FORMATS = ("%m/%d/%Y", "%d-%m-%Y", "%Y/%m/%d")


def _parse_source_date(value: str) -> dt.date:
    """Parse an ISO date (optionally with a time part) or one of SOURCE_DATE_FORMATS."""
    if not value:
        raise ValueError("missing date")
    try:
        return dt.date.fromisoformat(value[:10])
    except ValueError:
        pass
    for fmt in SOURCE_DATE_FORMATS:
        try:
            return dt.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date '{value}'")


def _normalize_value(column: str, raw: Optional[str]) -> str:
    """
    Clean one raw cell. Blank or unparseable numbers become 0, blank strings
    become empty (NULL under COPY csv).
    Raises ValueError for a blank or unparseable date, which the table
    cannot store.
    """
    value = (raw or "").strip()
    if column in INT_COLUMNS:
        try:
            return str(int(float(value)))
        except ValueError:
            return "0"
    if column in MONEY_COLUMNS:
        try:
            return _money(Decimal(value))
        except InvalidOperation:
            return "0.00"
    if column == "date":
        return _parse_source_date(value).isoformat()
    return value


def _convert_source_csv(source: Path, csv_path: Path) -> int:
    """
    Rewrite a raw dataset export into the loadable column layout.

    Rows whose date cannot be stored are skipped with a warning naming the
    source line. Returns the number of rows written.
    """
    converted = 0
    with source.open("r", newline="", encoding="utf-8-sig") as src, csv_path.open(
        "w", newline="", encoding="utf-8"
    ) as dst:
        reader = csv.DictReader(src)
        writer = csv.writer(dst)
        writer.writerow(CSV_COLUMNS)
        for row in reader:
            try:
                record = {
                    column: _normalize_value(column, row.get(header))
                    for header, column in SOURCE_HEADERS.items()
                }
            except ValueError as exc:
                typer.echo(f"Skipping line {reader.line_num}: {exc}", err=True)
                continue
            writer.writerow([record[name] for name in CSV_COLUMNS])
            converted += 1
    return converted


def _copy_into_db(dsn: str, csv_path: Path, truncate: bool = False) -> None:
    copy_stmt = sql.SQL("COPY {} ({}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)").format(
        SALES_TABLE,
        sql.SQL(", ").join(sql.Identifier(name) for name in CSV_COLUMNS),
    )
    with get_sync_connection(dsn) as conn:
        with conn.cursor() as cur:
            if truncate:
                cur.execute(
                    sql.SQL("TRUNCATE TABLE {} RESTART IDENTITY").format(SALES_TABLE)
                )
            with cur.copy(copy_stmt) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
        conn.commit()


@app.command()
def main(
    rows: int = typer.Option(
        10_000,
        "--rows",
        "-r",
        help="Number of synthetic rows to generate (ignored with --source).",
    ),
    batch_size: int = typer.Option(
        5_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    source: Path | None = typer.Option(
        None,
        "--source",
        help="Raw dataset CSV export to normalise instead of generating rows.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    truncate: bool = typer.Option(
        False,
        "--truncate",
        help="Empty the sales table before loading.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only write the CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Prepare sales CSV data and optionally load it into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="sales_csv_"))
        csv_path = tmpdir / "sales.csv"

    if source:
        typer.echo(f"Normalising {source} -> {csv_path}")
        rows = _convert_source_csv(source, csv_path)
    else:
        typer.echo(f"Generating {rows:,} rows -> {csv_path} (batch={batch_size}, seed={seed})")
        _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed)
    prep_duration = time.perf_counter() - start
    typer.echo(f"CSV ready with {rows:,} rows in {prep_duration:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path, truncate=truncate)
    load_duration = time.perf_counter() - load_start
    typer.echo(f"Load completed in {load_duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
