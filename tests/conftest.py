"""
Pytest configuration for the sales query service.

Provides fixtures for:
- Record construction and an in-memory SalesStore for unit tests
- Database connection management for integration tests
- Schema creation and seeding
"""

from __future__ import annotations

import datetime as dt
import os
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generator, Iterable, Iterator, List, Optional

import psycopg
import pytest

from sales_query.config import Settings
from sales_query.domain.models import SaleRecord
from sales_query.engine.abstract import Page, Totals
from sales_query.engine.ordering import OrderSpec
from sales_query.engine.predicate import Predicate
from sales_query.errors import StorageError

SCHEMA_PATH = Path(__file__).parent.parent / "db" / "init.sql"


def _record(index: int, **overrides: Any) -> SaleRecord:
    values: dict[str, Any] = {
        "id": index,
        "transaction_id": f"TXN{index:05d}",
        "date": dt.date(2023, 1, 1),
        "customer_id": f"CUST{index:04d}",
        "customer_name": f"Customer {index}",
        "phone_number": f"90000{index:05d}",
        "gender": "Female",
        "age": 30,
        "customer_region": "North",
        "product_id": f"PROD{index:03d}",
        "product_category": "Clothing",
        "tags": "casual,cotton",
        "quantity": 1,
        "price_per_unit": Decimal("10.00"),
        "discount_percentage": Decimal("0"),
        "total_amount": Decimal("10.00"),
        "final_amount": Decimal("10.00"),
        "payment_method": "Cash",
    }
    values.update(overrides)
    return SaleRecord(**values)


@pytest.fixture
def make_record() -> Callable[..., SaleRecord]:
    """
    Factory for SaleRecord instances: make_record(1, customer_region="East").
    """
    return _record


class _InMemorySession:
    def __init__(self, store: "InMemorySalesStore") -> None:
        self._store = store

    def _matching(self, predicate: Predicate) -> List[SaleRecord]:
        return [record for record in self._store.records if predicate.matches(record)]

    def fetch_page(
        self, predicate: Predicate, order: OrderSpec, limit: int, offset: int
    ) -> Page:
        self._store.calls.append(("fetch_page", limit, offset))
        if self._store.fail_on == "fetch_page":
            raise StorageError("page read failed")
        matched = self._matching(predicate)
        # list.sort is stable, so equal keys keep insertion order.
        matched.sort(key=order.column.read, reverse=order.descending)
        return Page(rows=matched[offset : offset + limit], total_count=len(matched))

    def aggregate(self, predicate: Predicate) -> Totals:
        self._store.calls.append(("aggregate",))
        if self._store.fail_on == "aggregate":
            raise StorageError("aggregate read failed")
        matched = self._matching(predicate)
        return Totals(
            final_amount=sum((record.final_amount for record in matched), Decimal("0")),
            total_amount=sum((record.total_amount for record in matched), Decimal("0")),
        )


class InMemorySalesStore:
    """SalesStore over a Python list, evaluating predicates with Predicate.matches."""

    def __init__(self, records: Iterable[SaleRecord] = (), fail_on: Optional[str] = None) -> None:
        self.records = list(records)
        self.fail_on = fail_on
        self.calls: list[tuple[Any, ...]] = []
        self.sessions_opened = 0
        self.sessions_closed = 0

    @contextmanager
    def session(self) -> Iterator[_InMemorySession]:
        self.sessions_opened += 1
        try:
            yield _InMemorySession(self)
        finally:
            self.sessions_closed += 1


@pytest.fixture
def memory_store() -> Callable[..., InMemorySalesStore]:
    return InMemorySalesStore


@pytest.fixture
def scenario_records() -> List[SaleRecord]:
    """
    A(East, 100/120), B(West, 50/50), C(East, 200/250).
    """
    return [
        _record(1, customer_name="Alice", customer_region="East",
                final_amount=Decimal("100"), total_amount=Decimal("120"),
                date=dt.date(2023, 3, 1)),
        _record(2, customer_name="Bob", customer_region="West",
                final_amount=Decimal("50"), total_amount=Decimal("50"),
                date=dt.date(2023, 3, 2)),
        _record(3, customer_name="Carol", customer_region="East",
                final_amount=Decimal("200"), total_amount=Decimal("250"),
                date=dt.date(2023, 3, 3)),
    ]


# Integration fixtures


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "sales_db"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the sales table and its indexes exist.
    """
    with db_connection.cursor() as cur:
        cur.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_sales_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the sales table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.sales RESTART IDENTITY;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.sales RESTART IDENTITY;")
    db_connection.commit()


@pytest.fixture(scope="function")
def seeded_db_small(
    clean_sales_table,
    db_connection: psycopg.Connection,
    test_dsn: str,
    tmp_path: Path,
) -> int:
    """
    Seed 200 synthetic sales rows. Returns the number of rows loaded.
    """
    from scripts.load_sales import _copy_into_db, _generate_rows_csv

    csv_path = tmp_path / "sales.csv"
    _generate_rows_csv(csv_path, rows=200, batch_size=50, seed=42)
    _copy_into_db(test_dsn, csv_path)

    with db_connection.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM public.sales;")
        return cur.fetchone()[0]
