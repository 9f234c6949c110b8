import csv
from pathlib import Path

import pytest

from sales_query import config
from scripts import load_sales

ENV_KEYS = (
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_NAME",
    "QUERY_DEFAULT_PAGE_SIZE",
    "QUERY_MAX_PAGE_SIZE",
    "QUERY_DEFAULT_SORT",
    "QUERY_SNAPSHOT_READS",
)


def test_settings_defaults(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    settings = config.Settings(_env_file=None)

    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "sales_db"
    assert settings.query_default_page_size == 10
    assert settings.query_max_page_size == 100
    assert settings.query_default_sort == "date:desc"
    assert settings.query_snapshot_reads is False


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("QUERY_SNAPSHOT_READS", "true")
    monkeypatch.setenv("DB_STATEMENT_TIMEOUT_MS", "2500")

    settings = config.Settings(_env_file=None)

    assert settings.query_snapshot_reads is True
    assert settings.db_statement_timeout_ms == 2500


def test_build_dsn():
    settings = config.Settings(
        _env_file=None, db_user="u", db_password="p", db_host="h", db_port=6543, db_name="d"
    )
    assert config.build_dsn(settings) == "postgresql://u:p@h:6543/d"


def test_generate_rows_csv(tmp_path: Path):
    csv_path = tmp_path / "sales.csv"
    load_sales._generate_rows_csv(csv_path, rows=5, batch_size=2, seed=123)

    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert len(rows) == 5
    assert list(rows[0].keys()) == list(load_sales.CSV_COLUMNS)
    assert "id" not in rows[0]
    assert len({row["transaction_id"] for row in rows}) == 5
    for row in rows:
        assert float(row["final_amount"]) <= float(row["total_amount"])


def test_generate_rows_csv_is_deterministic(tmp_path: Path):
    first, second = tmp_path / "a.csv", tmp_path / "b.csv"
    load_sales._generate_rows_csv(first, rows=20, batch_size=7, seed=9)
    load_sales._generate_rows_csv(second, rows=20, batch_size=7, seed=9)

    assert first.read_text() == second.read_text()


def test_convert_source_csv_maps_headers_and_cleans_values(tmp_path: Path):
    source = tmp_path / "raw.csv"
    with source.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(load_sales.SOURCE_HEADERS))
        writer.writeheader()
        writer.writerow(
            {
                "Transaction ID": " T1 ",
                "Date": "2023-04-05",
                "Customer ID": "C1",
                "Customer Name": "Neha Iyer",
                "Age": "",
                "Quantity": "3",
                "Price per Unit": "abc",
                "Total Amount": "300",
                "Final Amount": "270.5",
                "Product ID": "P1",
                "Tags": "organic,skincare",
            }
        )
    dest = tmp_path / "sales.csv"

    converted = load_sales._convert_source_csv(source, dest)

    with dest.open("r", newline="", encoding="utf-8") as f:
        (row,) = list(csv.DictReader(f))
    assert converted == 1
    assert row["transaction_id"] == "T1"
    assert row["date"] == "2023-04-05"
    assert row["age"] == "0"
    assert row["quantity"] == "3"
    assert row["price_per_unit"] == "0.00"
    assert row["final_amount"] == "270.50"
    assert row["phone_number"] == ""


@pytest.mark.parametrize(
    ("column", "raw", "expected"),
    [("age", "31.0", "31"), ("total_amount", "10", "10.00"), ("gender", None, "")],
)
def test_normalize_value(column, raw, expected):
    assert load_sales._normalize_value(column, raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2023-10-25", "2023-10-25"),
        ("2023-10-25 14:02:00", "2023-10-25"),
        ("10/25/2023", "2023-10-25"),
        ("25-10-2023", "2023-10-25"),
    ],
)
def test_normalize_value_accepts_common_date_layouts(raw, expected):
    assert load_sales._normalize_value("date", raw) == expected


@pytest.mark.parametrize("raw", ["", None, "yesterday"])
def test_normalize_value_rejects_unstorable_dates(raw):
    with pytest.raises(ValueError):
        load_sales._normalize_value("date", raw)


def test_convert_source_csv_skips_rows_with_bad_dates(tmp_path: Path, capsys):
    source = tmp_path / "raw.csv"
    with source.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(load_sales.SOURCE_HEADERS))
        writer.writeheader()
        for transaction_id, date in [("T1", "not a date"), ("T2", ""), ("T3", "10/25/2023")]:
            writer.writerow({"Transaction ID": transaction_id, "Date": date})
    dest = tmp_path / "sales.csv"

    converted = load_sales._convert_source_csv(source, dest)

    with dest.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert converted == 1
    assert [row["transaction_id"] for row in rows] == ["T3"]
    assert rows[0]["date"] == "2023-10-25"
    err = capsys.readouterr().err
    assert "Skipping line 2" in err
    assert "Skipping line 3" in err
