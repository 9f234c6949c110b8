from __future__ import annotations

import json
import logging
from decimal import Decimal

from sales_query.utils.logging import _json_formatter

EXPECTED_TOTAL_COUNT = 25
EXPECTED_PAGE_SIZE = 10


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.total_count = EXPECTED_TOTAL_COUNT
    record.order_by = "date"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["total_count"] == EXPECTED_TOTAL_COUNT
    assert payload["order_by"] == "date"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"page_size": EXPECTED_PAGE_SIZE}

    payload = json.loads(_json_formatter(record))

    assert payload["page_size"] == EXPECTED_PAGE_SIZE
    assert "extra" not in payload


def test_json_formatter_renders_non_json_values_as_strings() -> None:
    record = _record()
    record.total_final_amount = Decimal("12.50")

    payload = json.loads(_json_formatter(record))

    assert payload["total_final_amount"] == "12.50"
