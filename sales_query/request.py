"""
Caller-facing request validation.

Parses raw query-string style parameters (as an HTTP layer or the CLI receives
them) into a validated QueryRequest. Every failure raises InvalidRequestError
before anything reaches the query engine.

Recognised parameters: page, pageSize, search, sort ("field:direction"),
region, gender, category, tags, paymentMethod (comma-separated lists),
ageMin, ageMax (integers), dateMin, dateMax (ISO 8601 dates).
"""

from __future__ import annotations

import datetime as dt
from typing import Mapping, Optional, Tuple

from pydantic import ValidationError

from sales_query.config import Settings, get_settings
from sales_query.domain.models import (
    AgeRange,
    DateRange,
    FilterSet,
    QueryRequest,
    SortDirection,
    SortKey,
)
from sales_query.errors import InvalidRequestError

LIST_PARAMS = {
    "region": "region",
    "gender": "gender",
    "category": "category",
    "tags": "tags",
    "paymentMethod": "payment_method",
}


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if _blank(value):
        return ()
    return tuple(item.strip() for item in str(value).split(",") if item.strip())


def _parse_positive_int(value: Optional[str], default: int) -> int:
    if _blank(value):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        raise InvalidRequestError(
            "Invalid pagination parameters. Page and pageSize must be positive integers."
        ) from None
    if number < 1:
        raise InvalidRequestError(
            "Invalid pagination parameters. Page and pageSize must be positive integers."
        )
    return number


def _parse_age(value: Optional[str]) -> Optional[int]:
    if _blank(value):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidRequestError(
            "Invalid age range. Age values must be numeric."
        ) from None


def _parse_date(value: Optional[str]) -> Optional[dt.date]:
    if _blank(value):
        return None
    try:
        return dt.date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidRequestError(
            f"Invalid date '{value}'. Dates must be ISO 8601 (YYYY-MM-DD)."
        ) from None


def parse_sort(sort: Optional[str], default: str) -> Tuple[SortKey, SortDirection]:
    """
    Split a "field:direction" string.

    The field must be allow-listed; a missing or unrecognised direction
    falls back to ascending.
    """
    raw = default if _blank(sort) else str(sort).strip()
    field, _, direction = raw.partition(":")
    try:
        key = SortKey(field.strip())
    except ValueError:
        allowed = ", ".join(item.value for item in SortKey)
        raise InvalidRequestError(
            f"Unsupported sort field '{field}'. Allowed: {allowed}."
        ) from None
    try:
        order = SortDirection(direction.strip().lower())
    except ValueError:
        order = SortDirection.ASC
    return key, order


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    message = error.get("msg", str(exc))
    return message.removeprefix("Value error, ")


def parse_query_params(
    params: Mapping[str, Optional[str]], settings: Optional[Settings] = None
) -> QueryRequest:
    """
    Validate raw parameters and build a QueryRequest.

    Raises
    ------
    InvalidRequestError
        On malformed pagination, non-numeric ages, malformed dates, inverted
        ranges, page sizes above the configured maximum or unknown sort keys.
    """
    settings = settings or get_settings()

    page = _parse_positive_int(params.get("page"), 1)
    page_size = _parse_positive_int(params.get("pageSize"), settings.query_default_page_size)
    if page_size > settings.query_max_page_size:
        raise InvalidRequestError(
            f"Invalid pagination parameters. pageSize cannot exceed {settings.query_max_page_size}."
        )

    sort_key, sort_direction = parse_sort(params.get("sort"), settings.query_default_sort)

    age_min, age_max = _parse_age(params.get("ageMin")), _parse_age(params.get("ageMax"))
    date_min, date_max = _parse_date(params.get("dateMin")), _parse_date(params.get("dateMax"))

    try:
        age = None if age_min is None and age_max is None else AgeRange(min=age_min, max=age_max)
        date = (
            None if date_min is None and date_max is None else DateRange(min=date_min, max=date_max)
        )
        filters = FilterSet(
            age=age,
            date=date,
            **{field: _split_list(params.get(name)) for name, field in LIST_PARAMS.items()},
        )
        return QueryRequest(
            page=page,
            page_size=page_size,
            search=str(params.get("search") or "").strip(),
            sort_key=sort_key,
            sort_direction=sort_direction,
            filters=filters,
        )
    except ValidationError as exc:
        raise InvalidRequestError(_first_error(exc)) from exc


__all__ = ["LIST_PARAMS", "parse_query_params", "parse_sort"]
