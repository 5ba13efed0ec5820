"""Canonical cache identity and wire encoding for filter sets."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict

from src.errors import InvalidFilterError
from src.models.filters import (
    DEFAULT_FILTERS,
    DISCOUNT_CEILING,
    DISCOUNT_FLOOR,
    MAX_LIMIT,
    PRICE_CEILING,
    PRICE_FLOOR,
    FilterSet,
)

# FilterSet field -> wire parameter name, for fields whose names differ
_WIRE_NAMES = {"latitude": "lat", "longitude": "lng"}

_TEXT_FIELDS = ("category_id", "deal_category_id", "company_name", "text_search")


class CanonicalFilter(BaseModel):
    """Filter reduced to its non-inert wire parameters, sorted by name."""

    model_config = ConfigDict(frozen=True)

    params: tuple[tuple[str, str], ...] = ()

    @property
    def key(self) -> str:
        return key(self)

    def as_dict(self) -> dict[str, str]:
        return dict(self.params)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.as_dict().get(name, default)

    def without(self, *names: str) -> CanonicalFilter:
        return CanonicalFilter(
            params=tuple((name, value) for name, value in self.params if name not in names)
        )

    @property
    def is_empty(self) -> bool:
        return not self.params


def canonicalize(filter_set: FilterSet) -> CanonicalFilter:
    """Validate ``filter_set`` and drop every field that sits at its inert default."""

    _validate(filter_set)
    pairs: dict[str, str] = {}

    if filter_set.sort_by != DEFAULT_FILTERS.sort_by:
        pairs["sort_by"] = filter_set.sort_by
    if filter_set.deal_type:
        pairs["deal_type"] = filter_set.deal_type

    if filter_set.min_price != PRICE_FLOOR:
        pairs["min_price"] = str(filter_set.min_price)
    if filter_set.max_price != PRICE_CEILING:
        pairs["max_price"] = str(filter_set.max_price)
    if filter_set.min_discount != DISCOUNT_FLOOR:
        pairs["min_discount"] = str(filter_set.min_discount)
    if filter_set.max_discount != DISCOUNT_CEILING:
        pairs["max_discount"] = str(filter_set.max_discount)

    for name in _TEXT_FIELDS:
        value = getattr(filter_set, name).strip()
        if value:
            pairs[name] = value

    tags = sorted({tag.strip() for tag in filter_set.tags if tag.strip()})
    if tags:
        pairs["tags"] = ",".join(tags)

    for name in ("latitude", "longitude", "radius_km"):
        value = getattr(filter_set, name)
        if value is not None:
            pairs[_WIRE_NAMES.get(name, name)] = _format_number(value)

    if filter_set.is_hot_deal:
        pairs["is_hot_deal"] = "true"
    if filter_set.limit != DEFAULT_FILTERS.limit:
        pairs["limit"] = str(filter_set.limit)

    return CanonicalFilter(params=tuple(sorted(pairs.items())))


def canonicalize_params(params: Mapping[str, Any]) -> CanonicalFilter:
    """Canonicalize a plain parameter mapping for endpoints without a FilterSet."""

    pairs: dict[str, str] = {}
    for name, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            pairs[name] = "true" if value else "false"
        elif isinstance(value, int | float):
            pairs[name] = _format_number(value)
        elif isinstance(value, str):
            pairs[name] = value
        elif isinstance(value, Sequence):
            items = sorted(str(item) for item in value if str(item))
            if items:
                pairs[name] = ",".join(items)
        else:
            pairs[name] = str(value)
    return CanonicalFilter(params=tuple(sorted(pairs.items())))


def key(canonical: CanonicalFilter) -> str:
    """Deterministic identity used for caching and fetch de-duplication."""

    return json.dumps(canonical.params, separators=(",", ":"))


def to_query_string(
    canonical: CanonicalFilter,
    *,
    page: int | None = None,
    language: str | None = None,
) -> str:
    """Encode ``canonical`` for the wire, optionally adding the page cursor and language."""

    pairs = list(canonical.params)
    if page is not None:
        if page < 1:
            raise InvalidFilterError("Page must be >= 1", field="page")
        pairs.append(("page", str(page)))
    if language:
        pairs.append(("lang", language))
    return urlencode(pairs)


def _validate(filter_set: FilterSet) -> None:
    _check_range("min_price", filter_set.min_price, PRICE_FLOOR, PRICE_CEILING)
    _check_range("max_price", filter_set.max_price, PRICE_FLOOR, PRICE_CEILING)
    if filter_set.min_price > filter_set.max_price:
        raise InvalidFilterError("min_price must not exceed max_price", field="min_price")

    _check_range("min_discount", filter_set.min_discount, DISCOUNT_FLOOR, DISCOUNT_CEILING)
    _check_range("max_discount", filter_set.max_discount, DISCOUNT_FLOOR, DISCOUNT_CEILING)
    if filter_set.min_discount > filter_set.max_discount:
        raise InvalidFilterError(
            "min_discount must not exceed max_discount",
            field="min_discount",
        )

    if filter_set.page < 1:
        raise InvalidFilterError("Page must be >= 1", field="page")
    _check_range("limit", filter_set.limit, 1, MAX_LIMIT)

    if (filter_set.latitude is None) != (filter_set.longitude is None):
        raise InvalidFilterError(
            "latitude and longitude must be provided together",
            field="latitude",
        )
    if filter_set.latitude is not None:
        _check_range("latitude", filter_set.latitude, -90, 90)
        _check_range("longitude", filter_set.longitude, -180, 180)
    if filter_set.radius_km is not None and filter_set.radius_km <= 0:
        raise InvalidFilterError("radius_km must be positive", field="radius_km")


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise InvalidFilterError(f"{name} must be between {low} and {high}", field=name)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
