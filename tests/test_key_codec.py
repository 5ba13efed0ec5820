"""Tests for filter canonicalization and wire encoding."""

from __future__ import annotations

from urllib.parse import parse_qsl

import pytest

from src.errors import InvalidFilterError
from src.models.filters import DEFAULT_FILTERS, FilterSet
from src.services.query.key_codec import canonicalize, canonicalize_params, to_query_string


def test_default_filters_canonicalize_to_empty():
    canonical = canonicalize(DEFAULT_FILTERS)

    assert canonical.is_empty
    assert to_query_string(canonical) == ""


def test_inert_values_do_not_change_identity():
    bare = FilterSet(sort_by="price_asc")
    padded = FilterSet(
        sort_by="price_asc",
        min_price=0,
        max_price=500,
        min_discount=0,
        max_discount=100,
        text_search="   ",
        tags=(),
        is_hot_deal=False,
    )

    assert canonicalize(bare).key == canonicalize(padded).key


def test_page_cursor_is_not_part_of_identity():
    assert canonicalize(FilterSet(page=1)).key == canonicalize(FilterSet(page=4)).key


def test_tag_order_and_duplicates_do_not_change_identity():
    first = canonicalize(FilterSet(tags=("halal", "breakfast", "halal")))
    second = canonicalize(FilterSet(tags=("breakfast", "halal")))

    assert first.key == second.key
    assert first.get("tags") == "breakfast,halal"


def test_nearest_scenario_wire_query():
    filters = FilterSet.parse(
        {"sort_by": "nearest", "latitude": 1.23, "longitude": 103.4, "radius_km": 20}
    )

    canonical = canonicalize(filters)
    query = dict(parse_qsl(to_query_string(canonical)))

    assert query == {"sort_by": "nearest", "lat": "1.23", "lng": "103.4", "radius_km": "20"}
    assert canonicalize(filters).key == canonical.key
    assert canonicalize(FilterSet.parse(filters.model_dump())).key == canonical.key


def test_query_string_appends_page_and_language():
    canonical = canonicalize(FilterSet(is_hot_deal=True, limit=24))

    query = parse_qsl(to_query_string(canonical, page=2, language="malay"))

    assert ("is_hot_deal", "true") in query
    assert ("limit", "24") in query
    assert query[-2:] == [("page", "2"), ("lang", "malay")]


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"min_price": 300, "max_price": 100}, "min_price"),
        ({"max_discount": 150}, "max_discount"),
        ({"limit": 0}, "limit"),
        ({"latitude": 1.5}, "latitude"),
        ({"latitude": 95.0, "longitude": 10.0}, "latitude"),
        ({"latitude": 1.0, "longitude": 10.0, "radius_km": 0}, "radius_km"),
    ],
)
def test_invalid_filters_are_rejected_not_clamped(overrides, field):
    with pytest.raises(InvalidFilterError) as excinfo:
        canonicalize(FilterSet(**overrides))

    assert excinfo.value.field == field


def test_parse_rejects_unknown_sort_order():
    with pytest.raises(InvalidFilterError):
        FilterSet.parse({"sort_by": "cheapest"})


def test_parse_accepts_navigation_params():
    filters = FilterSet.parse(
        {"min_price": "10", "latitude": "", "longitude": "", "tags": "vegan, halal"}
    )

    assert filters.min_price == 10
    assert filters.latitude is None
    assert filters.tags == ("vegan", "halal")


def test_canonicalize_params_drops_empty_values():
    canonical = canonicalize_params({"customer_id": "abc", "status": None, "limit": 10})

    assert canonical.params == (("customer_id", "abc"), ("limit", "10"))
