"""Tests for response-shape normalization."""

from __future__ import annotations

import logging

import pytest

from src.models.page import Pagination
from src.services.fetch.normalizers import (
    extract_unread_count,
    normalize_page,
    unwrap_entity,
)

DEALS = [{"_id": "a"}, {"_id": "b"}]


@pytest.mark.parametrize(
    "body",
    [
        {"data": {"data": {"deals": DEALS, "pagination": {"current_page": 1, "total_pages": 3}}}},
        {"data": {"deals": DEALS, "pagination": {"currentPage": 1, "totalPages": 3}}},
        {"deals": DEALS, "pagination": {"page": 1, "pages": 3}},
        {"data": {"items": DEALS, "pagination": {"has_next": True}}},
    ],
)
def test_keyed_shapes_keep_items_and_pagination(body):
    page = normalize_page(body, "deals")

    assert page.items == DEALS
    assert page.has_next is True


@pytest.mark.parametrize("body", [{"data": DEALS}, DEALS])
def test_list_shapes_have_no_successor(body):
    page = normalize_page(body, "deals")

    assert page.items == DEALS
    assert page.pagination is None
    assert page.has_next is False


def test_double_wrapped_shape_wins_over_wrapped():
    body = {
        "data": {
            "deals": [{"_id": "outer"}],
            "data": {"deals": [{"_id": "inner"}]},
        }
    }

    assert normalize_page(body, "deals").items == [{"_id": "inner"}]


def test_unrecognized_shape_yields_empty_page(caplog):
    with caplog.at_level(logging.WARNING):
        page = normalize_page({"message": "ok"}, "deals", endpoint="deals")

    assert page.items == []
    assert page.has_next is False
    assert "NormalizationFallback" in caplog.text


def test_pagination_at_last_page_ends_sequence():
    assert Pagination(current_page=3, total_pages=3, has_next=True).has_successor is False
    assert Pagination(current_page=2, total_pages=3).has_successor is True
    assert Pagination(has_next=False).has_successor is False


def test_unwrap_entity():
    assert unwrap_entity({"data": {"_id": "x"}}) == {"_id": "x"}
    assert unwrap_entity({"_id": "x"}) == {"_id": "x"}


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"data": {"unreadCount": 4}}, 4),
        ({"unreadCount": 2}, 2),
        ({"data": {"data": {"unreadCount": 7}}}, 7),
        ({"data": {"unreadCount": 0}, "unreadCount": 5}, 0),
        ({"data": {}}, None),
        ({"unreadCount": "3"}, None),
    ],
)
def test_extract_unread_count(body, expected):
    assert extract_unread_count(body) == expected
