"""Tests for the applied/draft filter controller."""

from __future__ import annotations

import pytest

from src.errors import InvalidFilterError
from src.models.filters import DEFAULT_FILTERS
from src.services.filters.controller import EditorState, FilterStateController


def test_draft_edits_are_invisible_until_apply():
    controller = FilterStateController()
    controller.open_editor()
    controller.set_draft_field("sort_by", "price_asc")

    assert controller.applied.sort_by == "newest"
    assert controller.canonical.is_empty

    canonical = controller.apply()

    assert canonical.get("sort_by") == "price_asc"
    assert controller.applied.sort_by == "price_asc"
    assert controller.state is EditorState.IDLE


def test_reopening_editor_keeps_draft():
    controller = FilterStateController()
    controller.open_editor()
    controller.set_draft_field("min_price", 50)

    controller.open_editor()

    assert controller.draft.min_price == 50


def test_failed_apply_leaves_state_untouched():
    controller = FilterStateController({"sort_by": "discount_desc"})
    controller.open_editor()
    controller.set_draft_field("min_price", 400)
    controller.set_draft_field("max_price", 100)

    with pytest.raises(InvalidFilterError):
        controller.apply()

    assert controller.state is EditorState.EDITING
    assert controller.applied.min_price == 0
    assert controller.draft.min_price == 400


def test_unknown_draft_field_is_rejected():
    controller = FilterStateController()
    controller.open_editor()

    with pytest.raises(InvalidFilterError):
        controller.set_draft_field("colour", "red")


def test_cancel_editing_drops_draft():
    controller = FilterStateController()
    controller.open_editor()
    controller.set_draft_field("is_hot_deal", True)

    controller.cancel_editing()

    assert controller.state is EditorState.IDLE
    assert controller.draft == controller.applied


def test_clear_resets_to_defaults():
    controller = FilterStateController({"sort_by": "nearest", "text_search": "nasi"})

    canonical = controller.clear()

    assert canonical.is_empty
    assert controller.applied == DEFAULT_FILTERS
    assert not controller.has_active_filters


def test_identical_injection_is_ignored():
    controller = FilterStateController()
    incoming = {"category_id": "c1", "sort_by": "recommended"}

    assert controller.inject(incoming) is True
    controller.open_editor()
    controller.set_draft_field("category_id", "c2")
    controller.apply()

    assert controller.inject(dict(reversed(list(incoming.items())))) is False
    assert controller.applied.category_id == "c2"

    assert controller.inject({"category_id": "c3"}) is True
    assert controller.applied.category_id == "c3"
    assert controller.draft.category_id == "c3"


def test_has_active_filters_ignores_sort_order():
    controller = FilterStateController({"sort_by": "price_desc"})
    assert not controller.has_active_filters

    controller.inject({"sort_by": "price_desc", "is_hot_deal": True})
    assert controller.has_active_filters


def test_fill_location_only_for_nearest_without_coordinates():
    controller = FilterStateController({"sort_by": "newest"})
    assert controller.fill_location(1.3, 103.8) is False

    controller.inject({"sort_by": "nearest"})
    assert controller.fill_location(1.3, 103.8) is True
    assert controller.canonical.get("lat") == "1.3"
    assert controller.fill_location(2.0, 100.0) is False
