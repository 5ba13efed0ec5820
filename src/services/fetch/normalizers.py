"""Response-shape extractors that turn backend bodies into pages.

The backend wraps list responses in several different envelopes. Each
extractor recognizes exactly one envelope and returns ``None`` otherwise;
``normalize_page`` tries them in a fixed priority order and falls back to an
empty page so that a malformed-but-successful response never crashes a list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from src.models.page import Page, Pagination

logger = logging.getLogger(__name__)

Extractor = Callable[[Any, str], Page | None]


def _items_from(container: Any, item_key: str) -> list[Any] | None:
    if not isinstance(container, dict):
        return None
    for name in (item_key, "items"):
        value = container.get(name)
        if isinstance(value, list):
            return value
    return None


def _pagination_from(container: dict[str, Any]) -> Pagination | None:
    raw = container.get("pagination")
    if not isinstance(raw, dict):
        return None
    try:
        return Pagination.model_validate(raw)
    except ValidationError:
        logger.debug("Ignoring malformed pagination block: %s", raw)
        return None


def _keyed_page(container: Any, item_key: str) -> Page | None:
    items = _items_from(container, item_key)
    if items is None:
        return None
    return Page(items=items, pagination=_pagination_from(container))


def extract_double_wrapped(body: Any, item_key: str) -> Page | None:
    """``{"data": {"data": {<items>, "pagination"}}}``"""
    if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
        return None
    return _keyed_page(body["data"].get("data"), item_key)


def extract_wrapped(body: Any, item_key: str) -> Page | None:
    """``{"data": {<items>, "pagination"}}``"""
    if not isinstance(body, dict):
        return None
    return _keyed_page(body.get("data"), item_key)


def extract_top_level(body: Any, item_key: str) -> Page | None:
    """``{<items>, "pagination"}``"""
    return _keyed_page(body, item_key)


def extract_data_list(body: Any, item_key: str) -> Page | None:
    """``{"data": [...]}``"""
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return Page(items=body["data"], pagination=None)
    return None


def extract_bare_list(body: Any, item_key: str) -> Page | None:
    """``[...]``"""
    if isinstance(body, list):
        return Page(items=body, pagination=None)
    return None


RESPONSE_SHAPES: tuple[tuple[str, Extractor], ...] = (
    ("double_wrapped", extract_double_wrapped),
    ("wrapped", extract_wrapped),
    ("top_level", extract_top_level),
    ("data_list", extract_data_list),
    ("bare_list", extract_bare_list),
)


def normalize_page(body: Any, item_key: str, *, endpoint: str | None = None) -> Page:
    """Return the first page recognized by ``RESPONSE_SHAPES``, or an empty page."""

    for shape, extractor in RESPONSE_SHAPES:
        page = extractor(body, item_key)
        if page is not None:
            logger.debug("Normalized %s response using %s shape", endpoint, shape)
            return page

    logger.warning(
        "NormalizationFallback: unrecognized response shape, using empty page",
        extra={"endpoint": endpoint, "body_type": type(body).__name__},
    )
    return Page.empty()


def unwrap_entity(body: Any) -> Any:
    """Single-entity responses arrive as ``{"data": {...}}`` or bare."""

    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body


def extract_unread_count(body: Any) -> int | None:
    """Read the unread counter from any of the envelopes the backend uses."""

    candidates: list[Any] = []
    if isinstance(body, dict):
        data = body.get("data")
        if isinstance(data, dict):
            candidates.append(data.get("unreadCount"))
        candidates.append(body.get("unreadCount"))
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            candidates.append(data["data"].get("unreadCount"))

    for value in candidates:
        if isinstance(value, bool):
            continue
        if isinstance(value, int) and value >= 0:
            return value
    return None
