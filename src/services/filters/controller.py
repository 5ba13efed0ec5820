"""Applied-versus-draft filter state for the deals listing."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from src.models.filters import DEFAULT_FILTERS, FilterSet
from src.services.query.key_codec import CanonicalFilter, canonicalize

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


class FilterStateController:
    """Owns the applied filters and the draft edited in the filter panel.

    The draft only becomes visible to the query engine on ``apply`` or
    ``clear``. Navigation from other screens may replace both at once through
    ``inject``.
    """

    def __init__(self, initial: FilterSet | Mapping[str, Any] | None = None) -> None:
        applied = initial if isinstance(initial, FilterSet) else FilterSet.parse(initial)
        canonicalize(applied)
        self._applied = applied
        self._draft = applied
        self._state = EditorState.IDLE
        self._last_injected: str | None = None

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def applied(self) -> FilterSet:
        return self._applied

    @property
    def draft(self) -> FilterSet:
        return self._draft

    @property
    def canonical(self) -> CanonicalFilter:
        return canonicalize(self._applied)

    @property
    def has_active_filters(self) -> bool:
        return not self.canonical.without("sort_by").is_empty

    def open_editor(self) -> None:
        if self._state is EditorState.EDITING:
            # Re-opening must keep in-progress edits
            logger.debug("Filter editor already open, keeping draft")
            return
        self._draft = self._applied
        self._state = EditorState.EDITING

    def set_draft_field(self, name: str, value: Any) -> FilterSet:
        self._draft = self._draft.with_field(name, value)
        return self._draft

    def cancel_editing(self) -> None:
        self._draft = self._applied
        self._state = EditorState.IDLE

    def apply(self) -> CanonicalFilter:
        """Commit the draft. A draft that fails validation leaves everything as it was."""

        canonical = canonicalize(self._draft)
        self._applied = self._draft
        self._state = EditorState.IDLE
        logger.info("Applied filters", extra={"filters": canonical.as_dict()})
        return canonical

    def clear(self) -> CanonicalFilter:
        self._applied = DEFAULT_FILTERS
        self._draft = DEFAULT_FILTERS
        self._state = EditorState.IDLE
        logger.info("Cleared filters")
        return canonicalize(DEFAULT_FILTERS)

    def inject(self, incoming: FilterSet | Mapping[str, Any]) -> bool:
        """Replace applied and draft filters from another screen.

        Returns False, without touching state, when ``incoming`` matches the
        previous injection.
        """

        data = incoming.model_dump() if isinstance(incoming, FilterSet) else dict(incoming)
        fingerprint = json.dumps(data, sort_keys=True, default=str)
        if fingerprint == self._last_injected:
            logger.debug("Ignoring repeated filter injection")
            return False

        filters = incoming if isinstance(incoming, FilterSet) else FilterSet.parse(data)
        canonicalize(filters)
        self._applied = filters
        self._draft = filters
        self._state = EditorState.IDLE
        self._last_injected = fingerprint
        logger.info("Injected filters from navigation", extra={"filters": data})
        return True

    def fill_location(self, latitude: float, longitude: float) -> bool:
        """Adopt the device location when sorting by distance without coordinates."""

        if self._applied.sort_by != "nearest" or self._applied.latitude is not None:
            return False
        located = self._applied.with_field("latitude", latitude).with_field(
            "longitude", longitude
        )
        canonicalize(located)
        self._applied = located
        if self._state is EditorState.IDLE:
            self._draft = located
        return True
