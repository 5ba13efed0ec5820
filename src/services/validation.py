"""Local checks applied before any value is placed on the wire."""

from __future__ import annotations

import re
from typing import Any

from src.errors import InvalidIdError

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID.fullmatch(value))


def require_object_id(value: Any, code: str) -> str:
    """Return ``value`` if it is a 24-hex id, otherwise raise InvalidIdError(code)."""

    if not is_object_id(value):
        raise InvalidIdError(code, value)
    return value
