"""Filter value objects used by the deal discovery query engine."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.errors import InvalidFilterError

SortBy = Literal[
    "newest",
    "recommended",
    "nearest",
    "price_asc",
    "price_desc",
    "discount_desc",
    "expiry_asc",
]
DealType = Literal["", "percentage", "fixed_amount", "combo"]

PRICE_FLOOR = 0
PRICE_CEILING = 500
DISCOUNT_FLOOR = 0
DISCOUNT_CEILING = 100
DEFAULT_LIMIT = 12
MAX_LIMIT = 100


class FilterSet(BaseModel):
    """Immutable set of filters applied to the active deals listing.

    Range checks are deferred to canonicalization so that a draft can hold
    intermediate values while the user is still adjusting controls.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sort_by: SortBy = "newest"
    deal_type: DealType = ""
    min_price: int = PRICE_FLOOR
    max_price: int = PRICE_CEILING
    min_discount: int = DISCOUNT_FLOOR
    max_discount: int = DISCOUNT_CEILING
    category_id: str = ""
    deal_category_id: str = ""
    company_name: str = ""
    text_search: str = ""
    tags: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Selected tags in display order",
    )
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None
    is_hot_deal: bool = False
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @field_validator("latitude", "longitude", "radius_km", mode="before")
    @classmethod
    def _blank_coordinate(cls, value: Any) -> Any:
        # Navigation params carry "" for unset coordinates
        if value == "":
            return None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None or value == "":
            return ()
        if isinstance(value, str):
            return tuple(tag.strip() for tag in value.split(",") if tag.strip())
        return value

    @field_validator(
        "category_id",
        "deal_category_id",
        "company_name",
        "text_search",
        mode="before",
    )
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def parse(cls, data: Mapping[str, Any] | None) -> FilterSet:
        """Build a FilterSet from loosely typed input, raising InvalidFilterError."""

        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error.get("loc", ())) or None
            raise InvalidFilterError(
                f"Invalid filter value for {field}: {error.get('msg')}",
                field=field,
            ) from exc

    def with_field(self, name: str, value: Any) -> FilterSet:
        """Return a copy with one field replaced, coerced like ``parse``."""

        if name not in type(self).model_fields:
            raise InvalidFilterError(f"Unknown filter field: {name}", field=name)
        return type(self).parse({**self.model_dump(), name: value})


DEFAULT_FILTERS = FilterSet()
