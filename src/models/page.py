"""Page and pagination models shared by every paginated endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Pagination(BaseModel):
    """Pagination block returned by the backend.

    The backend is not consistent about field names across endpoints, so
    each field accepts the variants seen on the wire.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    current_page: int | None = Field(
        default=None,
        validation_alias=AliasChoices("current_page", "currentPage", "page"),
    )
    total_pages: int | None = Field(
        default=None,
        validation_alias=AliasChoices("total_pages", "totalPages", "pages"),
    )
    has_next: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("has_next", "hasNext"),
    )

    @property
    def has_successor(self) -> bool:
        if (
            self.current_page is not None
            and self.total_pages is not None
            and self.current_page >= self.total_pages
        ):
            return False
        if self.has_next is not None:
            return self.has_next
        if self.current_page is not None and self.total_pages is not None:
            return self.current_page < self.total_pages
        return False


class Page(BaseModel):
    """One page of items from a paginated endpoint."""

    items: list[Any] = Field(default_factory=list)
    pagination: Pagination | None = None

    @property
    def has_next(self) -> bool:
        """True when the backend reported another page after this one."""
        return self.pagination is not None and self.pagination.has_successor

    @classmethod
    def empty(cls) -> Page:
        return cls(items=[], pagination=None)
