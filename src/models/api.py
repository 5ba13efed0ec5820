"""Request and response bodies of the companion HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.models.claim import Claim
from src.models.notification import NavigationTarget


class DealsListResponse(BaseModel):
    """Flattened view of one cached deals list."""

    key: str = Field(..., description="Canonical identity of the applied filters")
    filters: dict[str, str] = Field(default_factory=dict)
    items: list[dict[str, Any]] = Field(default_factory=list)
    page_count: int = 0
    has_next: bool = False
    fetched: bool = Field(
        default=False,
        description="True when this call went to the backend",
    )


class ClaimRequest(BaseModel):
    deal_id: str
    customer_id: str


class RescheduleRequest(BaseModel):
    preferred_datetime: datetime


class ClaimListResponse(BaseModel):
    claims: list[Claim] = Field(default_factory=list)
    page_count: int = 0
    has_next: bool = False


class PushRequest(BaseModel):
    """A push message forwarded by the device."""

    message: dict[str, Any] = Field(default_factory=dict)
    opened: bool = Field(
        default=False,
        description="True when the user tapped the notification",
    )
    source: Literal["foreground", "background", "launch"] = "foreground"


class NotificationStateResponse(BaseModel):
    customer_id: str
    unread_count: int
    has_unread: bool
    revision: int
    current_notification: dict[str, Any] | None = None


class PendingNavigationResponse(BaseModel):
    target: NavigationTarget | None = None
