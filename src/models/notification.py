"""Notification ledger state and the events that drive it."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class NotificationLedger(BaseModel):
    """Unread-count state exposed to the rest of the app."""

    model_config = ConfigDict(frozen=True)

    unread_count: int = Field(default=0, ge=0)
    has_unread: bool = False
    revision: int = Field(
        default=0,
        ge=0,
        description="Incremented on every reduction",
    )


class PushArrived(BaseModel):
    """A push message arrived, either in the foreground or by opening the app."""

    kind: Literal["push_arrived"] = "push_arrived"
    source: Literal["foreground", "background", "launch"] = "foreground"
    payload: dict[str, Any] = Field(default_factory=dict)


class PollResult(BaseModel):
    """Authoritative unread count returned by the backend."""

    kind: Literal["poll_result"] = "poll_result"
    unread_count: int = Field(..., ge=0)


class MarkedRead(BaseModel):
    """The backend confirmed that one notification is read."""

    kind: Literal["marked_read"] = "marked_read"
    notification_id: str


class MarkedAllRead(BaseModel):
    """The backend confirmed that every notification is read."""

    kind: Literal["marked_all_read"] = "marked_all_read"


LedgerEvent = PushArrived | PollResult | MarkedRead | MarkedAllRead


class NavigationTarget(BaseModel):
    """Where the app should route the user after a notification tap."""

    screen: Literal["deal_detail", "notifications"]
    deal_id: str | None = None

    @classmethod
    def from_payload(cls, message: dict[str, Any]) -> NavigationTarget:
        data = message.get("data") if isinstance(message.get("data"), dict) else message
        kind = data.get("type") or data.get("notificationType") or message.get("type")
        deal_id = (
            data.get("dealId")
            or data.get("deal_id")
            or message.get("dealId")
            or message.get("deal_id")
        )
        if kind == "deal" and deal_id:
            return cls(screen="deal_detail", deal_id=str(deal_id))
        return cls(screen="notifications")


class NotificationState(BaseModel):
    """Snapshot persisted between sessions and returned by the companion API."""

    customer_id: str
    unread_count: int = 0
    has_unread: bool = False
    revision: int = 0
    updated_at: str | None = None
