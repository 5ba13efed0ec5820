"""Routes driving the unread-notification badge."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from src.models.api import NotificationStateResponse, PendingNavigationResponse, PushRequest
from src.services.clients.storefront_client import StorefrontClientDependency
from src.services.collection.paginated_collection import (
    PaginatedCollection,
    get_collection,
)
from src.services.notifications.state_store import (
    NotificationStateStore,
    get_notification_state_store,
)
from src.services.notifications.sync import NotificationSync
from src.services.validation import require_object_id

router = APIRouter(prefix="/notifications", tags=["notifications"])

_syncs: dict[str, NotificationSync] = {}


async def get_notification_sync(
    client: StorefrontClientDependency,
    collection: Annotated[PaginatedCollection, Depends(get_collection)],
    store: Annotated[NotificationStateStore, Depends(get_notification_state_store)],
    customer_id: Annotated[str, Query(description="24-hex customer id")],
) -> NotificationSync:
    """Return the sync for ``customer_id``, restoring its persisted ledger on first use."""

    require_object_id(customer_id, "INVALID_CUSTOMER_ID")
    sync = _syncs.get(customer_id)
    if sync is None:
        sync = NotificationSync(
            client,
            collection,
            customer_id,
            store=store,
        )
        await sync.restore()
        _syncs[customer_id] = sync
    return sync


SyncDependency = Annotated[NotificationSync, Depends(get_notification_sync)]


def _state(sync: NotificationSync) -> NotificationStateResponse:
    ledger = sync.ledger
    return NotificationStateResponse(
        customer_id=sync.customer_id,
        unread_count=ledger.unread_count,
        has_unread=ledger.has_unread,
        revision=ledger.revision,
        current_notification=sync.current_notification,
    )


@router.get("/state", response_model=NotificationStateResponse)
async def notification_state(
    sync: SyncDependency,
    refresh: Annotated[bool, Query(description="Poll the backend first")] = False,
) -> NotificationStateResponse:
    if refresh:
        await sync.poll()
    return _state(sync)


@router.post(
    "/push",
    response_model=NotificationStateResponse,
    summary="Report a push message received or tapped on the device",
)
async def push_received(payload: PushRequest, sync: SyncDependency) -> NotificationStateResponse:
    if payload.opened:
        source = "background" if payload.source == "foreground" else payload.source
        await sync.on_notification_opened(payload.message, source=source)
    else:
        await sync.on_foreground_push(payload.message)
    return _state(sync)


@router.post("/read-all", response_model=NotificationStateResponse)
async def mark_all_read(sync: SyncDependency) -> NotificationStateResponse:
    await sync.mark_all()
    return _state(sync)


@router.post("/{notification_id}/read", response_model=NotificationStateResponse)
async def mark_read(
    sync: SyncDependency,
    notification_id: str = Path(..., description="24-hex notification id"),
) -> NotificationStateResponse:
    await sync.mark_one(notification_id)
    return _state(sync)


@router.get(
    "/pending-navigation",
    response_model=PendingNavigationResponse,
    summary="Take the one-shot navigation target recorded by a tapped notification",
)
async def pending_navigation(sync: SyncDependency) -> PendingNavigationResponse:
    return PendingNavigationResponse(target=sync.take_pending_navigation())
