"""Unread-notification synchronization between pushes, polls and reads.

Every state change goes through :func:`reduce`. Push handlers apply their
optimistic bump before the first suspension point, so the badge reacts even
when the follow-up poll is slow; the poll result then overrides the bump.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from src.errors import FetchError, StorefrontAPIError
from src.models.context import RequestContext
from src.models.notification import (
    LedgerEvent,
    MarkedAllRead,
    MarkedRead,
    NavigationTarget,
    NotificationLedger,
    PollResult,
    PushArrived,
)
from src.services.clients.storefront_client import StorefrontClient
from src.services.collection.keys import CLAIM_HISTORY_SCOPE, NOTIFICATIONS_SCOPE
from src.services.collection.paginated_collection import PaginatedCollection
from src.services.fetch.normalizers import extract_unread_count
from src.services.notifications.ledger import reduce
from src.services.notifications.state_store import NotificationStateStore
from src.services.validation import require_object_id

logger = logging.getLogger(__name__)

_BASE_PATH = "/jomfood/notifications/customer"


@dataclass(frozen=True, slots=True)
class _PendingPoll:
    issued_at: int
    future: asyncio.Future


class NotificationSync:
    """Keeps one customer's unread badge in line with the backend."""

    def __init__(
        self,
        client: StorefrontClient,
        collection: PaginatedCollection,
        customer_id: str,
        *,
        store: NotificationStateStore | None = None,
        context: RequestContext | None = None,
    ) -> None:
        self._client = client
        self._collection = collection
        self._customer_id = require_object_id(customer_id, "INVALID_CUSTOMER_ID")
        self._store = store
        self._context = context
        self._ledger = NotificationLedger()
        self._event_seq = 0
        self._pending_poll: _PendingPoll | None = None
        self._pending_navigation: NavigationTarget | None = None
        self._current_notification: dict[str, Any] | None = None

    @property
    def customer_id(self) -> str:
        return self._customer_id

    @property
    def context(self) -> RequestContext:
        return self._context or self._collection.context

    @property
    def ledger(self) -> NotificationLedger:
        return self._ledger

    @property
    def current_notification(self) -> dict[str, Any] | None:
        """Last foreground push, for an in-app banner."""
        return self._current_notification

    def dismiss_current_notification(self) -> None:
        self._current_notification = None

    async def restore(self) -> NotificationLedger:
        """Load the last persisted ledger, if a store is configured and holds one."""

        if self._store is None:
            return self._ledger
        state = await self._store.fetch(self._customer_id)
        if state is not None:
            self._ledger = NotificationLedger(
                unread_count=state.unread_count,
                has_unread=state.has_unread,
                revision=state.revision,
            )
            logger.info(
                "Restored notification ledger",
                extra={"customer_id": self._customer_id, "revision": state.revision},
            )
        return self._ledger

    async def dispatch(self, event: LedgerEvent) -> NotificationLedger:
        if not isinstance(event, PollResult):
            # Polls issued before this point can no longer describe the server state
            self._event_seq += 1
        self._ledger = reduce(self._ledger, event)
        logger.debug(
            "Ledger event %s -> count=%s has_unread=%s",
            event.kind,
            self._ledger.unread_count,
            self._ledger.has_unread,
        )
        if self._store is not None:
            await self._store.save(self._customer_id, self._ledger)
        return self._ledger

    async def poll(self) -> NotificationLedger:
        """Fetch the authoritative unread count.

        Concurrent callers share one request, but only a request issued after
        the latest push or read event is shared; an older one is left to finish
        on its own and its count is discarded.
        """

        pending = self._pending_poll
        if pending is not None and pending.issued_at == self._event_seq:
            logger.debug("Joining in-flight unread-count poll")
            return await asyncio.shield(pending.future)

        issued_at = self._event_seq
        future = asyncio.ensure_future(self._poll(issued_at))
        self._pending_poll = _PendingPoll(issued_at=issued_at, future=future)
        return await asyncio.shield(future)

    async def _poll(self, issued_at: int) -> NotificationLedger:
        path = f"{_BASE_PATH}/{self._customer_id}/unread-count?lang={self.context.language_code}"
        try:
            body = await self._client.get(path, context=self.context)
        except StorefrontAPIError as exc:
            logger.warning("Unread-count poll failed: %s", exc)
            raise FetchError("unread-count", None, exc) from exc
        finally:
            if self._pending_poll is not None and self._pending_poll.issued_at == issued_at:
                self._pending_poll = None

        if issued_at != self._event_seq:
            logger.info(
                "Discarding unread count requested before the latest notification event",
                extra={"customer_id": self._customer_id},
            )
            return self._ledger

        count = extract_unread_count(body)
        if count is None:
            logger.warning(
                "Unrecognized unread-count response, keeping ledger",
                extra={"body_type": type(body).__name__},
            )
            return self._ledger
        return await self.dispatch(PollResult(unread_count=count))

    async def on_foreground_push(self, message: dict[str, Any]) -> NotificationLedger:
        await self.dispatch(PushArrived(source="foreground", payload=message))
        self._current_notification = message
        self._invalidate_for(message)
        return await self.poll()

    async def on_notification_opened(
        self,
        message: dict[str, Any],
        *,
        source: str = "background",
    ) -> NotificationLedger:
        """Handle a tapped notification, from the background or a cold launch."""

        await self.dispatch(PushArrived(source=source, payload=message))
        self._pending_navigation = NavigationTarget.from_payload(message)
        self._invalidate_for(message)
        return await self.poll()

    def take_pending_navigation(self) -> NavigationTarget | None:
        target, self._pending_navigation = self._pending_navigation, None
        return target

    async def on_app_state_change(self, state: str) -> NotificationLedger | None:
        if state != "active":
            return None
        return await self.poll()

    async def mark_one(self, notification_id: str) -> NotificationLedger:
        return await self.mark_many([notification_id])

    async def mark_many(self, notification_ids: Iterable[str]) -> NotificationLedger:
        ids = list(dict.fromkeys(notification_ids))
        if not ids:
            return self._ledger
        for notification_id in ids:
            require_object_id(notification_id, "INVALID_NOTIFICATION_ID")

        results = await asyncio.gather(
            *(
                self._client.patch(
                    f"{_BASE_PATH}/{notification_id}/read?lang={self.context.language_code}",
                    context=self.context,
                    json_body={"customerId": self._customer_id},
                )
                for notification_id in ids
            ),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        marked = [
            notification_id
            for notification_id, result in zip(ids, results)
            if not isinstance(result, BaseException)
        ]
        for notification_id in marked:
            await self.dispatch(MarkedRead(notification_id=notification_id))
        logger.info(
            "Marked %s of %s notifications read",
            len(marked),
            len(ids),
            extra={"customer_id": self._customer_id},
        )
        self._collection.invalidate_prefix(NOTIFICATIONS_SCOPE)

        if not failures:
            return await self.poll()

        # Some reads may have landed; reconcile the count before reporting the failure
        try:
            await self.poll()
        except FetchError as exc:
            logger.warning("Reconciling poll after failed read failed: %s", exc)
        raise failures[0]

    async def mark_all(self) -> NotificationLedger:
        await self._client.patch(
            f"{_BASE_PATH}/{self._customer_id}/read-all?lang={self.context.language_code}",
            context=self.context,
        )
        await self.dispatch(MarkedAllRead())
        logger.info("Marked all notifications read", extra={"customer_id": self._customer_id})
        self._collection.invalidate_prefix(NOTIFICATIONS_SCOPE)
        return await self.poll()

    def _invalidate_for(self, message: dict[str, Any]) -> None:
        self._collection.invalidate_prefix(NOTIFICATIONS_SCOPE)
        data = message.get("data") if isinstance(message.get("data"), dict) else message
        kind = str(data.get("type") or message.get("type") or "")
        if kind.startswith("claim"):
            self._collection.invalidate_prefix(CLAIM_HISTORY_SCOPE)
