"""Periodic unread-count poll for a single customer."""

from __future__ import annotations

import logging

from src.config import settings
from src.services.notifications.sync import NotificationSync
from src.services.workers.base import BaseWorker

logger = logging.getLogger(__name__)


class NotificationPoller(BaseWorker):
    role = "notification-poller"

    def __init__(
        self,
        sync: NotificationSync,
        *,
        interval_seconds: float | None = None,
        worker_name: str | None = None,
    ) -> None:
        super().__init__(
            interval_seconds or settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
            worker_name,
        )
        self.sync = sync

    async def run_once(self) -> None:
        ledger = await self.sync.poll()
        logger.debug(
            "Polled unread count",
            extra={"customer_id": self.sync.customer_id, "unread_count": ledger.unread_count},
        )
