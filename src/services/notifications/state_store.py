"""Redis-backed persistence for the notification ledger."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import redis.asyncio as redis

from src.config import settings
from src.models.notification import NotificationLedger, NotificationState


class NotificationStateStore:
    """Wrapper responsible for persisting per-customer ledgers in Redis."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._prefix = settings.NOTIFICATION_STATE_KEY_PREFIX
        self._ttl = settings.NOTIFICATION_STATE_TTL_SECONDS

    def _key(self, customer_id: str) -> str:
        return f"{self._prefix}{customer_id}"

    async def save(self, customer_id: str, ledger: NotificationLedger) -> NotificationState:
        state = NotificationState(
            customer_id=customer_id,
            unread_count=ledger.unread_count,
            has_unread=ledger.has_unread,
            revision=ledger.revision,
            updated_at=self._timestamp(),
        )
        await self._client.set(
            self._key(customer_id), json.dumps(state.model_dump()), ex=self._ttl
        )
        return state

    async def fetch(self, customer_id: str) -> NotificationState | None:
        raw = await self._client.get(self._key(customer_id))
        if not raw:
            return None
        data = json.loads(raw)
        return NotificationState(**data)

    async def clear(self, customer_id: str) -> None:
        await self._client.delete(self._key(customer_id))

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(UTC).isoformat()


_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL)
    return _redis_client


def get_notification_state_store() -> NotificationStateStore:
    return NotificationStateStore(get_redis_client())
