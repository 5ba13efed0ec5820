"""Scheduled sweep that keeps home-screen list families fresh."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from src.config import settings
from src.services.collection.paginated_collection import (
    PaginatedCollection,
    get_collection,
)
from src.services.workers.base import BaseWorker

logger = logging.getLogger(__name__)


class AutoRefreshWorker(BaseWorker):
    """Invalidates prefix-matched list families instead of flushing the whole cache."""

    role = "auto-refresh"

    def __init__(
        self,
        *,
        collection: PaginatedCollection,
        prefixes: Sequence[str] | None = None,
        interval_seconds: float | None = None,
        worker_name: str | None = None,
    ) -> None:
        super().__init__(
            interval_seconds or settings.AUTO_REFRESH_INTERVAL_SECONDS,
            worker_name,
        )
        self.collection = collection
        self.prefixes = tuple(prefixes if prefixes is not None else settings.AUTO_REFRESH_PREFIXES)

    def sweep(self) -> int:
        """Run one invalidation pass and return how many lists were marked stale."""

        total = 0
        for prefix in self.prefixes:
            total += self.collection.invalidate_prefix(prefix)
        if total:
            logger.info(
                "Auto-refresh invalidated %s lists",
                total,
                extra={"prefixes": list(self.prefixes)},
            )
        return total

    async def run_once(self) -> None:
        self.sweep()


def create_auto_refresh_worker() -> AutoRefreshWorker:
    return AutoRefreshWorker(collection=get_collection())


def main() -> None:
    worker = create_auto_refresh_worker()
    try:
        asyncio.run(worker.run_forever())
    except KeyboardInterrupt:
        logger.info("Auto-refresh worker interrupted, exiting")


if __name__ == "__main__":
    main()
