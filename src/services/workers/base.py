"""Base worker functionality for periodic background loops."""

from __future__ import annotations

import asyncio
import logging
import os
import socket
import uuid
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """Abstract base class for interval-driven async workers."""

    role: str = "worker"

    def __init__(self, interval_seconds: float, worker_name: str | None = None):
        if interval_seconds <= 0:
            raise ValueError("Worker interval must be positive")
        self.interval_seconds = interval_seconds
        self.worker_name = worker_name or self._build_worker_name()
        self._shutdown_event = asyncio.Event()

    @abstractmethod
    async def run_once(self) -> None:
        """One unit of work. Should be implemented by subclasses."""
        pass

    async def run_forever(self) -> None:
        """Call ``run_once`` every interval until shutdown is requested."""
        logger.info(
            "Worker started",
            extra={"worker": self.worker_name, "interval": self.interval_seconds},
        )
        try:
            while not self.is_shutdown_requested():
                try:
                    await self.run_once()
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    logger.error(
                        "%s iteration failed: %s", self.worker_name, exc, exc_info=True
                    )
                await self._sleep()
        except asyncio.CancelledError:
            logger.info("Worker %s cancelled", self.worker_name)
            raise

    def shutdown(self) -> None:
        """Signal the worker to shut down gracefully."""
        self._shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        """Check if shutdown has been requested."""
        return self._shutdown_event.is_set()

    async def _sleep(self) -> None:
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=self.interval_seconds)
        except TimeoutError:
            pass

    def _build_worker_name(self) -> str:
        hostname = socket.gethostname()
        pid = os.getpid()
        suffix = uuid.uuid4().hex[:6]
        return f"{self.role}:{hostname}:{pid}:{suffix}"
