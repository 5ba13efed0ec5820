"""Infinite-scroll cache of fetched pages, keyed by canonical filter."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from src.errors import FetchError
from src.models.context import LanguageCode, RequestContext, default_context
from src.models.page import Page
from src.services.clients.storefront_client import get_storefront_client
from src.services.collection.keys import CollectionKey
from src.services.fetch.page_fetcher import PageFetcher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _CacheEntry:
    pages: list[Page] = field(default_factory=list)
    in_flight: asyncio.Future | None = None
    stale: bool = False
    generation: int = 0


@dataclass(frozen=True, slots=True)
class CollectionHandle:
    """Caller-side reference to one cached list in one language."""

    key: CollectionKey
    language_code: LanguageCode
    _entry: _CacheEntry = field(repr=False, compare=False)

    @property
    def needs_fetch(self) -> bool:
        return not self._entry.pages

    @property
    def is_fetching(self) -> bool:
        return self._entry.in_flight is not None

    @property
    def is_stale(self) -> bool:
        return self._entry.stale

    @property
    def has_next(self) -> bool:
        return not self._entry.pages or self._entry.pages[-1].has_next

    @property
    def page_count(self) -> int:
        return len(self._entry.pages)


class PaginatedCollection:
    """Process-wide page cache with at most one fetch in flight per key.

    A list is identified by its key together with the language it was
    fetched in, so the same filter in two languages never shares pages.
    Pages are only ever appended by ``fetch_next`` and dropped by
    ``invalidate``; nothing else mutates them. Every invalidation bumps the
    entry's generation so that a fetch started before it cannot write its
    late result into the refreshed entry.
    """

    def __init__(self, fetcher: PageFetcher, context: RequestContext | None = None):
        self._fetcher = fetcher
        self._context = context or default_context()
        self._entries: dict[str, tuple[CollectionKey, _CacheEntry]] = {}

    @property
    def context(self) -> RequestContext:
        """Default context; its credentials are used for every fetch."""
        return self._context

    def set_context(self, context: RequestContext) -> None:
        """Switch the default language or credentials; every cached list is refetched afterwards."""

        if context == self._context:
            return
        self._context = context
        for key, _entry in list(self._entries.values()):
            self.invalidate(key)
        logger.info("Request context changed, invalidated %s lists", len(self._entries))

    def get_or_create(
        self,
        key: CollectionKey,
        *,
        language_code: str | None = None,
    ) -> CollectionHandle:
        """Return the handle for ``key`` in ``language_code`` (default language when omitted)."""

        language = self._language(language_code)
        identity = f"{language}|{key.identity}"
        existing = self._entries.get(identity)
        if existing is None:
            existing = (key, _CacheEntry())
            self._entries[identity] = existing
        return CollectionHandle(key=key, language_code=language, _entry=existing[1])

    async def fetch_next(self, handle: CollectionHandle, *, retries: int = 0) -> Page | None:
        """Fetch and append the next page for ``handle``.

        Joins the outstanding fetch when one exists. Returns ``None`` without
        any I/O when the last page had no successor, and ``None`` when the
        fetched page was discarded because the list was invalidated meanwhile.
        """

        entry = handle._entry
        if entry.in_flight is not None:
            logger.debug("Joining in-flight fetch for %s", handle.key.identity)
            return await asyncio.shield(entry.in_flight)

        if entry.pages and not entry.pages[-1].has_next:
            return None

        page_number = len(entry.pages) + 1
        context = self._context.model_copy(update={"language_code": handle.language_code})
        future = asyncio.ensure_future(
            self._fetch(handle.key, entry, context, page_number, entry.generation, retries)
        )
        entry.in_flight = future
        return await asyncio.shield(future)

    async def refetch(self, handle: CollectionHandle, *, retries: int = 0) -> Page | None:
        """Drop cached pages and load page 1 again (pull-to-refresh)."""

        self._reset(handle.key, handle._entry)
        return await self.fetch_next(handle, retries=retries)

    def invalidate(self, key: CollectionKey) -> bool:
        """Drop the pages of ``key`` in every language it was fetched in."""

        entries = [
            entry for cached, entry in self._entries.values() if cached.identity == key.identity
        ]
        for entry in entries:
            self._reset(key, entry)
        return bool(entries)

    def invalidate_prefix(self, prefix: str) -> int:
        """Invalidate every list whose scope starts with ``prefix``."""

        matching = [
            (key, entry) for key, entry in self._entries.values() if key.scope.startswith(prefix)
        ]
        for key, entry in matching:
            self._reset(key, entry)
        return len(matching)

    def flatten(self, handle: CollectionHandle) -> list[Any]:
        """Items of every appended page, in fetch order."""

        return [item for page in handle._entry.pages for item in page.items]

    def keys(self) -> list[CollectionKey]:
        return [key for key, _entry in self._entries.values()]

    def _language(self, language_code: str | None) -> LanguageCode:
        if language_code is None:
            return self._context.language_code
        return RequestContext(language_code=language_code).language_code

    @staticmethod
    def _reset(key: CollectionKey, entry: _CacheEntry) -> None:
        entry.pages.clear()
        entry.stale = True
        entry.generation += 1
        entry.in_flight = None
        logger.info(
            "Invalidated list",
            extra={"scope": key.scope, "endpoint": key.endpoint, "generation": entry.generation},
        )

    async def _fetch(
        self,
        key: CollectionKey,
        entry: _CacheEntry,
        context: RequestContext,
        page_number: int,
        generation: int,
        retries: int,
    ) -> Page | None:
        attempt = 0
        try:
            while True:
                try:
                    page = await self._fetcher.fetch_page(
                        key.endpoint,
                        key.canonical,
                        page_number,
                        context,
                    )
                    break
                except FetchError as exc:
                    if attempt >= retries or entry.generation != generation:
                        raise
                    attempt += 1
                    logger.info(
                        "Retrying %s page %s (attempt %s): %s",
                        key.endpoint,
                        page_number,
                        attempt,
                        exc.cause,
                    )
        finally:
            if entry.generation == generation:
                entry.in_flight = None

        if entry.generation != generation or len(entry.pages) != page_number - 1:
            logger.warning(
                "Discarding late page",
                extra={"scope": key.scope, "endpoint": key.endpoint, "page": page_number},
            )
            return None

        entry.pages.append(page)
        entry.stale = False
        return page


_collection: PaginatedCollection | None = None


def get_collection() -> PaginatedCollection:
    """Return the process-wide page cache."""

    global _collection
    if _collection is None:
        _collection = PaginatedCollection(PageFetcher(get_storefront_client()))
    return _collection
