"""Routes exposing the cached deals listing."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.models.api import DealsListResponse
from src.models.filters import FilterSet
from src.services.collection.keys import DEALS_SCOPE, deals_key
from src.services.collection.paginated_collection import (
    CollectionHandle,
    PaginatedCollection,
    get_collection,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["deals"])

CollectionDependency = Annotated[PaginatedCollection, Depends(get_collection)]

# Query parameters that configure the call rather than the filter
_CONTROL_PARAMS = ("lang", "scope")


def _resolve_handle(
    request: Request,
    collection: PaginatedCollection,
    lang: str | None,
    scope: str,
) -> CollectionHandle:
    raw = {
        name: value
        for name, value in request.query_params.items()
        if name not in _CONTROL_PARAMS
    }
    tags = request.query_params.getlist("tags")
    if len(tags) > 1:
        raw["tags"] = tags
    filters = FilterSet.parse(raw)
    return collection.get_or_create(deals_key(filters, scope=scope), language_code=lang)


def _build_response(
    collection: PaginatedCollection,
    handle: CollectionHandle,
    fetched: bool,
) -> DealsListResponse:
    return DealsListResponse(
        key=handle.key.canonical.key,
        filters=handle.key.canonical.as_dict(),
        items=collection.flatten(handle),
        page_count=handle.page_count,
        has_next=handle.has_next,
        fetched=fetched,
    )


@router.get(
    "",
    response_model=DealsListResponse,
    summary="Return the cached deals list for the given filters",
)
async def list_deals(
    request: Request,
    collection: CollectionDependency,
    lang: Annotated[str | None, Query()] = None,
    scope: Annotated[str, Query()] = DEALS_SCOPE,
) -> DealsListResponse:
    handle = _resolve_handle(request, collection, lang, scope)
    fetched = False
    if handle.needs_fetch:
        await collection.fetch_next(handle)
        fetched = True
    return _build_response(collection, handle, fetched)


@router.post(
    "/next",
    response_model=DealsListResponse,
    summary="Fetch and append the next page of the deals list",
)
async def fetch_next_deals(
    request: Request,
    collection: CollectionDependency,
    lang: Annotated[str | None, Query()] = None,
    scope: Annotated[str, Query()] = DEALS_SCOPE,
) -> DealsListResponse:
    handle = _resolve_handle(request, collection, lang, scope)
    page = await collection.fetch_next(handle)
    if page is None:
        logger.debug("No further deals page for %s", handle.key.identity)
    return _build_response(collection, handle, page is not None)


@router.post(
    "/refresh",
    response_model=DealsListResponse,
    summary="Drop cached pages and reload the first page",
)
async def refresh_deals(
    request: Request,
    collection: CollectionDependency,
    lang: Annotated[str | None, Query()] = None,
    scope: Annotated[str, Query()] = DEALS_SCOPE,
) -> DealsListResponse:
    handle = _resolve_handle(request, collection, lang, scope)
    page = await collection.refetch(handle)
    return _build_response(collection, handle, page is not None)
