"""Routes for claiming deals and managing existing claims."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from src.models.api import ClaimListResponse, ClaimRequest, RescheduleRequest
from src.models.claim import Claim
from src.services.claims.lifecycle import ClaimLifecycle, get_claim_lifecycle
from src.services.collection.keys import claim_history_key
from src.services.collection.paginated_collection import (
    PaginatedCollection,
    get_collection,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])

LifecycleDependency = Annotated[ClaimLifecycle, Depends(get_claim_lifecycle)]
CollectionDependency = Annotated[PaginatedCollection, Depends(get_collection)]


@router.get(
    "/history",
    response_model=ClaimListResponse,
    summary="Load the customer's claim history and track its claims",
)
async def claim_history(
    collection: CollectionDependency,
    lifecycle: LifecycleDependency,
    customer_id: Annotated[str, Query(description="24-hex customer id")],
    more: Annotated[bool, Query(description="Fetch the next page")] = False,
) -> ClaimListResponse:
    handle = collection.get_or_create(claim_history_key(customer_id))
    if handle.needs_fetch or more:
        await collection.fetch_next(handle, retries=1)
    claims = lifecycle.track(collection.flatten(handle))
    return ClaimListResponse(
        claims=claims,
        page_count=handle.page_count,
        has_next=handle.has_next,
    )


@router.post(
    "",
    response_model=Claim,
    status_code=status.HTTP_201_CREATED,
    summary="Claim a deal for a customer",
)
async def claim_deal(payload: ClaimRequest, lifecycle: LifecycleDependency) -> Claim:
    return await lifecycle.claim_deal(payload.deal_id, payload.customer_id)


@router.post(
    "/{claim_id}/reschedule",
    response_model=Claim,
    summary="Move an active claim to a new preferred datetime",
)
async def reschedule_claim(
    payload: RescheduleRequest,
    lifecycle: LifecycleDependency,
    claim_id: str = Path(..., description="Identifier of a tracked claim"),
) -> Claim:
    return await lifecycle.reschedule(claim_id, payload.preferred_datetime)


@router.post(
    "/{claim_id}/cancel",
    response_model=Claim,
    summary="Cancel an active claim",
)
async def cancel_claim(
    lifecycle: LifecycleDependency,
    claim_id: str = Path(..., description="Identifier of a tracked claim"),
) -> Claim:
    return await lifecycle.cancel(claim_id)
