"""State machine for claimed deals.

``active`` is the only state with outgoing transitions: the user may cancel
or reschedule, the backend may redeem or expire. Every mutation is confirmed
by the backend before the local copy changes, and the claim-history lists
are invalidated rather than patched in place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from src.errors import (
    ClaimTransitionError,
    InvalidTransitionError,
    StorefrontAPIError,
    UnknownClaimError,
)
from src.models.claim import Claim
from src.models.context import RequestContext
from src.services.clients.storefront_client import StorefrontClient, get_storefront_client
from src.services.collection.keys import CLAIM_HISTORY_SCOPE
from src.services.collection.paginated_collection import PaginatedCollection, get_collection
from src.services.fetch.normalizers import unwrap_entity
from src.services.validation import require_object_id

logger = logging.getLogger(__name__)


class ClaimLifecycle:
    """Guards and performs claim transitions against the backend."""

    def __init__(
        self,
        client: StorefrontClient,
        collection: PaginatedCollection,
        context: RequestContext | None = None,
    ) -> None:
        self._client = client
        self._collection = collection
        self._context = context
        self._claims: dict[str, Claim] = {}

    @property
    def context(self) -> RequestContext:
        return self._context or self._collection.context

    def get(self, claim_id: str) -> Claim:
        try:
            return self._claims[claim_id]
        except KeyError:
            raise UnknownClaimError(claim_id) from None

    def track(self, payloads: Iterable[Claim | dict[str, Any]]) -> list[Claim]:
        """Register server copies, e.g. the items of a claim-history page.

        Payloads that do not describe a claim (no id, missing or unknown
        status) are skipped, never tracked with a guessed status.
        """

        tracked: list[Claim] = []
        for payload in payloads:
            try:
                claim = payload if isinstance(payload, Claim) else Claim.model_validate(payload)
            except ValidationError as exc:
                logger.warning("Skipping unreadable claim payload (%s errors)", exc.error_count())
                continue
            previous = self._claims.get(claim.id)
            if previous is not None and previous.status != claim.status:
                logger.info(
                    "Claim %s moved %s -> %s on the server",
                    claim.id,
                    previous.status,
                    claim.status,
                )
            self._claims[claim.id] = claim
            tracked.append(claim)
        return tracked

    async def claim_deal(self, deal_id: str, customer_id: str) -> Claim:
        require_object_id(deal_id, "INVALID_DEAL_ID")
        require_object_id(customer_id, "INVALID_CUSTOMER_ID")

        body = await self._send(
            "claim",
            f"/jomfood-deals/{deal_id}/claim?lang={self.context.language_code}",
            {"customer_id": customer_id},
        )
        claim = self._commit(body, action="claim")
        logger.info("Claimed deal %s as claim %s", deal_id, claim.id)
        return claim

    async def reschedule(
        self,
        claim_id: str,
        new_datetime: datetime,
        *,
        now: datetime | None = None,
    ) -> Claim:
        require_object_id(claim_id, "INVALID_CLAIM_ID")
        claim = self._require_active(claim_id, "reschedule")

        when = _as_utc(new_datetime)
        current = _as_utc(now) if now is not None else datetime.now(UTC)
        if when <= current:
            raise InvalidTransitionError(
                claim_id,
                claim.status,
                "reschedule",
                reason="New preferred datetime must be in the future",
            )

        body = await self._send(
            "reschedule",
            f"/jomfood-deals/claims/{claim_id}/reschedule?lang={self.context.language_code}",
            {"preferred_datetime": when.isoformat()},
        )
        updated = self._commit(body, action="reschedule")
        logger.info("Rescheduled claim %s to %s", claim_id, when.isoformat())
        return updated

    async def cancel(self, claim_id: str) -> Claim:
        """Cancel an active claim. Irreversible; callers confirm with the user first."""

        require_object_id(claim_id, "INVALID_CLAIM_ID")
        self._require_active(claim_id, "cancel")

        body = await self._send(
            "cancel",
            f"/jomfood-deals/claims/{claim_id}/cancel?lang={self.context.language_code}",
            None,
        )
        updated = self._commit(body, action="cancel")
        logger.info("Cancelled claim %s", claim_id)
        return updated

    def _require_active(self, claim_id: str, action: str) -> Claim:
        claim = self.get(claim_id)
        if claim.status != "active":
            logger.warning(
                "Rejected %s of %s claim %s", action, claim.status, claim_id
            )
            raise InvalidTransitionError(claim_id, claim.status, action)
        return claim

    async def _send(self, action: str, path: str, payload: dict[str, Any] | None) -> Any:
        try:
            return await self._client.post(path, context=self.context, json_body=payload)
        except StorefrontAPIError as exc:
            details = exc.payload if isinstance(exc.payload, dict) else {}
            from_server = details.get("message") or details.get("error")
            raise ClaimTransitionError(
                action,
                exc.message if from_server else f"Failed to {action} claim",
                exc,
            ) from exc

    def _commit(self, body: Any, *, action: str) -> Claim:
        try:
            claim = Claim.model_validate(unwrap_entity(body))
        except ValidationError as exc:
            raise ClaimTransitionError(
                action,
                f"Failed to {action} claim",
                exc,
            ) from exc
        self._claims[claim.id] = claim
        self._collection.invalidate_prefix(CLAIM_HISTORY_SCOPE)
        return claim


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


_lifecycle: ClaimLifecycle | None = None


def get_claim_lifecycle() -> ClaimLifecycle:
    """Return the process-wide claim state machine."""

    global _lifecycle
    if _lifecycle is None:
        _lifecycle = ClaimLifecycle(get_storefront_client(), get_collection())
    return _lifecycle
