"""Claim entity as held in the client-side read-through cache."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

ClaimStatus = Literal["active", "redeemed", "cancelled", "expired"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"redeemed", "cancelled", "expired"})


class Claim(BaseModel):
    """A claimed deal. Owned by the backend; mutated only after a server round-trip."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    deal_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("deal_id", "dealId"),
    )
    status: ClaimStatus
    claimed_at: datetime | None = None
    expires_at: datetime | None = None
    redeemed_at: datetime | None = None
    preferred_datetime: datetime | None = None
    qr_artifact: str | None = Field(
        default=None,
        description="QR code public URL or inline image reference",
    )
    deal_name: str | None = None
    business_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_backend_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)

        deal = payload.get("deal_id")
        if isinstance(deal, dict):
            payload["deal_id"] = deal.get("_id") or deal.get("id")

        if not payload.get("qr_artifact"):
            payload["qr_artifact"] = payload.get("qr_code_public_url") or payload.get(
                "qr_code_image"
            )

        details = payload.get("deal_details") or {}
        if not payload.get("deal_name"):
            payload["deal_name"] = details.get("deal_name")

        if not payload.get("business_name"):
            business = payload.get("business_id")
            group = payload.get("group_id")
            if isinstance(business, dict) and business.get("company_name"):
                payload["business_name"] = business["company_name"]
            elif isinstance(group, dict) and group.get("name"):
                payload["business_name"] = group["name"]

        return payload

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
