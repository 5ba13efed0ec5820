"""Cache keys for the paginated list families used by the app."""

from __future__ import annotations

from dataclasses import dataclass

from src.config import settings
from src.models.filters import FilterSet
from src.services.query.key_codec import CanonicalFilter, canonicalize, canonicalize_params
from src.services.validation import require_object_id

DEALS_SCOPE = "deals-list"
FAVORITES_SCOPE = "favorite-deals"
CLAIM_HISTORY_SCOPE = "claim-history"
NOTIFICATIONS_SCOPE = "notifications"


@dataclass(frozen=True, slots=True)
class CollectionKey:
    """Identity of one cached list: query family, endpoint and canonical filter.

    ``scope`` names the query family (``home-nearby``, ``claim-history``...)
    and is what prefix invalidation matches against.
    """

    scope: str
    endpoint: str
    canonical: CanonicalFilter

    @property
    def identity(self) -> str:
        return f"{self.scope}|{self.endpoint}|{self.canonical.key}"


def deals_key(filters: FilterSet | CanonicalFilter, *, scope: str = DEALS_SCOPE) -> CollectionKey:
    canonical = filters if isinstance(filters, CanonicalFilter) else canonicalize(filters)
    return CollectionKey(scope=scope, endpoint="deals", canonical=canonical)


def favorites_key(sort_by: str = "favorited_newest") -> CollectionKey:
    canonical = canonicalize_params(
        {"sort_by": sort_by, "limit": settings.DEFAULT_PAGE_LIMIT}
    )
    return CollectionKey(scope=FAVORITES_SCOPE, endpoint="favorites", canonical=canonical)


def claim_history_key(customer_id: str) -> CollectionKey:
    require_object_id(customer_id, "INVALID_CUSTOMER_ID")
    canonical = canonicalize_params(
        {"customer_id": customer_id, "limit": settings.CLAIMS_PAGE_LIMIT}
    )
    return CollectionKey(scope=CLAIM_HISTORY_SCOPE, endpoint="claims", canonical=canonical)


def notifications_key(customer_id: str, status: str | None = None) -> CollectionKey:
    require_object_id(customer_id, "INVALID_CUSTOMER_ID")
    canonical = canonicalize_params(
        {
            "customer_id": customer_id,
            "limit": settings.NOTIFICATIONS_PAGE_LIMIT,
            "status": status,
        }
    )
    return CollectionKey(
        scope=NOTIFICATIONS_SCOPE,
        endpoint="notifications",
        canonical=canonical,
    )
