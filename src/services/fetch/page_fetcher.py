"""Single-page fetches against the paginated backend endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.errors import FetchError, StorefrontAPIError
from src.models.context import RequestContext
from src.models.page import Page
from src.services.clients.storefront_client import StorefrontClient
from src.services.fetch.normalizers import normalize_page
from src.services.query.key_codec import CanonicalFilter, to_query_string
from src.services.validation import require_object_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EndpointSpec:
    """Describes one paginated endpoint and where its items live in the body."""

    name: str
    path: str
    item_key: str
    path_params: tuple[str, ...] = ()


ENDPOINTS: dict[str, EndpointSpec] = {
    definition.name: definition
    for definition in (
        EndpointSpec("deals", "/jomfood-deals/active", "deals"),
        EndpointSpec("favorites", "/jomfood-deals/favorites", "deals"),
        EndpointSpec("claims", "/jomfood-deals/claims/history", "claims"),
        EndpointSpec(
            "notifications",
            "/jomfood/notifications/customer/{customer_id}",
            "notifications",
            path_params=("customer_id",),
        ),
    )
}

# Query parameters that carry entity ids and must be validated before I/O
_ID_PARAMS = {"customer_id": "INVALID_CUSTOMER_ID"}


class PageFetcher:
    """Issues one network call per page and normalizes the response shape.

    Retry policy belongs to the caller; a failure here surfaces once as a
    ``FetchError`` carrying the endpoint and page number.
    """

    def __init__(
        self,
        client: StorefrontClient,
        endpoints: dict[str, EndpointSpec] | None = None,
    ) -> None:
        self._client = client
        self._endpoints = endpoints or ENDPOINTS

    def endpoint(self, name: str) -> EndpointSpec:
        try:
            return self._endpoints[name]
        except KeyError:
            raise ValueError(f"Unknown endpoint: {name}") from None

    def build_path(
        self,
        endpoint: str,
        canonical: CanonicalFilter,
        page_number: int,
        context: RequestContext,
    ) -> str:
        """Return the relative URL for one page, validating ids on the way."""

        definition = self.endpoint(endpoint)
        values = canonical.as_dict()
        for name, code in _ID_PARAMS.items():
            if name in values or name in definition.path_params:
                require_object_id(values.get(name), code)

        path_values = {name: values.get(name) for name in definition.path_params}
        path = definition.path.format(**path_values)
        query = to_query_string(
            canonical.without(*definition.path_params),
            page=page_number,
            language=context.language_code,
        )
        return f"{path}?{query}"

    async def fetch_page(
        self,
        endpoint: str,
        canonical: CanonicalFilter,
        page_number: int,
        context: RequestContext,
    ) -> Page:
        definition = self.endpoint(endpoint)
        url = self.build_path(endpoint, canonical, page_number, context)

        try:
            body = await self._client.get(url, context=context)
        except StorefrontAPIError as exc:
            logger.warning(
                "Page fetch failed",
                extra={"endpoint": endpoint, "page": page_number, "code": exc.code},
            )
            raise FetchError(endpoint, page_number, exc) from exc

        page = normalize_page(body, definition.item_key, endpoint=endpoint)
        logger.debug(
            "Fetched %s page %s with %s items",
            endpoint,
            page_number,
            len(page.items),
        )
        return page
