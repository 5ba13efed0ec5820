"""HTTP client abstractions for the deals marketplace backend."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Annotated, Any

import httpx
from fastapi import Depends

from src.config import settings
from src.errors import StorefrontAPIError
from src.models.context import RequestContext

logger = logging.getLogger(__name__)


class StorefrontClient(ABC):
    """Abstract transport for backend REST calls; returns parsed JSON bodies."""

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        *,
        context: RequestContext,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded body, raising StorefrontAPIError."""

    async def get(self, path: str, *, context: RequestContext) -> Any:
        return await self.request("GET", path, context=context)

    async def post(
        self,
        path: str,
        *,
        context: RequestContext,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        return await self.request("POST", path, context=context, json_body=json_body)

    async def patch(
        self,
        path: str,
        *,
        context: RequestContext,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        return await self.request("PATCH", path, context=context, json_body=json_body)

    async def aclose(self) -> None:
        """Release network resources held by the client."""


class HttpxStorefrontClient(StorefrontClient):
    """Client implementation backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("API base URL is required to initialize storefront client")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        context: RequestContext,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = path.lstrip("/")
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(
                method,
                url,
                json=json_body,
                headers=context.headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("Network error on %s %s: %s", method, url, exc)
            raise StorefrontAPIError(
                str(exc) or "Network request failed",
                code="NETWORK_ERROR",
            ) from exc

        body = _parse_body(response)
        if response.is_success:
            return body
        raise _error_from_response(body, response.status_code, response.reason_phrase)

    async def aclose(self) -> None:
        await self._client.aclose()


def _parse_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type:
        return {"_text": response.text}
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise StorefrontAPIError(
            "Invalid JSON response from server",
            code="JSON_PARSE_ERROR",
            status=response.status_code,
            payload={"response_text": response.text[:500]},
        ) from exc


def _error_from_response(body: Any, status: int, reason: str) -> StorefrontAPIError:
    if isinstance(body, dict) and (body.get("error") or body.get("message")):
        error = body.get("error")
        return StorefrontAPIError(
            body.get("message") or str(error) or "An error occurred",
            code=error if isinstance(error, str) else "UNKNOWN_ERROR",
            status=status,
            payload=body,
        )
    if isinstance(body, dict) and "_text" in body:
        return StorefrontAPIError(
            f"Server returned HTML/text instead of JSON. Status: {status}",
            code="INVALID_RESPONSE",
            status=status,
            payload={"response_preview": str(body["_text"])[:200]},
        )
    return StorefrontAPIError(f"Error {status}: {reason}", code="HTTP_ERROR", status=status)


_storefront_client: StorefrontClient | None = None


def get_storefront_client() -> StorefrontClient:
    """Return the process-wide backend client, creating it on first use."""

    global _storefront_client
    if _storefront_client is None:
        _storefront_client = HttpxStorefrontClient(
            base_url=settings.API_BASE_URL,
            timeout=settings.API_TIMEOUT_SECONDS,
        )
    return _storefront_client


StorefrontClientDependency = Annotated[StorefrontClient, Depends(get_storefront_client)]
