"""Exception taxonomy shared by the storefront core."""

from __future__ import annotations

from typing import Any


class StorefrontError(Exception):
    """Base class for every error raised by the storefront core."""


class InvalidFilterError(StorefrontError, ValueError):
    """A filter value is outside its declared range or cannot be coerced."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidIdError(StorefrontError, ValueError):
    """An entity id is not a 24-character hexadecimal string."""

    def __init__(self, code: str, value: Any) -> None:
        entity = code.removeprefix("INVALID_").removesuffix("_ID").lower()
        super().__init__(f"Invalid {entity} ID format")
        self.code = code
        self.value = value


class InvalidTransitionError(StorefrontError):
    """A claim state-machine transition is not allowed from the current state."""

    def __init__(self, claim_id: str, status: str, action: str, reason: str | None = None):
        message = reason or f"Cannot {action} a claim that is {status}"
        super().__init__(message)
        self.claim_id = claim_id
        self.status = status
        self.action = action


class UnknownClaimError(StorefrontError, LookupError):
    """The claim is not tracked locally, so its state cannot be checked."""

    def __init__(self, claim_id: str) -> None:
        super().__init__(f"Claim {claim_id} is not tracked")
        self.claim_id = claim_id


class StorefrontAPIError(StorefrontError):
    """The backend answered with an error or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "HTTP_ERROR",
        status: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.payload = payload


class FetchError(StorefrontError):
    """A page fetch or poll against ``endpoint`` failed."""

    def __init__(self, endpoint: str, page: int | None, cause: BaseException) -> None:
        where = f"{endpoint} page {page}" if page is not None else endpoint
        super().__init__(f"Failed to fetch {where}: {cause}")
        self.endpoint = endpoint
        self.page = page
        self.cause = cause


class ClaimTransitionError(StorefrontError):
    """The backend rejected or failed a claim transition."""

    def __init__(self, action: str, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.action = action
        self.message = message
        self.cause = cause
