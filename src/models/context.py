"""Per-request context passed explicitly to network-facing components."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from src.config import settings

LanguageCode = Literal["en", "malay"]


class RequestContext(BaseModel):
    """Language and credentials attached to every backend call."""

    model_config = ConfigDict(frozen=True)

    language_code: LanguageCode = "en"
    auth_token: str | None = None

    @field_validator("language_code", mode="before")
    @classmethod
    def _fold_language(cls, value: object) -> str:
        # The backend only understands these two; anything else reads as English
        return "malay" if value == "malay" else "en"

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers


def default_context() -> RequestContext:
    return RequestContext(language_code=settings.DEFAULT_LANGUAGE)
