from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LinkdingConfig(BaseModel):
    """Connection settings for the linkding server."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(default="", validation_alias="LINKDING_URL")
    token: str = Field(default="", validation_alias="LINKDING_TOKEN")

    @field_validator("url", mode="before")
    @classmethod
    def _validate_url(cls, value: Any) -> str:
        url = str(value or "").strip()
        if url and not url.startswith(("http://", "https://")):
            msg = f"linkding URL must start with http:// or https://: {url}"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("token", mode="before")
    @classmethod
    def _validate_token(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        token = str(value).strip()
        if len(token) > 500:
            msg = "linkding API token appears to be too long"
            raise ValueError(msg)
        return token

    @property
    def is_complete(self) -> bool:
        return bool(self.url and self.token)

    def masked_token(self) -> str:
        if len(self.token) <= 8:
            return "***"
        return f"{self.token[:4]}...{self.token[-4:]}"
