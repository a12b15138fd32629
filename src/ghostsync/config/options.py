"""Plugin options for connecting to a Ghost Content API."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ghostsync.errors import ConfigurationError

DEFAULT_API_VERSION = "v3"
KEY_PLACEHOLDER = "<key>"

_KEY_PATTERN = re.compile(r"^[0-9a-f]{26}$")
_VERSION_PATTERN = re.compile(r"^(v[2-4]|canary|v[5-9](\.\d+)?|v\d{2,}(\.\d+)?)$")


class GhostSourceOptions(BaseModel):
    """Connection options supplied by the host's plugin configuration."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    api_url: str = Field(validation_alias=AliasChoices("api_url", "apiUrl"))
    content_api_key: str = Field(
        repr=False,
        validation_alias=AliasChoices("content_api_key", "contentApiKey"),
    )
    api_version: str = Field(
        default=DEFAULT_API_VERSION,
        validation_alias=AliasChoices("api_version", "apiVersion", "version"),
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _normalize_api_url(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("apiUrl is required, e.g. https://demo.ghost.io")
        url = value.strip()
        if not re.match(r"^https?://", url, flags=re.IGNORECASE):
            raise ValueError("apiUrl must include the protocol, i.e. http:// or https://")
        url = url.rstrip("/")
        if url.lower().endswith("/ghost"):
            raise ValueError("apiUrl must be the site URL and must not end in /ghost")
        return url

    @field_validator("content_api_key", mode="before")
    @classmethod
    def _validate_key(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("contentApiKey is required")
        key = value.strip()
        if KEY_PLACEHOLDER in key:
            raise ValueError("contentApiKey still contains the <key> placeholder")
        if not _KEY_PATTERN.match(key):
            raise ValueError("contentApiKey must be a 26 character hex string")
        return key

    @field_validator("api_version", mode="before")
    @classmethod
    def _validate_version(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_API_VERSION
        if not isinstance(value, str):
            raise TypeError("apiVersion must be a string such as 'v3' or 'v5.0'")
        version = value.strip().lower()
        if not _VERSION_PATTERN.match(version):
            raise ValueError(f"Unsupported apiVersion: {value!r}")
        return version

    @property
    def uses_versioned_path(self) -> bool:
        """True when the API version belongs in the URL path rather than a header."""

        return self.api_version in {"v2", "v3", "v4", "canary"}

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | GhostSourceOptions) -> GhostSourceOptions:
        """Validate host-supplied options, raising ConfigurationError on failure."""

        if isinstance(options, GhostSourceOptions):
            return options
        if not isinstance(options, Mapping):
            raise ConfigurationError("Ghost source options must be a mapping.")
        # Hosts commonly pass their own bookkeeping keys alongside plugin options.
        payload = {key: value for key, value in options.items() if key != "plugins"}
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'options'}: {error['msg']}"
                for error in exc.errors()
            )
            raise ConfigurationError(f"Invalid Ghost source options: {messages}") from exc
