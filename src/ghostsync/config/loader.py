"""Configuration loading for the ghostsync CLI."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ghostsync.config.options import DEFAULT_API_VERSION, GhostSourceOptions

DEFAULT_CONFIG_PATH = Path("config/default.yaml")
LOCAL_CONFIG_PATH = Path("config/local.yaml")

ENV_API_URL = "GHOST_API_URL"
ENV_CONTENT_API_KEY = "GHOST_CONTENT_API_KEY"


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    path: Path | None = None
    level: str = Field(default="info")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError("Logging level must be a string.")
        normalized = value.strip().lower()
        if normalized not in {"debug", "info", "warn", "warning", "error", "critical"}:
            raise ValueError(f"Unsupported logging level: {value!r}")
        return normalized


class GhostSettings(BaseModel):
    """Ghost connection section; the key is usually supplied via the environment."""

    model_config = ConfigDict(extra="forbid")

    api_url: str | None = None
    content_api_key: str | None = Field(default=None, repr=False)
    api_version: str = DEFAULT_API_VERSION


class HttpSettings(BaseModel):
    """HTTP client limits shared by the API client and the image cache."""

    model_config = ConfigDict(extra="forbid")

    timeout_seconds: float = Field(default=30.0, gt=0.0)
    max_image_bytes: int = Field(default=50_000_000, ge=1)


class OutputSettings(BaseModel):
    """Output directory configuration."""

    model_config = ConfigDict(extra="forbid")

    base_path: Path = Path("data")
    nodes_subdir: str = "nodes"
    cache_subdir: str = "cache"


class ConfigModel(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    ghost: GhostSettings = Field(default_factory=GhostSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    outputs: OutputSettings = Field(default_factory=OutputSettings)


@dataclass(slots=True)
class Config:
    """Validated configuration with convenience helpers."""

    model: ConfigModel
    raw: Mapping[str, Any] = field(repr=False)
    loaded_from: tuple[str, ...] = field(default_factory=tuple, repr=False)

    @property
    def logging(self) -> LoggingSettings:
        return self.model.logging

    @property
    def ghost(self) -> GhostSettings:
        return self.model.ghost

    @property
    def http(self) -> HttpSettings:
        return self.model.http

    @property
    def outputs(self) -> OutputSettings:
        return self.model.outputs

    def plugin_options(self, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
        """Return host-style plugin options, filling gaps from the environment."""

        env = os.environ if environ is None else environ
        return {
            "api_url": self.ghost.api_url or env.get(ENV_API_URL),
            "content_api_key": self.ghost.content_api_key or env.get(ENV_CONTENT_API_KEY),
            "api_version": self.ghost.api_version,
        }

    def source_options(self, environ: Mapping[str, str] | None = None) -> GhostSourceOptions:
        """Validate the effective plugin options."""

        return GhostSourceOptions.from_options(self.plugin_options(environ))

    def model_dump(self) -> Mapping[str, Any]:
        """Expose the parsed configuration as a mapping, without secrets."""

        data = self.model.model_dump(mode="json")
        if data.get("ghost", {}).get("content_api_key"):
            data["ghost"]["content_api_key"] = "***"
        return data


def load_config(path: Path | None = None) -> Config:
    """Load configuration from defaults/local overrides, or from an explicit config document."""

    merged: dict[str, Any] = {}
    loaded_from: list[str] = []

    if path is not None:
        override_path = _resolve_path(path)
        if not override_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        merged = _merge_dicts(merged, _read_yaml(override_path))
        loaded_from.append(str(override_path))
    else:
        default_candidate = _resolve_path(DEFAULT_CONFIG_PATH)
        if default_candidate.exists():
            merged = _merge_dicts(merged, _read_yaml(default_candidate))
            loaded_from.append(str(default_candidate))
        else:
            packaged_payload = _read_packaged_yaml("ghostsync.config", "default.yaml")
            if packaged_payload is not None:
                merged = _merge_dicts(merged, packaged_payload)
                loaded_from.append("ghostsync.config:default.yaml")

        local_candidate = _resolve_path(LOCAL_CONFIG_PATH)
        if local_candidate.exists():
            merged = _merge_dicts(merged, _read_yaml(local_candidate))
            loaded_from.append(str(local_candidate))

    if not merged:
        raise FileNotFoundError("No configuration data could be loaded.")

    try:
        model = ConfigModel.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    return Config(model=model, raw=merged, loaded_from=tuple(loaded_from))


def _resolve_path(path: Path) -> Path:
    return path if path.is_absolute() else Path.cwd() / path


def _read_yaml(path: Path) -> dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must define a mapping at the top level.")
    return data


def _read_packaged_yaml(package: str, name: str) -> dict[str, Any] | None:
    try:
        content = resources.files(package).joinpath(name).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Packaged configuration {package}:{name} must define a mapping at the top level."
        )
    return data


def _merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries, with override values taking precedence."""

    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
