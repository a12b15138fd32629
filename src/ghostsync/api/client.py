"""Async client for the Ghost Content API."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from ghostsync import get_version
from ghostsync.config.options import GhostSourceOptions
from ghostsync.errors import ContentApiError
from ghostsync.records import RECORD_TYPES, Author, Page, Post, Settings, Tag

RESOURCES = ("posts", "pages", "tags", "authors", "settings")

logger = logging.getLogger(__name__)


def _join(value: str | Sequence[str] | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return ",".join(value)


def build_params(query: Mapping[str, Any]) -> dict[str, str]:
    """Flatten browse options into query parameters."""

    params: dict[str, str] = {}
    for key, value in query.items():
        if value is None:
            continue
        if key in {"include", "formats", "fields", "order"}:
            params[key] = _join(value) or ""
        else:
            params[key] = str(value)
    return params


def _error_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        message = errors[0].get("message")
        context = errors[0].get("context")
        if message and context:
            return f"{message} {context}"
        return message
    return None


@dataclass(slots=True)
class Resource:
    """Bound browse shortcut, e.g. `client.posts.browse(limit="all")`."""

    client: ContentApiClient
    name: str

    async def browse(self, **query: Any) -> Any:
        return await self.client.browse(self.name, **query)


class ContentApiClient:
    """Browse posts, pages, tags, authors and settings from one Ghost site."""

    def __init__(
        self,
        options: GhostSourceOptions,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options = options
        headers = {"User-Agent": f"ghostsync/{get_version()}"}
        if not options.uses_versioned_path:
            headers["Accept-Version"] = options.api_version
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def configure(
        cls,
        options: Mapping[str, Any] | GhostSourceOptions,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ContentApiClient:
        """Validate connection options and build a client; raises ConfigurationError."""

        return cls(GhostSourceOptions.from_options(options), timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        if self.options.uses_versioned_path:
            return f"{self.options.api_url}/ghost/api/{self.options.api_version}/content/"
        return f"{self.options.api_url}/ghost/api/content/"

    @property
    def posts(self) -> Resource:
        return Resource(self, "posts")

    @property
    def pages(self) -> Resource:
        return Resource(self, "pages")

    @property
    def tags(self) -> Resource:
        return Resource(self, "tags")

    @property
    def authors(self) -> Resource:
        return Resource(self, "authors")

    @property
    def settings(self) -> Resource:
        return Resource(self, "settings")

    async def browse_posts(self, **query: Any) -> list[Post]:
        return await self.browse("posts", **query)

    async def browse_pages(self, **query: Any) -> list[Page]:
        return await self.browse("pages", **query)

    async def browse_tags(self, **query: Any) -> list[Tag]:
        return await self.browse("tags", **query)

    async def browse_authors(self, **query: Any) -> list[Author]:
        return await self.browse("authors", **query)

    async def browse_settings(self, **query: Any) -> Settings:
        return await self.browse("settings", **query)

    async def browse(self, resource: str, **query: Any) -> Any:
        """Fetch one resource collection (or the settings object)."""

        if resource not in RECORD_TYPES:
            raise ValueError(f"Unknown Content API resource: {resource!r}")

        params = build_params(query)
        logger.debug("Browsing %s%s/ params=%s", self.base_url, resource, params)
        params["key"] = self.options.content_api_key

        try:
            response = await self._http.get(f"{resource}/", params=params)
        except httpx.HTTPError as exc:
            raise ContentApiError(
                f"Request for {resource} failed: {exc.__class__.__name__}: {exc}",
                resource=resource,
            ) from exc

        if response.status_code >= 400:
            detail = _error_message(response) or response.reason_phrase
            raise ContentApiError(
                f"Content API returned HTTP {response.status_code} for {resource}: {detail}",
                resource=resource,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ContentApiError(
                f"Content API returned invalid JSON for {resource}",
                resource=resource,
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict) or resource not in payload:
            raise ContentApiError(
                f"Content API response is missing the {resource!r} key",
                resource=resource,
                status_code=response.status_code,
            )

        return self._parse(resource, payload[resource])

    def _parse(self, resource: str, raw: Any) -> Any:
        model = RECORD_TYPES[resource]
        try:
            if resource == "settings":
                return model.model_validate(raw)
            if not isinstance(raw, list):
                raise ContentApiError(f"Expected a list of {resource}", resource=resource)
            return [model.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise ContentApiError(
                f"Content API returned malformed {resource}: {exc}", resource=resource
            ) from exc

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ContentApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
