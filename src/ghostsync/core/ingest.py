"""Fetch every Ghost content type and materialize it as host nodes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ghostsync.api import ContentApiClient
from ghostsync.host.base import HostNode, NodeActions, resolve
from ghostsync.images import ImageSideLoader
from ghostsync.nodes import author_node, page_node, post_node, settings_node, tag_node
from ghostsync.records import Author, ContentRecord, Page, Post, Settings, Tag

R = TypeVar("R", bound=ContentRecord)

POST_AND_PAGE_QUERY: dict[str, Any] = {
    "limit": "all",
    "include": "tags,authors",
    "formats": "html,plaintext",
}
TAG_AND_AUTHOR_QUERY: dict[str, Any] = {
    "limit": "all",
    "include": "count.posts",
}


@dataclass(slots=True)
class IngestSummary:
    """Outcome of one ingestion run."""

    counts: dict[str, int] = field(default_factory=dict)
    images_linked: int = 0
    images_failed: int = 0
    elapsed_seconds: float = 0.0

    @property
    def total_nodes(self) -> int:
        return sum(self.counts.values())


@dataclass(slots=True)
class Ingestor:
    """Drive the five browse calls and create one node per record."""

    client: ContentApiClient
    actions: NodeActions
    logger: logging.Logger
    side_loader: ImageSideLoader | None = None
    _summary: IngestSummary = field(default_factory=IngestSummary, init=False)

    async def run(self) -> IngestSummary:
        """Ingest everything; raises ContentApiError if any browse call fails."""

        self._summary = IngestSummary()
        started = time.monotonic()
        self.logger.info(
            "Fetching posts, pages, tags, authors and settings from %s",
            self.client.options.api_url,
        )

        fetch_posts = asyncio.create_task(self.client.browse("posts", **POST_AND_PAGE_QUERY))
        fetch_pages = asyncio.create_task(self.client.browse("pages", **POST_AND_PAGE_QUERY))
        fetch_tags = asyncio.create_task(
            self._fetch_and_create("tags", TAG_AND_AUTHOR_QUERY, self._create_tags)
        )
        fetch_authors = asyncio.create_task(
            self._fetch_and_create("authors", TAG_AND_AUTHOR_QUERY, self._create_authors)
        )
        fetch_settings = asyncio.create_task(
            self._fetch_and_create("settings", {}, self._create_settings)
        )
        tasks = [fetch_posts, fetch_pages, fetch_tags, fetch_authors, fetch_settings]

        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        posts: list[Post] = fetch_posts.result()
        pages: list[Page] = fetch_pages.result()
        self.logger.info("Fetched %s post(s) and %s page(s)", len(posts), len(pages))

        await asyncio.gather(
            *(self._create_content(post, post_node) for post in posts),
            *(self._create_content(page, page_node) for page in pages),
        )

        self._summary.elapsed_seconds = time.monotonic() - started
        self.logger.info(
            "Created %s node(s) %s; images linked=%s failed=%s",
            self._summary.total_nodes,
            dict(sorted(self._summary.counts.items())),
            self._summary.images_linked,
            self._summary.images_failed,
        )
        return self._summary

    async def _fetch_and_create(
        self,
        resource: str,
        query: dict[str, Any],
        create: Callable[[Any], Awaitable[None]],
    ) -> None:
        result = await self.client.browse(resource, **query)
        await create(result)

    async def _create_tags(self, tags: Iterable[Tag]) -> None:
        for tag in tags:
            await self._create(tag_node(tag))

    async def _create_authors(self, authors: Iterable[Author]) -> None:
        for author in authors:
            await self._create(author_node(author))

    async def _create_settings(self, settings: Settings) -> None:
        await self._create(settings_node(settings))

    async def _create_content(
        self,
        record: R,
        mapper: Callable[[R, HostNode | None], HostNode],
    ) -> None:
        image: HostNode | None = None
        if record.feature_image and self.side_loader is not None:
            image = await self.side_loader.load(record)
            if image is None:
                self._summary.images_failed += 1
            else:
                self._summary.images_linked += 1
        await self._create(mapper(record, image))

    async def _create(self, node: HostNode) -> None:
        await resolve(self.actions.create_node(node))
        counts = self._summary.counts
        counts[node.internal.type] = counts.get(node.internal.type, 0) + 1

