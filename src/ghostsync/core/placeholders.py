"""Temporary placeholder nodes that widen the host's inferred schema.

Before real data arrives the host infers node types from whatever nodes exist. One fully
populated placeholder per content type guarantees every field is known; the placeholders
are deleted as soon as the host reports that its schema is fixed.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any

from ghostsync.host.base import SCHEMA_FINALIZED_EVENT, Emitter, HostNode, NodeActions
from ghostsync.nodes import author_node, page_node, post_node, settings_node, tag_node
from ghostsync.records import Author, NavigationItem, Page, Post, PostCount, Settings, Tag

PLACEHOLDER_ID_PREFIX = "ghost-placeholder-"
_SAMPLE_TIMESTAMP = "2019-01-01T00:00:00.000+00:00"


async def _settle(result: Awaitable[Any], after: tuple[asyncio.Task[Any], ...]) -> Any:
    if after:
        await asyncio.gather(*after)
    return await result


class PlaceholderState(enum.Enum):
    ABSENT = "absent"
    PRESENT = "present"
    RETRACTED = "retracted"


def _sample_tag() -> Tag:
    return Tag(
        id=f"{PLACEHOLDER_ID_PREFIX}tag",
        name="Placeholder",
        slug="placeholder",
        description="Placeholder tag",
        feature_image="https://example.com/tag.png",
        visibility="public",
        meta_title="Placeholder",
        meta_description="Placeholder",
        og_image="https://example.com/og.png",
        og_title="Placeholder",
        og_description="Placeholder",
        twitter_image="https://example.com/twitter.png",
        twitter_title="Placeholder",
        twitter_description="Placeholder",
        codeinjection_head="<style></style>",
        codeinjection_foot="<script></script>",
        canonical_url="https://example.com/tag/placeholder/",
        accent_color="#000000",
        url="https://example.com/tag/placeholder/",
        count=PostCount(posts=1),
    )


def _sample_author() -> Author:
    return Author(
        id=f"{PLACEHOLDER_ID_PREFIX}author",
        name="Placeholder",
        slug="placeholder",
        profile_image="https://example.com/profile.png",
        cover_image="https://example.com/cover.png",
        bio="Placeholder author",
        website="https://example.com",
        location="Placeholder",
        facebook="placeholder",
        twitter="@placeholder",
        meta_title="Placeholder",
        meta_description="Placeholder",
        url="https://example.com/author/placeholder/",
        count=PostCount(posts=1),
    )


def _sample_content(model: type[Post] | type[Page], kind: str) -> Post | Page:
    return model(
        id=f"{PLACEHOLDER_ID_PREFIX}{kind}",
        uuid="00000000-0000-0000-0000-000000000000",
        title="Placeholder",
        slug=f"placeholder-{kind}",
        html="<p>Placeholder</p>",
        plaintext="Placeholder",
        comment_id="placeholder",
        feature_image="https://example.com/feature.png",
        feature_image_alt="Placeholder",
        feature_image_caption="Placeholder",
        featured=False,
        visibility="public",
        created_at=_SAMPLE_TIMESTAMP,
        updated_at=_SAMPLE_TIMESTAMP,
        published_at=_SAMPLE_TIMESTAMP,
        custom_excerpt="Placeholder",
        excerpt="Placeholder",
        reading_time=1,
        codeinjection_head="<style></style>",
        codeinjection_foot="<script></script>",
        custom_template="custom-placeholder",
        canonical_url=f"https://example.com/{kind}/",
        url=f"https://example.com/{kind}/",
        og_image="https://example.com/og.png",
        og_title="Placeholder",
        og_description="Placeholder",
        twitter_image="https://example.com/twitter.png",
        twitter_title="Placeholder",
        twitter_description="Placeholder",
        meta_title="Placeholder",
        meta_description="Placeholder",
        tags=[_sample_tag()],
        authors=[_sample_author()],
        primary_tag=_sample_tag(),
        primary_author=_sample_author(),
    )


def _sample_settings() -> Settings:
    navigation = [NavigationItem(label="Home", url="/")]
    return Settings(
        title="Placeholder",
        description="Placeholder",
        logo="https://example.com/logo.png",
        icon="https://example.com/icon.png",
        accent_color="#000000",
        cover_image="https://example.com/cover.png",
        facebook="placeholder",
        twitter="@placeholder",
        lang="en",
        locale="en",
        timezone="Etc/UTC",
        codeinjection_head="<style></style>",
        codeinjection_foot="<script></script>",
        navigation=navigation,
        secondary_navigation=navigation,
        meta_title="Placeholder",
        meta_description="Placeholder",
        og_image="https://example.com/og.png",
        og_title="Placeholder",
        og_description="Placeholder",
        twitter_image="https://example.com/twitter.png",
        twitter_title="Placeholder",
        twitter_description="Placeholder",
        url="https://example.com/",
    )


def build_placeholder_nodes() -> list[HostNode]:
    """One fully populated node per Ghost content type."""

    return [
        post_node(_sample_content(Post, "post")),
        page_node(_sample_content(Page, "page")),
        tag_node(_sample_tag()),
        author_node(_sample_author()),
        settings_node(_sample_settings(), node_id=f"{PLACEHOLDER_ID_PREFIX}settings"),
    ]


@dataclass(slots=True)
class SchemaPlaceholderManager:
    """Create placeholder nodes and retract them once the schema is finalized.

    Host actions may return awaitables. Inside a running event loop those are scheduled
    as tasks that `flush()` waits for; without a loop they are run to completion before
    the call returns.
    """

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    event: str = SCHEMA_FINALIZED_EVENT
    state: PlaceholderState = PlaceholderState.ABSENT
    nodes: list[HostNode] = field(default_factory=build_placeholder_nodes)
    _actions: NodeActions | None = field(default=None, init=False, repr=False)
    _emitter: Emitter | None = field(default=None, init=False, repr=False)
    _pending: set[asyncio.Task[Any]] = field(default_factory=set, init=False, repr=False)

    def activate(self, actions: NodeActions, emitter: Emitter) -> None:
        """Register the placeholders and wait for the schema-finalized signal."""

        for node in self.nodes:
            # A previous activation left the store's owner stamp on the node.
            node.internal.owner = None
            self._dispatch(actions.create_node(node))

        if self._emitter is not None:
            self._emitter.off(self.event, self._on_schema_finalized)
        self._actions = actions
        self._emitter = emitter
        emitter.on(self.event, self._on_schema_finalized)

        self.state = PlaceholderState.PRESENT
        self.logger.debug("Registered %s schema placeholder node(s)", len(self.nodes))

    def retract(self) -> None:
        """Delete the placeholders and stop listening; safe to call more than once."""

        if self.state is not PlaceholderState.PRESENT:
            return

        actions, emitter = self._actions, self._emitter
        if emitter is not None:
            emitter.off(self.event, self._on_schema_finalized)
        self._actions = None
        self._emitter = None
        self.state = PlaceholderState.RETRACTED

        if actions is not None:
            # Deletions must not overtake creations that are still in flight.
            creating = tuple(self._pending)
            for node in self.nodes:
                self._dispatch(actions.delete_node(node), after=creating)
        self.logger.debug("Retracted %s schema placeholder node(s)", len(self.nodes))

    async def flush(self) -> None:
        """Wait until every scheduled create or delete has finished."""

        while self._pending:
            await asyncio.gather(*tuple(self._pending))

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _dispatch(self, result: Any, after: tuple[asyncio.Task[Any], ...] = ()) -> None:
        if not inspect.isawaitable(result):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(_settle(result, ()))
            return
        task = loop.create_task(_settle(result, after))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_schema_finalized(self, *_: object) -> None:
        self.retract()
