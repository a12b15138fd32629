"""Interfaces to the host site generator.

The plugin never owns the node store, the file cache or the build-event emitter; it
reaches them through the protocols defined here. `ghostsync.host.store`,
`ghostsync.host.events` and `ghostsync.host.files` provide a small local host used by
the CLI and the tests.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

SCHEMA_FINALIZED_EVENT = "SET_SCHEMA"


@dataclass(slots=True)
class NodeInternal:
    """Host bookkeeping attached to every node."""

    type: str
    content_digest: str
    owner: str | None = None
    media_type: str | None = None


@dataclass(slots=True)
class HostNode:
    """A node as handed to the host node store."""

    id: str
    internal: NodeInternal
    data: dict[str, Any] = field(default_factory=dict)
    links: dict[str, str] = field(default_factory=dict)
    fields: dict[str, Any] = field(default_factory=dict)
    parent: str | None = None
    children: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.internal.type, self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "internal": {
                "type": self.internal.type,
                "content_digest": self.internal.content_digest,
                "owner": self.internal.owner,
                "media_type": self.internal.media_type,
            },
            "data": self.data,
            "links": dict(self.links),
            "fields": dict(self.fields),
        }


class NodeActions(Protocol):
    """Node-store mutations; results may be plain values or awaitables."""

    def create_node(self, node: HostNode) -> Any:
        """Register a node with the store."""

    def delete_node(self, node: HostNode) -> Any:
        """Remove a node from the store."""

    def create_node_field(self, node: HostNode, name: str, value: Any) -> Any:
        """Attach an extra field to an existing node."""


CreateNodeId = Callable[[str], str]
EventHandler = Callable[..., Any]


class Emitter(Protocol):
    """Build-event emitter."""

    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe a handler."""

    def off(self, event: str, handler: EventHandler) -> None:
        """Unsubscribe a handler."""


class RemoteFileLoader(Protocol):
    """Downloads a remote file into the host cache and returns its file node."""

    def __call__(
        self,
        *,
        url: str,
        parent_node_id: str,
        actions: NodeActions,
        create_node_id: CreateNodeId,
        name: str | None = None,
    ) -> Awaitable[HostNode]:
        """Fetch `url` and create a file node owned by `parent_node_id`."""


@dataclass(slots=True)
class SourceContext:
    """Everything a lifecycle hook receives from the host."""

    actions: NodeActions
    create_node_id: CreateNodeId
    emitter: Emitter
    file_loader: RemoteFileLoader | None = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("ghostsync"))


async def resolve(result: T | Awaitable[T]) -> T:
    """Await host action results that are awaitable; pass others through."""

    if inspect.isawaitable(result):
        return await result
    return result
