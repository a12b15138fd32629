"""In-memory node store implementing the host node actions."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ghostsync.errors import NodeOwnershipError
from ghostsync.host.base import HostNode

NODE_ID_NAMESPACE = uuid.UUID("6f1c3a2e-4b0d-5e8f-9a17-2c5d8e4f7b31")


def create_node_id(seed: str) -> str:
    """Derive a stable node id from a seed string."""

    return str(uuid.uuid5(NODE_ID_NAMESPACE, seed))


@dataclass(slots=True)
class NodeStore:
    """Node store keyed by (type, id) that records which plugin owns each node."""

    owner: str = "ghostsync"
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    _nodes: dict[tuple[str, str], HostNode] = field(default_factory=dict, init=False)

    def create_node(self, node: HostNode) -> HostNode:
        if node.internal.owner is not None:
            raise NodeOwnershipError(
                f"Node {node.internal.type}:{node.id} already has owner "
                f"{node.internal.owner!r}; owner is set by the store."
            )
        node.internal.owner = self.owner
        if node.key in self._nodes:
            self.logger.debug("Replacing node %s:%s", node.internal.type, node.id)
        self._nodes[node.key] = node
        # Parents and children may arrive in either order.
        for candidate in self._nodes.values():
            if candidate.parent == node.id and candidate.id not in node.children:
                node.children.append(candidate.id)
            if node.parent is not None and candidate.id == node.parent:
                if node.id not in candidate.children:
                    candidate.children.append(node.id)
        return node

    def delete_node(self, node: HostNode) -> bool:
        removed = self._nodes.pop(node.key, None)
        if removed is None:
            return False
        for candidate in self._nodes.values():
            if removed.id in candidate.children:
                candidate.children.remove(removed.id)
        return True

    def create_node_field(self, node: HostNode, name: str, value: Any) -> None:
        stored = self._nodes.get(node.key)
        if stored is None:
            raise KeyError(f"Cannot add field {name!r} to unknown node {node.internal.type}:{node.id}")
        stored.fields[name] = value
        if stored is not node:
            node.fields[name] = value

    def get_node(self, node_type: str, node_id: str) -> HostNode | None:
        return self._nodes.get((node_type, node_id))

    def get_node_by_id(self, node_id: str) -> HostNode | None:
        for node in self._nodes.values():
            if node.id == node_id:
                return node
        return None

    def nodes_of_type(self, node_type: str) -> list[HostNode]:
        return [node for node in self._nodes.values() if node.internal.type == node_type]

    def count_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for node_type, _ in self._nodes:
            counts[node_type] = counts.get(node_type, 0) + 1
        return counts

    def __iter__(self) -> Iterator[HostNode]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)
