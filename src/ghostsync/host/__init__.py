"""Host interfaces and the local host used by the CLI."""

from .base import (
    SCHEMA_FINALIZED_EVENT,
    CreateNodeId,
    Emitter,
    HostNode,
    NodeActions,
    NodeInternal,
    RemoteFileLoader,
    SourceContext,
    resolve,
)
from .events import EventEmitter
from .files import RemoteFileCache
from .store import NodeStore, create_node_id

__all__ = [
    "SCHEMA_FINALIZED_EVENT",
    "CreateNodeId",
    "Emitter",
    "EventEmitter",
    "HostNode",
    "NodeActions",
    "NodeInternal",
    "NodeStore",
    "RemoteFileCache",
    "RemoteFileLoader",
    "SourceContext",
    "create_node_id",
    "resolve",
]
