"""Tests for the schema placeholder manager."""

from __future__ import annotations

import pytest

from conftest import AsyncNodeActions
from ghostsync.core import PlaceholderState, SchemaPlaceholderManager
from ghostsync.host import SCHEMA_FINALIZED_EVENT, HostNode, NodeInternal
from ghostsync.nodes import NODE_TYPES, SETTINGS_ID


class CountingStore:
    """Wraps a NodeStore to count delete calls."""

    def __init__(self, store):
        self.store = store
        self.deleted: list[tuple[str, str]] = []

    def create_node(self, node):
        return self.store.create_node(node)

    def delete_node(self, node):
        self.deleted.append(node.key)
        return self.store.delete_node(node)

    def create_node_field(self, node, name, value):
        return self.store.create_node_field(node, name, value)


def test_activate_creates_one_placeholder_per_type(store, emitter):
    manager = SchemaPlaceholderManager()

    manager.activate(store, emitter)

    assert manager.state is PlaceholderState.PRESENT
    assert store.count_by_type() == {node_type: 1 for node_type in NODE_TYPES}
    assert emitter.listener_count(SCHEMA_FINALIZED_EVENT) == 1
    assert all(node.internal.owner == "ghostsync" for node in store)


def test_placeholders_carry_every_declared_field(store, emitter):
    manager = SchemaPlaceholderManager()
    manager.activate(store, emitter)

    post = store.nodes_of_type("GhostPost")[0]
    tag = store.nodes_of_type("GhostTag")[0]

    assert all(value is not None for value in post.data.values())
    assert tag.data["post_count"] == 1


def test_schema_signal_retracts_placeholders_once(store, emitter):
    counting = CountingStore(store)
    manager = SchemaPlaceholderManager()
    manager.activate(counting, emitter)

    assert emitter.emit(SCHEMA_FINALIZED_EVENT) == 1
    assert len(store) == 0
    assert manager.state is PlaceholderState.RETRACTED
    assert len(counting.deleted) == len(NODE_TYPES)

    assert emitter.emit(SCHEMA_FINALIZED_EVENT) == 0
    assert len(counting.deleted) == len(NODE_TYPES)
    assert emitter.listener_count(SCHEMA_FINALIZED_EVENT) == 0


def test_reactivation_after_retraction_does_not_raise(store, emitter):
    manager = SchemaPlaceholderManager()

    manager.activate(store, emitter)
    emitter.emit(SCHEMA_FINALIZED_EVENT)
    manager.activate(store, emitter)

    assert manager.state is PlaceholderState.PRESENT
    assert len(store) == len(NODE_TYPES)

    emitter.emit(SCHEMA_FINALIZED_EVENT)
    assert len(store) == 0


def test_activating_twice_before_signal_keeps_single_listener(store, emitter):
    counting = CountingStore(store)
    manager = SchemaPlaceholderManager()

    manager.activate(counting, emitter)
    manager.activate(counting, emitter)

    assert emitter.listener_count(SCHEMA_FINALIZED_EVENT) == 1
    assert len(store) == len(NODE_TYPES)

    emitter.emit(SCHEMA_FINALIZED_EVENT)
    assert len(counting.deleted) == len(NODE_TYPES)
    assert len(store) == 0


def test_retraction_leaves_real_settings_node(store, emitter):
    manager = SchemaPlaceholderManager()
    manager.activate(store, emitter)
    real = HostNode(
        id=SETTINGS_ID,
        internal=NodeInternal(type="GhostSettings", content_digest="real"),
        data={"title": "Real site"},
    )
    store.create_node(real)

    emitter.emit(SCHEMA_FINALIZED_EVENT)

    assert store.get_node("GhostSettings", SETTINGS_ID) is real


def test_retract_without_activation_is_noop(store):
    manager = SchemaPlaceholderManager()

    manager.retract()

    assert manager.state is PlaceholderState.ABSENT


@pytest.mark.asyncio
async def test_async_actions_are_awaited_by_flush(store, emitter):
    manager = SchemaPlaceholderManager()

    manager.activate(AsyncNodeActions(store), emitter)
    assert manager.pending == len(NODE_TYPES)
    await manager.flush()

    assert manager.pending == 0
    assert len(store) == len(NODE_TYPES)

    emitter.emit(SCHEMA_FINALIZED_EVENT)
    await manager.flush()

    assert len(store) == 0
    assert manager.state is PlaceholderState.RETRACTED


@pytest.mark.asyncio
async def test_signal_during_pending_creation_leaves_nothing_behind(store, emitter):
    manager = SchemaPlaceholderManager()

    manager.activate(AsyncNodeActions(store), emitter)
    emitter.emit(SCHEMA_FINALIZED_EVENT)
    await manager.flush()

    assert len(store) == 0


def test_async_actions_outside_event_loop_run_to_completion(store, emitter):
    manager = SchemaPlaceholderManager()

    manager.activate(AsyncNodeActions(store), emitter)

    assert manager.pending == 0
    assert len(store) == len(NODE_TYPES)

    emitter.emit(SCHEMA_FINALIZED_EVENT)

    assert len(store) == 0
