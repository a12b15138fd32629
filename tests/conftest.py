"""Shared fixtures: canned Content API payloads and a fake Ghost server."""

from __future__ import annotations

import asyncio
import copy
import json
from collections.abc import Callable, Mapping
from typing import Any

import httpx
import pytest

from ghostsync.errors import RemoteFileError
from ghostsync.host import HostNode, NodeInternal, NodeStore, SourceContext, create_node_id, resolve

API_URL = "https://demo.ghost.io"
CONTENT_API_KEY = "0123456789abcdef0123456789"

TAG = {
    "id": "5c7ece47da174000c0c5c6e1",
    "name": "Getting Started",
    "slug": "getting-started",
    "description": None,
    "feature_image": None,
    "visibility": "public",
    "url": "https://demo.ghost.io/tag/getting-started/",
}
AUTHOR = {
    "id": "5951f5fca366002ebd5dbef7",
    "name": "Ghost",
    "slug": "ghost",
    "profile_image": "https://demo.ghost.io/content/images/ghost.png",
    "bio": "The professional publishing platform",
    "url": "https://demo.ghost.io/author/ghost/",
}

POSTS = [
    {
        "id": "5c7ece47da174000c0c5c6d7",
        "uuid": "3a033ce7-9e2d-4b3b-a9ef-76887efacc7f",
        "title": "Welcome",
        "slug": "welcome",
        "html": "<p>Welcome to Ghost</p>",
        "plaintext": "Welcome to Ghost",
        "feature_image": "https://static.ghost.org/welcome.jpg",
        "featured": True,
        "published_at": "2019-03-05T19:30:15.000+00:00",
        "reading_time": 2,
        "tags": [TAG],
        "authors": [AUTHOR],
        "primary_tag": TAG,
        "primary_author": AUTHOR,
        "url": "https://demo.ghost.io/welcome/",
    },
    {
        "id": "5c7ece47da174000c0c5c6d8",
        "uuid": "b6e7a1b2-4f3c-4d55-9a6f-0e2c1a7b8d90",
        "title": "The Editor",
        "slug": "the-editor",
        "html": "<p>Writing in Ghost</p>",
        "plaintext": "Writing in Ghost",
        "feature_image": None,
        "tags": [],
        "authors": [AUTHOR],
        "primary_author": AUTHOR,
        "url": "https://demo.ghost.io/the-editor/",
    },
]
PAGES = [
    {
        "id": "5c7ece47da174000c0c5c6d9",
        "uuid": "7f8e9d0c-1b2a-4c3d-8e9f-0a1b2c3d4e5f",
        "title": "About",
        "slug": "about",
        "html": "<p>About this site</p>",
        "plaintext": "About this site",
        "feature_image": "https://static.ghost.org/about.jpg",
        "tags": [],
        "authors": [AUTHOR],
        "url": "https://demo.ghost.io/about/",
    }
]
TAGS = [dict(TAG, count={"posts": 7})]
AUTHORS = [dict(AUTHOR, count={"posts": 3})]
SETTINGS = {
    "title": "Ghost",
    "description": "The professional publishing platform",
    "lang": "en",
    "timezone": "Etc/UTC",
    "navigation": [{"label": "Home", "url": "/"}],
    "secondary_navigation": [],
    "url": "https://demo.ghost.io/",
}


def ghost_payloads() -> dict[str, Any]:
    return copy.deepcopy(
        {
            "posts": POSTS,
            "pages": PAGES,
            "tags": TAGS,
            "authors": AUTHORS,
            "settings": SETTINGS,
        }
    )


def make_ghost_handler(
    payloads: Mapping[str, Any],
    *,
    failures: Mapping[str, int] | None = None,
    requests: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Build a MockTransport handler that serves Content API resources."""

    failures = failures or {}

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        resource = request.url.path.rstrip("/").rsplit("/", 1)[-1]
        if resource in failures:
            return httpx.Response(
                failures[resource],
                json={"errors": [{"message": "Resource not found", "type": "NotFoundError"}]},
            )
        if resource not in payloads:
            return httpx.Response(404, json={"errors": [{"message": "Unknown resource"}]})
        body: dict[str, Any] = {resource: payloads[resource]}
        if resource != "settings":
            body["meta"] = {"pagination": {"page": 1, "limit": "all", "pages": 1}}
        else:
            body["meta"] = {}
        return httpx.Response(200, content=json.dumps(body), headers={"content-type": "application/json"})

    return handler


class FakeFileLoader:
    """Stands in for the host file cache; records calls and can fail per URL."""

    def __init__(self, fail_urls: set[str] | None = None, store: NodeStore | None = None) -> None:
        self.fail_urls = fail_urls or set()
        self.store = store
        self.calls: list[tuple[str, str]] = []
        self.parent_present_at_call: list[bool] = []

    async def __call__(self, *, url, parent_node_id, actions, create_node_id, name=None):
        self.calls.append((url, parent_node_id))
        if self.store is not None:
            self.parent_present_at_call.append(self.store.get_node_by_id(parent_node_id) is not None)
        if url in self.fail_urls:
            raise RemoteFileError(f"HTTP 404 for {url}")
        node = HostNode(
            id=create_node_id(f"{parent_node_id}:{url}"),
            parent=parent_node_id,
            internal=NodeInternal(type="File", content_digest="digest", media_type="image/jpeg"),
            data={"url": url, "name": name},
        )
        await resolve(actions.create_node(node))
        return node


class AsyncNodeActions:
    """Node actions returning coroutines, as an async host bridge would."""

    def __init__(self, store: NodeStore) -> None:
        self.store = store

    async def create_node(self, node):
        await asyncio.sleep(0)
        return self.store.create_node(node)

    async def delete_node(self, node):
        await asyncio.sleep(0)
        return self.store.delete_node(node)

    async def create_node_field(self, node, name, value):
        await asyncio.sleep(0)
        return self.store.create_node_field(node, name, value)


@pytest.fixture
def payloads() -> dict[str, Any]:
    return ghost_payloads()


@pytest.fixture
def plugin_options() -> dict[str, str]:
    return {"apiUrl": API_URL, "contentApiKey": CONTENT_API_KEY, "apiVersion": "v3"}


@pytest.fixture
def store() -> NodeStore:
    return NodeStore(owner="ghostsync")


@pytest.fixture
def emitter():
    from ghostsync.host import EventEmitter

    return EventEmitter()


@pytest.fixture
def make_context(store, emitter):
    def _make(file_loader=None) -> SourceContext:
        return SourceContext(
            actions=store,
            create_node_id=create_node_id,
            emitter=emitter,
            file_loader=file_loader,
        )

    return _make
