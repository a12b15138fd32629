"""Tests for the ingestion orchestrator."""

from __future__ import annotations

import asyncio
import logging
from types import SimpleNamespace

import httpx
import pytest

from conftest import API_URL, CONTENT_API_KEY, FakeFileLoader, make_ghost_handler
from ghostsync.api import ContentApiClient
from ghostsync.core import Ingestor
from ghostsync.core.ingest import POST_AND_PAGE_QUERY, TAG_AND_AUTHOR_QUERY
from ghostsync.errors import ContentApiError
from ghostsync.host import create_node_id
from ghostsync.images import ImageSideLoader
from ghostsync.records import RECORD_TYPES

logger = logging.getLogger("ghostsync-test")


class ScriptedClient:
    """Content API stand-in with per-resource delays and failures."""

    def __init__(self, payloads, *, delays=None, failures=None):
        self.options = SimpleNamespace(api_url=API_URL)
        self.payloads = payloads
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls: list[tuple[str, dict]] = []
        self.completed: list[str] = []

    async def browse(self, resource, **query):
        self.calls.append((resource, query))
        await asyncio.sleep(self.delays.get(resource, 0))
        if resource in self.failures:
            raise self.failures[resource]
        self.completed.append(resource)
        raw = self.payloads[resource]
        model = RECORD_TYPES[resource]
        if resource == "settings":
            return model.model_validate(raw)
        return [model.model_validate(item) for item in raw]


def _ingestor(client, store, file_loader=None) -> Ingestor:
    side_loader = None
    if file_loader is not None:
        side_loader = ImageSideLoader(
            actions=store,
            create_node_id=create_node_id,
            file_loader=file_loader,
            logger=logger,
        )
    return Ingestor(client=client, actions=store, logger=logger, side_loader=side_loader)


@pytest.mark.asyncio
async def test_run_creates_every_node(payloads, store):
    file_loader = FakeFileLoader(store=store)
    transport = httpx.MockTransport(make_ghost_handler(payloads))
    options = {"apiUrl": API_URL, "contentApiKey": CONTENT_API_KEY}

    async with ContentApiClient.configure(options, transport=transport) as client:
        summary = await _ingestor(client, store, file_loader).run()

    assert summary.counts == {
        "GhostPost": 2,
        "GhostPage": 1,
        "GhostTag": 1,
        "GhostAuthor": 1,
        "GhostSettings": 1,
    }
    assert summary.images_linked == 2
    assert summary.images_failed == 0
    assert store.get_node("GhostSettings", "1") is not None
    assert store.get_node("GhostTag", payloads["tags"][0]["id"]).data["post_count"] == 7


@pytest.mark.asyncio
async def test_run_uses_expected_query_options(payloads, store):
    client = ScriptedClient(payloads)

    await _ingestor(client, store).run()

    queries = dict(client.calls)
    assert queries["posts"] == POST_AND_PAGE_QUERY
    assert queries["pages"] == POST_AND_PAGE_QUERY
    assert queries["tags"] == TAG_AND_AUTHOR_QUERY
    assert queries["authors"] == TAG_AND_AUTHOR_QUERY
    assert queries["settings"] == {}
    assert POST_AND_PAGE_QUERY == {
        "limit": "all",
        "include": "tags,authors",
        "formats": "html,plaintext",
    }


@pytest.mark.asyncio
async def test_feature_images_are_linked_before_node_creation(payloads, store):
    file_loader = FakeFileLoader(store=store)

    await _ingestor(ScriptedClient(payloads), store, file_loader).run()

    assert file_loader.parent_present_at_call == [False, False]
    for record, node_type in ((payloads["posts"][0], "GhostPost"), (payloads["pages"][0], "GhostPage")):
        node = store.get_node(node_type, record["id"])
        image = store.get_node("File", node.links["local_file"])
        assert image.fields["original_path"] == record["feature_image"]
        assert image.fields["ref_id"] == record["id"]

    plain = store.get_node("GhostPost", payloads["posts"][1]["id"])
    assert "local_file" not in plain.links


@pytest.mark.asyncio
async def test_shared_feature_image_links_each_post_to_its_own_file(payloads, store):
    shared = payloads["posts"][0]["feature_image"]
    payloads["posts"][1]["feature_image"] = shared

    summary = await _ingestor(ScriptedClient(payloads), store, FakeFileLoader()).run()

    assert summary.images_linked == 3
    for record in payloads["posts"]:
        node = store.get_node("GhostPost", record["id"])
        image = store.get_node("File", node.links["local_file"])
        assert image.parent == record["id"]
        assert image.fields["ref_id"] == record["id"]
        assert image.fields["original_path"] == shared


@pytest.mark.asyncio
async def test_image_failure_does_not_fail_run(payloads, store):
    failing_url = payloads["posts"][0]["feature_image"]
    file_loader = FakeFileLoader(fail_urls={failing_url}, store=store)

    summary = await _ingestor(ScriptedClient(payloads), store, file_loader).run()

    post = store.get_node("GhostPost", payloads["posts"][0]["id"])
    assert post is not None
    assert "local_file" not in post.links
    assert summary.images_failed == 1
    assert summary.images_linked == 1
    assert summary.counts["GhostPost"] == 2


@pytest.mark.asyncio
async def test_run_without_side_loader_skips_images(payloads, store):
    summary = await _ingestor(ScriptedClient(payloads), store).run()

    assert summary.images_linked == 0
    assert store.nodes_of_type("File") == []


@pytest.mark.asyncio
async def test_fetch_failure_rejects_and_cancels_pending_fetches(payloads, store):
    client = ScriptedClient(
        payloads,
        delays={"tags": 0.05, "authors": 0.05, "settings": 0.05, "pages": 0.05},
        failures={"posts": ContentApiError("HTTP 500 for posts", resource="posts")},
    )

    with pytest.raises(ContentApiError, match="posts"):
        await _ingestor(client, store).run()

    assert len(store) == 0
    assert client.completed == []

    # Nothing resumes later in the background.
    await asyncio.sleep(0.1)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_fetch_failure_never_creates_posts_or_pages(payloads, store):
    client = ScriptedClient(
        payloads,
        delays={"settings": 0.02},
        failures={"settings": ContentApiError("HTTP 404 for settings", resource="settings")},
    )

    with pytest.raises(ContentApiError):
        await _ingestor(client, store).run()

    assert store.nodes_of_type("GhostPost") == []
    assert store.nodes_of_type("GhostPage") == []


@pytest.mark.asyncio
async def test_http_failure_propagates_from_real_client(payloads, store):
    transport = httpx.MockTransport(make_ghost_handler(payloads, failures={"tags": 500}))
    options = {"apiUrl": API_URL, "contentApiKey": CONTENT_API_KEY}

    async with ContentApiClient.configure(options, transport=transport) as client:
        with pytest.raises(ContentApiError) as excinfo:
            await _ingestor(client, store).run()

    assert excinfo.value.status_code == 500
    assert store.nodes_of_type("GhostPost") == []


@pytest.mark.asyncio
async def test_empty_site(payloads, store):
    payloads.update(posts=[], pages=[], tags=[], authors=[])

    summary = await _ingestor(ScriptedClient(payloads), store).run()

    assert summary.counts == {"GhostSettings": 1}
    assert summary.total_nodes == 1
