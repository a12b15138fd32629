"""Map Content API records onto host nodes.

Every function here is pure: the same record always yields an equivalent node, and a
fresh node object is returned on each call so the host can stamp ownership on it.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ghostsync.host.base import HostNode, NodeInternal
from ghostsync.records import Author, ContentRecord, Page, Post, Settings, Tag

TYPE_PREFIX = "Ghost"
POST_TYPE = f"{TYPE_PREFIX}Post"
PAGE_TYPE = f"{TYPE_PREFIX}Page"
TAG_TYPE = f"{TYPE_PREFIX}Tag"
AUTHOR_TYPE = f"{TYPE_PREFIX}Author"
SETTINGS_TYPE = f"{TYPE_PREFIX}Settings"

NODE_TYPES = (POST_TYPE, PAGE_TYPE, TAG_TYPE, AUTHOR_TYPE, SETTINGS_TYPE)

# Only one settings object exists per site and the API does not give it an id.
SETTINGS_ID = "1"
LOCAL_FILE_LINK = "local_file"


def content_digest(data: dict[str, Any], links: dict[str, str] | None = None) -> str:
    """Digest of a node's content, stable across key order."""

    canonical = json.dumps(
        {"data": data, "links": links or {}}, sort_keys=True, separators=(",", ":"), default=str
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _node(node_type: str, node_id: str, data: dict[str, Any], links: dict[str, str]) -> HostNode:
    return HostNode(
        id=node_id,
        internal=NodeInternal(type=node_type, content_digest=content_digest(data, links)),
        data=data,
        links=links,
    )


def _content_node(node_type: str, record: ContentRecord, image: HostNode | None) -> HostNode:
    links = {LOCAL_FILE_LINK: image.id} if image is not None else {}
    return _node(node_type, record.id, record.to_data(), links)


def post_node(post: Post, image: HostNode | None = None) -> HostNode:
    return _content_node(POST_TYPE, post, image)


def page_node(page: Page, image: HostNode | None = None) -> HostNode:
    return _content_node(PAGE_TYPE, page, image)


def tag_node(tag: Tag) -> HostNode:
    data = tag.to_data()
    data["post_count"] = tag.post_count
    return _node(TAG_TYPE, tag.id, data, {})


def author_node(author: Author) -> HostNode:
    data = author.to_data()
    data["post_count"] = author.post_count
    return _node(AUTHOR_TYPE, author.id, data, {})


def settings_node(settings: Settings, node_id: str = SETTINGS_ID) -> HostNode:
    data = settings.to_data()
    data["id"] = node_id
    return _node(SETTINGS_TYPE, node_id, data, {})
