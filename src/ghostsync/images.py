"""Feature image side-loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ghostsync.host.base import CreateNodeId, HostNode, NodeActions, RemoteFileLoader, resolve
from ghostsync.records import ContentRecord

ORIGINAL_PATH_FIELD = "original_path"
REF_ID_FIELD = "ref_id"


@dataclass(slots=True)
class ImageSideLoader:
    """Mirror a post or page feature image as a cached file node."""

    actions: NodeActions
    create_node_id: CreateNodeId
    file_loader: RemoteFileLoader
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    async def load(self, record: ContentRecord) -> HostNode | None:
        """Return the file node for the record's feature image, or None if unavailable.

        Failures are logged and swallowed: a missing image must never stop the owning
        record from being created. A file node that cannot be annotated is deleted again.
        """

        url = record.feature_image
        if not url:
            return None

        try:
            file_node = await self.file_loader(
                url=url,
                parent_node_id=record.id,
                actions=self.actions,
                create_node_id=self.create_node_id,
                name="image",
            )
            if file_node is None:
                raise ValueError("file loader returned no node")
        except Exception as exc:  # pylint: disable=broad-except
            self.logger.warning(
                "Could not load feature image %s for %s: %s", url, record.id, exc
            )
            return None

        try:
            await resolve(self.actions.create_node_field(file_node, ORIGINAL_PATH_FIELD, url))
            await resolve(self.actions.create_node_field(file_node, REF_ID_FIELD, record.id))
        except Exception as exc:  # pylint: disable=broad-except
            self.logger.warning(
                "Could not annotate feature image %s for %s: %s", url, record.id, exc
            )
            await resolve(self.actions.delete_node(file_node))
            return None

        self.logger.debug("Linked feature image %s to %s as %s", url, record.id, file_node.id)
        return file_node
