"""Lifecycle hooks exposed to the host site generator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from ghostsync.api import ContentApiClient
from ghostsync.config.options import GhostSourceOptions
from ghostsync.core import IngestSummary, Ingestor, SchemaPlaceholderManager
from ghostsync.host.base import SourceContext
from ghostsync.images import ImageSideLoader


@dataclass(slots=True)
class GhostSourcePlugin:
    """Source plugin; owns the placeholder manager shared by both hooks."""

    timeout: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None
    placeholders: SchemaPlaceholderManager = field(default_factory=SchemaPlaceholderManager)

    async def source_nodes(
        self,
        context: SourceContext,
        options: Mapping[str, Any] | GhostSourceOptions,
    ) -> IngestSummary:
        """Fetch all Ghost content and create nodes for it.

        Options are validated before anything else happens, so a configuration error
        leaves the host untouched. Any failed browse call propagates to the host after
        the schema placeholders have been retracted.
        """

        source_options = GhostSourceOptions.from_options(options)
        logger = context.logger

        self.placeholders.logger = logger
        self.placeholders.activate(context.actions, context.emitter)
        await self.placeholders.flush()

        side_loader = None
        if context.file_loader is not None:
            side_loader = ImageSideLoader(
                actions=context.actions,
                create_node_id=context.create_node_id,
                file_loader=context.file_loader,
                logger=logger,
            )
        else:
            logger.info("No file loader available; feature images will not be mirrored.")

        try:
            async with ContentApiClient(
                source_options, timeout=self.timeout, transport=self.transport
            ) as client:
                ingestor = Ingestor(
                    client=client,
                    actions=context.actions,
                    logger=logger,
                    side_loader=side_loader,
                )
                return await ingestor.run()
        except Exception:
            self.placeholders.retract()
            await self.placeholders.flush()
            raise

    async def on_pre_extract_queries(self, context: SourceContext) -> None:
        """Re-register placeholders before the host extracts queries."""

        self.placeholders.logger = context.logger
        self.placeholders.activate(context.actions, context.emitter)
        await self.placeholders.flush()


plugin = GhostSourcePlugin()


async def source_nodes(
    context: SourceContext, options: Mapping[str, Any] | GhostSourceOptions
) -> IngestSummary:
    return await plugin.source_nodes(context, options)


async def on_pre_extract_queries(context: SourceContext) -> None:
    await plugin.on_pre_extract_queries(context)
