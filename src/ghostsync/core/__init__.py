"""Core ingestion components for ghostsync."""

from .ingest import IngestSummary, Ingestor
from .placeholders import PlaceholderState, SchemaPlaceholderManager

__all__ = ["IngestSummary", "Ingestor", "PlaceholderState", "SchemaPlaceholderManager"]
