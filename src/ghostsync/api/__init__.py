"""Ghost Content API access."""

from .client import RESOURCES, ContentApiClient, Resource, build_params

__all__ = ["RESOURCES", "ContentApiClient", "Resource", "build_params"]
