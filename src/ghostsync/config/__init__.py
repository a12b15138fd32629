"""Configuration utilities for ghostsync."""

from .loader import Config, GhostSettings, HttpSettings, OutputSettings, load_config
from .options import GhostSourceOptions

__all__ = [
    "Config",
    "GhostSettings",
    "GhostSourceOptions",
    "HttpSettings",
    "OutputSettings",
    "load_config",
]
