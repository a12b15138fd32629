"""Logging helpers for ghostsync."""

from .setup import LOGGER_NAME, configure_logging, log_file_path

__all__ = ["LOGGER_NAME", "configure_logging", "log_file_path"]
