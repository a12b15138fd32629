"""Ghost Content API source plugin for static-site node graphs."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from importlib import metadata
from pathlib import Path

DISTRIBUTION_NAME = "ghostsync"


def _version_from_checkout(start: Path) -> str | None:
    for candidate in (start, *start.parents):
        pyproject = candidate / "pyproject.toml"
        if not pyproject.is_file():
            continue
        try:
            with pyproject.open("rb") as handle:
                project = tomllib.load(handle).get("project")
        except (OSError, tomllib.TOMLDecodeError):  # pragma: no cover - filesystem errors
            return None
        if not isinstance(project, dict) or project.get("name") != DISTRIBUTION_NAME:
            return None
        version = project.get("version")
        if isinstance(version, str) and version.strip():
            return version.strip()
        return None
    return None


@lru_cache(maxsize=1)
def get_version() -> str:
    """Return the installed ghostsync version.

    A source checkout reads `[project].version` from `pyproject.toml`; an installed
    package falls back to distribution metadata.
    """

    version = _version_from_checkout(Path(__file__).resolve().parent)
    if version is not None:
        return version

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError as exc:  # pragma: no cover - occurs in dev
        raise RuntimeError("Unable to determine ghostsync version.") from exc


__all__ = ["DISTRIBUTION_NAME", "get_version"]
