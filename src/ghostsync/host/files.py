"""Remote file download and cache for the local host."""

from __future__ import annotations

import hashlib
import json
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

import httpx

from ghostsync import get_version
from ghostsync.errors import RemoteFileError
from ghostsync.host.base import CreateNodeId, HostNode, NodeActions, NodeInternal, resolve

MANIFEST_NAME = "manifest.json"
FILE_NODE_TYPE = "File"

# Image types the mimetypes module maps poorly or not at all
_MIME_EXTENSIONS: Dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
    "image/avif": ".avif",
    "image/heic": ".heic",
}


def _extension_from_content_type(content_type: Optional[str], url: str) -> str:
    """Determine file extension from Content-Type header, falling back to URL path."""
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        ext = _MIME_EXTENSIONS.get(mime)
        if ext:
            return ext
        guessed = mimetypes.guess_extension(mime)
        if guessed:
            return guessed

    basename = Path(urlparse(url).path).name
    if "." in basename:
        ext = "." + basename.rsplit(".", 1)[-1].lower()
        if len(ext) <= 6:
            return ext

    return ".bin"


def _name_from_url(url: str) -> str:
    stem = Path(unquote(urlparse(url).path)).stem
    return stem or "file"


@dataclass(slots=True)
class CachedFile:
    """Manifest entry for a downloaded URL."""

    path: str
    checksum: str
    content_type: Optional[str]
    size: int
    etag: Optional[str] = None


@dataclass(slots=True)
class RemoteFileCache:
    """Downloads remote files into a content-addressed cache and creates `File` nodes."""

    cache_dir: Path
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    timeout: float = 30.0
    max_size_bytes: int = 50_000_000
    transport: httpx.AsyncBaseTransport | None = None
    _manifest: Dict[str, CachedFile] | None = field(default=None, init=False, repr=False)

    async def __call__(
        self,
        *,
        url: str,
        parent_node_id: str,
        actions: NodeActions,
        create_node_id: CreateNodeId,
        name: str | None = None,
    ) -> HostNode:
        return await self.create_remote_file_node(
            url=url,
            parent_node_id=parent_node_id,
            actions=actions,
            create_node_id=create_node_id,
            name=name,
        )

    async def create_remote_file_node(
        self,
        *,
        url: str,
        parent_node_id: str,
        actions: NodeActions,
        create_node_id: CreateNodeId,
        name: str | None = None,
    ) -> HostNode:
        """Download `url` (or reuse the cached copy) and register a `File` node for it.

        The node id is seeded with the parent id, so records sharing an image each get
        their own node while the cached bytes are shared.
        """

        if not url or urlparse(url).scheme not in {"http", "https"}:
            raise RemoteFileError(f"Unsupported remote file URL: {url!r}")

        cached = await self.download(url)
        path = Path(cached.path)
        node = HostNode(
            id=create_node_id(f"{parent_node_id}:{url}"),
            parent=parent_node_id,
            internal=NodeInternal(
                type=FILE_NODE_TYPE,
                content_digest=cached.checksum,
                media_type=cached.content_type,
            ),
            data={
                "url": url,
                "name": name or _name_from_url(url),
                "absolute_path": str(path.resolve()),
                "relative_path": path.name,
                "extension": path.suffix.lstrip("."),
                "size": cached.size,
                "checksum": cached.checksum,
            },
        )
        await resolve(actions.create_node(node))
        return node

    async def download(self, url: str) -> CachedFile:
        """Stream-download a URL into the cache, revalidating with its ETag when known."""

        manifest = self._load_manifest()
        previous = manifest.get(url)
        headers = {"User-Agent": f"ghostsync/{get_version()}"}
        if previous is not None and previous.etag and Path(previous.path).exists():
            headers["If-None-Match"] = previous.etag

        try:
            async with httpx.AsyncClient(
                follow_redirects=True, timeout=self.timeout, transport=self.transport
            ) as client:
                async with client.stream("GET", url, headers=headers) as response:
                    if response.status_code == 304 and previous is not None:
                        self.logger.debug("Cache hit for %s", url)
                        return previous
                    if response.status_code >= 400:
                        raise RemoteFileError(f"HTTP {response.status_code} for {url}")

                    content_type = response.headers.get("content-type")
                    ext = _extension_from_content_type(content_type, url)

                    hasher = hashlib.sha256()
                    chunks: list[bytes] = []
                    total_bytes = 0

                    async for chunk in response.aiter_bytes(chunk_size=65536):
                        total_bytes += len(chunk)
                        if total_bytes > self.max_size_bytes:
                            raise RemoteFileError(
                                f"Response exceeds {self.max_size_bytes} bytes for {url}"
                            )
                        hasher.update(chunk)
                        chunks.append(chunk)

                    checksum = hasher.hexdigest()
                    dest = self.cache_dir / f"{checksum}{ext}"
                    self.cache_dir.mkdir(parents=True, exist_ok=True)
                    if not dest.exists():
                        dest.write_bytes(b"".join(chunks))

                    entry = CachedFile(
                        path=str(dest),
                        checksum=checksum,
                        content_type=content_type,
                        size=total_bytes,
                        etag=response.headers.get("etag"),
                    )
            manifest[url] = entry
            self._save_manifest()
        except RemoteFileError:
            raise
        except httpx.TimeoutException as exc:
            raise RemoteFileError(f"Timeout fetching {url}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RemoteFileError(f"HTTP error for {url}: {exc}") from exc
        except OSError as exc:
            raise RemoteFileError(f"IO error saving {url}: {exc}") from exc

        self.logger.debug("Cached %s as %s (%s bytes)", url, Path(entry.path).name, entry.size)
        return entry

    def _load_manifest(self) -> Dict[str, CachedFile]:
        if self._manifest is not None:
            return self._manifest
        manifest: Dict[str, CachedFile] = {}
        path = self.cache_dir / MANIFEST_NAME
        if path.exists():
            try:
                payload: Any = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                self.logger.warning("Ignoring unreadable cache manifest %s: %s", path, exc)
                payload = {}
            if isinstance(payload, dict):
                for url, raw in payload.items():
                    try:
                        manifest[url] = CachedFile(**raw)
                    except TypeError:
                        continue
        self._manifest = manifest
        return manifest

    def _save_manifest(self) -> None:
        manifest = self._manifest or {}
        payload = {
            url: {
                "path": entry.path,
                "checksum": entry.checksum,
                "content_type": entry.content_type,
                "size": entry.size,
                "etag": entry.etag,
            }
            for url, entry in manifest.items()
        }
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        (self.cache_dir / MANIFEST_NAME).write_text(json.dumps(payload, indent=2), encoding="utf-8")
