"""Content resolution — fetch a source document and find a scene in it.

The resolver is built around an injected source callable matching:

    async def __call__(self, address: str) -> Any: ...

It receives the resolvable address of one source document and returns the
decoded JSON payload. Two implementations are provided:

    FileSource  — reads JSON files below a content root directory.
    HttpSource  — fetches JSON documents below a base URL with httpx.

Both raise SourceUnavailable when the document cannot be retrieved and
MalformedSource when it is not JSON. ContentResolver validates the payload
into a SceneDefinition and checks that the requested scene exists.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from novella.errors import MalformedSource, SceneNotFound, SourceUnavailable
from novella.models import LocationRef, SceneDefinition

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every content source must match this signature
# ---------------------------------------------------------------------------

class ContentSource(Protocol):
    async def __call__(self, address: str) -> Any: ...


# ---------------------------------------------------------------------------
# FileSource — JSON files under a directory
# ---------------------------------------------------------------------------

class FileSource:
    """Reads source documents relative to a content root directory.

    Addresses that resolve outside the root are refused.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    def _path(self, address: str) -> Path:
        root = self._root.resolve()
        requested = Path(address)
        if requested.is_absolute():
            raise SourceUnavailable(f"Absolute source path refused: {address}")
        path = (root / requested).resolve()
        if root not in path.parents:
            raise SourceUnavailable(f"Source path escapes the content root: {address}")
        return path

    async def __call__(self, address: str) -> Any:
        path = self._path(address)
        logger.debug("reading source %s", path)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as e:
            raise SourceUnavailable(f"File not found: {address}") from e
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedSource(f"{address} is not valid JSON: {e}") from e


# ---------------------------------------------------------------------------
# HttpSource — JSON documents under a base URL
# ---------------------------------------------------------------------------

class HttpSource:
    """Async HTTP fetch of source documents.

    Args:
        base_url: Content root URL, e.g. "https://example.org/story".
        timeout:  HTTP timeout in seconds. Defaults to 10.
    """

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _url(self, address: str) -> str:
        return f"{self._base_url}/{address.lstrip('/')}"

    async def __call__(self, address: str) -> Any:
        url = self._url(address)
        logger.debug("fetching source %s", url)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise SourceUnavailable(f"Cannot connect to content host for {url}") from e
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(
                f"File not found: {address} (HTTP {e.response.status_code})"
            ) from e
        except httpx.TimeoutException as e:
            raise SourceUnavailable(f"Fetching {url} timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"Could not fetch {url}: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedSource(f"{address} is not valid JSON: {e}") from e


def open_source(root: str, timeout: float = 10.0) -> ContentSource:
    """HttpSource for http(s) roots, FileSource for anything else."""
    if root.startswith(("http://", "https://")):
        return HttpSource(root, timeout=timeout)
    return FileSource(root)


# ---------------------------------------------------------------------------
# ContentResolver — LocationRef -> SceneDefinition
# ---------------------------------------------------------------------------

class ContentResolver:
    """Resolves a LocationRef to the parsed source that contains it.

    Args:
        source:  Content source callable.
        address: Maps a source id to the address handed to the source.
                 Identity by default.
        cache:   Keep parsed sources per source id. A source's content is
                 immutable for the session; failures are never cached.
    """

    def __init__(
        self,
        source: ContentSource,
        address: Callable[[str], str] | None = None,
        cache: bool = True,
    ) -> None:
        self._source = source
        self._address = address or (lambda source_id: source_id)
        self._cache_enabled = cache
        self._cache: dict[str, SceneDefinition] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    async def _load(self, source_id: str) -> SceneDefinition:
        address = self._address(source_id)
        payload = await self._source(address)
        try:
            return SceneDefinition.model_validate(payload)
        except ValidationError as e:
            raise MalformedSource(
                f"{address} is not a valid scene source ({e.error_count()} errors)"
            ) from e

    async def resolve(self, ref: LocationRef) -> SceneDefinition:
        definition = self._cache.get(ref.source_id)
        if definition is None:
            definition = await self._load(ref.source_id)
            if self._cache_enabled:
                self._cache[ref.source_id] = definition

        if ref.scene_key not in definition.scenes:
            raise SceneNotFound(f'Scene "{ref.scene_key}" not found in {ref.source_id}')
        return definition
