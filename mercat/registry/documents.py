"""Read/write ports for the JSON configuration documents.

The registries and installations documents are injected into the services
that use them rather than looked up through a process-wide cache. The file
adapter loads a document on first use, keeps it in memory, and replaces the
in-memory copy whenever a save succeeds.
"""

from __future__ import annotations

import asyncio
import copy
import typing as typ

import msgspec

from mercat.common.files import atomic_write_json
from mercat.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)

JsonObject = dict[str, typ.Any]


@typ.runtime_checkable
class JsonDocument(typ.Protocol):
    """A JSON object persisted somewhere outside the process."""

    async def load(self) -> JsonObject:
        """Return a copy of the current document contents."""
        ...

    async def save(self, document: JsonObject) -> None:
        """Persist ``document``, replacing the stored contents."""
        ...

    def invalidate(self) -> None:
        """Forget any cached contents so the next load rereads storage."""
        ...


class JsonFileDocument:
    """A :class:`JsonDocument` stored as one JSON file on disk.

    Parameters
    ----------
    path
        Location of the JSON file. A missing file reads as ``{}``.

    """

    def __init__(self, path: Path) -> None:
        """Initialise the document adapter for ``path``."""
        self._path = path
        self._cached: JsonObject | None = None

    @property
    def path(self) -> Path:
        """Return the backing file path."""
        return self._path

    async def load(self) -> JsonObject:
        """Return the document, reading the file on first use.

        Raises
        ------
        msgspec.DecodeError
            If the file exists but is not valid JSON.

        """
        if self._cached is None:
            self._cached = await asyncio.to_thread(self._read)
        return copy.deepcopy(self._cached)

    async def save(self, document: JsonObject) -> None:
        """Write ``document`` atomically and refresh the in-memory copy."""
        await asyncio.to_thread(atomic_write_json, self._path, document)
        self._cached = msgspec.to_builtins(document)

    def invalidate(self) -> None:
        """Drop the in-memory copy."""
        self._cached = None

    def _read(self) -> JsonObject:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        data = msgspec.json.decode(raw)
        if not isinstance(data, dict):
            log_warning(logger, "Ignoring non-object JSON document %s", self._path)
            return {}
        return data
