"""Per-registry catalog snapshots persisted as JSON files.

Each registry owns one file, ``{cache_dir}/{registry_id}.json``, holding a
:class:`~mercat.catalog.models.CacheEntry`. Entries never expire: a snapshot
is only replaced by an explicit refresh.
"""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec

from mercat.common.files import atomic_write_json
from mercat.common.time import now_z
from mercat.logging import get_logger, log_warning

from .models import CacheEntry

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)


class CatalogCache:
    """Read and write catalog snapshots under a cache directory.

    Parameters
    ----------
    cache_dir
        Directory holding one JSON file per registry. Created on first
        write.

    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialise the cache with its storage directory."""
        self._cache_dir = cache_dir

    def path_for(self, registry_id: str) -> Path:
        """Return the snapshot path for ``registry_id``."""
        return self._cache_dir / f"{registry_id}.json"

    async def read(self, registry_id: str) -> CacheEntry | None:
        """Return the cached snapshot, or ``None`` when none is usable.

        A missing, unreadable, or malformed file all mean "not cached yet".
        """
        path = self.path_for(registry_id)
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as exc:
            log_warning(logger, "Could not read catalog cache %s: %s", path, exc)
            return None

        try:
            return msgspec.json.decode(raw, type=CacheEntry)
        except (msgspec.DecodeError, msgspec.ValidationError) as exc:
            log_warning(logger, "Ignoring malformed catalog cache %s: %s", path, exc)
            return None

    async def write(
        self, registry_id: str, catalog: dict[str, typ.Any]
    ) -> CacheEntry:
        """Persist ``catalog`` for ``registry_id``, replacing any prior entry."""
        entry = CacheEntry(registry_id=registry_id, fetched_at=now_z(), catalog=catalog)
        await asyncio.to_thread(atomic_write_json, self.path_for(registry_id), entry)
        return entry

    async def delete(self, registry_id: str) -> None:
        """Remove the snapshot for ``registry_id`` if one exists."""
        path = self.path_for(registry_id)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            log_warning(logger, "Could not remove catalog cache %s: %s", path, exc)
