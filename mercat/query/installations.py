"""Ports for what is already installed locally.

An item counts as installed when the installation ledger has an entry under
``"{type}:{name}"``. Skills placed on disk by hand, without a ledger entry,
also count: :class:`SkillInventory` reports their names.
"""

from __future__ import annotations

import asyncio
import typing as typ

from mercat.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from mercat.registry.documents import JsonDocument

logger = get_logger(__name__)

SKILL_FILENAME = "SKILL.md"


def installation_key(item_type: str, name: str) -> str:
    """Return the ledger key for an item."""
    return f"{item_type}:{name}"


@typ.runtime_checkable
class InstallationLedger(typ.Protocol):
    """Read access to the installation records."""

    async def installations(self) -> cabc.Mapping[str, typ.Any]:
        """Return installation records keyed by ``"{type}:{name}"``."""
        ...


@typ.runtime_checkable
class SkillInventory(typ.Protocol):
    """Read access to the skills materialised on disk."""

    async def skill_names(self) -> set[str]:
        """Return the names of skills present on disk."""
        ...


class JsonInstallationLedger:
    """Installation ledger backed by ``config/installations.json``."""

    def __init__(self, document: JsonDocument) -> None:
        """Initialise the ledger over its JSON document port."""
        self._document = document

    async def installations(self) -> dict[str, typ.Any]:
        """Return the ``installations`` mapping, or an empty one.

        The ledger is written by the installer, outside this subsystem, so
        every call rereads the document.
        """
        self._document.invalidate()
        data = await self._document.load()
        records = data.get("installations")
        return records if isinstance(records, dict) else {}


class DirectorySkillInventory:
    """List skills as the subdirectories of ``skills_dir`` holding ``SKILL.md``."""

    def __init__(self, skills_dir: Path) -> None:
        """Initialise the inventory for ``skills_dir``."""
        self._skills_dir = skills_dir

    async def skill_names(self) -> set[str]:
        """Return skill directory names; a missing directory means none."""
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> set[str]:
        try:
            entries = list(self._skills_dir.iterdir())
        except FileNotFoundError:
            return set()
        except OSError as exc:
            log_warning(logger, "Could not list skills in %s: %s", self._skills_dir, exc)
            return set()
        return {
            entry.name
            for entry in entries
            if entry.is_dir() and (entry / SKILL_FILENAME).is_file()
        }
