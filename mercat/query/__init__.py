"""Listing and detail queries over cached registry catalogs."""

from __future__ import annotations

from .engine import ItemFilters, ItemPage, ItemQueryEngine, RegistryCatalog
from .installations import (
    DirectorySkillInventory,
    InstallationLedger,
    JsonInstallationLedger,
    SkillInventory,
    installation_key,
)
from .preview import build_preview, split_frontmatter

__all__ = [
    "DirectorySkillInventory",
    "InstallationLedger",
    "ItemFilters",
    "ItemPage",
    "ItemQueryEngine",
    "JsonInstallationLedger",
    "RegistryCatalog",
    "SkillInventory",
    "build_preview",
    "installation_key",
    "split_frontmatter",
]
