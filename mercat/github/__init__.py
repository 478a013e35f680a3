"""GitHub-specific resolution for plugin marketplaces and skill content."""

from __future__ import annotations

from .links import rewrite_relative_links
from .tree import (
    PRIMARY_FILENAME,
    GitHubTreeResolver,
    TreeEntry,
    find_companion_files,
    parse_tree,
    raw_base_url,
)
from .urls import GitHubCoordinates, parse_github_url

__all__ = [
    "PRIMARY_FILENAME",
    "GitHubCoordinates",
    "GitHubTreeResolver",
    "TreeEntry",
    "find_companion_files",
    "parse_github_url",
    "parse_tree",
    "raw_base_url",
    "rewrite_relative_links",
]
