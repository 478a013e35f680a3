"""Recognise GitHub-hosted registry URLs.

Registry sources and skill URLs come in two GitHub shapes::

    https://raw.githubusercontent.com/{owner}/{repo}/[refs/heads/]{ref}/{path}
    https://github.com/{owner}/{repo}/blob/{ref}/{path}

Both carry enough information to address the repository's tree API.
"""

from __future__ import annotations

import dataclasses
import re

from mercat.fetch.urls import GITHUB_API_BASE

RAW_HOST_PREFIX = "https://raw.githubusercontent.com"
WEB_HOST_PREFIX = "https://github.com"

_RAW_URL = re.compile(
    r"^https?://raw\.githubusercontent\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/"
    r"(?:refs/heads/)?(?P<ref>[^/]+)/"
)
_BLOB_URL = re.compile(
    r"^https?://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/blob/(?P<ref>[^/]+)/"
)


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubCoordinates:
    """Owner, repository, and ref extracted from a GitHub URL."""

    owner: str
    repo: str
    ref: str

    def tree_url(self, api_base: str = GITHUB_API_BASE) -> str:
        """Return the recursive trees API URL for this ref."""
        return f"{api_base}/repos/{self.owner}/{self.repo}/git/trees/{self.ref}?recursive=1"


def parse_github_url(url: str) -> GitHubCoordinates | None:
    """Extract repository coordinates from a raw or blob GitHub URL.

    Examples
    --------
    >>> parse_github_url(
    ...     "https://raw.githubusercontent.com/acme/skills/refs/heads/main/x.json"
    ... )
    GitHubCoordinates(owner='acme', repo='skills', ref='main')
    >>> parse_github_url("https://registry.example.com/catalog.json") is None
    True

    """
    match = _RAW_URL.match(url) or _BLOB_URL.match(url)
    if match is None:
        return None
    return GitHubCoordinates(owner=match["owner"], repo=match["repo"], ref=match["ref"])
