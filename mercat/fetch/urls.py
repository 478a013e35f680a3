"""URL resolution for registry catalogs and catalog item sources."""

from __future__ import annotations

import re
import typing as typ

CATALOG_FILENAMES = ("catalog.json", "marketplace.json")
DEFAULT_CATALOG_FILENAME = "catalog.json"
GITHUB_API_BASE = "https://api.github.com"

_GITHUB_BLOB_URL = re.compile(
    r"^https?://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/blob/(?P<ref>[^/]+)/(?P<path>.+)$"
)
_CATALOG_FILENAME_SUFFIX = re.compile(r"/(?:catalog|marketplace)\.json$")


def to_raw_github_url(url: str) -> str:
    """Convert a ``github.com/.../blob/...`` URL to its raw-content form.

    Other URLs are returned unchanged.

    Examples
    --------
    >>> to_raw_github_url("https://github.com/acme/skills/blob/main/catalog.json")
    'https://raw.githubusercontent.com/acme/skills/main/catalog.json'

    """
    match = _GITHUB_BLOB_URL.match(url)
    if match is None:
        return url
    return (
        f"https://raw.githubusercontent.com/{match['owner']}/{match['repo']}/"
        f"{match['ref']}/{match['path']}"
    )


def resolve_catalog_url(source: str) -> str:
    """Return the fetchable catalog URL for a registry source.

    Blob URLs are normalised to raw content first. A URL already naming one
    of :data:`CATALOG_FILENAMES` is used as-is; anything else is treated as
    a directory and gets ``/catalog.json`` appended. Applying the function
    to its own output returns the same URL.

    Examples
    --------
    >>> resolve_catalog_url("https://registry.example.com/skills/")
    'https://registry.example.com/skills/catalog.json'

    """
    normalized = to_raw_github_url(source)
    if normalized.endswith(CATALOG_FILENAMES):
        return normalized
    return f"{normalized.removesuffix('/')}/{DEFAULT_CATALOG_FILENAME}"


def registry_base_url(source: str) -> str:
    """Return the directory URL that relative item paths resolve against."""
    catalog_url = resolve_catalog_url(source)
    return _CATALOG_FILENAME_SUFFIX.sub("", catalog_url).removesuffix("/")


def resolve_item_url(
    source: dict[str, typ.Any] | None,
    registry_source: str,
) -> str | None:
    """Resolve a catalog item's source descriptor to a fetchable URL.

    Parameters
    ----------
    source
        The item's ``source`` mapping as stored in the catalog cache.
    registry_source
        The owning registry's configured source URL.

    Returns
    -------
    str | None
        A URL, or ``None`` when the descriptor is missing or of an unknown
        type. ``None`` means "no preview available", not an error.

    """
    if not isinstance(source, dict):
        return None

    kind = source.get("type")
    if kind == "url":
        url = source.get("url")
        return url if isinstance(url, str) and url else None

    if kind == "github":
        owner = source.get("owner")
        repo = source.get("repo")
        path = source.get("path")
        if not all(isinstance(part, str) and part for part in (owner, repo, path)):
            return None
        ref = source.get("ref") or "main"
        return f"{GITHUB_API_BASE}/repos/{owner}/{repo}/contents/{path}?ref={ref}"

    if kind == "relative":
        path = source.get("path")
        if not isinstance(path, str) or not path:
            return None
        return f"{registry_base_url(registry_source)}/{path}"

    return None
