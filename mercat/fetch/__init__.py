"""Fetching and URL resolution for remote registries.

Usage
-----
Fetch a registry catalog with bearer authentication::

    from mercat.fetch import (
        CatalogFetcher,
        HttpxThrottledClient,
        build_auth_headers,
        resolve_catalog_url,
    )

    fetcher = CatalogFetcher(HttpxThrottledClient())
    url = resolve_catalog_url("https://github.com/acme/skills/blob/main/catalog.json")
    payload = await fetcher.fetch(url, build_auth_headers(decrypted_auth))

"""

from __future__ import annotations

from .errors import UpstreamError
from .fetcher import REGISTRY_FETCH_TAG, CatalogFetcher, unwrap_payload
from .headers import build_auth_headers
from .http import HttpxThrottledClient, ThrottledHttpClient
from .urls import (
    CATALOG_FILENAMES,
    GITHUB_API_BASE,
    registry_base_url,
    resolve_catalog_url,
    resolve_item_url,
    to_raw_github_url,
)

__all__ = [
    "CATALOG_FILENAMES",
    "GITHUB_API_BASE",
    "REGISTRY_FETCH_TAG",
    "CatalogFetcher",
    "HttpxThrottledClient",
    "ThrottledHttpClient",
    "UpstreamError",
    "build_auth_headers",
    "registry_base_url",
    "resolve_catalog_url",
    "resolve_item_url",
    "to_raw_github_url",
    "unwrap_payload",
]
