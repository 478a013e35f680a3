"""Authenticated fetching of registry catalogs and item content."""

from __future__ import annotations

import base64
import typing as typ

import httpx
import msgspec

from mercat.logging import get_logger, log_info

from .errors import UpstreamError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .http import ThrottledHttpClient

logger = get_logger(__name__)

REGISTRY_FETCH_TAG = "marketplace-registry"
CONTENT_ACCEPT = "application/json, text/plain, application/vnd.github.raw+json"
JSON_ACCEPT = "application/json"


def unwrap_payload(text: str) -> object:
    """Decode a response body into JSON data or plain text.

    A GitHub contents API envelope (``content`` plus ``encoding ==
    "base64"``) is unwrapped and its content re-parsed as JSON, falling back
    to the decoded text. Bodies that are not JSON, such as raw ``SKILL.md``
    files, are returned as text.
    """
    try:
        data = msgspec.json.decode(text)
    except msgspec.DecodeError:
        return text

    if not _is_base64_envelope(data):
        return data

    try:
        decoded = base64.b64decode(data["content"].replace("\n", "")).decode("utf-8")
    except ValueError:
        # binascii.Error and UnicodeDecodeError are ValueErrors, as is non-ASCII input.
        return data

    try:
        return msgspec.json.decode(decoded)
    except msgspec.DecodeError:
        return decoded


def _is_base64_envelope(data: object) -> typ.TypeGuard[dict[str, typ.Any]]:
    return (
        isinstance(data, dict)
        and isinstance(data.get("content"), str)
        and bool(data["content"])
        and data.get("encoding") == "base64"
    )


class CatalogFetcher:
    """Fetch remote registry content through the throttled HTTP port.

    Every request carries the same throttle tag so that all registry and
    GitHub API traffic shares one backpressure bucket.
    """

    def __init__(
        self,
        http: ThrottledHttpClient,
        *,
        tag: str = REGISTRY_FETCH_TAG,
    ) -> None:
        """Initialise the fetcher with the throttled HTTP collaborator."""
        self._http = http
        self._tag = tag

    async def fetch(
        self,
        url: str,
        auth_headers: cabc.Mapping[str, str] | None = None,
    ) -> object:
        """Fetch ``url`` and return decoded JSON data or text.

        Raises
        ------
        UpstreamError
            On a non-2xx status or when no response could be obtained.

        """
        log_info(logger, "Fetching %s", url)
        response = await self._get(url, CONTENT_ACCEPT, auth_headers)
        return unwrap_payload(response.text)

    async def fetch_json(
        self,
        url: str,
        auth_headers: cabc.Mapping[str, str] | None = None,
    ) -> object:
        """Fetch ``url`` and decode the body strictly as JSON.

        Raises
        ------
        UpstreamError
            On a non-2xx status, a transport failure, or a non-JSON body.

        """
        response = await self._get(url, JSON_ACCEPT, auth_headers)
        try:
            return msgspec.json.decode(response.content)
        except msgspec.DecodeError as exc:
            raise UpstreamError.unexpected_payload(url, "JSON") from exc

    async def _get(
        self,
        url: str,
        accept: str,
        auth_headers: cabc.Mapping[str, str] | None,
    ) -> httpx.Response:
        headers = {"Accept": accept, **(auth_headers or {})}
        try:
            response = await self._http.get(self._tag, url, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamError.transport(url, exc) from exc
        if not response.is_success:
            raise UpstreamError.http_error(url, response.status_code, response.text)
        return response
