"""Throttled HTTP port used for every outbound registry call.

Callers pass a stable ``tag`` per call site so the throttle can apply
per-endpoint backpressure. Timeouts and cancellation are the adapter's
responsibility; the marketplace services never impose their own.
"""

from __future__ import annotations

import asyncio
import collections
import typing as typ

import httpx

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@typ.runtime_checkable
class ThrottledHttpClient(typ.Protocol):
    """Interface for rate-limited GET requests."""

    async def get(
        self,
        tag: str,
        url: str,
        *,
        headers: cabc.Mapping[str, str],
    ) -> httpx.Response:
        """Issue a GET request under the throttle bucket named ``tag``."""
        ...


class HttpxThrottledClient:
    """:class:`ThrottledHttpClient` that bounds concurrency per tag.

    Parameters
    ----------
    http_client
        Optional pre-built client, mainly for tests using
        ``httpx.MockTransport``. When omitted the adapter owns its client and
        closes it in :meth:`aclose`.
    timeout_s
        Request timeout applied to an owned client.
    user_agent
        ``User-Agent`` header applied to an owned client.
    concurrency
        Maximum number of requests in flight per tag.

    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout_s: float = 20.0,
        user_agent: str = "mercat/0.1",
        concurrency: int = 4,
    ) -> None:
        """Initialise the adapter and its per-tag semaphores."""
        if concurrency < 1:
            msg = "concurrency must be at least 1"
            raise ValueError(msg)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )
        self._buckets: collections.defaultdict[str, asyncio.Semaphore] = (
            collections.defaultdict(lambda: asyncio.Semaphore(concurrency))
        )

    async def get(
        self,
        tag: str,
        url: str,
        *,
        headers: cabc.Mapping[str, str],
    ) -> httpx.Response:
        """Issue a GET request once a slot in ``tag``'s bucket is free."""
        async with self._buckets[tag]:
            return await self._client.get(url, headers=dict(headers))

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()
