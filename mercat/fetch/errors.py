"""Errors raised when a remote registry or the GitHub API misbehaves."""

from __future__ import annotations

from mercat.common.errors import MarketplaceError

_BODY_PREVIEW_LIMIT = 200


class UpstreamError(MarketplaceError):
    """Raised for non-2xx responses and transport failures.

    Attributes
    ----------
    url
        URL that was requested.
    status_code
        HTTP status code, or ``None`` when no response was received.
    body
        Response body text, or ``None`` when no response was received.

    """

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        """Initialise with a message and the failing request context."""
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @classmethod
    def http_error(cls, url: str, status_code: int, body: str) -> UpstreamError:
        """Return an error for a non-2xx HTTP response."""
        preview = body.strip()[:_BODY_PREVIEW_LIMIT]
        message = f"HTTP {status_code} from {url}"
        if preview:
            message = f"{message}: {preview}"
        return cls(message, url=url, status_code=status_code, body=body)

    @classmethod
    def transport(cls, url: str, exc: Exception) -> UpstreamError:
        """Return an error for a request that never produced a response."""
        return cls(f"Request to {url} failed: {exc}", url=url)

    @classmethod
    def unexpected_payload(cls, url: str, expected: str) -> UpstreamError:
        """Return an error for a response that is not shaped as expected."""
        return cls(f"Unexpected response from {url}: expected {expected}", url=url)
