"""Typed registry authentication settings.

``AuthSpec`` is a tagged union keyed on ``type``. Each variant declares the
fields its scheme needs, so msgspec rejects a ``bearer`` block without a
token or a ``header`` block without a header name at decode time.
"""

from __future__ import annotations

import msgspec

REDACTED = "***REDACTED***"

# Python attribute name -> persisted JSON key.
SECRET_FIELDS: dict[str, str] = {
    "token": "token",
    "password": "password",
    "header_value": "headerValue",
}


class _Auth(msgspec.Struct, tag_field="type", kw_only=True, frozen=True, rename="camel"):
    """Common configuration for every authentication variant."""


class NoAuth(_Auth, tag="none"):
    """Anonymous access."""


class BearerAuth(_Auth, tag="bearer"):
    """``Authorization: Bearer <token>``."""

    token: str


class BasicAuth(_Auth, tag="basic"):
    """HTTP basic authentication."""

    username: str
    password: str


class HeaderAuth(_Auth, tag="header"):
    """A single custom header carrying the credential.

    Attributes
    ----------
    header_name
        Header to send, for example ``X-API-Key``. Persisted as
        ``headerName``.
    header_value
        Secret header value. Persisted as ``headerValue``.

    """

    header_name: str
    header_value: str


AuthSpec = NoAuth | BearerAuth | BasicAuth | HeaderAuth


def secret_values(auth: AuthSpec) -> dict[str, str]:
    """Return the populated secret fields of ``auth`` keyed by attribute name."""
    if isinstance(auth, NoAuth):
        return {}
    found: dict[str, str] = {}
    for field in SECRET_FIELDS:
        value = getattr(auth, field, None)
        if isinstance(value, str) and value:
            found[field] = value
    return found
