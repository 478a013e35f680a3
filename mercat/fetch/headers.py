"""Outbound request headers derived from registry authentication."""

from __future__ import annotations

import base64
import typing as typ

from mercat.auth.models import BasicAuth, BearerAuth, HeaderAuth

if typ.TYPE_CHECKING:
    from mercat.auth.models import AuthSpec


def build_auth_headers(auth: AuthSpec | None) -> dict[str, str]:
    """Return the headers required by a **decrypted** auth block.

    Examples
    --------
    >>> build_auth_headers(BearerAuth(token="abc"))
    {'Authorization': 'Bearer abc'}

    """
    match auth:
        case BearerAuth(token=token):
            return {"Authorization": f"Bearer {token}"}
        case BasicAuth(username=username, password=password):
            encoded = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
            return {"Authorization": f"Basic {encoded}"}
        case HeaderAuth(header_name=name, header_value=value):
            return {name: value}
        case _:
            return {}
