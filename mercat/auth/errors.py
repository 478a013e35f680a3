"""Errors raised while protecting registry credentials."""

from __future__ import annotations

from mercat.common.errors import MarketplaceError


class DecryptionError(MarketplaceError):
    """Raised when a stored credential cannot be decrypted.

    The message is deliberately generic: it never includes the ciphertext,
    the key, or the underlying library error text.
    """

    def __init__(self, registry_id: str | None = None) -> None:
        """Initialise with the optional registry whose secret failed."""
        self.registry_id = registry_id
        if registry_id is None:
            message = "Stored credential could not be decrypted"
        else:
            message = (
                f"Stored credentials for registry '{registry_id}' could not be "
                "decrypted; re-enter them to re-authenticate"
            )
        super().__init__(message)
