"""Errors raised by registry management and catalog queries."""

from __future__ import annotations

from mercat.common.errors import MarketplaceError


class RegistryNotFoundError(MarketplaceError):
    """Raised when no registry has the requested id."""

    def __init__(self, registry_id: str) -> None:
        """Initialise with the missing registry id."""
        self.registry_id = registry_id
        super().__init__(f"Registry '{registry_id}' not found")


class RegistryDisabledError(MarketplaceError):
    """Raised when refreshing a registry that has been disabled."""

    def __init__(self, registry_id: str) -> None:
        """Initialise with the disabled registry id."""
        self.registry_id = registry_id
        super().__init__(f"Registry '{registry_id}' is disabled")


class RegistryValidationError(MarketplaceError, ValueError):
    """Raised when a registry configuration fails validation."""

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        message = "Invalid registry config: " + ", ".join(issues)
        super().__init__(message)
        self.issues = issues


class DuplicateRegistryError(RegistryValidationError):
    """Raised when creating a registry whose id is already taken."""

    def __init__(self, registry_id: str) -> None:
        """Initialise with the conflicting registry id."""
        self.registry_id = registry_id
        super().__init__([f"registry with id '{registry_id}' already exists"])


class CatalogNotCachedError(MarketplaceError):
    """Raised when a registry has no cached catalog to read from."""

    def __init__(self, registry_id: str) -> None:
        """Initialise with the registry lacking a snapshot."""
        self.registry_id = registry_id
        super().__init__(f"No cached catalog for registry '{registry_id}'")


class ItemNotFoundError(MarketplaceError):
    """Raised when a cached catalog has no item with the requested key."""

    def __init__(self, registry_id: str, item_type: str, name: str) -> None:
        """Initialise with the registry and the missing ``type:name`` key."""
        self.registry_id = registry_id
        self.item_type = item_type
        self.name = name
        super().__init__(
            f"Item '{item_type}:{name}' not found in registry '{registry_id}'"
        )
