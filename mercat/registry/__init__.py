"""Registry management: stored configuration, credentials, and refresh.

Usage
-----
Create a registry and pull its catalog into the cache::

    from mercat.factory import build_marketplace

    marketplace = build_marketplace(config)
    await marketplace.registries.create(
        {"id": "community", "name": "Community", "source": source_url}
    )
    result = await marketplace.registries.refresh("community")

"""

from __future__ import annotations

from .documents import JsonDocument, JsonFileDocument
from .errors import (
    CatalogNotCachedError,
    DuplicateRegistryError,
    ItemNotFoundError,
    RegistryDisabledError,
    RegistryNotFoundError,
    RegistryValidationError,
)
from .models import (
    RefreshResult,
    RegistriesDocument,
    Registry,
    RegistryDraft,
    RegistryTestResult,
)
from .observability import MarketplaceEventLogger, MarketplaceEventType
from .store import RegistryStore, validate_draft

__all__ = [
    "CatalogNotCachedError",
    "DuplicateRegistryError",
    "ItemNotFoundError",
    "JsonDocument",
    "JsonFileDocument",
    "MarketplaceEventLogger",
    "MarketplaceEventType",
    "RefreshResult",
    "RegistriesDocument",
    "Registry",
    "RegistryDisabledError",
    "RegistryDraft",
    "RegistryNotFoundError",
    "RegistryStore",
    "RegistryTestResult",
    "RegistryValidationError",
    "validate_draft",
]
