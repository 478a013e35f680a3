"""Catalog models, normalisation, validation, and snapshot caching."""

from __future__ import annotations

from .cache import CatalogCache
from .models import (
    ITEM_TYPES,
    CacheEntry,
    Catalog,
    CatalogItem,
    GitHubSource,
    ItemType,
    RelativeSource,
    SourceDescriptor,
    UrlSource,
    as_locale_map,
    author_name,
    localized_text,
)
from .normalizer import CatalogNormalizer, CatalogShape, detect_shape
from .validation import CatalogValidationError, catalog_to_builtins, validate_catalog

__all__ = [
    "ITEM_TYPES",
    "CacheEntry",
    "Catalog",
    "CatalogCache",
    "CatalogItem",
    "CatalogNormalizer",
    "CatalogShape",
    "CatalogValidationError",
    "GitHubSource",
    "ItemType",
    "RelativeSource",
    "SourceDescriptor",
    "UrlSource",
    "as_locale_map",
    "author_name",
    "catalog_to_builtins",
    "detect_shape",
    "localized_text",
    "validate_catalog",
]
