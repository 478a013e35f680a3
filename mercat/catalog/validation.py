"""Validation rules for normalised catalogs."""

from __future__ import annotations

import typing as typ

import msgspec

from mercat.common.errors import MarketplaceError

from .models import Catalog


class CatalogValidationError(MarketplaceError, ValueError):
    """Raised when catalog data fails structural validation."""

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        message = "\n".join(issues)
        super().__init__(message)
        self.issues = issues


def validate_catalog(data: object) -> Catalog:
    """Validate normalised catalog data, returning the typed catalog.

    Parameters
    ----------
    data
        JSON builtins produced by the normaliser.

    Returns
    -------
    Catalog
        The decoded catalog when every check passes.

    Raises
    ------
    CatalogValidationError
        If the data does not match the catalog schema, or items repeat a
        ``type:name`` key or carry an empty name.

    """
    try:
        catalog = msgspec.convert(data, type=Catalog)
    except msgspec.ValidationError as exc:
        raise CatalogValidationError([str(exc)]) from exc

    issues: list[str] = []
    seen: set[str] = set()
    for index, item in enumerate(catalog.items):
        if not item.name.strip():
            issues.append(f"items[{index}] is missing a name")
            continue
        key = f"{item.type}:{item.name}"
        if key in seen:
            issues.append(f"duplicate item key '{key}'")
        seen.add(key)

    if issues:
        raise CatalogValidationError(issues)

    return catalog


def catalog_to_builtins(catalog: Catalog) -> dict[str, typ.Any]:
    """Return the camelCase JSON builtins for ``catalog``."""
    return typ.cast("dict[str, typ.Any]", msgspec.to_builtins(catalog))
