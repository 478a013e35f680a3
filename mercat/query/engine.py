"""Browse cached catalogs across every enabled registry.

The engine reads only the catalog cache, the registry records, and the
installation ports. The one network call it makes is the best-effort
content preview in :meth:`ItemQueryEngine.get_item_detail`.
"""

from __future__ import annotations

import dataclasses
import math
import typing as typ

from mercat.catalog.models import localized_text
from mercat.common.errors import MarketplaceError
from mercat.fetch.headers import build_auth_headers
from mercat.fetch.urls import resolve_item_url
from mercat.logging import get_logger, log_warning
from mercat.registry.errors import (
    CatalogNotCachedError,
    ItemNotFoundError,
    RegistryNotFoundError,
)

from .installations import installation_key
from .preview import build_preview

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from mercat.catalog.cache import CatalogCache
    from mercat.catalog.models import CacheEntry
    from mercat.fetch.fetcher import CatalogFetcher
    from mercat.registry.models import Registry
    from mercat.registry.store import RegistryStore

    from .installations import InstallationLedger, SkillInventory

logger = get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 24
INSTALLED = "installed"
AVAILABLE = "available"
ALL = "all"

JsonObject = dict[str, typ.Any]


def _positive_int(value: object, default: int) -> int:
    """Parse a page or limit value, falling back to ``default``.

    Examples
    --------
    >>> _positive_int("2", 1)
    2
    >>> _positive_int("zero", 24), _positive_int(-3, 24)
    (24, 24)

    """
    if isinstance(value, bool):
        return default
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


@dataclasses.dataclass(frozen=True, slots=True)
class ItemFilters:
    """Filters and pagination for :meth:`ItemQueryEngine.get_all_items`.

    Attributes
    ----------
    type
        Exact item type, or ``"all"``/``None`` for every type.
    search
        Case-insensitive substring of the English display name or
        description.
    category
        Exact category.
    registry
        Exact registry id.
    status
        ``"installed"``, ``"available"``, or ``"all"``/``None``.
    page, limit
        1-based page and page size. Values that are not positive integers
        fall back to page 1 and 24 items.

    """

    type: str | None = None
    search: str | None = None
    category: str | None = None
    registry: str | None = None
    status: str | None = None
    page: int | str | None = None
    limit: int | str | None = None

    @property
    def page_number(self) -> int:
        """Return the effective 1-based page."""
        return _positive_int(self.page, DEFAULT_PAGE)

    @property
    def page_size(self) -> int:
        """Return the effective page size."""
        return _positive_int(self.limit, DEFAULT_LIMIT)

    def matches(self, item: cabc.Mapping[str, typ.Any]) -> bool:
        """Return True when ``item`` passes every filter, applied in order."""
        return (
            self._matches_type(item)
            and self._matches_search(item)
            and (not self.category or item.get("category") == self.category)
            and (not self.registry or item.get("registryId") == self.registry)
            and self._matches_status(item)
        )

    def _matches_type(self, item: cabc.Mapping[str, typ.Any]) -> bool:
        return not self.type or self.type == ALL or item.get("type") == self.type

    def _matches_search(self, item: cabc.Mapping[str, typ.Any]) -> bool:
        if not self.search:
            return True
        needle = self.search.lower()
        name = localized_text(item.get("displayName")) or str(item.get("name") or "")
        description = localized_text(item.get("description"))
        return needle in name.lower() or needle in description.lower()

    def _matches_status(self, item: cabc.Mapping[str, typ.Any]) -> bool:
        if not self.status or self.status == ALL:
            return True
        return item.get("installationStatus") == self.status


@dataclasses.dataclass(frozen=True, slots=True)
class ItemPage:
    """One page of merged catalog items."""

    items: list[JsonObject]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Return the number of pages for ``total`` items."""
        return math.ceil(self.total / self.limit)

    def to_dict(self) -> JsonObject:
        """Return the page in its camelCase JSON layout."""
        return {
            "items": self.items,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class RegistryCatalog:
    """A registry record together with its cached catalog, if any."""

    registry: Registry
    entry: CacheEntry | None


@dataclasses.dataclass(frozen=True, slots=True)
class _InstallState:
    installations: cabc.Mapping[str, typ.Any]
    skills_on_disk: set[str]

    def annotate(
        self, item: cabc.Mapping[str, typ.Any], registry_id: str, registry_name: str | None
    ) -> JsonObject:
        item_type = str(item.get("type"))
        name = str(item.get("name"))
        installation = self.installations.get(installation_key(item_type, name))
        on_disk = item_type == "skill" and name in self.skills_on_disk
        return {
            **item,
            "registryId": registry_id,
            "registryName": registry_name,
            "installationStatus": INSTALLED if installation or on_disk else AVAILABLE,
            "installation": installation or None,
        }


class ItemQueryEngine:
    """Merge cached catalogs with installation status.

    Parameters
    ----------
    registries
        Source of registry records.
    cache
        Per-registry catalog snapshots.
    fetcher
        Used only to fetch item content previews.
    ledger
        Installation records keyed by ``"{type}:{name}"``.
    inventory
        Skills present on disk without a ledger entry.

    """

    def __init__(
        self,
        registries: RegistryStore,
        cache: CatalogCache,
        fetcher: CatalogFetcher,
        ledger: InstallationLedger,
        inventory: SkillInventory,
    ) -> None:
        """Wire the engine to its read-side collaborators."""
        self._registries = registries
        self._cache = cache
        self._fetcher = fetcher
        self._ledger = ledger
        self._inventory = inventory

    async def get_all_items(self, filters: ItemFilters | None = None) -> ItemPage:
        """Return one filtered page of items from every enabled registry.

        Registries without a cached catalog contribute nothing; disabled
        registries are skipped entirely.
        """
        filters = filters or ItemFilters()
        state = await self._install_state()

        merged: list[JsonObject] = []
        for registry in await self._registries.list():
            if not registry.enabled:
                continue
            entry = await self._cache.read(registry.id)
            if entry is None:
                continue
            merged.extend(
                state.annotate(item, registry.id, registry.name) for item in entry.items
            )

        matched = [item for item in merged if filters.matches(item)]
        page = filters.page_number
        limit = filters.page_size
        start = (page - 1) * limit
        return ItemPage(
            items=matched[start : start + limit],
            total=len(matched),
            page=page,
            limit=limit,
        )

    async def get_item_detail(
        self, registry_id: str, item_type: str, name: str
    ) -> JsonObject:
        """Return one item with installation status and a content preview.

        The preview is best-effort: when the item's source cannot be
        resolved or fetched, ``contentPreview`` is ``None``.

        Raises
        ------
        CatalogNotCachedError
            If the registry has no cached catalog.
        ItemNotFoundError
            If the cached catalog has no ``type:name`` item.

        """
        entry = await self._cache.read(registry_id)
        if entry is None:
            raise CatalogNotCachedError(registry_id)

        item = next(
            (
                candidate
                for candidate in entry.items
                if candidate.get("type") == item_type and candidate.get("name") == name
            ),
            None,
        )
        if item is None:
            raise ItemNotFoundError(registry_id, item_type, name)

        try:
            registry: Registry | None = await self._registries.get_with_auth(registry_id)
        except RegistryNotFoundError:
            registry = None

        state = await self._install_state()
        detail = state.annotate(item, registry_id, registry.name if registry else None)
        detail["contentPreview"] = await self._preview(item, registry)
        return detail

    async def get_registry_catalog(self, registry_id: str) -> RegistryCatalog:
        """Return the redacted registry and its cached catalog, if any.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.

        """
        registry = await self._registries.get(registry_id)
        return RegistryCatalog(registry=registry, entry=await self._cache.read(registry_id))

    async def _install_state(self) -> _InstallState:
        return _InstallState(
            installations=await self._ledger.installations(),
            skills_on_disk=await self._inventory.skill_names(),
        )

    async def _preview(
        self, item: cabc.Mapping[str, typ.Any], registry: Registry | None
    ) -> object:
        if registry is None:
            return None
        if self._registries.has_sealed_auth(registry):
            log_warning(
                logger,
                "Skipping content preview for %s: stored credentials are undecryptable",
                registry.id,
            )
            return None
        source = item.get("source")
        url = resolve_item_url(source, registry.source)
        if url is None:
            return None
        try:
            content = await self._fetcher.fetch(url, build_auth_headers(registry.auth))
        except MarketplaceError as exc:
            log_warning(logger, "Could not fetch content preview for %s: %s", url, exc)
            return None
        source_url = source.get("url") if isinstance(source, dict) else None
        return build_preview(content, source_url if isinstance(source_url, str) else None)
