"""Typed catalog structures shared by every registry format.

Remote registries publish their content in several shapes; all of them are
normalised into :class:`Catalog`. The structures serialise to camelCase JSON,
which is also the layout of the per-registry cache files.
"""

from __future__ import annotations

import typing as typ

import msgspec

ItemType = typ.Literal["app", "model", "prompt", "skill", "workflow"]
ITEM_TYPES: tuple[str, ...] = typ.get_args(ItemType)

LocaleMap = dict[str, str]


class _Source(
    msgspec.Struct,
    tag_field="type",
    kw_only=True,
    rename="camel",
    omit_defaults=True,
):
    """Common configuration for source descriptors."""


class UrlSource(_Source, tag="url"):
    """Content fetched directly from a URL.

    Attributes
    ----------
    url
        Fetchable URL of the item's primary file.
    companions
        For skills resolved from a GitHub tree: files living next to the
        primary ``SKILL.md``, relative to its directory.
    raw_base
        Raw-content base URL of the repository that ``companions`` resolve
        against. Persisted as ``rawBase``.

    """

    url: str
    companions: list[str] | None = None
    raw_base: str | None = None


class GitHubSource(_Source, tag="github"):
    """Content addressed by GitHub repository coordinates."""

    owner: str
    repo: str
    path: str
    ref: str = "main"


class RelativeSource(_Source, tag="relative"):
    """Content addressed relative to the registry's catalog directory."""

    path: str


SourceDescriptor = UrlSource | GitHubSource | RelativeSource


class CatalogItem(msgspec.Struct, kw_only=True, rename="camel", omit_defaults=True):
    """One installable unit published by a registry.

    Attributes
    ----------
    type
        Content kind: app, model, prompt, skill, or workflow.
    name
        Machine identifier, unique within a registry for a given type.
    display_name
        Localised display name keyed by locale (``displayName``).
    description
        Optional localised description keyed by locale.
    version, author, category
        Optional descriptive metadata.
    tags
        Free-form tags.
    source
        Where the item's content lives.

    """

    type: ItemType
    name: str
    display_name: LocaleMap
    source: SourceDescriptor
    description: LocaleMap | None = None
    version: str | None = None
    author: str | None = None
    category: str | None = None
    tags: list[str] = msgspec.field(default_factory=list)


class Catalog(msgspec.Struct, kw_only=True, omit_defaults=True):
    """The normalised, registry-agnostic result of fetching one registry."""

    items: list[CatalogItem]
    name: str | None = None
    description: str | LocaleMap | None = None


class CacheEntry(msgspec.Struct, kw_only=True, rename="camel"):
    """Persisted snapshot of one registry's catalog.

    ``catalog`` is kept as JSON builtins rather than :class:`Catalog` so
    that a catalog which failed validation can still be cached and served.
    """

    registry_id: str
    fetched_at: str
    catalog: dict[str, typ.Any]

    @property
    def items(self) -> list[dict[str, typ.Any]]:
        """Return the cached items, ignoring malformed entries."""
        raw = self.catalog.get("items")
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]


def as_locale_map(value: object) -> LocaleMap | None:
    """Wrap a plain string as an English locale map.

    Mappings are returned unchanged and anything else becomes ``None``.

    Examples
    --------
    >>> as_locale_map("Shared prompts")
    {'en': 'Shared prompts'}

    """
    if isinstance(value, str):
        return {"en": value}
    if isinstance(value, dict):
        return value
    return None


def localized_text(value: object, locale: str = "en") -> str:
    """Return the ``locale`` text of a locale map, or a plain string as-is."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        text = value.get(locale)
        return text if isinstance(text, str) else ""
    return ""


def author_name(value: object) -> str | None:
    """Extract an author name from a string or an ``{"name": ...}`` object."""
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict):
        name = value.get("name")
        return name if isinstance(name, str) and name else None
    return None
