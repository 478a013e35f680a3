"""Normalise remote registry payloads into the catalog layout.

Registries publish one of several payload shapes. Detection is an ordered
chain of predicates and the first match wins:

``STANDARD``
    ``{"items": [...]}``, already in catalog layout.
``FLAT_SKILLS``
    ``{"skills": [...]}``, one skill per entry.
``TREE_PLUGINS``
    ``{"plugins": [...]}`` hosted on GitHub; plugins are expanded into the
    skills they contain by :class:`~mercat.github.tree.GitHubTreeResolver`.
``SIMPLE_PLUGINS``
    ``{"plugins": [...]}`` elsewhere; one skill per plugin.
``UNKNOWN``
    Anything else is passed through and left to validation.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

from mercat.github.urls import parse_github_url
from mercat.logging import get_logger, log_info, log_warning

from .models import as_locale_map, author_name
from .validation import CatalogValidationError, catalog_to_builtins, validate_catalog

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from mercat.github.tree import GitHubTreeResolver

logger = get_logger(__name__)

JsonObject = dict[str, typ.Any]


class CatalogShape(enum.StrEnum):
    """Recognised remote payload layouts."""

    STANDARD = "standard"
    FLAT_SKILLS = "flat_skills"
    SIMPLE_PLUGINS = "simple_plugins"
    TREE_PLUGINS = "tree_plugins"
    UNKNOWN = "unknown"


def _has_list(payload: JsonObject, key: str) -> bool:
    return isinstance(payload.get(key), list)


_SHAPE_RULES: tuple[tuple[CatalogShape, cabc.Callable[[JsonObject, bool], bool]], ...] = (
    (CatalogShape.STANDARD, lambda payload, _github: _has_list(payload, "items")),
    (CatalogShape.FLAT_SKILLS, lambda payload, _github: _has_list(payload, "skills")),
    (
        CatalogShape.TREE_PLUGINS,
        lambda payload, github: github and _has_list(payload, "plugins"),
    ),
    (CatalogShape.SIMPLE_PLUGINS, lambda payload, _github: _has_list(payload, "plugins")),
)


def detect_shape(payload: JsonObject, registry_source: str) -> CatalogShape:
    """Return the first shape whose predicate accepts ``payload``.

    Plugin marketplaces only qualify for tree resolution when the registry
    source is a GitHub raw or blob URL; elsewhere they map one skill per
    plugin.

    Examples
    --------
    >>> detect_shape({"items": []}, "https://registry.example.com")
    <CatalogShape.STANDARD: 'standard'>
    >>> detect_shape({"plugins": []}, "https://registry.example.com")
    <CatalogShape.SIMPLE_PLUGINS: 'simple_plugins'>

    """
    github = parse_github_url(registry_source) is not None
    for shape, predicate in _SHAPE_RULES:
        if predicate(payload, github):
            return shape
    return CatalogShape.UNKNOWN


def _flat_skill_item(skill: JsonObject) -> JsonObject:
    identifier = skill.get("id") or skill.get("name")
    name = skill.get("name")
    return {
        "type": "skill",
        "name": identifier,
        "displayName": as_locale_map(name) if name is not None else None,
        "description": as_locale_map(skill.get("description")),
        "version": skill.get("version"),
        "author": author_name(skill.get("author")),
        "tags": skill.get("tags") or [],
        "source": skill.get("source") or {"type": "relative", "path": skill.get("id")},
    }


def _plugin_item(plugin: JsonObject, owner: object) -> JsonObject:
    source = plugin.get("source")
    path = source.removeprefix("./") if isinstance(source, str) and source else None
    return {
        "type": "skill",
        "name": plugin.get("name"),
        "displayName": {"en": plugin.get("name")},
        "description": as_locale_map(plugin.get("description")),
        "author": author_name(plugin.get("author")) or author_name(owner),
        "tags": plugin.get("tags") or [],
        "source": {"type": "relative", "path": path or plugin.get("name")},
    }


def _drop_nulls(item: JsonObject) -> JsonObject:
    return {key: value for key, value in item.items() if value is not None}


def _entries(payload: JsonObject, key: str) -> list[JsonObject]:
    return [entry for entry in payload[key] if isinstance(entry, dict)]


class CatalogNormalizer:
    """Map any recognised payload shape onto catalog builtins."""

    def __init__(self, resolver: GitHubTreeResolver) -> None:
        """Initialise the normaliser with the GitHub tree resolver."""
        self._resolver = resolver

    async def normalize(
        self,
        payload: object,
        registry_source: str,
        auth_headers: cabc.Mapping[str, str] | None = None,
    ) -> JsonObject:
        """Return catalog builtins for a fetched registry payload.

        Validation failures are logged as warnings and the normalised data
        is returned anyway; remote registries are third-party content and a
        partly non-conformant catalog is still worth browsing.

        Raises
        ------
        CatalogValidationError
            If ``payload`` is not a JSON object at all.
        UpstreamError
            If tree resolution needs the GitHub API and the call fails.

        """
        if not isinstance(payload, dict):
            msg = f"catalog payload must be a JSON object, got {type(payload).__name__}"
            raise CatalogValidationError([msg])

        shape = detect_shape(payload, registry_source)
        log_info(logger, "Detected %s catalog at %s", shape.value, registry_source)
        mapped = await self._map(shape, payload, registry_source, auth_headers)

        try:
            catalog = validate_catalog(mapped)
        except CatalogValidationError as exc:
            log_warning(
                logger,
                "Catalog validation warnings for %s: %s",
                registry_source,
                ", ".join(exc.issues),
            )
            return mapped
        return catalog_to_builtins(catalog)

    async def _map(
        self,
        shape: CatalogShape,
        payload: JsonObject,
        registry_source: str,
        auth_headers: cabc.Mapping[str, str] | None,
    ) -> JsonObject:
        header = _drop_nulls(
            {"name": payload.get("name"), "description": payload.get("description")}
        )
        match shape:
            case CatalogShape.FLAT_SKILLS:
                items = [
                    _drop_nulls(_flat_skill_item(skill))
                    for skill in _entries(payload, "skills")
                ]
            case CatalogShape.SIMPLE_PLUGINS:
                owner = payload.get("owner")
                items = [
                    _drop_nulls(_plugin_item(plugin, owner))
                    for plugin in _entries(payload, "plugins")
                ]
            case CatalogShape.TREE_PLUGINS:
                resolved = await self._resolver.resolve_plugins(
                    registry_source,
                    payload["plugins"],
                    owner=payload.get("owner"),
                    auth_headers=auth_headers,
                )
                items = typ.cast("list[JsonObject]", msgspec.to_builtins(resolved))
            case _:
                return payload
        return {**header, "items": items}
