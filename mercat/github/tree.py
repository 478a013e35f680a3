"""Resolve plugin marketplaces into individual skills via the GitHub tree.

Plugin marketplaces (``marketplace.json`` with a ``plugins`` array) describe
bundles rather than skills. For GitHub-hosted registries each plugin is
expanded into the skills it actually contains:

* **Phase 1** - plugins listing explicit ``skills`` paths get their
  ``SKILL.md`` URLs built directly from those paths.
* **Phase 2** - plugins without a list are either a single skill (their
  directory holds ``SKILL.md``) or a container whose skills live at
  ``{plugin_dir}/skills/{skill}/SKILL.md``.

The repository tree is fetched once per resolution and is also used to
discover companion files stored next to each ``SKILL.md``.
"""

from __future__ import annotations

import dataclasses
import re
import typing as typ

from mercat.catalog.models import CatalogItem, UrlSource, as_locale_map, author_name
from mercat.common.text import humanize_segment, strip_dot_slash
from mercat.fetch.errors import UpstreamError
from mercat.fetch.urls import GITHUB_API_BASE, to_raw_github_url
from mercat.logging import get_logger, log_info, log_warning

from .urls import parse_github_url

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from mercat.fetch.fetcher import CatalogFetcher

    from .urls import GitHubCoordinates

logger = get_logger(__name__)

PRIMARY_FILENAME = "SKILL.md"

_MARKETPLACE_SUFFIXES = ("/.claude-plugin/marketplace.json", "/marketplace.json")
_RAW_SKILL_DIR = re.compile(
    r"^https?://raw\.githubusercontent\.com/[^/]+/[^/]+/(?:refs/heads/)?[^/]+/"
    r"(?P<dir>.+)/SKILL\.md$"
)


@dataclasses.dataclass(frozen=True, slots=True)
class TreeEntry:
    """One entry of a recursive git tree listing."""

    path: str
    type: str

    @property
    def is_blob(self) -> bool:
        """Return True for file entries."""
        return self.type == "blob"


def parse_tree(payload: object, *, url: str) -> list[TreeEntry]:
    """Extract tree entries from a trees API response.

    Raises
    ------
    UpstreamError
        If the payload is not a JSON object.

    """
    if not isinstance(payload, dict):
        raise UpstreamError.unexpected_payload(url, "a git tree object")
    raw_entries = payload.get("tree") or []
    if not isinstance(raw_entries, list):
        raise UpstreamError.unexpected_payload(url, "a list of tree entries")
    return [
        TreeEntry(path=entry["path"], type=entry["type"])
        for entry in raw_entries
        if isinstance(entry, dict)
        and isinstance(entry.get("path"), str)
        and isinstance(entry.get("type"), str)
    ]


def find_companion_files(tree: cabc.Iterable[TreeEntry], dir_prefix: str) -> list[str]:
    """Return blobs under ``dir_prefix`` other than the primary file.

    Paths are returned relative to ``dir_prefix``, which should end with a
    slash, for example ``"skills/ab-test-setup/"``.
    """
    companions: list[str] = []
    for entry in tree:
        if not entry.is_blob or not entry.path.startswith(dir_prefix):
            continue
        relative = entry.path[len(dir_prefix) :]
        if relative != PRIMARY_FILENAME:
            companions.append(relative)
    return companions


def raw_base_url(registry_source: str) -> str:
    """Return the raw-content repository base for a marketplace URL."""
    base = to_raw_github_url(registry_source)
    for suffix in _MARKETPLACE_SUFFIXES:
        if base.endswith(suffix):
            base = base.removesuffix(suffix)
            break
    return base.removesuffix("/")


def _plugin_dir(plugin: cabc.Mapping[str, typ.Any]) -> str:
    source = plugin.get("source")
    if not isinstance(source, str):
        source = f"./{plugin.get('name') or ''}"
    return strip_dot_slash(source).removesuffix("/")


def _explicit_skills(plugin: cabc.Mapping[str, typ.Any]) -> list[str]:
    skills = plugin.get("skills")
    if not isinstance(skills, list):
        return []
    return [path for path in skills if isinstance(path, str) and path]


@dataclasses.dataclass(frozen=True, slots=True)
class _Resolution:
    """State shared while resolving one marketplace."""

    raw_base: str
    tree: list[TreeEntry]
    owner: str | None

    def skill_item(
        self,
        plugin: cabc.Mapping[str, typ.Any],
        *,
        name: str,
        skill_dir: str,
        label_source: str,
        tag: str,
    ) -> CatalogItem:
        return CatalogItem(
            type="skill",
            name=name,
            display_name={"en": humanize_segment(skill_dir.rsplit("/", 1)[-1])},
            description=as_locale_map(plugin.get("description")),
            author=author_name(plugin.get("author")) or self.owner,
            category=humanize_segment(label_source),
            tags=[tag],
            source=UrlSource(
                url=f"{self.raw_base}/{skill_dir}/{PRIMARY_FILENAME}",
                companions=find_companion_files(self.tree, f"{skill_dir}/"),
                raw_base=self.raw_base,
            ),
        )


class GitHubTreeResolver:
    """Expand marketplace plugins into skills using the git trees API."""

    def __init__(
        self,
        fetcher: CatalogFetcher,
        *,
        api_base: str = GITHUB_API_BASE,
    ) -> None:
        """Initialise the resolver with the shared catalog fetcher."""
        self._fetcher = fetcher
        self._api_base = api_base

    async def fetch_tree(
        self,
        coords: GitHubCoordinates,
        auth_headers: cabc.Mapping[str, str] | None = None,
    ) -> list[TreeEntry]:
        """Fetch the full recursive tree for ``coords``.

        Raises
        ------
        UpstreamError
            If the trees API call fails or returns an unexpected payload.

        """
        url = coords.tree_url(self._api_base)
        payload = await self._fetcher.fetch_json(url, auth_headers)
        return parse_tree(payload, url=url)

    async def resolve_plugins(
        self,
        registry_source: str,
        plugins: cabc.Sequence[object],
        *,
        owner: object = None,
        auth_headers: cabc.Mapping[str, str] | None = None,
    ) -> list[CatalogItem]:
        """Resolve every plugin into one catalog item per skill.

        Parameters
        ----------
        registry_source
            The registry's configured source URL. It must be GitHub-hosted.
        plugins
            The ``plugins`` array of the marketplace payload.
        owner
            The marketplace's top-level ``owner`` used as author fallback.
        auth_headers
            Headers for the trees API call.

        Returns
        -------
        list[CatalogItem]
            Explicitly listed skills first, then tree-discovered skills.

        Raises
        ------
        ValueError
            If ``registry_source`` is not a GitHub raw or blob URL.
        UpstreamError
            If the repository tree cannot be fetched.

        """
        coords = parse_github_url(registry_source)
        if coords is None:
            msg = f"registry source is not hosted on GitHub: {registry_source}"
            raise ValueError(msg)

        state = _Resolution(
            raw_base=raw_base_url(registry_source),
            tree=await self.fetch_tree(coords, auth_headers),
            owner=author_name(owner),
        )
        entries = [plugin for plugin in plugins if isinstance(plugin, dict)]

        items: list[CatalogItem] = []
        implicit: list[dict[str, typ.Any]] = []
        for plugin in entries:
            skill_paths = _explicit_skills(plugin)
            if skill_paths:
                items.extend(self._explicit_items(state, plugin, skill_paths))
            else:
                implicit.append(plugin)

        if implicit:
            items.extend(self._implicit_items(state, implicit))

        log_info(
            logger,
            "Resolved %d plugins into %d skills for %s/%s",
            len(entries),
            len(items),
            coords.owner,
            coords.repo,
        )
        return items

    def _explicit_items(
        self,
        state: _Resolution,
        plugin: dict[str, typ.Any],
        skill_paths: list[str],
    ) -> cabc.Iterator[CatalogItem]:
        plugin_name = str(plugin.get("name") or "")
        for skill_path in skill_paths:
            skill_dir = strip_dot_slash(skill_path).removesuffix("/")
            leaf = skill_dir.rsplit("/", 1)[-1]
            yield state.skill_item(
                plugin,
                name=f"{plugin_name}-{leaf}",
                skill_dir=skill_dir,
                label_source=plugin_name,
                tag=plugin_name,
            )

    def _implicit_items(
        self,
        state: _Resolution,
        plugins: list[dict[str, typ.Any]],
    ) -> list[CatalogItem]:
        blob_paths = {entry.path for entry in state.tree if entry.is_blob}
        items: list[CatalogItem] = []
        containers: list[tuple[str, dict[str, typ.Any]]] = []

        for plugin in plugins:
            plugin_dir = _plugin_dir(plugin)
            if not plugin_dir:
                continue
            if f"{plugin_dir}/{PRIMARY_FILENAME}" in blob_paths:
                label = str(plugin.get("category") or plugin.get("name") or "")
                items.append(
                    state.skill_item(
                        plugin,
                        name=str(plugin.get("name") or plugin_dir),
                        skill_dir=plugin_dir,
                        label_source=label,
                        tag=label,
                    )
                )
            else:
                containers.append((plugin_dir, plugin))

        for plugin_dir, plugin in containers:
            items.extend(self._nested_items(state, plugin_dir, plugin))
        return items

    def _nested_items(
        self,
        state: _Resolution,
        plugin_dir: str,
        plugin: dict[str, typ.Any],
    ) -> cabc.Iterator[CatalogItem]:
        prefix = f"{plugin_dir}/skills/"
        segment = plugin_dir.rsplit("/", 1)[-1]
        for entry in state.tree:
            if not entry.is_blob or not entry.path.startswith(prefix):
                continue
            skill_name, sep, filename = entry.path[len(prefix) :].partition("/")
            if not sep or filename != PRIMARY_FILENAME:
                continue
            yield state.skill_item(
                plugin,
                name=f"{segment}-{skill_name}",
                skill_dir=f"{prefix}{skill_name}",
                label_source=segment,
                tag=segment,
            )

    async def discover_companions(
        self,
        skill_md_url: str,
        auth_headers: cabc.Mapping[str, str] | None = None,
    ) -> list[str]:
        """Discover companion files for a skill from its raw ``SKILL.md`` URL.

        Used when a cached item predates companion discovery. Returns an
        empty list when the URL is not GitHub-shaped or the tree cannot be
        fetched.
        """
        coords = parse_github_url(skill_md_url)
        match = _RAW_SKILL_DIR.match(skill_md_url)
        if coords is None or match is None:
            return []
        try:
            tree = await self.fetch_tree(coords, auth_headers)
        except UpstreamError as exc:
            log_warning(logger, "Companion discovery failed for %s: %s", skill_md_url, exc)
            return []
        return find_companion_files(tree, f"{match['dir']}/")
