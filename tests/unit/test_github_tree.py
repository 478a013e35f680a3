"""Unit tests for GitHub tree-based plugin resolution."""

from __future__ import annotations

import typing as typ

import pytest

from mercat.catalog.models import UrlSource
from mercat.fetch import UpstreamError
from mercat.github import (
    GitHubCoordinates,
    GitHubTreeResolver,
    TreeEntry,
    find_companion_files,
    parse_github_url,
    raw_base_url,
)
from tests.helpers.marketplace import tree_payload

if typ.TYPE_CHECKING:
    from mercat.catalog.models import CatalogItem
    from tests.helpers.marketplace import FakeRemote

_SOURCE = "https://raw.githubusercontent.com/acme/kit/main/.claude-plugin/marketplace.json"
_TREE_URL = "https://api.github.com/repos/acme/kit/git/trees/main?recursive=1"
_RAW_BASE = "https://raw.githubusercontent.com/acme/kit/main"
_FORBIDDEN = 403


def _source(item: CatalogItem) -> UrlSource:
    assert isinstance(item.source, UrlSource)
    return item.source


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        pytest.param(
            "https://raw.githubusercontent.com/acme/kit/refs/heads/dev/a/SKILL.md",
            GitHubCoordinates("acme", "kit", "dev"),
            id="raw-refs-heads",
        ),
        pytest.param(
            "https://github.com/acme/kit/blob/v1/marketplace.json",
            GitHubCoordinates("acme", "kit", "v1"),
            id="blob",
        ),
        pytest.param("https://registry.example.com/catalog.json", None, id="other"),
    ],
)
def test_parse_github_url(url: str, expected: GitHubCoordinates | None) -> None:
    """Raw and blob URLs yield repository coordinates."""
    assert parse_github_url(url) == expected


@pytest.mark.parametrize(
    "source",
    [
        _SOURCE,
        f"{_RAW_BASE}/marketplace.json",
        "https://github.com/acme/kit/blob/main/.claude-plugin/marketplace.json",
    ],
)
def test_raw_base_url_strips_marketplace_file(source: str) -> None:
    """The raw base is the repository root at the ref."""
    assert raw_base_url(source) == _RAW_BASE


def test_find_companion_files_excludes_primary_file() -> None:
    """Companions are sibling blobs relative to the skill directory."""
    tree = [
        TreeEntry("skills/seo/SKILL.md", "blob"),
        TreeEntry("skills/seo/references/phase-1.md", "blob"),
        TreeEntry("skills/seo/references", "tree"),
        TreeEntry("skills/seo-extra/SKILL.md", "blob"),
    ]

    assert find_companion_files(tree, "skills/seo/") == ["references/phase-1.md"]


@pytest.mark.asyncio
async def test_explicit_skill_paths_resolve_directly(remote: FakeRemote) -> None:
    """Listed skill paths become one item each, with companions from the tree."""
    remote.add_json(
        _TREE_URL,
        tree_payload(
            "skills/ab-test-setup/SKILL.md",
            "skills/ab-test-setup/references/guide.md",
            "skills/ab-test-setup/scripts/run.py",
            "skills/other/SKILL.md",
        ),
    )
    plugins = [
        {
            "name": "marketing",
            "description": "Growth skills",
            "author": {"name": "Ada"},
            "skills": ["./skills/ab-test-setup"],
        }
    ]

    items = await GitHubTreeResolver(remote.fetcher()).resolve_plugins(_SOURCE, plugins)

    assert len(items) == 1
    item = items[0]
    assert item.name == "marketing-ab-test-setup"
    assert item.display_name == {"en": "Ab Test Setup"}
    assert item.category == "Marketing"
    assert item.tags == ["marketing"]
    assert item.author == "Ada"
    assert item.description == {"en": "Growth skills"}
    source = _source(item)
    assert source.url.endswith("/skills/ab-test-setup/SKILL.md")
    assert source.url.startswith(_RAW_BASE)
    assert sorted(source.companions or []) == [
        "references/guide.md",
        "scripts/run.py",
    ]
    assert source.raw_base == _RAW_BASE
    await remote.aclose()


@pytest.mark.asyncio
async def test_container_plugin_yields_one_item_per_nested_skill(
    remote: FakeRemote,
) -> None:
    """Skills under ``{plugin}/skills/*/SKILL.md`` are each resolved."""
    remote.add_json(
        _TREE_URL,
        tree_payload(
            "myplugin/README.md",
            "myplugin/skills/foo/SKILL.md",
            "myplugin/skills/bar/SKILL.md",
            "myplugin/skills/bar/template.txt",
        ),
    )
    plugins = [{"name": "myplugin", "source": "./myplugin"}]

    items = await GitHubTreeResolver(remote.fetcher()).resolve_plugins(
        _SOURCE, plugins, owner={"name": "Acme"}
    )

    assert sorted(item.name for item in items) == ["myplugin-bar", "myplugin-foo"]
    by_name = {item.name: item for item in items}
    assert _source(by_name["myplugin-bar"]).companions == ["template.txt"]
    assert by_name["myplugin-foo"].category == "Myplugin"
    assert by_name["myplugin-foo"].author == "Acme"
    await remote.aclose()


@pytest.mark.asyncio
async def test_single_skill_plugin_is_named_after_plugin(remote: FakeRemote) -> None:
    """A plugin directory holding ``SKILL.md`` is one skill."""
    remote.add_json(_TREE_URL, tree_payload("pdf/SKILL.md", "pdf/forms.md"))
    plugins = [{"name": "pdf", "source": "./pdf", "category": "documents"}]

    items = await GitHubTreeResolver(remote.fetcher()).resolve_plugins(_SOURCE, plugins)

    assert [item.name for item in items] == ["pdf"]
    assert items[0].category == "Documents"
    assert items[0].tags == ["documents"]
    assert _source(items[0]).url == f"{_RAW_BASE}/pdf/SKILL.md"
    assert _source(items[0]).companions == ["forms.md"]
    await remote.aclose()


@pytest.mark.asyncio
async def test_tree_is_fetched_once_for_mixed_plugins(remote: FakeRemote) -> None:
    """Both phases share one trees API call."""
    remote.add_json(
        _TREE_URL,
        tree_payload("skills/a/SKILL.md", "docs/SKILL.md", "pack/skills/b/SKILL.md"),
    )
    plugins = [
        {"name": "listed", "skills": ["skills/a"]},
        {"name": "docs", "source": "./docs"},
        {"name": "pack", "source": "./pack"},
    ]

    items = await GitHubTreeResolver(remote.fetcher()).resolve_plugins(_SOURCE, plugins)

    assert [item.name for item in items] == ["listed-a", "docs", "pack-b"]
    assert remote.urls() == [_TREE_URL]
    await remote.aclose()


@pytest.mark.asyncio
async def test_tree_failure_propagates(remote: FakeRemote) -> None:
    """A failing trees API call is an upstream error, not an empty catalog."""
    remote.add_text(
        _TREE_URL, '{"message": "API rate limit exceeded"}', status=_FORBIDDEN
    )

    with pytest.raises(UpstreamError) as excinfo:
        await GitHubTreeResolver(remote.fetcher()).resolve_plugins(
            _SOURCE, [{"name": "x"}]
        )

    assert excinfo.value.status_code == _FORBIDDEN
    await remote.aclose()


@pytest.mark.asyncio
async def test_non_github_source_is_rejected(remote: FakeRemote) -> None:
    """Tree resolution needs GitHub coordinates."""
    resolver = GitHubTreeResolver(remote.fetcher())

    with pytest.raises(ValueError, match="not hosted on GitHub"):
        await resolver.resolve_plugins("https://registry.example.com/x.json", [])
    await remote.aclose()


@pytest.mark.asyncio
async def test_discover_companions_from_skill_url(remote: FakeRemote) -> None:
    """Companions are recovered from a raw ``SKILL.md`` URL."""
    remote.add_json(
        _TREE_URL,
        tree_payload("skills/seo/SKILL.md", "skills/seo/checklist.md"),
    )
    resolver = GitHubTreeResolver(remote.fetcher())

    companions = await resolver.discover_companions(
        f"{_RAW_BASE}/skills/seo/SKILL.md"
    )

    assert companions == ["checklist.md"]
    await remote.aclose()


@pytest.mark.parametrize(
    "url",
    [
        pytest.param("https://registry.example.com/skills/seo/SKILL.md", id="not-github"),
        pytest.param(f"{_RAW_BASE}/skills/seo/SKILL.md", id="tree-unavailable"),
    ],
)
@pytest.mark.asyncio
async def test_discover_companions_degrades_to_empty(
    remote: FakeRemote, url: str
) -> None:
    """Unresolvable URLs and tree failures yield no companions."""
    resolver = GitHubTreeResolver(remote.fetcher())

    assert await resolver.discover_companions(url) == []
    await remote.aclose()
