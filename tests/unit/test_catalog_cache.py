"""Unit tests for per-registry catalog snapshots."""

from __future__ import annotations

import typing as typ

import pytest

from mercat.catalog import CatalogCache

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def cache(tmp_path: Path) -> CatalogCache:
    """Return a cache rooted in a directory that does not exist yet."""
    return CatalogCache(tmp_path / ".registry-cache")


@pytest.mark.asyncio
async def test_read_missing_entry_returns_none(cache: CatalogCache) -> None:
    """A registry that was never refreshed is simply not cached."""
    assert await cache.read("community") is None


@pytest.mark.asyncio
async def test_write_then_read(cache: CatalogCache) -> None:
    """Written snapshots are read back with their timestamp."""
    catalog = {"name": "Community", "items": [{"type": "skill", "name": "seo"}]}

    written = await cache.write("community", catalog)
    entry = await cache.read("community")

    assert entry == written
    assert entry is not None
    assert entry.registry_id == "community"
    assert entry.fetched_at.endswith("Z")
    assert entry.items == [{"type": "skill", "name": "seo"}]
    raw = cache.path_for("community").read_text(encoding="utf-8")
    assert '"registryId"' in raw
    assert '"fetchedAt"' in raw


@pytest.mark.asyncio
async def test_write_replaces_previous_entry(cache: CatalogCache) -> None:
    """Refreshing overwrites the prior snapshot without leaving temp files."""
    await cache.write("community", {"items": [{"name": "old"}]})
    await cache.write("community", {"items": [{"name": "new"}]})

    entry = await cache.read("community")

    assert entry is not None
    assert entry.items == [{"name": "new"}]
    assert [path.name for path in cache.path_for("community").parent.iterdir()] == [
        "community.json"
    ]


@pytest.mark.parametrize(
    "content",
    [
        pytest.param("{not json", id="invalid-json"),
        pytest.param('{"registryId": "community"}', id="missing-fields"),
    ],
)
@pytest.mark.asyncio
async def test_unreadable_entry_is_treated_as_missing(
    cache: CatalogCache, content: str
) -> None:
    """Corrupt snapshots read as ``None`` instead of raising."""
    path = cache.path_for("community")
    path.parent.mkdir(parents=True)
    path.write_text(content, encoding="utf-8")

    assert await cache.read("community") is None


@pytest.mark.asyncio
async def test_delete_is_best_effort(cache: CatalogCache) -> None:
    """Deleting removes the file and tolerates a missing one."""
    await cache.write("community", {"items": []})

    await cache.delete("community")
    await cache.delete("community")

    assert not cache.path_for("community").exists()
