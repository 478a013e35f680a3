"""Unit tests for registry CRUD, refresh, and dry-run testing."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from mercat.auth import REDACTED, BearerAuth, DecryptionError, HeaderAuth, NoAuth
from mercat.fetch.errors import UpstreamError
from mercat.registry import (
    DuplicateRegistryError,
    RegistryDisabledError,
    RegistryNotFoundError,
    RegistryValidationError,
)
from tests.helpers.marketplace import UNDECRYPTABLE, skill_item, standard_catalog

if typ.TYPE_CHECKING:
    from pathlib import Path

    from mercat.factory import Marketplace
    from tests.helpers.marketplace import FakeRemote

_SOURCE = "https://registry.example.com/skills"
_CATALOG_URL = f"{_SOURCE}/catalog.json"
_SERVER_ERROR = 500


def _config(**overrides: typ.Any) -> dict[str, typ.Any]:
    config: dict[str, typ.Any] = {
        "id": "community",
        "name": "Community",
        "source": _SOURCE,
        "auth": {"type": "bearer", "token": "tok-123"},
    }
    config.update(overrides)
    return config


def _stored(contents_dir: Path) -> list[dict[str, typ.Any]]:
    path = contents_dir / "config" / "registries.json"
    return msgspec.json.decode(path.read_bytes())["registries"]


@pytest.mark.asyncio
async def test_create_encrypts_on_disk_and_redacts_result(
    marketplace: Marketplace, contents_dir: Path
) -> None:
    """Secrets are ciphertext at rest and redacted in returned records."""
    created = await marketplace.registries.create(_config())

    assert created.auth == BearerAuth(token=REDACTED)
    assert created.created_at is not None
    assert created.item_count == 0
    assert created.last_synced is None

    (record,) = _stored(contents_dir)
    assert record["auth"]["token"] == "enc:321-kot"
    assert record["createdAt"] == created.created_at
    assert "tok-123" not in (contents_dir / "config" / "registries.json").read_text()


@pytest.mark.asyncio
async def test_list_and_get_are_redacted(marketplace: Marketplace) -> None:
    """Read operations never expose plaintext or ciphertext."""
    await marketplace.registries.create(
        _config(auth={"type": "header", "headerName": "X-Key", "headerValue": "k-1"})
    )

    listed = await marketplace.registries.list()
    fetched = await marketplace.registries.get("community")

    assert listed == [fetched]
    assert fetched.auth == HeaderAuth(header_name="X-Key", header_value=REDACTED)


@pytest.mark.asyncio
async def test_get_with_auth_decrypts(marketplace: Marketplace) -> None:
    """Internal callers get the plaintext credentials back."""
    await marketplace.registries.create(_config())

    registry = await marketplace.registries.get_with_auth("community")

    assert registry.auth == BearerAuth(token="tok-123")


@pytest.mark.asyncio
async def test_create_rejects_duplicate_id(
    marketplace: Marketplace, contents_dir: Path
) -> None:
    """A second registry with the same id is refused."""
    await marketplace.registries.create(_config())

    with pytest.raises(DuplicateRegistryError, match="already exists"):
        await marketplace.registries.create(_config(name="Other"))

    assert [record["name"] for record in _stored(contents_dir)] == ["Community"]


@pytest.mark.parametrize(
    "config",
    [
        pytest.param(_config(id="Bad ID"), id="id-not-slug"),
        pytest.param(_config(name="  "), id="empty-name"),
        pytest.param(_config(source="ftp://example.com"), id="non-http-source"),
        pytest.param(_config(auth={"type": "bearer"}), id="missing-token"),
        pytest.param(_config(auth={"type": "oauth"}), id="unknown-auth"),
        pytest.param({"id": "x", "name": "X"}, id="missing-source"),
    ],
)
@pytest.mark.asyncio
async def test_create_rejects_invalid_config(
    marketplace: Marketplace, contents_dir: Path, config: dict[str, typ.Any]
) -> None:
    """Invalid configurations raise and leave nothing on disk."""
    with pytest.raises(RegistryValidationError):
        await marketplace.registries.create(config)

    assert not (contents_dir / "config" / "registries.json").exists()


@pytest.mark.asyncio
async def test_unknown_registry_raises(marketplace: Marketplace) -> None:
    """Lookups and mutations of an unknown id fail with a not-found error."""
    with pytest.raises(RegistryNotFoundError):
        await marketplace.registries.get("missing")
    with pytest.raises(RegistryNotFoundError):
        await marketplace.registries.update("missing", {"name": "X"})
    with pytest.raises(RegistryNotFoundError):
        await marketplace.registries.delete("missing")
    with pytest.raises(RegistryNotFoundError):
        await marketplace.registries.refresh("missing")


@pytest.mark.asyncio
async def test_update_keeps_redacted_secret(
    marketplace: Marketplace, contents_dir: Path
) -> None:
    """Echoing the placeholder back preserves the stored token."""
    await marketplace.registries.create(_config())
    before = _stored(contents_dir)[0]["auth"]["token"]

    updated = await marketplace.registries.update(
        "community",
        {"name": "Renamed", "auth": {"type": "bearer", "token": REDACTED}},
    )

    assert updated.name == "Renamed"
    assert updated.updated_at is not None
    assert _stored(contents_dir)[0]["auth"]["token"] == before
    registry = await marketplace.registries.get_with_auth("community")
    assert registry.auth == BearerAuth(token="tok-123")


@pytest.mark.asyncio
async def test_update_replaces_secret(marketplace: Marketplace) -> None:
    """A new plaintext secret is encrypted and replaces the old one."""
    await marketplace.registries.create(_config())

    await marketplace.registries.update(
        "community", {"auth": {"type": "bearer", "token": "tok-999"}}
    )

    registry = await marketplace.registries.get_with_auth("community")
    assert registry.auth == BearerAuth(token="tok-999")


@pytest.mark.asyncio
async def test_update_ignores_id_and_managed_fields(marketplace: Marketplace) -> None:
    """The id, timestamps, and item count cannot be patched."""
    created = await marketplace.registries.create(_config())

    updated = await marketplace.registries.update(
        "community",
        {"id": "renamed", "itemCount": 99, "createdAt": "1970-01-01T00:00:00Z"},
    )

    assert updated.id == "community"
    assert updated.item_count == 0
    assert updated.created_at == created.created_at


@pytest.mark.asyncio
async def test_update_rejects_placeholder_for_new_auth_type(
    marketplace: Marketplace,
) -> None:
    """A placeholder cannot be restored from a different auth type."""
    await marketplace.registries.create(_config())

    with pytest.raises(RegistryValidationError, match="headerValue"):
        await marketplace.registries.update(
            "community",
            {"auth": {"type": "header", "headerName": "X-Key", "headerValue": REDACTED}},
        )


@pytest.mark.asyncio
async def test_update_can_clear_auth(marketplace: Marketplace) -> None:
    """Switching to anonymous access drops the stored secret."""
    await marketplace.registries.create(_config())

    updated = await marketplace.registries.update("community", {"auth": {"type": "none"}})

    assert updated.auth == NoAuth()


@pytest.mark.asyncio
async def test_delete_removes_record_and_cache(
    marketplace: Marketplace, remote: FakeRemote, contents_dir: Path
) -> None:
    """Deleting a registry also drops its cached catalog."""
    remote.add_json(_CATALOG_URL, standard_catalog(skill_item("seo")))
    await marketplace.registries.create(_config())
    await marketplace.registries.refresh("community")
    cache_file = contents_dir / ".registry-cache" / "community.json"
    assert cache_file.exists()

    await marketplace.registries.delete("community")

    assert await marketplace.registries.list() == []
    assert not cache_file.exists()


@pytest.mark.asyncio
async def test_refresh_caches_catalog_and_updates_record(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """A successful refresh writes the cache and stamps the record."""
    remote.add_json(
        _CATALOG_URL, standard_catalog(skill_item("seo"), skill_item("brand"))
    )
    await marketplace.registries.create(_config())

    result = await marketplace.registries.refresh("community")

    assert result.registry_id == "community"
    assert result.item_count == 2
    assert [item["name"] for item in result.catalog["items"]] == ["seo", "brand"]
    registry = await marketplace.registries.get("community")
    assert registry.item_count == 2
    assert registry.last_synced is not None
    assert remote.requests[-1].headers["Authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_snapshot(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """An upstream failure leaves the cache and sync metadata untouched."""
    remote.add_json(_CATALOG_URL, standard_catalog(skill_item("seo")))
    await marketplace.registries.create(_config())
    first = await marketplace.registries.refresh("community")
    synced = (await marketplace.registries.get("community")).last_synced

    remote.add_text(_CATALOG_URL, "boom", status=_SERVER_ERROR)
    with pytest.raises(UpstreamError) as excinfo:
        await marketplace.registries.refresh("community")

    assert excinfo.value.status_code == _SERVER_ERROR
    registry = await marketplace.registries.get("community")
    assert registry.last_synced == synced
    assert registry.item_count == 1
    detail = await marketplace.items.get_registry_catalog("community")
    assert detail.entry is not None
    assert detail.entry.fetched_at == first.fetched_at


@pytest.mark.asyncio
async def test_refresh_rejects_disabled_registry(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """Disabled registries cannot be refreshed and make no requests."""
    await marketplace.registries.create(_config(enabled=False))

    with pytest.raises(RegistryDisabledError):
        await marketplace.registries.refresh("community")

    assert remote.requests == []


@pytest.mark.asyncio
async def test_refresh_with_undecryptable_secret(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """A secret that no longer decrypts is reported without sending it."""
    await marketplace.registries.create(
        _config(auth={"type": "bearer", "token": UNDECRYPTABLE})
    )

    with pytest.raises(DecryptionError, match="re-enter"):
        await marketplace.registries.refresh("community")

    assert remote.requests == []
    result = await marketplace.registries.test_saved("community")
    assert result.success is False


@pytest.mark.asyncio
async def test_dry_run_reports_item_count(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """Testing an unsaved configuration fetches without persisting."""
    remote.add_json(
        _CATALOG_URL, standard_catalog(skill_item("seo"), skill_item("brand"))
    )

    result = await marketplace.registries.test(_config())

    assert result.success is True
    assert result.item_count == 2
    assert result.message == "Connected successfully. Found 2 items."
    assert await marketplace.registries.list() == []


@pytest.mark.parametrize(
    ("config", "message"),
    [
        pytest.param(_config(), "HTTP 404", id="not-found"),
        pytest.param(_config(source="ftp://nowhere"), "http(s)", id="invalid"),
    ],
)
@pytest.mark.asyncio
async def test_dry_run_reports_failures(
    marketplace: Marketplace, config: dict[str, typ.Any], message: str
) -> None:
    """Failures are returned in the result instead of raised."""
    result = await marketplace.registries.test(config)

    assert result.success is False
    assert result.item_count == 0
    assert message in result.message


@pytest.mark.asyncio
async def test_saved_registry_dry_run_uses_stored_secret(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """Stored credentials are decrypted for a saved registry dry run."""
    remote.add_json(_CATALOG_URL, standard_catalog(skill_item("seo")))
    await marketplace.registries.create(_config())

    result = await marketplace.registries.test_saved("community")

    assert result.success is True
    assert remote.requests[-1].headers["Authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_refresh_rejects_non_json_catalog(
    marketplace: Marketplace, remote: FakeRemote
) -> None:
    """A login page served with 200 fails upstream and keeps the snapshot."""
    remote.add_json(_CATALOG_URL, standard_catalog(skill_item("seo")))
    await marketplace.registries.create(_config())
    first = await marketplace.registries.refresh("community")
    synced = (await marketplace.registries.get("community")).last_synced

    remote.add_text(_CATALOG_URL, "<html>login</html>")
    with pytest.raises(UpstreamError, match="JSON object"):
        await marketplace.registries.refresh("community")

    registry = await marketplace.registries.get("community")
    assert registry.last_synced == synced
    detail = await marketplace.items.get_registry_catalog("community")
    assert detail.entry is not None
    assert detail.entry.fetched_at == first.fetched_at
    result = await marketplace.registries.test(_config())
    assert result.success is False
