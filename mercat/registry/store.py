"""Registry configuration management and catalog refresh.

``RegistryStore`` owns the registries document. It protects credentials at
rest through :class:`~mercat.auth.codec.AuthCodec`, hands out redacted
records to callers, and drives the fetch, normalise, and cache pipeline when
a registry is refreshed.
"""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec

from mercat.auth.errors import DecryptionError
from mercat.common.errors import MarketplaceError
from mercat.common.time import now_z, utcnow
from mercat.fetch.errors import UpstreamError
from mercat.fetch.headers import build_auth_headers
from mercat.fetch.urls import resolve_catalog_url

from .errors import (
    DuplicateRegistryError,
    RegistryDisabledError,
    RegistryNotFoundError,
    RegistryValidationError,
)
from .models import (
    MUTABLE_FIELDS,
    REGISTRY_ID_PATTERN,
    RefreshResult,
    RegistriesDocument,
    Registry,
    RegistryDraft,
    RegistryTestResult,
)
from .observability import MarketplaceEventLogger, MarketplaceEventType

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from mercat.auth.codec import AuthCodec
    from mercat.auth.models import AuthSpec
    from mercat.catalog.cache import CatalogCache
    from mercat.catalog.normalizer import CatalogNormalizer
    from mercat.fetch.fetcher import CatalogFetcher

    from .documents import JsonDocument

_URL_SCHEMES = ("http://", "https://")


def validate_draft(config: cabc.Mapping[str, typ.Any]) -> RegistryDraft:
    """Decode and check a registry configuration.

    Raises
    ------
    RegistryValidationError
        If the configuration is malformed: missing fields, an unknown auth
        type, an auth block missing its credentials, an id that is not a
        lowercase slug, an empty name, or a non-HTTP source.

    """
    try:
        draft = msgspec.convert(dict(config), type=RegistryDraft)
    except msgspec.ValidationError as exc:
        raise RegistryValidationError([str(exc)]) from exc

    issues: list[str] = []
    if not REGISTRY_ID_PATTERN.match(draft.id):
        issues.append(
            "id must contain only lowercase letters, digits, and dashes"
        )
    if not draft.name.strip():
        issues.append("name must not be empty")
    if not draft.source.startswith(_URL_SCHEMES):
        issues.append("source must be an http(s) URL")
    if issues:
        raise RegistryValidationError(issues)
    return draft


class RegistryStore:
    """CRUD and refresh over the persisted registry records.

    Parameters
    ----------
    document
        Port for ``config/registries.json``.
    codec
        Encrypts secrets before storage and redacts them on the way out.
    fetcher
        Fetches remote catalogs through the throttled HTTP port.
    normalizer
        Maps fetched payloads onto catalog builtins.
    cache
        Per-registry catalog snapshots.
    events
        Structured event logger; a default instance is created when omitted.

    Notes
    -----
    Mutations of the registries document are serialised by a per-store
    lock. Network work during a refresh happens outside the lock and only
    the final metadata update takes it.

    """

    def __init__(  # noqa: PLR0913
        self,
        document: JsonDocument,
        codec: AuthCodec,
        fetcher: CatalogFetcher,
        normalizer: CatalogNormalizer,
        cache: CatalogCache,
        *,
        events: MarketplaceEventLogger | None = None,
    ) -> None:
        """Wire the store to its document, codec, and catalog pipeline."""
        self._document = document
        self._codec = codec
        self._fetcher = fetcher
        self._normalizer = normalizer
        self._cache = cache
        self._events = events or MarketplaceEventLogger()
        self._write_lock = asyncio.Lock()

    async def list(self) -> list[Registry]:
        """Return every registry with secrets redacted."""
        return [self._redacted(registry) for registry in await self._load()]

    async def get(self, registry_id: str) -> Registry:
        """Return one registry with secrets redacted.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.

        """
        return self._redacted(self._find(await self._load(), registry_id))

    async def get_with_auth(self, registry_id: str) -> Registry:
        """Return one registry with secrets decrypted.

        For internal callers building authenticated requests only; the
        result must never be handed to an external client.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.

        """
        registry = self._find(await self._load(), registry_id)
        return msgspec.structs.replace(registry, auth=self._codec.decrypt(registry.auth))

    def has_sealed_auth(self, registry: Registry) -> bool:
        """Return True when a secret of ``registry`` failed to decrypt.

        Such a registry must not send its credentials anywhere: the value
        left in place is ciphertext.
        """
        return self._codec.is_sealed(registry.auth)

    async def create(self, config: cabc.Mapping[str, typ.Any]) -> Registry:
        """Validate, encrypt, and persist a new registry.

        Returns
        -------
        Registry
            The stored record with secrets redacted.

        Raises
        ------
        RegistryValidationError
            If ``config`` is malformed.
        DuplicateRegistryError
            If a registry with the same id already exists.

        """
        draft = validate_draft(config)
        async with self._write_lock:
            registries = await self._load()
            if any(existing.id == draft.id for existing in registries):
                raise DuplicateRegistryError(draft.id)

            registry = Registry(
                id=draft.id,
                name=draft.name,
                source=draft.source,
                auth=self._codec.encrypt(draft.auth),
                enabled=draft.enabled,
                description=draft.description,
                created_at=now_z(),
                last_synced=None,
                item_count=0,
            )
            await self._save([*registries, registry])

        self._events.log_registry_changed(
            MarketplaceEventType.REGISTRY_CREATED, registry_id=registry.id
        )
        return self._redacted(registry)

    async def update(
        self, registry_id: str, patch: cabc.Mapping[str, typ.Any]
    ) -> Registry:
        """Apply ``patch`` to a stored registry.

        Secrets equal to the redaction placeholder keep their stored value.
        The id is immutable and an ``id`` key in ``patch`` is ignored, as
        are the managed timestamps and item count.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.
        RegistryValidationError
            If the merged configuration is malformed or a redacted secret
            cannot be restored.

        """
        async with self._write_lock:
            registries = await self._load()
            existing = self._find(registries, registry_id)

            merged = msgspec.to_builtins(
                RegistryDraft(
                    id=existing.id,
                    name=existing.name,
                    source=existing.source,
                    auth=existing.auth,
                    enabled=existing.enabled,
                    description=existing.description,
                )
            )
            merged.update(
                {key: value for key, value in patch.items() if key in MUTABLE_FIELDS}
            )
            merged["id"] = registry_id
            draft = validate_draft(merged)

            try:
                auth = self._codec.restore_redacted(draft.auth, existing.auth)
            except ValueError as exc:
                raise RegistryValidationError([str(exc)]) from exc

            updated = msgspec.structs.replace(
                existing,
                name=draft.name,
                source=draft.source,
                auth=self._codec.encrypt(auth),
                enabled=draft.enabled,
                description=draft.description,
                updated_at=now_z(),
            )
            await self._save(
                [updated if item.id == registry_id else item for item in registries]
            )

        self._events.log_registry_changed(
            MarketplaceEventType.REGISTRY_UPDATED, registry_id=registry_id
        )
        return self._redacted(updated)

    async def delete(self, registry_id: str) -> None:
        """Remove a registry record and its cached catalog.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.

        """
        async with self._write_lock:
            registries = await self._load()
            self._find(registries, registry_id)
            await self._save([item for item in registries if item.id != registry_id])

        await self._cache.delete(registry_id)
        self._events.log_registry_changed(
            MarketplaceEventType.REGISTRY_DELETED, registry_id=registry_id
        )

    async def refresh(self, registry_id: str) -> RefreshResult:
        """Fetch, normalise, and cache a registry's catalog.

        On success the snapshot is replaced and the record's ``lastSynced``
        and ``itemCount`` are updated. On any failure neither the snapshot
        nor the record is touched.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.
        RegistryDisabledError
            If the registry is disabled.
        DecryptionError
            If a stored secret can no longer be decrypted.
        UpstreamError
            If the registry or the GitHub API cannot be fetched, or the
            catalog is not a JSON object.

        """
        registry = await self.get_with_auth(registry_id)
        if not registry.enabled:
            raise RegistryDisabledError(registry_id)
        if self.has_sealed_auth(registry):
            raise DecryptionError(registry_id)

        started = utcnow()
        self._events.log_refresh_started(registry_id=registry_id, source=registry.source)
        try:
            catalog = await self._fetch_source(registry.source, registry.auth)
            entry = await self._cache.write(registry_id, catalog)
        except MarketplaceError as exc:
            self._events.log_refresh_failed(
                registry_id=registry_id, error=exc, duration=utcnow() - started
            )
            raise

        item_count = len(entry.items)
        async with self._write_lock:
            registries = await self._load()
            if any(item.id == registry_id for item in registries):
                await self._save(
                    [
                        msgspec.structs.replace(
                            item, last_synced=now_z(), item_count=item_count
                        )
                        if item.id == registry_id
                        else item
                        for item in registries
                    ]
                )

        self._events.log_refresh_completed(
            registry_id=registry_id,
            item_count=item_count,
            duration=utcnow() - started,
        )
        return RefreshResult(
            registry_id=registry_id,
            item_count=item_count,
            fetched_at=entry.fetched_at,
            catalog=entry.catalog,
        )

    async def test(self, config: cabc.Mapping[str, typ.Any]) -> RegistryTestResult:
        """Dry-run a fetch against an unsaved configuration.

        Plaintext credentials are allowed. Nothing is persisted and failures
        are reported in the result rather than raised.
        """
        try:
            draft = validate_draft(config)
        except RegistryValidationError as exc:
            return RegistryTestResult.failed(exc)
        return await self._test_source(draft.source, self._codec.decrypt(draft.auth))

    async def test_saved(self, registry_id: str) -> RegistryTestResult:
        """Dry-run a fetch against a stored registry using its credentials.

        Raises
        ------
        RegistryNotFoundError
            If no registry has ``registry_id``.

        """
        registry = await self.get_with_auth(registry_id)
        if self.has_sealed_auth(registry):
            return RegistryTestResult.failed(DecryptionError(registry_id))
        return await self._test_source(registry.source, registry.auth)

    async def _test_source(self, source: str, auth: AuthSpec) -> RegistryTestResult:
        try:
            catalog = await self._fetch_source(source, auth)
        except MarketplaceError as exc:
            result = RegistryTestResult.failed(exc)
        else:
            items = catalog.get("items")
            result = RegistryTestResult.connected(
                len(items) if isinstance(items, list) else 0
            )
        self._events.log_registry_tested(
            source=source, success=result.success, item_count=result.item_count
        )
        return result

    async def _fetch_source(self, source: str, auth: AuthSpec) -> dict[str, typ.Any]:
        headers = build_auth_headers(auth)
        url = resolve_catalog_url(source)
        payload = await self._fetcher.fetch(url, headers)
        if not isinstance(payload, dict):
            # An HTML login page served with 200 lands here as text.
            raise UpstreamError.unexpected_payload(url, "a JSON object")
        return await self._normalizer.normalize(payload, source, headers)

    async def _load(self) -> list[Registry]:
        data = await self._document.load()
        try:
            return msgspec.convert(data, type=RegistriesDocument).registries
        except msgspec.ValidationError as exc:
            msg = f"registries document is malformed: {exc}"
            raise RegistryValidationError([msg]) from exc

    async def _save(self, registries: list[Registry]) -> None:
        await self._document.save(
            msgspec.to_builtins(RegistriesDocument(registries=registries))
        )

    def _find(self, registries: list[Registry], registry_id: str) -> Registry:
        for registry in registries:
            if registry.id == registry_id:
                return registry
        raise RegistryNotFoundError(registry_id)

    def _redacted(self, registry: Registry) -> Registry:
        return msgspec.structs.replace(registry, auth=self._codec.redact(registry.auth))
