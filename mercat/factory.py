"""Composition root for the marketplace services.

:func:`build_marketplace` wires every component from a
:class:`~mercat.config.MarketplaceConfig`. Collaborators can be overridden
individually, which is how tests substitute a fake cipher or a mocked HTTP
transport.

Usage
-----
>>> marketplace = build_marketplace(MarketplaceConfig.from_env())
>>> await marketplace.registries.refresh("community")
>>> page = await marketplace.items.get_all_items(ItemFilters(type="skill"))
>>> await marketplace.aclose()

"""

from __future__ import annotations

import dataclasses
import typing as typ

from mercat.auth.cipher import FernetStringCipher
from mercat.auth.codec import AuthCodec
from mercat.catalog.cache import CatalogCache
from mercat.catalog.normalizer import CatalogNormalizer
from mercat.config import MarketplaceConfig, MarketplaceConfigError
from mercat.fetch.fetcher import CatalogFetcher
from mercat.fetch.http import HttpxThrottledClient
from mercat.github.tree import GitHubTreeResolver
from mercat.logging import configure_logging, get_logger, log_info, log_warning
from mercat.query.engine import ItemQueryEngine
from mercat.query.installations import DirectorySkillInventory, JsonInstallationLedger
from mercat.registry.documents import JsonFileDocument
from mercat.registry.store import RegistryStore

if typ.TYPE_CHECKING:
    from pathlib import Path

    from mercat.auth.cipher import StringCipher
    from mercat.fetch.http import ThrottledHttpClient

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Marketplace:
    """The wired marketplace services.

    Attributes
    ----------
    registries
        Registry CRUD and refresh.
    items
        Catalog listing and item detail queries.
    resolver
        GitHub tree resolver, also used to rediscover companion files for
        skills cached before companions were recorded.
    http
        The throttled HTTP client; closed by :meth:`aclose` when owned.

    """

    registries: RegistryStore
    items: ItemQueryEngine
    resolver: GitHubTreeResolver
    http: ThrottledHttpClient
    _owns_http: bool = False

    async def aclose(self) -> None:
        """Close the HTTP client if the factory created it."""
        if self._owns_http and isinstance(self.http, HttpxThrottledClient):
            await self.http.aclose()


def build_cipher(config: MarketplaceConfig) -> StringCipher:
    """Return the Fernet cipher configured by ``MERCAT_ENCRYPTION_KEY``.

    Raises
    ------
    MarketplaceConfigError
        If no encryption key is configured.

    """
    if not config.encryption_key:
        raise MarketplaceConfigError.missing_encryption_key()
    return FernetStringCipher(config.encryption_key)


def build_marketplace(
    config: MarketplaceConfig,
    *,
    cipher: StringCipher | None = None,
    http: ThrottledHttpClient | None = None,
    configure_log_level: bool = True,
) -> Marketplace:
    """Wire the marketplace services described by ``config``.

    Parameters
    ----------
    config
        Locations and HTTP tuning.
    cipher
        Secret cipher; defaults to :func:`build_cipher`.
    http
        Throttled HTTP client; defaults to an owned
        :class:`~mercat.fetch.http.HttpxThrottledClient`.
    configure_log_level
        Apply ``config.log_level`` to femtologging.

    Raises
    ------
    MarketplaceConfigError
        If no cipher is supplied and no encryption key is configured.

    """
    if configure_log_level:
        level, invalid = configure_logging(config.log_level)
        if invalid:
            log_warning(
                logger,
                "Invalid MERCAT_LOG_LEVEL %r, falling back to %s",
                config.log_level,
                level,
            )

    codec = AuthCodec(cipher or build_cipher(config))
    owns_http = http is None
    client: ThrottledHttpClient = http or HttpxThrottledClient(
        timeout_s=config.http_timeout_s,
        user_agent=config.user_agent,
        concurrency=config.http_concurrency,
    )

    fetcher = CatalogFetcher(client)
    resolver = GitHubTreeResolver(fetcher)
    cache = CatalogCache(typ.cast("Path", config.cache_dir))
    registries = RegistryStore(
        JsonFileDocument(config.registries_path),
        codec,
        fetcher,
        CatalogNormalizer(resolver),
        cache,
    )
    items = ItemQueryEngine(
        registries,
        cache,
        fetcher,
        JsonInstallationLedger(JsonFileDocument(config.installations_path)),
        DirectorySkillInventory(typ.cast("Path", config.skills_dir)),
    )

    log_info(logger, "Marketplace ready (contents_dir=%s)", config.contents_dir)
    return Marketplace(
        registries=registries,
        items=items,
        resolver=resolver,
        http=client,
        _owns_http=owns_http,
    )
