"""Configuration for the marketplace registry services.

This module provides :class:`MarketplaceConfig`, which locates the on-disk
documents (registries, installations, catalog cache, skills) and tunes the
outbound HTTP client used for registry fetches.

Usage
-----
Create a configuration with defaults:

>>> config = MarketplaceConfig()
>>> config.registries_path.as_posix()
'contents/config/registries.json'

Or load from environment variables:

>>> import os
>>> os.environ["MERCAT_CONTENTS_DIR"] = "/srv/contents"
>>> MarketplaceConfig.from_env().cache_dir.as_posix()
'/srv/contents/.registry-cache'

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_CONCURRENCY = 4
_DEFAULT_USER_AGENT = "mercat/0.1"
_DEFAULT_LOG_LEVEL = "INFO"


class MarketplaceConfigError(ValueError):
    """Raised when marketplace configuration values are invalid."""

    @classmethod
    def not_positive(cls, env_var: str, raw: str) -> MarketplaceConfigError:
        """Return an error for a value that must be a positive number."""
        return cls(f"{env_var} must be a positive number, got: {raw!r}")

    @classmethod
    def missing_encryption_key(cls) -> MarketplaceConfigError:
        """Return an error when no credential encryption key is configured."""
        return cls("MERCAT_ENCRYPTION_KEY is required to protect registry secrets")


@dc.dataclass(frozen=True, slots=True)
class MarketplaceConfig:
    """Locations and HTTP tuning for the marketplace subsystem.

    Attributes
    ----------
    contents_dir
        Root of the contents tree. Registry and installation documents live
        under ``{contents_dir}/config``.
    cache_dir
        Directory holding one ``{registry_id}.json`` cache file per registry.
        Defaults to ``{contents_dir}/.registry-cache``.
    skills_dir
        Directory of skills already materialised on disk. Defaults to
        ``{contents_dir}/skills``.
    http_timeout_s
        Timeout applied by the default HTTP client to every registry call.
    http_concurrency
        Maximum number of in-flight requests per throttle tag.
    user_agent
        ``User-Agent`` header sent with every outbound request.
    encryption_key
        Fernet key protecting registry secrets at rest. Only required when
        the default cipher is built from configuration.
    log_level
        femtologging level applied by :func:`mercat.factory.build_marketplace`.

    """

    contents_dir: Path = Path("contents")
    cache_dir: Path | None = None
    skills_dir: Path | None = None
    http_timeout_s: float = _DEFAULT_TIMEOUT_S
    http_concurrency: int = _DEFAULT_CONCURRENCY
    user_agent: str = _DEFAULT_USER_AGENT
    encryption_key: str | None = dc.field(default=None, repr=False)
    log_level: str = _DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        """Fill directory defaults derived from ``contents_dir``."""
        if self.cache_dir is None:
            object.__setattr__(self, "cache_dir", self.contents_dir / ".registry-cache")
        if self.skills_dir is None:
            object.__setattr__(self, "skills_dir", self.contents_dir / "skills")

    @property
    def registries_path(self) -> Path:
        """Return the path of the registries configuration document."""
        return self.contents_dir / "config" / "registries.json"

    @property
    def installations_path(self) -> Path:
        """Return the path of the installations ledger document."""
        return self.contents_dir / "config" / "installations.json"

    @staticmethod
    def _parse_positive(env_var: str, default: float, kind: type[float] | type[int]) -> float:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = kind(raw)
        except ValueError as exc:
            raise MarketplaceConfigError.not_positive(env_var, raw) from exc
        if value <= 0:
            raise MarketplaceConfigError.not_positive(env_var, raw)
        return value

    @staticmethod
    def _optional_path(env_var: str) -> Path | None:
        raw = os.environ.get(env_var, "").strip()
        return Path(raw) if raw else None

    @classmethod
    def from_env(cls) -> MarketplaceConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``MERCAT_CONTENTS_DIR``: contents root (default ``contents``).
        - ``MERCAT_CACHE_DIR``: catalog cache directory override.
        - ``MERCAT_SKILLS_DIR``: on-disk skills directory override.
        - ``MERCAT_HTTP_TIMEOUT_S``: positive float request timeout.
        - ``MERCAT_HTTP_CONCURRENCY``: positive integer per-tag concurrency.
        - ``MERCAT_USER_AGENT``: outbound ``User-Agent`` header.
        - ``MERCAT_ENCRYPTION_KEY``: Fernet key for registry secrets.
        - ``MERCAT_LOG_LEVEL``: log level name (default ``INFO``).

        Raises
        ------
        MarketplaceConfigError
            If a numeric variable is not a positive number.

        """
        contents_dir = cls._optional_path("MERCAT_CONTENTS_DIR") or Path("contents")
        user_agent = os.environ.get("MERCAT_USER_AGENT", "").strip()
        encryption_key = os.environ.get("MERCAT_ENCRYPTION_KEY", "").strip()
        return cls(
            contents_dir=contents_dir,
            cache_dir=cls._optional_path("MERCAT_CACHE_DIR"),
            skills_dir=cls._optional_path("MERCAT_SKILLS_DIR"),
            http_timeout_s=float(
                cls._parse_positive("MERCAT_HTTP_TIMEOUT_S", _DEFAULT_TIMEOUT_S, float)
            ),
            http_concurrency=int(
                cls._parse_positive("MERCAT_HTTP_CONCURRENCY", _DEFAULT_CONCURRENCY, int)
            ),
            user_agent=user_agent or _DEFAULT_USER_AGENT,
            encryption_key=encryption_key or None,
            log_level=os.environ.get("MERCAT_LOG_LEVEL", _DEFAULT_LOG_LEVEL),
        )
