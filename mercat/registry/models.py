"""Registry records and the results of registry operations."""

from __future__ import annotations

import dataclasses
import re

import msgspec

from mercat.auth.models import AuthSpec, NoAuth

REGISTRY_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")
# Keys a caller may change through an update; everything else is managed.
MUTABLE_FIELDS = frozenset({"name", "description", "source", "auth", "enabled"})


class RegistryDraft(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Caller-supplied registry configuration before it is stored.

    Attributes
    ----------
    id
        Lowercase identifier made of letters, digits, and dashes. Also
        names the registry's cache file.
    name
        Human-readable registry name.
    source
        ``http(s)`` URL of the catalog or of the directory holding it.
    auth
        Credentials in plaintext, or as environment placeholders.
    enabled
        Disabled registries are hidden from queries and cannot refresh.
    description
        Optional free text shown alongside the registry.

    """

    id: str
    name: str
    source: str
    auth: AuthSpec = msgspec.field(default_factory=NoAuth)
    enabled: bool = True
    description: str | None = None


class Registry(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """A stored registry record.

    ``auth`` holds encrypted secrets when read from storage, and the
    redacted or decrypted projection when returned by the store.
    """

    id: str
    name: str
    source: str
    auth: AuthSpec = msgspec.field(default_factory=NoAuth)
    enabled: bool = True
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    last_synced: str | None = None
    item_count: int = 0


class RegistriesDocument(msgspec.Struct, kw_only=True):
    """Layout of ``config/registries.json``."""

    registries: list[Registry] = msgspec.field(default_factory=list)


@dataclasses.dataclass(slots=True, frozen=True)
class RefreshResult:
    """Outcome of a successful registry refresh."""

    registry_id: str
    item_count: int
    fetched_at: str
    catalog: dict[str, object]


@dataclasses.dataclass(slots=True, frozen=True)
class RegistryTestResult:
    """Outcome of a dry-run fetch against a registry configuration.

    A failed test is reported, not raised: ``success`` is ``False`` and
    ``message`` carries the reason.
    """

    success: bool
    item_count: int
    message: str

    @classmethod
    def connected(cls, item_count: int) -> RegistryTestResult:
        """Return a successful result for ``item_count`` items."""
        return cls(
            success=True,
            item_count=item_count,
            message=f"Connected successfully. Found {item_count} items.",
        )

    @classmethod
    def failed(cls, error: BaseException) -> RegistryTestResult:
        """Return a failed result describing ``error``."""
        return cls(success=False, item_count=0, message=str(error))
