"""Unit-test fixtures for the registry store and query engine."""

from __future__ import annotations

import typing as typ

import pytest_asyncio

from tests.helpers.marketplace import build_test_marketplace

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from mercat.factory import Marketplace
    from tests.helpers.marketplace import FakeRemote


@pytest_asyncio.fixture
async def marketplace(
    contents_dir: Path, remote: FakeRemote
) -> cabc.AsyncIterator[Marketplace]:
    """Yield marketplace services wired to a temporary contents tree."""
    services = build_test_marketplace(contents_dir, remote)
    try:
        yield services
    finally:
        await remote.aclose()
