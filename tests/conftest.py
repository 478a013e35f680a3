"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from mercat.auth.codec import AuthCodec
from tests.helpers.marketplace import FakeRemote, ReversingCipher

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def cipher() -> ReversingCipher:
    """Return the deterministic test cipher."""
    return ReversingCipher()


@pytest.fixture
def codec(cipher: ReversingCipher) -> AuthCodec:
    """Return an auth codec over the test cipher."""
    return AuthCodec(cipher)


@pytest.fixture
def remote() -> FakeRemote:
    """Return an empty set of mocked remote responses."""
    return FakeRemote()


@pytest.fixture
def contents_dir(tmp_path: Path) -> Path:
    """Return an empty contents directory."""
    path = tmp_path / "contents"
    path.mkdir()
    return path
