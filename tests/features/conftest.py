"""Shared fixtures for BDD feature tests."""

from __future__ import annotations

import pytest

from tests.helpers.marketplace import FakeRemote


@pytest.fixture
def feature_remote() -> FakeRemote:
    """Return mocked remote responses for one scenario."""
    return FakeRemote()
