"""Base error shared by every marketplace package."""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for marketplace registry and catalog errors."""
