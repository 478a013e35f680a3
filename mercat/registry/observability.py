"""Structured log events for registry lifecycle and refresh runs.

Usage
-----
>>> events = MarketplaceEventLogger()
>>> events.log_refresh_started(registry_id="community", source=source_url)

"""

from __future__ import annotations

import enum
import typing as typ

from mercat.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)


class MarketplaceEventType(enum.StrEnum):
    """Structured log event types for registry operations."""

    REGISTRY_CREATED = "marketplace.registry.created"
    REGISTRY_UPDATED = "marketplace.registry.updated"
    REGISTRY_DELETED = "marketplace.registry.deleted"
    REFRESH_STARTED = "marketplace.refresh.started"
    REFRESH_COMPLETED = "marketplace.refresh.completed"
    REFRESH_FAILED = "marketplace.refresh.failed"
    REGISTRY_TESTED = "marketplace.registry.tested"


class MarketplaceEventLogger:
    """Emit structured registry events via femtologging."""

    def log_registry_changed(
        self, event: MarketplaceEventType, *, registry_id: str
    ) -> None:
        """Log a create, update, or delete of one registry record."""
        log_info(logger, "[%s] registry_id=%s", event, registry_id)

    def log_refresh_started(self, *, registry_id: str, source: str) -> None:
        """Log the start of a catalog refresh."""
        log_info(
            logger,
            "[%s] registry_id=%s source=%s",
            MarketplaceEventType.REFRESH_STARTED,
            registry_id,
            source,
        )

    def log_refresh_completed(
        self,
        *,
        registry_id: str,
        item_count: int,
        duration: dt.timedelta,
    ) -> None:
        """Log a successful refresh with its item count and duration.

        Parameters
        ----------
        registry_id
            Registry that was refreshed.
        item_count
            Number of items written to the catalog cache.
        duration
            Elapsed time between refresh start and cache write.

        """
        log_info(
            logger,
            "[%s] registry_id=%s items=%d duration_seconds=%.3f",
            MarketplaceEventType.REFRESH_COMPLETED,
            registry_id,
            item_count,
            duration.total_seconds(),
        )

    def log_refresh_failed(
        self,
        *,
        registry_id: str,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a failed refresh; the previous snapshot is left in place."""
        log_error(
            logger,
            "[%s] registry_id=%s duration_seconds=%.3f error_type=%s error_message=%s",
            MarketplaceEventType.REFRESH_FAILED,
            registry_id,
            duration.total_seconds(),
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_registry_tested(
        self, *, source: str, success: bool, item_count: int
    ) -> None:
        """Log the outcome of a dry-run registry test."""
        log_info(
            logger,
            "[%s] source=%s success=%s items=%d",
            MarketplaceEventType.REGISTRY_TESTED,
            source,
            success,
            item_count,
        )
