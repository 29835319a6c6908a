"""Account metrics helpers for Prometheus integration.

Usage:
    ```python
    from account_lifecycle.observability import AccountMetrics

    with AccountMetrics.operation("register"):
        await coordinator.register_account(...)

    AccountMetrics.record_compensation("failed")
    ```
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Generator

    from ..audit.events import AccountAuditEvent


class _AccountMetricsRegistry:
    """Registry for account Prometheus metrics.

    Lazily initializes Prometheus metrics on first use.
    """

    def __init__(self) -> None:
        self._histogram: Any = None
        self._counter: Any = None
        self._events: Any = None
        self._compensations: Any = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        try:
            from prometheus_client import Counter, Histogram

            self._histogram = Histogram(
                "account_operation_duration_seconds",
                "Account operation duration",
                ["operation"],
            )
            self._counter = Counter(
                "account_operations_total",
                "Account operation count",
                ["operation", "result"],
            )
            self._events = Counter(
                "account_audit_events_total",
                "Account audit events",
                ["event_type", "result"],
            )
            self._compensations = Counter(
                "account_compensations_total",
                "Registration compensations by outcome",
                ["result"],
            )
        except ImportError:
            _logger.debug("prometheus_client not available, metrics disabled")

        self._initialized = True

    @property
    def histogram(self) -> Any:
        self._ensure_initialized()
        return self._histogram

    @property
    def counter(self) -> Any:
        self._ensure_initialized()
        return self._counter

    @property
    def events(self) -> Any:
        self._ensure_initialized()
        return self._events

    @property
    def compensations(self) -> Any:
        self._ensure_initialized()
        return self._compensations


# Global registry instance
_registry = _AccountMetricsRegistry()


class AccountMetrics:
    """Metrics helpers for account lifecycle operations.

    Integrates with Prometheus when available and is a no-op otherwise.
    """

    @staticmethod
    @contextmanager
    def operation(operation: str) -> Generator[None, None, None]:
        """Context manager for timing an account operation.

        Args:
            operation: Operation name (register, request_reset, login, ...).
        """
        result = "success"
        start = time.monotonic()

        try:
            yield
        except Exception:
            result = "error"
            raise
        finally:
            duration = time.monotonic() - start

            if _registry.histogram:
                try:
                    _registry.histogram.labels(operation=operation).observe(duration)
                except Exception:
                    _logger.debug("Failed to record histogram")

            if _registry.counter:
                try:
                    _registry.counter.labels(operation=operation, result=result).inc()
                except Exception:
                    _logger.debug("Failed to record counter")

    @staticmethod
    def record_event(event: AccountAuditEvent) -> None:
        """Record an audit event as a metric."""
        if not _registry.events:
            return

        try:
            _registry.events.labels(
                event_type=event.event_type.value,
                result="success" if event.success else "failure",
            ).inc()
        except Exception:
            _logger.debug("Failed to record audit event metric")

    @staticmethod
    def record_compensation(result: str) -> None:
        """Record a registration compensation (``succeeded`` or ``failed``)."""
        if _registry.compensations:
            try:
                _registry.compensations.labels(result=result).inc()
            except Exception:
                _logger.debug("Failed to record compensation metric")


__all__: list[str] = ["AccountMetrics"]
