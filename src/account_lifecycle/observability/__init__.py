"""Prometheus metrics for account operations."""

from __future__ import annotations

from .metrics import AccountMetrics

__all__: list[str] = ["AccountMetrics"]
