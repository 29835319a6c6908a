"""Plain result values returned by the account services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an operation that has no payload besides a message."""

    success: bool
    message: str


__all__: list[str] = ["OperationResult"]
