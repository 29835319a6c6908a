"""Sequential sagas with compensating rollback."""

from __future__ import annotations

from .orchestration import Saga, SagaContext, SagaStep
from .state import SagaState, SagaStatus, StepRecord

__all__: list[str] = [
    "Saga",
    "SagaContext",
    "SagaState",
    "SagaStatus",
    "SagaStep",
    "StepRecord",
]
