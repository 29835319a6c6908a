"""Saga executor: ordered forward steps with LIFO compensation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..domain.mixins import utc_now
from ..exceptions import SagaConfigurationError, SagaExecutionError
from .state import SagaState, SagaStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    StepAction = Callable[["SagaContext"], Awaitable[Any]]

logger = logging.getLogger("account_lifecycle.sagas")


@dataclass
class SagaContext:
    """Mutable data shared between the steps of one saga execution.

    Attributes:
        data: Input supplied by the caller.
        results: Return value of each completed step, keyed by step name.
    """

    data: dict[str, Any] = field(default_factory=dict)
    results: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SagaStep:
    """A forward action paired with an optional compensation.

    Attributes:
        name: Unique identifier for this step within the saga.
        action: Async callable run on the forward path. Its return value is
            stored in ``context.results[name]``.
        compensation: Async callable that undoes ``action``. Only run when
            ``action`` completed and a later step failed.
    """

    name: str
    action: StepAction
    compensation: StepAction | None = None


class Saga:
    """
    Sequential saga with compensating rollback.

    Lifecycle
    ---------
    * ``execute(context)`` runs every step in order.
    * When a step raises, compensations of the steps that completed run in
      LIFO order; each failure is logged and recorded in
      ``state.failed_compensations``, then execution continues with the
      next compensation.
    * The saga ends ``COMPLETED``, ``COMPENSATED`` (all undo actions
      succeeded) or ``FAILED`` (at least one did not), and a failure is
      re-raised as :class:`SagaExecutionError`.

    Example::

        saga = Saga(
            "registration",
            [
                SagaStep("create_account", create, compensation=delete),
                SagaStep("create_profile", insert),
            ],
        )
        state = await saga.execute(SagaContext(data={...}))
    """

    def __init__(self, saga_type: str, steps: Sequence[SagaStep]) -> None:
        if not steps:
            raise SagaConfigurationError(f"Saga '{saga_type}' has no steps.")
        names = [step.name for step in steps]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise SagaConfigurationError(
                f"Saga '{saga_type}' has duplicate step names: {sorted(duplicates)}"
            )
        self.saga_type = saga_type
        self.steps: tuple[SagaStep, ...] = tuple(steps)

    async def execute(
        self,
        context: SagaContext,
        *,
        correlation_id: str | None = None,
    ) -> SagaState:
        """Run the saga and return its final state.

        Raises:
            SagaExecutionError: If a step failed (after compensation).
        """
        state = SagaState(saga_type=self.saga_type, correlation_id=correlation_id)
        state.status = SagaStatus.RUNNING
        completed: list[SagaStep] = []

        for step in self.steps:
            state.record_step(step.name, "started")
            try:
                context.results[step.name] = await step.action(context)
            except Exception as exc:
                state.record_step(
                    step.name, "failed", metadata={"error": type(exc).__name__}
                )
                logger.warning(
                    "Saga %s (%s) step '%s' failed: %s",
                    self.saga_type,
                    state.saga_id,
                    step.name,
                    type(exc).__name__,
                )
                await self._fail(state, context, completed, step, exc)
                raise SagaExecutionError(state, step.name, exc) from exc
            completed.append(step)
            state.completed_steps.append(step.name)
            state.record_step(step.name, "completed")

        state.status = SagaStatus.COMPLETED
        state.completed_at = utc_now()
        state.touch()
        logger.debug("Saga %s (%s) completed", self.saga_type, state.saga_id)
        return state

    async def _fail(
        self,
        state: SagaState,
        context: SagaContext,
        completed: list[SagaStep],
        failed_step: SagaStep,
        exc: Exception,
    ) -> None:
        state.error = f"{failed_step.name}: {type(exc).__name__}"
        state.failed_at = utc_now()
        await self.execute_compensations(state, context, completed)

    async def execute_compensations(
        self,
        state: SagaState,
        context: SagaContext,
        completed: list[SagaStep],
    ) -> None:
        """
        Run compensations of *completed* steps in LIFO order.

        Failed compensations are recorded in ``state.failed_compensations``
        so they can be inspected and reconciled manually.

        On completion the saga moves to ``COMPENSATED`` if all
        compensations succeeded, or ``FAILED`` if any failed.
        """
        state.status = SagaStatus.COMPENSATING
        state.touch()

        has_failures = False
        while completed:
            step = completed.pop()
            if step.compensation is None:
                continue
            try:
                await step.compensation(context)
            except Exception as exc:  # noqa: BLE001
                has_failures = True
                logger.error(
                    "Failed to execute compensation for step '%s' of saga %s (%s): %s",
                    step.name,
                    self.saga_type,
                    state.saga_id,
                    exc,
                )
                state.failed_compensations.append(
                    {
                        "step": step.name,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "failed_at": utc_now().isoformat(),
                    }
                )
                state.record_step(step.name, "compensation_failed")
            else:
                state.record_step(step.name, "compensated")

        state.status = SagaStatus.FAILED if has_failures else SagaStatus.COMPENSATED
        state.touch()


__all__: list[str] = ["Saga", "SagaContext", "SagaStep"]
