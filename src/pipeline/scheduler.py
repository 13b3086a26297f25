# src/pipeline/scheduler.py - v1
"""Scheduler: walk a plan in deterministic topological order.

Steps run one at a time. A step whose needs did not all succeed is
recorded skipped without reaching the dispatcher, so failures cascade
to dependents only while independent branches keep running.

Supports:
  - Kahn ordering with declaration-order tie-break
  - narrow payload write-back from authorized step types
  - cancellation between steps or via KeyboardInterrupt inside a step
  - dry-run previews that never dispatch
"""

from __future__ import annotations

import heapq
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from releaseflow.config.steps import PAYLOAD_WRITERS
from releaseflow.core.models import (
    PayloadUpdate,
    Plan,
    PlannedStep,
    PlanPreview,
    ReleasePayload,
    RunReport,
    Step,
    StepResult,
    StepStatus,
)
from releaseflow.logging.context import set_run_context, set_step_context
from releaseflow.pipeline.aggregator import aggregate

if TYPE_CHECKING:
    from releaseflow.pipeline.dispatcher import Dispatcher
    from releaseflow.pipeline.registry import ActionRegistry

logger = logging.getLogger(__name__)


def topological_order(steps: Sequence[Step]) -> list[Step]:
    """Order steps so every step follows all of its needs.

    Kahn's algorithm; among ready steps the earliest declared goes first.
    Assumes a validated (acyclic, resolvable) step list.
    """
    index = {step.id: pos for pos, step in enumerate(steps)}
    in_degree = {step.id: 0 for step in steps}
    dependents: dict[str, list[str]] = {step.id: [] for step in steps}
    for step in steps:
        for need in step.needs:
            dependents[need].append(step.id)
            in_degree[step.id] += 1

    ready = [index[s.id] for s in steps if in_degree[s.id] == 0]
    heapq.heapify(ready)
    order: list[Step] = []
    while ready:
        step = steps[heapq.heappop(ready)]
        order.append(step)
        for dependent in dependents[step.id]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, index[dependent])

    if len(order) != len(steps):
        remaining = sorted(s for s, d in in_degree.items() if d > 0)
        raise ValueError(f"Steps are not schedulable (cycle among {remaining})")
    return order


class Scheduler:
    """Execute a Plan against a ReleasePayload.

    Args:
        dispatcher: Dispatcher used for every runnable step.
        should_cancel: Optional callback polled before each step.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        should_cancel: Callable[[], bool] | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._should_cancel = should_cancel

    def run(self, plan: Plan, payload: ReleasePayload) -> RunReport:
        """Execute all steps in order.

        Args:
            plan: Validated plan.
            payload: Initial payload; the scheduler owns it for the run.

        Returns:
            RunReport. When interrupted, cancelled=True and the steps that
            never ran are recorded skipped.
        """
        set_run_context(plan.component_id, uuid.uuid4().hex[:12])
        start_ns = time.monotonic_ns()
        warnings = list(plan.warnings)

        if not plan.enabled:
            logger.info("Release disabled for %s; skipping all steps", plan.component_id)
            results = [
                StepResult(step_id=s.id, step_type=s.type, status=StepStatus.SKIPPED,
                           error="release disabled")
                for s in plan.steps
            ]
            return aggregate(results, enabled=False, warnings=warnings,
                             component_id=plan.component_id)

        order = topological_order(plan.steps)
        statuses: dict[str, StepStatus] = {}
        results: list[StepResult] = []
        cancelled = False

        try:
            for position, step in enumerate(order, start=1):
                if self._should_cancel is not None and self._should_cancel():
                    logger.warning("Cancellation requested; %d steps not run", len(order) - position + 1)
                    cancelled = True
                    break

                set_step_context(step.id, step.type)
                blocked = [n for n in step.needs if statuses.get(n) is not StepStatus.SUCCEEDED]
                if blocked:
                    logger.info("Skipping '%s': dependency %s did not succeed", step.id, blocked)
                    result = StepResult(
                        step_id=step.id,
                        step_type=step.type,
                        status=StepStatus.SKIPPED,
                        error=f"Skipped because {', '.join(blocked)} did not succeed",
                        skipped_because=tuple(blocked),
                    )
                else:
                    logger.info("Step %d/%d: %s (%s)", position, len(order), step.id, step.type)
                    try:
                        outcome = self._dispatcher.dispatch(step, payload)
                    except KeyboardInterrupt:
                        logger.warning("Interrupted during '%s'", step.id)
                        results.append(StepResult(
                            step_id=step.id,
                            step_type=step.type,
                            status=StepStatus.FAILED,
                            error="Interrupted",
                            error_kind="cancelled",
                        ))
                        statuses[step.id] = StepStatus.FAILED
                        cancelled = True
                        break
                    result = outcome.result
                    warnings.extend(f"{step.id}: {w}" for w in outcome.warnings)
                    if result.status is StepStatus.SUCCEEDED and outcome.payload_update:
                        payload, rejected = merge_payload(payload, step, outcome.payload_update)
                        if rejected:
                            warnings.append(
                                f"{step.id}: step type '{step.type}' may not update "
                                f"payload field(s) {', '.join(sorted(rejected))}; ignored"
                            )

                statuses[step.id] = result.status
                results.append(result)
        finally:
            set_step_context(None)

        if cancelled:
            results.extend(
                StepResult(
                    step_id=s.id,
                    step_type=s.type,
                    status=StepStatus.SKIPPED,
                    error="Not run: release cancelled",
                    error_kind="cancelled",
                )
                for s in order
                if s.id not in statuses
            )

        report = aggregate(
            results,
            enabled=True,
            warnings=warnings,
            component_id=plan.component_id,
            cancelled=cancelled,
        )
        logger.info(
            "Run complete: %s (%d succeeded, %d failed, %d skipped, %d missing) in %dms",
            report.status.value,
            report.summary.succeeded,
            report.summary.failed,
            report.summary.skipped,
            report.summary.missing,
            (time.monotonic_ns() - start_ns) // 1_000_000,
        )
        return report

    @staticmethod
    def preview(plan: Plan, registry: ActionRegistry | None = None) -> PlanPreview:
        """Dry-run: describe what would run, without dispatching anything."""
        warnings = list(plan.warnings)
        if registry is not None:
            for step in plan.steps:
                if not registry.is_supported(step.type):
                    warnings.append(f"{step.id}: {registry.missing_reason(step.type)}")
        hints = list(plan.hints)
        hints.append("Dry run: no changes will be made")
        return PlanPreview(
            component_id=plan.component_id,
            enabled=plan.enabled,
            steps=[
                PlannedStep(
                    id=s.id,
                    type=s.type,
                    label=s.label,
                    needs=list(s.needs),
                    config=dict(s.config),
                )
                for s in plan.steps
            ],
            order=[s.id for s in topological_order(plan.steps)],
            warnings=warnings,
            hints=hints,
        )


def merge_payload(
    payload: ReleasePayload, step: Step, update: PayloadUpdate
) -> tuple[ReleasePayload, set[str]]:
    """Apply the fields *step* is authorized to write.

    Returns:
        (new payload, names of rejected fields)
    """
    allowed = PAYLOAD_WRITERS.get(step.type, frozenset())
    proposed = update.fields_set()
    accepted = proposed & allowed
    if not accepted:
        return payload, proposed

    changes = {}
    for name in accepted:
        value = getattr(update, name)
        changes[name] = tuple(value) if name == "artifacts" else value
    logger.debug("Payload update from '%s': %s", step.id, sorted(accepted))
    return payload.model_copy(update=changes), proposed - accepted
