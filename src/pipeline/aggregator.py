# src/pipeline/aggregator.py - v1
"""Reduce step results into one RunReport.

Status precedence:
  disabled plan    -> skipped
  any missing      -> missing
  no failed/skipped -> success
  some succeeded   -> partial_success
  otherwise        -> failed
"""

from __future__ import annotations

from collections.abc import Sequence

from releaseflow.core.models import RunReport, RunStatus, RunSummary, StepResult, StepStatus


def summarize(results: Sequence[StepResult]) -> RunSummary:
    """Count results per status bucket."""
    counts = {status: 0 for status in StepStatus}
    for result in results:
        counts[result.status] += 1
    return RunSummary(
        total=len(results),
        succeeded=counts[StepStatus.SUCCEEDED],
        failed=counts[StepStatus.FAILED],
        skipped=counts[StepStatus.SKIPPED],
        missing=counts[StepStatus.MISSING],
    )


def overall_status(summary: RunSummary, enabled: bool = True) -> RunStatus:
    if not enabled:
        return RunStatus.SKIPPED
    if summary.missing:
        return RunStatus.MISSING
    if not summary.failed and not summary.skipped:
        return RunStatus.SUCCESS
    if summary.succeeded:
        return RunStatus.PARTIAL_SUCCESS
    return RunStatus.FAILED


def aggregate(
    results: Sequence[StepResult],
    *,
    enabled: bool = True,
    warnings: Sequence[str] = (),
    component_id: str = "",
    cancelled: bool = False,
) -> RunReport:
    """Build the RunReport for a finished (or interrupted) run.

    Args:
        results: Step results in execution order.
        enabled: False when the plan was disabled.
        warnings: Plan and run warnings to carry into the report.
        component_id: Released component.
        cancelled: True when scheduling was interrupted.

    Returns:
        RunReport with status and per-status summary.
    """
    summary = summarize(results)
    return RunReport(
        component_id=component_id,
        status=overall_status(summary, enabled),
        summary=summary,
        steps=list(results),
        warnings=list(warnings),
        cancelled=cancelled,
    )
