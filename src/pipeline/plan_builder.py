# src/pipeline/plan_builder.py - v1
"""Plan builder: raw step records + release flags -> validated Plan.

Passes, in order:
  1. parse raw step mappings into Step models;
  2. substitute the default pipeline when no steps are declared;
  3. insert a release commit in front of tag steps when none exists;
  4. validate ids, dependencies and acyclicity (fatal PlanError);
  5. merge built-in config defaults under step-local config; version steps
     are pinned to the versions computed at plan time.

Every pass is a pure function of its input; nothing here touches disk or git.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import networkx as nx
from pydantic import ValidationError

from releaseflow.config import steps as step_types
from releaseflow.core.errors import PlanError
from releaseflow.core.models import Plan, ReleaseOptions, Step

logger = logging.getLogger(__name__)

# Step-local keys that make the planned from/to meaningless for that step.
_VERSION_OVERRIDES = frozenset({"to", "bump", "file", "pattern"})


class PlanBuilder:
    """Build immutable release plans."""

    def build(
        self,
        raw_steps: Sequence[Mapping[str, Any] | Step],
        options: ReleaseOptions | None = None,
        *,
        component_id: str = "",
        enabled: bool = True,
        warnings: Sequence[str] = (),
        hints: Sequence[str] = (),
    ) -> Plan:
        """Build a validated plan.

        Args:
            raw_steps: Step records ({id, type, label?, needs?, config?}).
                Empty means "use the default pipeline".
            options: Release flags.
            component_id: Component the plan releases.
            enabled: False when the component's release is switched off.
            warnings: Warnings collected before planning (preflight).
            hints: Hints collected before planning.

        Returns:
            Frozen Plan.

        Raises:
            PlanError: duplicate_id, unknown_dependency, cycle_detected or
                invalid_step.
        """
        options = options or ReleaseOptions()
        plan_warnings = list(warnings)
        plan_hints = list(hints)

        steps = parse_steps(raw_steps)
        if not steps:
            steps = default_pipeline(options)
            plan_hints.append(
                "No release steps configured; using default pipeline: "
                + " -> ".join(s.id for s in steps)
            )

        steps, inserted = insert_release_commit(steps, options)
        if inserted is not None:
            plan_hints.append(
                f"Inserted '{inserted.id}' before tag step(s): tags must point at the release commit"
            )
        elif options.no_commit and _has_type(steps, step_types.GIT_TAG):
            plan_hints.append("Tagging current HEAD without a release commit (--no-commit)")

        validate_steps(steps)
        steps = normalize_steps(steps, options)

        if options.no_push:
            plan_hints.append("Skipping push (--no-push)")
        if options.no_tag:
            plan_hints.append("Skipping tag creation (--no-tag)")

        plan = Plan(
            component_id=component_id,
            enabled=enabled,
            steps=tuple(steps),
            warnings=tuple(plan_warnings),
            hints=tuple(plan_hints),
        )
        logger.info(
            "Plan built for %s: %d steps (%s)",
            component_id or "<unnamed>",
            len(plan.steps),
            ", ".join(plan.step_ids),
        )
        return plan


def parse_steps(raw_steps: Sequence[Mapping[str, Any] | Step]) -> list[Step]:
    """Turn raw step mappings into Step models."""
    steps: list[Step] = []
    for index, raw in enumerate(raw_steps):
        if isinstance(raw, Step):
            steps.append(raw)
            continue
        if not isinstance(raw, Mapping):
            raise PlanError("invalid_step", f"Step #{index} is not an object")
        try:
            steps.append(Step.model_validate(dict(raw)))
        except ValidationError as exc:
            ident = raw.get("id", f"#{index}")
            raise PlanError(
                "invalid_step",
                f"Step {ident!s} is invalid: "
                + "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()),
                [str(ident)],
            ) from exc
    return steps


def default_pipeline(options: ReleaseOptions) -> list[Step]:
    """version -> build -> git.commit -> git.tag -> git.push, minus disabled steps.

    Each step needs the previous surviving one.
    """
    excluded = set()
    if options.no_commit:
        excluded.add(step_types.GIT_COMMIT)
    if options.no_tag:
        excluded.add(step_types.GIT_TAG)
    if options.no_push:
        excluded.add(step_types.GIT_PUSH)

    steps: list[Step] = []
    previous: str | None = None
    for step_type in step_types.DEFAULT_PIPELINE:
        if step_type in excluded:
            continue
        config: dict[str, Any] = {}
        if step_type == step_types.VERSION:
            config["bump"] = options.bump_type
        elif step_type == step_types.GIT_COMMIT and options.commit_message:
            config["message"] = options.commit_message
        elif step_type == step_types.GIT_PUSH:
            config["tags"] = not options.no_tag
        steps.append(
            Step(
                id=step_type,
                type=step_type,
                needs=(previous,) if previous else (),
                config=config,
            )
        )
        previous = step_type
    return steps


def insert_release_commit(
    steps: list[Step], options: ReleaseOptions
) -> tuple[list[Step], Step | None]:
    """Synthesize a git.commit step when tag steps exist without one.

    The commit takes over the needs of the first tag step, minus any step
    that is itself a tag or runs after one, and becomes an extra need of
    every tag step; existing edges are preserved. Skipped under --no-commit.

    Returns:
        (new step list, inserted step or None)
    """
    if options.no_commit:
        return steps, None
    tag_steps = [s for s in steps if s.type == step_types.GIT_TAG]
    if not tag_steps or _has_type(steps, step_types.GIT_COMMIT):
        return steps, None

    taken = {s.id for s in steps}
    commit_id = step_types.GIT_COMMIT
    suffix = 2
    while commit_id in taken:
        commit_id = f"{step_types.GIT_COMMIT}.{suffix}"
        suffix += 1

    config: dict[str, Any] = {
        "message": options.commit_message or step_types.DEFAULT_COMMIT_MESSAGE
    }
    tag_ids = {s.id for s in tag_steps}
    after_tags = _downstream_of(steps, tag_ids)
    commit = Step(
        id=commit_id,
        type=step_types.GIT_COMMIT,
        label="Commit release changes",
        needs=tuple(n for n in tag_steps[0].needs if n not in after_tags),
        config=config,
    )

    result: list[Step] = []
    for step in steps:
        if step.type == step_types.GIT_TAG:
            if step is tag_steps[0]:
                result.append(commit)
            step = step.model_copy(update={"needs": (*step.needs, commit_id)})
        result.append(step)
    logger.debug("Inserted %s before %s", commit_id, sorted(tag_ids))
    return result, commit


def _downstream_of(steps: Sequence[Step], step_ids: set[str]) -> set[str]:
    """*step_ids* plus every step reachable from them through needs edges."""
    graph = _needs_graph(steps)
    reached = set(step_ids)
    for step_id in step_ids:
        reached |= nx.descendants(graph, step_id)
    return reached


def _needs_graph(steps: Sequence[Step]) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_nodes_from(s.id for s in steps)
    graph.add_edges_from((need, s.id) for s in steps for need in s.needs)
    return graph


def validate_steps(steps: Sequence[Step]) -> None:
    """Check unique ids, resolvable needs and acyclicity.

    Raises:
        PlanError: On the first violation found.
    """
    seen: set[str] = set()
    for step in steps:
        if step.id in seen:
            raise PlanError("duplicate_id", f"Duplicate step id '{step.id}'", [step.id])
        seen.add(step.id)

    for step in steps:
        for need in step.needs:
            if need not in seen:
                raise PlanError(
                    "unknown_dependency",
                    f"Step '{step.id}' needs '{need}' which is not in the plan",
                    [step.id, need],
                )

    graph = _needs_graph(steps)
    try:
        cycle = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return
    members = [edge[0] for edge in cycle]
    raise PlanError(
        "cycle_detected",
        "Dependency cycle: " + " -> ".join([*members, members[0]]),
        members,
    )


def normalize_steps(steps: Sequence[Step], options: ReleaseOptions) -> list[Step]:
    """Merge built-in defaults under step-local config and render {version}."""
    normalized: list[Step] = []
    for step in steps:
        config = dict(step_types.STEP_CONFIG_DEFAULTS.get(step.type, {}))
        if step.type == step_types.VERSION:
            config["bump"] = options.bump_type
            config.update(_planned_version(step, options))
        config.update(step.config)
        if options.version:
            config = {k: _render(v, options.version) for k, v in config.items()}
        normalized.append(step.model_copy(update={"config": config}))
    return normalized


def _planned_version(step: Step, options: ReleaseOptions) -> dict[str, str]:
    """from/to pins for a version step that bumps the component's own file."""
    if not options.version or step.config.keys() & _VERSION_OVERRIDES:
        return {}
    pins = {"to": options.version}
    if options.current_version:
        pins["from"] = options.current_version
    return pins


def _render(value: Any, version: str) -> Any:
    if isinstance(value, str):
        return value.replace("{version}", version)
    return value


def _has_type(steps: Sequence[Step], step_type: str) -> bool:
    return any(s.type == step_type for s in steps)
