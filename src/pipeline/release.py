# src/pipeline/release.py - v1
"""Release service: preflight, plan, preview and run for one component.

Wires the collaborators (component records, provider snapshot, git) to
the plan builder, the scheduler and the dispatcher. Everything is rebuilt
per call; no state survives between runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from releaseflow.config.settings import Settings
from releaseflow.config.steps import VERSION
from releaseflow.core import changelog, semver
from releaseflow.core.errors import PreflightError
from releaseflow.core.git import GitRepo
from releaseflow.core.models import (
    ComponentConfig,
    Plan,
    PlanPreview,
    ReleaseOptions,
    ReleasePayload,
    RunReport,
)
from releaseflow.modules.loader import snapshot_providers
from releaseflow.modules.models import ProviderSnapshot
from releaseflow.pipeline.dispatcher import Dispatcher
from releaseflow.pipeline.plan_builder import PlanBuilder
from releaseflow.pipeline.registry import ActionRegistry, create_registry
from releaseflow.pipeline.scheduler import Scheduler
from releaseflow.storage.components import load_component

logger = logging.getLogger(__name__)

RawSteps = Sequence[Mapping[str, Any]]


class ReleaseService:
    """Top-level entry point used by the CLI.

    Args:
        settings: Application settings.
        should_cancel: Optional callback polled by the scheduler between steps.
    """

    def __init__(
        self,
        settings: Settings,
        should_cancel: Callable[[], bool] | None = None,
    ) -> None:
        self._settings = settings
        self._should_cancel = should_cancel
        self._builder = PlanBuilder()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def load_component(self, component_id: str) -> ComponentConfig:
        return load_component(self._settings.components_dir, component_id)

    def preflight(
        self, component: ComponentConfig, options: ReleaseOptions
    ) -> tuple[list[str], list[str]]:
        """Inspect the working tree before planning.

        Returns:
            (warnings, hints)

        Raises:
            PreflightError: Missing working tree, or dirty tree under a
                strict --no-commit release.
        """
        warnings: list[str] = []
        hints: list[str] = []
        root = Path(component.local_path).expanduser()
        if not root.is_dir():
            raise PreflightError(f"Component path does not exist: {root}")

        repo = GitRepo(root, timeout=self._settings.command_timeout_s)
        if not repo.is_repository():
            warnings.append(f"{root} is not a git repository; git steps will fail")
            return warnings, hints

        dirty = repo.dirty_paths()
        if dirty and options.no_commit:
            if self._settings.strict_clean_tree and not options.dry_run:
                raise PreflightError(
                    f"Working tree has {len(dirty)} uncommitted change(s) and --no-commit was given",
                    dirty,
                )
            warnings.append(
                "Working tree has uncommitted changes (--no-commit): "
                + ", ".join(dirty)
            )
        elif dirty:
            hints.append(
                f"{len(dirty)} uncommitted change(s) will be included in the release commit"
            )
        return warnings, hints

    def check_changelog(
        self, component: ComponentConfig, options: ReleaseOptions
    ) -> list[str]:
        """Require entries in the unreleased changelog section before a bump.

        Returns:
            Warnings, when the check is relaxed (dry run or
            require_changelog_entries off).

        Raises:
            PreflightError: Empty or headers-only unreleased section.
        """
        if not component.changelog_file:
            return []
        path = Path(component.local_path).expanduser() / component.changelog_file
        if not path.is_file():
            return []
        status = changelog.unreleased_status(path.read_text(encoding="utf-8"))
        if status == "empty":
            message = f"{component.changelog_file} has no unreleased entries"
        elif status == "subsection_headers_only":
            message = f"{component.changelog_file} has subsection headers but no unreleased entries"
        else:
            return []

        if self._settings.require_changelog_entries and not options.dry_run:
            raise PreflightError(
                message,
                hint=f"Add entries under the Unreleased heading of {component.changelog_file}",
            )
        return [message]

    def plan(
        self,
        component_id: str,
        options: ReleaseOptions,
        raw_steps: RawSteps | None = None,
    ) -> tuple[Plan, ComponentConfig]:
        """Preflight and build the plan for *component_id*.

        Args:
            component_id: Component record key.
            options: Release flags.
            raw_steps: Explicit steps; defaults to the component's own.

        Raises:
            ComponentNotFoundError, ConfigurationError, PreflightError, PlanError
        """
        component = self.load_component(component_id)
        warnings, hints = self.preflight(component, options)

        steps = list(raw_steps) if raw_steps is not None else component.release.steps
        if _bumps_version(steps):
            warnings.extend(self.check_changelog(component, options))

        current = self._read_current_version(component)
        if current is not None:
            options = options.model_copy(update={"current_version": current})
        if current is not None and options.version is None:
            target = semver.increment_version(current, options.bump_type)
            if target is not None:
                options = options.model_copy(update={"version": target})
                hints.append(f"Version: {current} -> {target} ({options.bump_type})")
        elif component.version_file and current is None:
            warnings.append(f"Could not read current version from {component.version_file}")

        plan = self._builder.build(
            steps,
            options,
            component_id=component.id,
            enabled=component.release.enabled,
            warnings=warnings,
            hints=hints,
        )
        return plan, component

    def preview(
        self,
        component_id: str,
        options: ReleaseOptions,
        raw_steps: RawSteps | None = None,
    ) -> PlanPreview:
        """Dry run: build the plan and describe it. No handler is called."""
        plan, component = self.plan(component_id, options, raw_steps)
        registry = self._registry(component, self._providers(component))
        return Scheduler.preview(plan, registry)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(
        self,
        component_id: str,
        options: ReleaseOptions,
        raw_steps: RawSteps | None = None,
    ) -> RunReport:
        """Plan and execute a release.

        Fatal errors (plan, preflight, missing component) raise before any
        step runs. Step failures are reported in the returned RunReport.
        """
        if options.dry_run:
            raise ValueError("dry-run releases are previewed, not run; use preview()")

        plan, component = self.plan(component_id, options, raw_steps)
        return self.execute(plan, component)

    def execute(self, plan: Plan, component: ComponentConfig) -> RunReport:
        """Execute an already built plan against a fresh payload."""
        providers = self._providers(component)
        registry = self._registry(component, providers)
        scheduler = Scheduler(Dispatcher(registry), should_cancel=self._should_cancel)
        return scheduler.run(plan, self.initial_payload(component))

    def initial_payload(self, component: ComponentConfig) -> ReleasePayload:
        """Seed the payload from component configuration."""
        return ReleasePayload(
            version=self._read_current_version(component),
            component_id=component.id,
            local_path=str(Path(component.local_path).expanduser()),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _providers(self, component: ComponentConfig) -> ProviderSnapshot:
        return snapshot_providers(self._settings.modules_dir, component.modules)

    def _registry(
        self, component: ComponentConfig, providers: ProviderSnapshot
    ) -> ActionRegistry:
        return create_registry(component, self._settings, providers)

    @staticmethod
    def _read_current_version(component: ComponentConfig) -> str | None:
        if not component.version_file:
            return None
        path = Path(component.local_path).expanduser() / component.version_file
        try:
            return semver.read_version_file(path, component.version_pattern)
        except (OSError, ValueError) as exc:
            logger.warning("Cannot read version from %s: %s", path, exc)
            return None


def _bumps_version(raw_steps: RawSteps) -> bool:
    # No declared steps means the default pipeline, which starts with a bump.
    if not raw_steps:
        return True
    return any(
        isinstance(step, Mapping) and step.get("type") == VERSION for step in raw_steps
    )
