# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

Plans, payloads and results flow between the plan builder, the scheduler,
the dispatcher and the aggregator. No module redefines these types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# === OPTIONS ===


BumpType = Literal["patch", "minor", "major"]


class ReleaseOptions(BaseModel):
    """Flags parameterizing plan construction (mirrors the CLI)."""

    bump_type: BumpType = "patch"
    dry_run: bool = False
    no_tag: bool = False
    no_push: bool = False
    no_commit: bool = False
    commit_message: str | None = None
    # Target version, when it can be computed before the run starts.
    version: str | None = None
    # Version read from the component's version file at plan time.
    current_version: str | None = None


# === PLAN ===


class Step(BaseModel):
    """A named unit of release work with declared dependencies."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    label: str | None = None
    needs: tuple[str, ...] = ()
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "type")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("needs", mode="before")
    @classmethod
    def _dedupe_needs(cls, v: Any) -> tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError("needs must be a list of step ids")
        return tuple(dict.fromkeys(str(item) for item in v))


class Plan(BaseModel):
    """Validated, normalized release plan. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    component_id: str
    enabled: bool = True
    steps: tuple[Step, ...] = ()
    warnings: tuple[str, ...] = ()
    hints: tuple[str, ...] = ()

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def get_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


# === PAYLOAD ===


class ReleaseArtifact(BaseModel):
    """A file produced by the release (archive, wheel, installer...)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    type: str | None = None
    platform: str | None = None


class ReleasePayload(BaseModel):
    """Shared run context handed to every handler as a frozen snapshot."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    tag: str | None = None
    notes: str | None = None
    component_id: str
    local_path: str
    artifacts: tuple[ReleaseArtifact, ...] = ()


class PayloadUpdate(BaseModel):
    """Narrow write-back channel from a handler to the scheduler."""

    version: str | None = None
    tag: str | None = None
    notes: str | None = None
    artifacts: list[ReleaseArtifact] | None = None

    def fields_set(self) -> set[str]:
        """Return names of fields carrying a value."""
        return {
            name for name in ("version", "tag", "notes", "artifacts")
            if getattr(self, name) is not None
        }


# === RESULTS ===


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    MISSING = "missing"
    PLANNED = "planned"


class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
    SKIPPED = "skipped"
    MISSING = "missing"


class StepResult(BaseModel):
    """Outcome of a single step. Never mutated once recorded."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    step_type: str
    status: StepStatus
    output: dict[str, Any] = Field(default_factory=dict)
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    error_kind: str | None = None
    exit_code: int | None = None
    skipped_because: tuple[str, ...] = ()
    duration_ms: int = 0


class RunSummary(BaseModel):
    """Counts per step status bucket."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    missing: int = 0


class RunReport(BaseModel):
    """Overall result of one release execution."""

    component_id: str = ""
    status: RunStatus
    summary: RunSummary
    steps: list[StepResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    cancelled: bool = False

    def get_result(self, step_id: str) -> StepResult | None:
        for result in self.steps:
            if result.step_id == step_id:
                return result
        return None


class PlannedStep(BaseModel):
    """A step as shown by a dry-run preview."""

    id: str
    type: str
    label: str | None = None
    needs: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)
    status: StepStatus = StepStatus.PLANNED


class PlanPreview(BaseModel):
    """Dry-run output: the plan plus its execution order. Nothing runs."""

    component_id: str
    enabled: bool
    steps: list[PlannedStep] = Field(default_factory=list)
    order: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)


# === COLLABORATOR RECORDS ===


class CommandOutput(BaseModel):
    """Captured result of one external command."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class ComponentReleaseConfig(BaseModel):
    """Per-component release section: explicit steps and enable switch."""

    enabled: bool = True
    steps: list[dict[str, Any]] = Field(default_factory=list)


class ComponentConfig(BaseModel):
    """Component record as stored by the configuration layer (read-only)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    local_path: str
    build_command: str | None = None
    version_file: str | None = None
    version_pattern: str | None = None
    changelog_file: str | None = "CHANGELOG.md"
    modules: list[str] = Field(default_factory=list)
    release: ComponentReleaseConfig = Field(default_factory=ComponentReleaseConfig)
