# src/modules/models.py - v1
"""Action provider manifest models and the per-run provider snapshot."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field


class ActionSpec(BaseModel):
    """One action a provider declares, e.g. 'release.publish'."""

    model_config = ConfigDict(extra="ignore")

    id: str
    label: str | None = None


class RuntimeSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entrypoint: str
    type: str = "cli"


class ProviderManifest(BaseModel):
    """Contents of <modules_dir>/<id>/manifest.json."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    version: str = "0.0.0"
    description: str | None = None
    actions: list[ActionSpec] = Field(default_factory=list)
    runtime: RuntimeSpec | None = None
    # Filled in by the loader, never read from the manifest file.
    path: str = ""


class ProviderEntry(BaseModel):
    """Frozen view of a provider used during one run."""

    model_config = ConfigDict(frozen=True)

    id: str
    actions: frozenset[str]
    entrypoint: str | None
    path: str

    def supports(self, action_id: str) -> bool:
        return action_id in self.actions


ProviderSnapshot = Mapping[str, ProviderEntry]


def make_snapshot(manifests: list[ProviderManifest]) -> ProviderSnapshot:
    """Freeze manifests into a read-only provider id -> entry mapping."""
    entries = {
        m.id: ProviderEntry(
            id=m.id,
            actions=frozenset(a.id for a in m.actions),
            entrypoint=m.runtime.entrypoint if m.runtime else None,
            path=m.path,
        )
        for m in manifests
    }
    return MappingProxyType(dict(sorted(entries.items())))
