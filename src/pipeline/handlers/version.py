# src/pipeline/handlers/version.py - v1
"""version: bump the component version and finalize the changelog.

Re-running after the file already holds the target version is a no-op
success, so a retried release does not bump twice.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from releaseflow.config.steps import VERSION
from releaseflow.core import changelog, semver
from releaseflow.core.errors import StepError
from releaseflow.core.models import ComponentConfig, PayloadUpdate, ReleasePayload
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler
from releaseflow.pipeline.plugin_kit.models import HandlerOutput

logger = logging.getLogger(__name__)


class VersionHandler(BaseHandler):
    """Bump the version file and date the unreleased changelog section."""

    def __init__(self, component: ComponentConfig) -> None:
        self._component = component

    @property
    def step_type(self) -> str:
        return VERSION

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        root = Path(payload.local_path).expanduser()
        version_file = config.get("file") or self._component.version_file
        if not version_file:
            raise StepError(
                "invalid_config",
                f"Component '{self._component.id}' has no version_file and the step sets no 'file'",
            )
        path = root / version_file
        pattern = config.get("pattern") or self._component.version_pattern

        current = semver.read_version_file(path, pattern)
        target = config.get("to")
        expected_from = config.get("from")

        if target and current == target:
            logger.info("%s already at %s; nothing to bump", version_file, target)
            return HandlerOutput(
                output={"from": current, "to": target, "file": version_file, "skipped": True,
                        "reason": "version file already at target version"},
                payload_update=self._update(root, target),
            )

        if expected_from and current != expected_from:
            raise StepError(
                "invalid_config",
                f"{version_file} holds {current}, expected {expected_from} (changed since planning?)",
            )

        bump = config.get("bump", "patch")
        if not target:
            target = semver.increment_version(current, bump)
            if target is None:
                raise StepError(
                    "invalid_config",
                    f"Cannot bump '{current}' with bump type '{bump}'",
                )

        semver.write_version_file(path, target, pattern)
        changelog_state = self._finalize_changelog(root, target)
        logger.info("Bumped %s: %s -> %s", version_file, current, target)

        return HandlerOutput(
            output={
                "from": current,
                "to": target,
                "bump": bump,
                "file": version_file,
                "changelog": changelog_state,
            },
            payload_update=self._update(root, target),
        )

    def _changelog_path(self, root: Path) -> Path | None:
        if not self._component.changelog_file:
            return None
        path = root / self._component.changelog_file
        return path if path.is_file() else None

    def _finalize_changelog(self, root: Path, version: str) -> str:
        path = self._changelog_path(root)
        if path is None:
            return "absent"
        content = path.read_text(encoding="utf-8")
        if changelog.has_version_section(content, version):
            return "already_finalized"
        updated = changelog.finalize(content, version)
        if updated is None:
            return "no_unreleased_section"
        path.write_text(updated, encoding="utf-8")
        return "finalized"

    def _update(self, root: Path, version: str) -> PayloadUpdate:
        notes = None
        path = self._changelog_path(root)
        if path is not None:
            notes = changelog.extract_latest_notes(path.read_text(encoding="utf-8"))
        return PayloadUpdate(version=version, tag=f"v{version}", notes=notes)
