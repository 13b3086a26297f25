# src/pipeline/handlers/changes.py - v1
"""changes: collect commits (and optionally the diff) since the last tag."""

from __future__ import annotations

from typing import Any

from releaseflow.config.steps import CHANGES
from releaseflow.core.git import GitRepo
from releaseflow.core.models import ReleasePayload
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler
from releaseflow.pipeline.plugin_kit.models import HandlerOutput


class ChangesHandler(BaseHandler):
    """Summarize unreleased commits."""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    @property
    def step_type(self) -> str:
        return CHANGES

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        repo = GitRepo(payload.local_path, timeout=self._timeout)
        last_tag = repo.last_tag()
        commits = repo.log_since(last_tag)
        output: dict[str, Any] = {
            "lastTag": last_tag,
            "commitCount": len(commits),
            "commits": commits,
            "uncommitted": repo.dirty_paths(),
        }
        if config.get("includeDiff"):
            output["diff"] = repo.diff_since(last_tag)
        return HandlerOutput(output=output)
