# src/pipeline/handlers/git_ops.py - v1
"""git.commit, git.tag and git.push handlers.

Commit and tag check current repository state first and report a no-op
success when the desired state already holds.
"""

from __future__ import annotations

import logging
from typing import Any

from releaseflow.config.steps import (
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_TAG_MESSAGE,
    DEFAULT_TAG_NAME,
    GIT_COMMIT,
    GIT_PUSH,
    GIT_TAG,
)
from releaseflow.core.errors import StepError
from releaseflow.core.git import GitRepo
from releaseflow.core.models import PayloadUpdate, ReleasePayload
from releaseflow.pipeline.handlers._shared import command_fields, render
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler
from releaseflow.pipeline.plugin_kit.models import HandlerOutput

logger = logging.getLogger(__name__)


class _GitHandler(BaseHandler):
    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    def repo(self, payload: ReleasePayload) -> GitRepo:
        return GitRepo(payload.local_path, timeout=self._timeout)


class GitCommitHandler(_GitHandler):
    """Commit every working tree change as the release commit."""

    @property
    def step_type(self) -> str:
        return GIT_COMMIT

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        repo = self.repo(payload)
        if repo.is_clean():
            return HandlerOutput(
                output={"skipped": True, "reason": "working tree is clean, nothing to commit"}
            )

        message = render(config.get("message") or DEFAULT_COMMIT_MESSAGE, payload)
        amend = bool(config.get("amend", True)) and self._is_retry(repo, message)
        if amend:
            logger.info("Amending unpushed release commit '%s'", message)
        out = repo.commit_all(message, amend=amend)
        output: dict[str, Any] = {"message": message, "amended": amend}
        if out.success:
            output["commit"] = repo.head_commit()
        return HandlerOutput(output=output, **command_fields(out))

    @staticmethod
    def _is_retry(repo: GitRepo, message: str) -> bool:
        # Only an untagged, unpushed HEAD carrying the same release message is rewritten.
        return (
            repo.last_commit_subject() == message.splitlines()[0]
            and not repo.tags_at_head()
            and repo.is_ahead_of_upstream()
        )


class GitTagHandler(_GitHandler):
    """Create an annotated release tag on HEAD."""

    @property
    def step_type(self) -> str:
        return GIT_TAG

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        tag = self._tag_name(config, payload)
        repo = self.repo(payload)
        head = repo.head_commit()

        if repo.tag_exists(tag):
            tag_commit = repo.tag_commit(tag)
            if tag_commit == head:
                logger.info("Tag %s already points at HEAD", tag)
                return HandlerOutput(
                    output={"tag": tag, "commit": head, "skipped": True,
                            "reason": "tag already exists and points to HEAD"},
                    payload_update=PayloadUpdate(tag=tag),
                )
            raise StepError(
                "handler_exit_nonzero",
                f"Tag '{tag}' exists but points to {tag_commit[:8]}, HEAD is {head[:8]}",
                exit_code=1,
                hints=[f"Delete the stale tag with: git tag -d {tag}", "Then retry the release"],
            )

        message = render(config.get("message") or DEFAULT_TAG_MESSAGE.replace("{tag}", tag), payload)
        out = repo.create_tag(tag, message)
        return HandlerOutput(
            output={"tag": tag, "commit": head, "message": message},
            payload_update=PayloadUpdate(tag=tag) if out.success else None,
            **command_fields(out),
        )

    @staticmethod
    def _tag_name(config: dict[str, Any], payload: ReleasePayload) -> str:
        name = config.get("name") or config.get("versionTag")
        if name:
            return render(str(name), payload)
        if payload.tag:
            return payload.tag
        if payload.version:
            return DEFAULT_TAG_NAME.replace("{version}", payload.version)
        raise StepError(
            "invalid_config",
            "Cannot determine release tag: no version in payload and no 'name' in step config",
            hints=["Run a version step before git.tag", 'Or set the tag explicitly: {"name": "v1.2.3"}'],
        )


class GitPushHandler(_GitHandler):
    """Push the current branch, and tags when configured."""

    def __init__(self, remote: str = "origin", timeout: float | None = None) -> None:
        super().__init__(timeout)
        self._remote = remote

    @property
    def step_type(self) -> str:
        return GIT_PUSH

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        remote = config.get("remote") or self._remote
        tags = bool(config.get("tags", True))
        outputs = self.repo(payload).push(remote, tags=tags)
        fields = command_fields(outputs[-1])
        fields["stdout"] = "".join(o.stdout for o in outputs)
        fields["stderr"] = "".join(o.stderr for o in outputs)
        return HandlerOutput(
            output={"remote": remote, "tags": tags, "commands": [o.command for o in outputs]},
            **fields,
        )
