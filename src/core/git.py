# src/core/git.py - v1
"""Thin git wrapper used by the git.* and changes handlers."""

from __future__ import annotations

from pathlib import Path

from releaseflow.core.errors import GitError
from releaseflow.core.models import CommandOutput
from releaseflow.core.process import run_command


class GitRepo:
    """git commands run inside one working tree."""

    def __init__(self, path: str | Path, timeout: float | None = 600.0) -> None:
        self.path = Path(path).expanduser()
        self.timeout = timeout

    def run(self, *args: str) -> CommandOutput:
        """Run a git command without raising on failure."""
        return run_command(["git", *args], cwd=self.path, timeout=self.timeout)

    def check(self, *args: str) -> str:
        """Run a git command and return stripped stdout, raising GitError on failure."""
        out = self.run(*args)
        if not out.success:
            raise GitError(
                f"git {' '.join(args)} failed ({out.exit_code}): "
                f"{(out.stderr or out.stdout).strip()}"
            )
        return out.stdout.strip()

    # --- queries ---

    def is_repository(self) -> bool:
        out = self.run("rev-parse", "--is-inside-work-tree")
        return out.success and out.stdout.strip() == "true"

    def dirty_paths(self) -> list[str]:
        """Paths with uncommitted changes, untracked files included."""
        out = self.run("status", "--porcelain")
        if not out.success:
            raise GitError(f"git status failed: {out.stderr.strip()}")
        paths: list[str] = []
        # Leading status columns are significant; do not strip stdout.
        for line in out.stdout.splitlines():
            if len(line) > 3:
                paths.append(line[3:].strip())
        return paths

    def is_clean(self) -> bool:
        return not self.dirty_paths()

    def head_commit(self) -> str:
        return self.check("rev-parse", "HEAD")

    def last_commit_subject(self) -> str | None:
        out = self.run("log", "-1", "--format=%s")
        return out.stdout.strip() if out.success else None

    def tag_exists(self, tag: str) -> bool:
        return self.run("rev-parse", "-q", "--verify", f"refs/tags/{tag}").success

    def tag_commit(self, tag: str) -> str:
        return self.check("rev-list", "-n", "1", tag)

    def tags_at_head(self) -> list[str]:
        out = self.run("tag", "--points-at", "HEAD")
        return out.stdout.split() if out.success else []

    def last_tag(self) -> str | None:
        out = self.run("describe", "--tags", "--abbrev=0")
        if not out.success:
            return None
        return out.stdout.strip() or None

    def is_ahead_of_upstream(self) -> bool:
        """True when HEAD has commits not yet on its upstream branch."""
        out = self.run("rev-list", "--count", "@{upstream}..HEAD")
        if not out.success:
            # No upstream configured: nothing has been pushed yet.
            return True
        return int(out.stdout.strip() or "0") > 0

    def log_since(self, tag: str | None) -> list[str]:
        revspec = f"{tag}..HEAD" if tag else "HEAD"
        out = self.check("log", revspec, "--pretty=format:%h %s")
        return [line for line in out.splitlines() if line.strip()]

    def diff_since(self, tag: str | None) -> str:
        if tag is None:
            return self.check("show", "--stat", "HEAD")
        return self.check("diff", f"{tag}..HEAD")

    # --- mutations ---

    def commit_all(self, message: str, amend: bool = False) -> CommandOutput:
        self.check("add", "-A")
        args = ["commit", "-m", message]
        if amend:
            args.append("--amend")
        return self.run(*args)

    def create_tag(self, tag: str, message: str) -> CommandOutput:
        return self.run("tag", "-a", tag, "-m", message)

    def push(self, remote: str, tags: bool = False) -> list[CommandOutput]:
        outputs = [self.run("push", remote, "HEAD")]
        if tags and outputs[0].success:
            outputs.append(self.run("push", remote, "--tags"))
        return outputs
