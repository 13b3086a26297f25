# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides settings rooted in a temp directory, component/provider record
writers, a scripted handler registry and a throwaway git repository.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from releaseflow.config.settings import Settings
from releaseflow.core.models import ReleasePayload, Step
from releaseflow.logging.context import clear_context
from releaseflow.pipeline.plugin_kit.models import HandlerOutput
from releaseflow.pipeline.registry import ActionRegistry

GIT = shutil.which("git")

requires_git = pytest.mark.skipif(GIT is None, reason="git executable not available")


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo setup_logging() and context changes made by a test."""
    yield
    clear_context()
    root = logging.getLogger("releaseflow")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = True
    root.setLevel(logging.NOTSET)


# === FIXTURES: Settings and records ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temp config directory, ignoring any .env file."""
    return Settings(config_root=tmp_path / "config", _env_file=None)


@pytest.fixture
def write_component(settings: Settings) -> Callable[..., Path]:
    """Write <config_root>/components/<id>.json and return its path."""

    def _write(component_id: str, **fields: Any) -> Path:
        settings.components_dir.mkdir(parents=True, exist_ok=True)
        path = settings.components_dir / f"{component_id}.json"
        path.write_text(json.dumps(fields), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_provider(settings: Settings) -> Callable[..., Path]:
    """Install a provider whose entry point is a Python script.

    The script body receives the parsed request as ``request``.
    """

    def _write(provider_id: str, actions: list[str], script: str) -> Path:
        root = settings.modules_dir / provider_id
        root.mkdir(parents=True, exist_ok=True)
        (root / "provider.py").write_text(
            "import json, os, sys\n"
            "request = json.loads(sys.stdin.read() or '{}')\n" + script,
            encoding="utf-8",
        )
        manifest = {
            "id": provider_id,
            "name": provider_id,
            "actions": [{"id": a} for a in actions],
            "runtime": {"entrypoint": f'"{sys.executable}" provider.py'},
        }
        (root / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
        return root

    return _write


# === FIXTURES: Pipeline building blocks ===


@pytest.fixture
def payload(tmp_path: Path) -> ReleasePayload:
    return ReleasePayload(version="1.0.0", component_id="demo", local_path=str(tmp_path))


def step(step_id: str, step_type: str | None = None, needs: tuple[str, ...] = (), **config: Any) -> Step:
    """Shorthand Step constructor."""
    return Step(id=step_id, type=step_type or step_id, needs=needs, config=config)


class ScriptedRegistry(ActionRegistry):
    """Registry whose handlers return canned outcomes and record calls."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def succeed(self, step_type: str, **fields: Any) -> None:
        def _handler(config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
            self.calls.append(step_type)
            return HandlerOutput(**fields)

        self.register(step_type, _handler)

    def fail(self, step_type: str, exit_code: int = 1, stderr: str = "boom") -> None:
        self.succeed(step_type, exit_code=exit_code, stderr=stderr)

    def raise_(self, step_type: str, exc: BaseException) -> None:
        def _handler(config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
            self.calls.append(step_type)
            raise exc

        self.register(step_type, _handler)


@pytest.fixture
def scripted_registry() -> ScriptedRegistry:
    return ScriptedRegistry()


# === FIXTURES: git ===


def git(repo: Path, *args: str) -> str:
    """Run git in *repo*, raising on failure."""
    proc = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return proc.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Initialized repository with one commit and a local identity."""
    if GIT is None:
        pytest.skip("git executable not available")
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "dev@example.com")
    git(repo, "config", "user.name", "Dev")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "config", "tag.gpgsign", "false")
    (repo / "README.md").write_text("demo\n", encoding="utf-8")
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "initial")
    return repo
