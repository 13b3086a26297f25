# src/config/steps.py - v1
"""Declarative step-type configuration.

Lists the built-in step types, the default release pipeline and which
step types may write which payload fields back to the scheduler.
"""

from __future__ import annotations

from typing import Any

BUILD = "build"
CHANGES = "changes"
VERSION = "version"
GIT_COMMIT = "git.commit"
GIT_TAG = "git.tag"
GIT_PUSH = "git.push"
MODULE_RUN = "module.run"

BUILTIN_STEP_TYPES: tuple[str, ...] = (
    BUILD,
    CHANGES,
    VERSION,
    GIT_COMMIT,
    GIT_TAG,
    GIT_PUSH,
    MODULE_RUN,
)

# Provider actions are looked up as "<prefix><step type>".
PROVIDER_ACTION_PREFIX = "release."

# Default pipeline when a component declares no steps, in dependency order.
DEFAULT_PIPELINE: tuple[str, ...] = (VERSION, BUILD, GIT_COMMIT, GIT_TAG, GIT_PUSH)

DEFAULT_COMMIT_MESSAGE = "release: v{version}"
DEFAULT_TAG_NAME = "v{version}"
DEFAULT_TAG_MESSAGE = "Release {tag}"

# Built-in config defaults, merged under step-local config.
STEP_CONFIG_DEFAULTS: dict[str, dict[str, Any]] = {
    GIT_COMMIT: {"message": DEFAULT_COMMIT_MESSAGE},
    GIT_PUSH: {"tags": True},
    CHANGES: {"includeDiff": False},
}

# Payload fields each step type may write back after succeeding.
PAYLOAD_WRITERS: dict[str, frozenset[str]] = {
    VERSION: frozenset({"version", "tag", "notes"}),
    GIT_TAG: frozenset({"tag"}),
    MODULE_RUN: frozenset({"artifacts"}),
    "package": frozenset({"artifacts"}),
}
