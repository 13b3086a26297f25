# src/pipeline/handlers/__init__.py - v1
"""Built-in step handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from releaseflow.pipeline.handlers.build import BuildHandler
from releaseflow.pipeline.handlers.changes import ChangesHandler
from releaseflow.pipeline.handlers.git_ops import GitCommitHandler, GitPushHandler, GitTagHandler
from releaseflow.pipeline.handlers.module_run import ModuleRunHandler
from releaseflow.pipeline.handlers.version import VersionHandler
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler

if TYPE_CHECKING:
    from releaseflow.config.settings import Settings
    from releaseflow.core.models import ComponentConfig
    from releaseflow.modules.models import ProviderSnapshot


def builtin_handlers(
    component: ComponentConfig,
    settings: Settings,
    providers: ProviderSnapshot,
) -> list[BaseHandler]:
    """Instantiate every built-in handler for one component."""
    timeout = settings.command_timeout_s
    return [
        BuildHandler(component, timeout=timeout),
        ChangesHandler(timeout=timeout),
        VersionHandler(component),
        GitCommitHandler(timeout=timeout),
        GitTagHandler(timeout=timeout),
        GitPushHandler(remote=settings.git_remote, timeout=timeout),
        ModuleRunHandler(providers, timeout=timeout),
    ]


__all__ = [
    "BuildHandler",
    "ChangesHandler",
    "GitCommitHandler",
    "GitPushHandler",
    "GitTagHandler",
    "ModuleRunHandler",
    "VersionHandler",
    "builtin_handlers",
]
