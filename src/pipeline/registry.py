# src/pipeline/registry.py - v1
"""Action registry: step type -> handler lookup.

Built-in handlers are registered by type name. Any other type is resolved
as the provider action 'release.<type>' against the provider snapshot taken
at run start; the snapshot never changes during a run.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from releaseflow.config.steps import PROVIDER_ACTION_PREFIX
from releaseflow.modules.models import ProviderEntry, ProviderSnapshot
from releaseflow.pipeline.plugin_kit.base_handler import Handler

if TYPE_CHECKING:
    from releaseflow.config.settings import Settings
    from releaseflow.core.models import ComponentConfig

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when a handler registration is invalid."""


class ActionRegistry:
    """Registry of handlers available to one run.

    Args:
        providers: Frozen provider snapshot (provider id -> entry).
        provider_timeout: Timeout in seconds for provider invocations.
    """

    def __init__(
        self,
        providers: ProviderSnapshot | None = None,
        provider_timeout: float | None = None,
    ) -> None:
        self._handlers: dict[str, Handler] = {}
        self._providers: ProviderSnapshot = (
            providers if providers is not None else MappingProxyType({})
        )
        self._provider_timeout = provider_timeout
        self._provider_handlers: dict[str, Handler] = {}

    @property
    def providers(self) -> ProviderSnapshot:
        return self._providers

    @property
    def builtin_types(self) -> list[str]:
        """Return sorted list of registered step types."""
        return sorted(self._handlers)

    def register(self, step_type: str, handler: Handler) -> None:
        """Register a handler for a step type."""
        if not callable(handler):
            raise RegistryError(f"Handler for '{step_type}' is not callable")
        if step_type in self._handlers:
            logger.warning("Overwriting existing handler: %s", step_type)
        self._handlers[step_type] = handler

    def action_id(self, step_type: str) -> str:
        return f"{PROVIDER_ACTION_PREFIX}{step_type}"

    def providers_for(self, step_type: str) -> list[ProviderEntry]:
        """Providers (sorted by id) declaring the action for *step_type*."""
        action_id = self.action_id(step_type)
        return [p for p in self._providers.values() if p.supports(action_id)]

    def resolve(self, step_type: str) -> Handler | None:
        """Return the handler for *step_type*, or None if nothing serves it."""
        handler = self._handlers.get(step_type)
        if handler is not None:
            return handler

        cached = self._provider_handlers.get(step_type)
        if cached is not None:
            return cached

        providers = self.providers_for(step_type)
        if not providers:
            return None

        from releaseflow.pipeline.handlers.provider_action import ProviderActionHandler

        handler = ProviderActionHandler(
            step_type, self.action_id(step_type), providers, timeout=self._provider_timeout
        )
        self._provider_handlers[step_type] = handler
        return handler

    def is_supported(self, step_type: str) -> bool:
        return step_type in self._handlers or bool(self.providers_for(step_type))

    def missing_reason(self, step_type: str) -> str:
        return (
            f"No handler for step type '{step_type}' "
            f"(no provider declares action '{self.action_id(step_type)}')"
        )

    def supported_types(self) -> list[str]:
        """Built-in types plus every provider action, without the prefix."""
        types = set(self._handlers)
        for provider in self._providers.values():
            for action in provider.actions:
                if action.startswith(PROVIDER_ACTION_PREFIX):
                    types.add(action[len(PROVIDER_ACTION_PREFIX):])
        return sorted(types)


def create_registry(
    component: ComponentConfig,
    settings: Settings,
    providers: ProviderSnapshot | None = None,
) -> ActionRegistry:
    """Build a registry with all built-in handlers bound to *component*."""
    from releaseflow.pipeline.handlers import builtin_handlers

    registry = ActionRegistry(providers, provider_timeout=settings.command_timeout_s)
    for handler in builtin_handlers(component, settings, registry.providers):
        registry.register(handler.step_type, handler)

    logger.info(
        "Registry ready: %d built-in handlers, %d providers",
        len(registry.builtin_types),
        len(registry.providers),
    )
    return registry
