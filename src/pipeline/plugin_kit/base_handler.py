# src/pipeline/plugin_kit/base_handler.py - v1
"""Standard handler interface for built-in and external step types.

Every handler is callable as handler(config, payload). Plain functions
with that signature are accepted by the registry as well; BaseHandler
adds a name and description for listings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Union

from releaseflow.core.models import ReleasePayload
from releaseflow.pipeline.plugin_kit.models import HandlerOutput

HandlerResult = Union[HandlerOutput, dict[str, Any]]
Handler = Callable[[dict[str, Any], ReleasePayload], HandlerResult]


class BaseHandler(ABC):
    """Base class for step handlers."""

    @property
    @abstractmethod
    def step_type(self) -> str:
        """Step type this handler serves (e.g., 'git.tag')."""

    @property
    def description(self) -> str:
        return self.__class__.__doc__.strip().splitlines()[0] if self.__class__.__doc__ else ""

    @abstractmethod
    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        """Run the step.

        Args:
            config: Normalized step-local config.
            payload: Frozen snapshot of the release payload.

        Returns:
            HandlerOutput; raise StepError for failures with diagnostics.
        """

    def __call__(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        return self.execute(config, payload)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.step_type}>"
