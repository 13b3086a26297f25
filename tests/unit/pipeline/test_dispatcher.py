# tests/unit/pipeline/test_dispatcher.py - v1
"""Tests for pipeline/dispatcher.py - handler invocation and failure capture."""

from __future__ import annotations

import pytest
from conftest import step

from releaseflow.core.errors import StepError
from releaseflow.core.models import PayloadUpdate, StepStatus
from releaseflow.pipeline.dispatcher import Dispatcher
from releaseflow.pipeline.plugin_kit.models import HandlerOutput
from releaseflow.pipeline.registry import ActionRegistry


@pytest.fixture
def registry() -> ActionRegistry:
    return ActionRegistry()


class TestDispatch:
    def test_success_carries_output_and_update(self, registry, payload):
        registry.register(
            "version",
            lambda config, p: HandlerOutput(
                output={"to": "1.0.1"}, stdout="ok", payload_update=PayloadUpdate(version="1.0.1")
            ),
        )
        outcome = Dispatcher(registry).dispatch(step("version"), payload)
        assert outcome.result.status is StepStatus.SUCCEEDED
        assert outcome.result.output == {"to": "1.0.1"}
        assert outcome.result.stdout == "ok"
        assert outcome.payload_update.version == "1.0.1"

    def test_unknown_type_is_missing(self, registry, payload):
        outcome = Dispatcher(registry).dispatch(step("publish"), payload)
        assert outcome.result.status is StepStatus.MISSING
        assert outcome.result.error_kind == "handler_not_found"
        assert "release.publish" in outcome.result.error

    def test_nonzero_exit_preserves_diagnostics(self, registry, payload):
        registry.register(
            "build",
            lambda config, p: HandlerOutput(stdout="compiling", stderr="error: x", exit_code=2),
        )
        result = Dispatcher(registry).dispatch(step("build"), payload).result
        assert result.status is StepStatus.FAILED
        assert result.error_kind == "handler_exit_nonzero"
        assert (result.stdout, result.stderr, result.exit_code) == ("compiling", "error: x", 2)

    def test_failed_step_drops_payload_update(self, registry, payload):
        registry.register(
            "version",
            lambda config, p: HandlerOutput(exit_code=1, payload_update=PayloadUpdate(version="2.0.0")),
        )
        outcome = Dispatcher(registry).dispatch(step("version"), payload)
        assert outcome.payload_update is None

    def test_dict_output_is_validated(self, registry, payload):
        registry.register("x", lambda config, p: {"output": {"a": 1}, "stdout": "hi"})
        result = Dispatcher(registry).dispatch(step("x"), payload).result
        assert result.status is StepStatus.SUCCEEDED
        assert result.output == {"a": 1}

    def test_malformed_dict_output(self, registry, payload):
        registry.register("x", lambda config, p: {"exit_code": "not-a-number"})
        result = Dispatcher(registry).dispatch(step("x"), payload).result
        assert result.status is StepStatus.FAILED
        assert result.error_kind == "handler_malformed_output"
        assert "exit_code" in result.error

    def test_wrong_return_type(self, registry, payload):
        registry.register("x", lambda config, p: "done")
        result = Dispatcher(registry).dispatch(step("x"), payload).result
        assert result.error_kind == "handler_malformed_output"

    def test_step_error_kind_preserved(self, registry, payload):
        def _handler(config, p):
            raise StepError("invalid_config", "bad file", stderr="trace", hints=["set file"])

        registry.register("version", _handler)
        result = Dispatcher(registry).dispatch(step("version"), payload).result
        assert result.status is StepStatus.FAILED
        assert result.error_kind == "invalid_config"
        assert result.error == "bad file"
        assert result.stderr == "trace"
        assert result.output == {"hints": ["set file"]}

    def test_handler_not_found_step_error_is_missing(self, registry, payload):
        def _handler(config, p):
            raise StepError("handler_not_found", "provider gone")

        registry.register("module.run", _handler)
        result = Dispatcher(registry).dispatch(step("module.run"), payload).result
        assert result.status is StepStatus.MISSING

    def test_unexpected_exception_contained(self, registry, payload):
        def _handler(config, p):
            raise RuntimeError("kaboom")

        registry.register("x", _handler)
        result = Dispatcher(registry).dispatch(step("x"), payload).result
        assert result.status is StepStatus.FAILED
        assert result.error_kind == "handler_error"
        assert "kaboom" in result.error

    def test_keyboard_interrupt_propagates(self, registry, payload):
        def _handler(config, p):
            raise KeyboardInterrupt

        registry.register("x", _handler)
        with pytest.raises(KeyboardInterrupt):
            Dispatcher(registry).dispatch(step("x"), payload)

    def test_handler_gets_copy_of_config(self, registry, payload):
        def _handler(config, p):
            config["mutated"] = True
            return HandlerOutput()

        registry.register("x", _handler)
        s = step("x", nested={"a": 1})
        Dispatcher(registry).dispatch(s, payload)
        assert "mutated" not in s.config

    def test_handler_warnings_forwarded(self, registry, payload):
        registry.register("x", lambda config, p: HandlerOutput(warnings=["careful"]))
        outcome = Dispatcher(registry).dispatch(step("x"), payload)
        assert outcome.warnings == ["careful"]
