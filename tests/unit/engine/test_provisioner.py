# tests/unit/engine/test_provisioner.py
"""Tests for ExecutionContextProvisioner and ProvisionedContexts."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from firecast.contracts.enums import ContextRole, MessageType
from firecast.contracts.protocol import WorkerMessage, load_data_request
from firecast.core.config import FirecastSettings
from firecast.engine.context import ErrorObserver, ExecutionContext, WorkerPort
from firecast.engine.provisioner import ExecutionContextProvisioner, ProvisionedContexts, background_execution_supported


class _StubContext:
    """Stands in for ExecutionContext where only shutdown matters."""

    def __init__(self, name: str, *, fail_terminate: bool = False, fail_wait: bool = False) -> None:
        self.name = name
        self.fail_terminate = fail_terminate
        self.fail_wait = fail_wait
        self.terminate_calls = 0
        self.wait_calls = 0

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.fail_terminate:
            raise RuntimeError("already gone")

    async def wait_stopped(self) -> bool:
        self.wait_calls += 1
        if self.fail_wait:
            raise RuntimeError("join failed")
        return True


def test_background_execution_supported_on_cpython() -> None:
    assert background_execution_supported() is True


class TestProvision:
    @pytest.mark.asyncio
    async def test_default_factory_starts_both_contexts(self, fast_settings: FirecastSettings) -> None:
        contexts = await ExecutionContextProvisioner(fast_settings).provision()
        try:
            assert contexts.data is not None and contexts.data.running
            assert contexts.training is not None and contexts.training.running
            assert contexts.data.name == "data-worker"
            assert contexts.training.name == "training-worker"
        finally:
            contexts.release()

        assert contexts.data is None
        assert contexts.training is None

    @pytest.mark.asyncio
    async def test_disabled_workers_provision_nothing(self, inprocess_settings: FirecastSettings) -> None:
        calls: list[ContextRole] = []

        def factory(role: ContextRole, on_error: ErrorObserver) -> ExecutionContext:
            calls.append(role)
            raise AssertionError("factory must not be called")

        contexts = await ExecutionContextProvisioner(inprocess_settings, factory=factory).provision()

        assert contexts.data is None and contexts.training is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_unsupported_runtime_provisions_nothing(self, fast_settings: FirecastSettings) -> None:
        contexts = await ExecutionContextProvisioner(fast_settings, supported=lambda: False).provision()
        assert contexts.data is None and contexts.training is None

    @pytest.mark.asyncio
    async def test_construction_failure_leaves_only_that_slot_empty(self, fast_settings: FirecastSettings) -> None:
        def factory(role: ContextRole, on_error: ErrorObserver) -> Any:
            if role is ContextRole.TRAINING:
                raise OSError("thread limit reached")
            return _StubContext("data-worker")

        contexts = await ExecutionContextProvisioner(fast_settings, factory=factory).provision()

        assert contexts.data is not None
        assert contexts.training is None
        contexts.release()

    @pytest.mark.asyncio
    async def test_crashed_context_is_marked_unavailable(self, fast_settings: FirecastSettings) -> None:
        def malformed(payload: Mapping[str, Any], port: WorkerPort) -> WorkerMessage:
            return "not a message"  # type: ignore[return-value]

        def factory(role: ContextRole, on_error: ErrorObserver) -> ExecutionContext:
            return ExecutionContext(f"{role.value}-worker", {MessageType.LOAD_DATA: malformed}, on_error=on_error)

        contexts = await ExecutionContextProvisioner(fast_settings, factory=factory).provision()
        try:
            data = contexts.data
            assert data is not None
            messages = [m async for m in data.exchange(load_data_request(10, 100), timeout=5.0)]

            assert messages[-1].is_error
            assert contexts.data is None
            assert contexts.training is not None
        finally:
            contexts.release()


class TestProvisionedContexts:
    def test_release_terminates_each_context_once(self) -> None:
        data, training = _StubContext("data-worker"), _StubContext("training-worker")
        contexts = ProvisionedContexts(data=data, training=training)  # type: ignore[arg-type]

        contexts.release()
        contexts.release()

        assert data.terminate_calls == 1
        assert training.terminate_calls == 1
        assert contexts.released

    def test_release_terminates_contexts_marked_unavailable(self) -> None:
        data = _StubContext("data-worker")
        contexts = ProvisionedContexts(data=data)  # type: ignore[arg-type]

        contexts.mark_unavailable(ContextRole.DATA)
        contexts.release()

        assert data.terminate_calls == 1

    def test_release_never_raises(self) -> None:
        failing, healthy = _StubContext("data-worker", fail_terminate=True), _StubContext("training-worker")
        contexts = ProvisionedContexts(data=failing, training=healthy)  # type: ignore[arg-type]

        contexts.release()

        assert healthy.terminate_calls == 1

    def test_get_by_role(self) -> None:
        data = _StubContext("data-worker")
        contexts = ProvisionedContexts(data=data)  # type: ignore[arg-type]

        assert contexts.get(ContextRole.DATA) is data
        assert contexts.get(ContextRole.TRAINING) is None

    @pytest.mark.asyncio
    async def test_wait_stopped_never_raises(self) -> None:
        failing, healthy = _StubContext("data-worker", fail_wait=True), _StubContext("training-worker")
        contexts = ProvisionedContexts(data=failing, training=healthy)  # type: ignore[arg-type]

        contexts.release()
        await contexts.wait_stopped()

        assert healthy.wait_calls == 1

    @pytest.mark.asyncio
    async def test_released_threads_exit_after_wait(self, fast_settings: FirecastSettings) -> None:
        contexts = await ExecutionContextProvisioner(fast_settings).provision()
        owned = [contexts.data, contexts.training]

        contexts.release()
        await contexts.wait_stopped()

        assert all(context is not None and not context._thread.is_alive() for context in owned)
