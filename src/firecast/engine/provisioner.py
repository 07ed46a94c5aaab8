# src/firecast/engine/provisioner.py
"""Execution context provisioning.

Creates the data and training contexts for one initialization run.
Provisioning never fails: when background execution is disabled or not
supported by the runtime both slots are None, and a context whose
construction raises leaves its own slot None. Every phase that would use
a context has an in-process fallback.
"""

from __future__ import annotations

import sys
from collections.abc import Callable

import structlog

from firecast.contracts.enums import ContextRole
from firecast.core.config import FirecastSettings
from firecast.engine.context import ErrorObserver, ExecutionContext

logger = structlog.get_logger(__name__)

ContextFactory = Callable[[ContextRole, ErrorObserver], ExecutionContext]
"""Builds the context for a role, wiring the given error observer."""


def background_execution_supported() -> bool:
    """Whether the runtime can start threads for execution contexts."""
    # WebAssembly builds of CPython ship without thread support
    return sys.platform not in ("emscripten", "wasi")


class ProvisionedContexts:
    """The contexts owned by one run.

    A slot marked unavailable stays unavailable for the rest of the run.
    release() terminates every context exactly once and never raises or
    blocks; wait_stopped() then waits for the threads off the event loop.
    """

    def __init__(self, data: ExecutionContext | None = None, training: ExecutionContext | None = None) -> None:
        self._slots: dict[ContextRole, ExecutionContext | None] = {
            ContextRole.DATA: data,
            ContextRole.TRAINING: training,
        }
        self._owned: list[ExecutionContext] = [c for c in (data, training) if c is not None]
        self._released = False

    @property
    def data(self) -> ExecutionContext | None:
        return self._slots[ContextRole.DATA]

    @property
    def training(self) -> ExecutionContext | None:
        return self._slots[ContextRole.TRAINING]

    def get(self, role: ContextRole) -> ExecutionContext | None:
        return self._slots[role]

    def adopt(self, role: ContextRole, context: ExecutionContext) -> None:
        """Place a newly constructed context in its slot and take ownership."""
        self._slots[role] = context
        self._owned.append(context)

    def mark_unavailable(self, role: ContextRole) -> None:
        if self._slots[role] is not None:
            logger.warning("Execution context marked unavailable", role=role.value)
        self._slots[role] = None

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        for context in self._owned:
            try:
                context.terminate()
            except Exception as e:
                logger.warning("Failed to terminate execution context", context=context.name, error=str(e))
        for role in ContextRole:
            self._slots[role] = None

    async def wait_stopped(self) -> None:
        """Wait for released context threads to exit. Never raises."""
        for context in self._owned:
            try:
                await context.wait_stopped()
            except Exception as e:
                logger.warning("Failed waiting for execution context", context=context.name, error=str(e))


class ExecutionContextProvisioner:
    """Builds ProvisionedContexts from settings.

    Args:
        settings: Worker, data, and training settings
        factory: Context constructor; defaults to thread-backed contexts
            running the firecast worker handlers
        supported: Probe for runtime support of background execution
    """

    def __init__(
        self,
        settings: FirecastSettings,
        *,
        factory: ContextFactory | None = None,
        supported: Callable[[], bool] = background_execution_supported,
    ) -> None:
        self._settings = settings
        self._factory = factory or self._default_factory
        self._supported = supported

    async def provision(self) -> ProvisionedContexts:
        if not self._settings.workers.enabled:
            logger.info("Background execution disabled by configuration; using in-process fallback")
            return ProvisionedContexts()
        if not self._supported():
            logger.warning("Background execution not supported in this runtime; using in-process fallback")
            return ProvisionedContexts()

        contexts = ProvisionedContexts()
        for role in ContextRole:
            context = self._construct(role, contexts)
            if context is not None:
                contexts.adopt(role, context)
        return contexts

    def _construct(self, role: ContextRole, contexts: ProvisionedContexts) -> ExecutionContext | None:
        def on_error(context: ExecutionContext, error: BaseException) -> None:
            logger.error("Execution context failed", role=role.value, context=context.name, error=str(error))
            contexts.mark_unavailable(role)

        try:
            context = self._factory(role, on_error)
        except Exception as e:
            logger.warning("Could not create execution context", role=role.value, error=str(e))
            return None
        logger.debug("Execution context started", role=role.value, context=context.name)
        return context

    def _default_factory(self, role: ContextRole, on_error: ErrorObserver) -> ExecutionContext:
        from firecast.workers import data_handlers, training_handlers

        if role is ContextRole.DATA:
            handlers = data_handlers(chunk_delay=self._settings.data.worker_chunk_delay_seconds)
        else:
            handlers = training_handlers(epoch_delay=self._settings.training.epoch_delay_seconds)
        return ExecutionContext(
            f"{role.value}-worker",
            handlers,
            queue_size=self._settings.workers.request_queue_size,
            shutdown_timeout=self._settings.workers.shutdown_timeout_seconds,
            on_error=on_error,
        )
