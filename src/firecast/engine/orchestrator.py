# src/firecast/engine/orchestrator.py
"""ModelInitializer: the initialization state machine.

Brings the prediction models up in one run:

    UNINITIALIZED -> PROVISIONING -> LOADING_CRITICAL -> BACKGROUND_RUNNING
                  -> FINALIZING -> READY

Critical models, chunked data loading, and background training run
concurrently inside one asyncio.TaskGroup. Each of the three is guarded
on its own, so a failing background phase never stops critical models
from loading and vice versa. The public call returns once all three have
settled.

Any error escaping the guards moves the run to FAILED_BUT_READY: the
initializer still reports is_initialized=True with the failure in its
error log, so the host UI is never blocked indefinitely. Execution
contexts are released exactly once, in a finally block, on every path.

Progress from concurrent phases is ratcheted: a reported value below the
current progress leaves progress unchanged, so every subscriber sees a
non-decreasing series within a run.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from firecast.contracts.enums import ContextRole, InitPhase, InitState
from firecast.contracts.errors import InvalidStateTransition, NotInitializedError
from firecast.contracts.events import PhaseCompleted, PhaseFailed, PhaseStarted, RunFinished
from firecast.contracts.models import ModelMetadata, PredictionInput, PredictionResult
from firecast.contracts.status import InitializationStatus
from firecast.core.config import FirecastSettings
from firecast.core.events import EventBus, Subscription
from firecast.engine.catalog import ModelCatalog
from firecast.engine.clock import DEFAULT_CLOCK, Clock
from firecast.engine.loader import CRITICAL_RANGE, ModelSource, PhasedLoader, SimulatedModelSource
from firecast.engine.provisioner import ExecutionContextProvisioner, ProvisionedContexts
from firecast.predictor.protocols import PredictorProtocol

logger = structlog.get_logger(__name__)

_TRANSITIONS: dict[InitState, frozenset[InitState]] = {
    InitState.UNINITIALIZED: frozenset({InitState.PROVISIONING, InitState.FAILED_BUT_READY}),
    InitState.PROVISIONING: frozenset({InitState.LOADING_CRITICAL, InitState.FAILED_BUT_READY}),
    InitState.LOADING_CRITICAL: frozenset({InitState.BACKGROUND_RUNNING, InitState.FAILED_BUT_READY}),
    InitState.BACKGROUND_RUNNING: frozenset({InitState.FINALIZING, InitState.FAILED_BUT_READY}),
    InitState.FINALIZING: frozenset({InitState.READY, InitState.FAILED_BUT_READY}),
    InitState.READY: frozenset(),
    InitState.FAILED_BUT_READY: frozenset(),
}

_BACKGROUND_PHASES: dict[ContextRole, InitPhase] = {
    ContextRole.DATA: InitPhase.DATA,
    ContextRole.TRAINING: InitPhase.TRAINING,
}


class ModelInitializer:
    """Coordinates model initialization and hands off to the predictor.

    One instance is shared per process; construct it at the application
    boundary (see firecast.services) and inject it where needed.

    Args:
        settings: Configuration; defaults apply when omitted
        event_bus: Bus for status snapshots and lifecycle events
        catalog: Known models, used for stats and metadata
        model_source: Loader for individual models
        provisioner: Builds execution contexts for each run
        predictor: Downstream predictor receiving the loaded models
        clock: Time source for initialization_time

    Example:
        initializer = ModelInitializer(settings)
        with initializer.on_status_update(panel.render):
            status = await initializer.initialize_all_models()
        result = await initializer.make_prediction(PredictionInput(latitude=37.8, longitude=-122.4))
    """

    def __init__(
        self,
        settings: FirecastSettings | None = None,
        *,
        event_bus: EventBus | None = None,
        catalog: ModelCatalog | None = None,
        model_source: ModelSource | None = None,
        provisioner: ExecutionContextProvisioner | None = None,
        predictor: PredictorProtocol | None = None,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        self._settings = settings or FirecastSettings()
        self._bus = event_bus or EventBus()
        self._catalog = catalog or ModelCatalog()
        self._source = model_source or SimulatedModelSource(
            self._catalog,
            min_delay=self._settings.loading.min_delay_seconds,
            max_delay=self._settings.loading.max_delay_seconds,
        )
        self._provisioner = provisioner or ExecutionContextProvisioner(self._settings)
        if predictor is None:
            from firecast.predictor.simulated import SimulatedPredictor

            predictor = SimulatedPredictor(self._catalog, seed=self._settings.prediction.seed)
        self._predictor = predictor
        self._clock = clock

        self._state = InitState.UNINITIALIZED
        self._is_initialized = False
        self._critical_models: tuple[str, ...] = tuple(self._settings.loading.critical_models)
        self._loaded_models: set[str] = set()
        self._errors: list[str] = []
        self._current_step = "Initializing..."
        self._progress = 0.0
        self._started_at: float | None = None
        self._finished_at: float | None = None
        self._predictor_ready = False
        self._run_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    def on_status_update(self, callback: Callable[[InitializationStatus], None]) -> Subscription:
        """Subscribe to status snapshots.

        Returns:
            Handle whose unsubscribe() stops further deliveries
        """
        return self._bus.subscribe(InitializationStatus, callback)

    def get_status(self) -> InitializationStatus:
        """Point-in-time copy of the current status."""
        return InitializationStatus(
            is_initialized=self._is_initialized,
            total_models=len(self._critical_models),
            loaded_models=len(self._loaded_models),
            initialization_time=self._elapsed(),
            errors=tuple(self._errors),
            model_stats=self._catalog.stats_for(self._loaded_models),
            current_step=self._current_step,
            progress=self._progress,
        )

    def is_ready(self) -> bool:
        return self._is_initialized

    def get_initialization_progress(self) -> float:
        return self._progress

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock.monotonic()
        return round(end - self._started_at, 3)

    def _update_status(self, *, progress: float | None = None, current_step: str | None = None) -> None:
        if progress is not None:
            self._progress = max(self._progress, min(max(progress, 0.0), 100.0))
        if current_step:
            self._current_step = current_step
        self._bus.emit(self.get_status())

    def _record_error(self, message: str) -> None:
        self._errors.append(message)

    def _transition(self, target: InitState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidStateTransition(self._state, target)
        logger.debug("State transition", source=self._state.value, target=target.value)
        self._state = target

    # ------------------------------------------------------------------
    # Initialization run
    # ------------------------------------------------------------------

    async def initialize_all_models(self, priority_models: Sequence[str] = ()) -> InitializationStatus:
        """Run initialization, or return the current status if already initialized.

        Args:
            priority_models: Models to load in the critical phase instead
                of the configured critical defaults

        Returns:
            Status snapshot after the run. Never raises for load, phase,
            or orchestration failures; those appear in ``errors``.
        """
        async with self._run_lock:
            if self._is_initialized:
                return self.get_status()
            run_id = uuid.uuid4().hex[:12]
            with structlog.contextvars.bound_contextvars(run_id=run_id):
                await self._run(tuple(priority_models) or tuple(self._settings.loading.critical_models))
            return self.get_status()

    def _reset_run(self, critical: tuple[str, ...]) -> None:
        self._started_at = self._clock.monotonic()
        self._finished_at = None
        self._is_initialized = False
        self._critical_models = critical
        self._errors = []
        self._progress = 0.0
        self._loaded_models.clear()
        self._predictor_ready = False

    async def _run(self, critical: tuple[str, ...]) -> None:
        self._reset_run(critical)
        logger.info("Model initialization started", critical_models=list(critical))
        contexts: ProvisionedContexts | None = None
        try:
            self._transition(InitState.PROVISIONING)
            contexts = await self._timed_phase(InitPhase.PROVISION, self._provisioner.provision)
            loader = PhasedLoader(
                self._settings,
                self._source,
                self._loaded_models,
                report=lambda progress, step: self._update_status(progress=progress, current_step=step),
                record_error=self._record_error,
            )

            self._transition(InitState.LOADING_CRITICAL)
            self._update_status(progress=0.0, current_step="Loading critical models")
            async with asyncio.TaskGroup() as group:
                group.create_task(self._critical_phase(loader, critical))
                for role in ContextRole:
                    group.create_task(self._background_phase(loader, contexts, role))

            self._transition(InitState.FINALIZING)
            contexts.release()
            await self._finalize()
        except Exception as e:
            message = f"Initialization failed: {e}"
            logger.exception("Model initialization failed", error=str(e))
            self._record_error(message)
            self._state = InitState.FAILED_BUT_READY
            self._is_initialized = True
            self._finished_at = self._clock.monotonic()
            self._update_status(current_step="Initialization finished with errors")
        finally:
            if contexts is not None:
                contexts.release()
                await contexts.wait_stopped()
            self._bus.emit(
                RunFinished(
                    state=self._state,
                    loaded_models=len(self._loaded_models),
                    error_count=len(self._errors),
                    duration_seconds=self._elapsed(),
                )
            )

    async def _timed_phase(
        self,
        phase: InitPhase,
        work: Callable[[], Awaitable[Any]],
        target: str | None = None,
    ) -> Any:
        """Run one phase with lifecycle events. Exceptions propagate."""
        self._bus.emit(PhaseStarted(phase=phase, target=target))
        started = self._clock.monotonic()
        try:
            result = await work()
        except Exception as e:
            self._bus.emit(PhaseFailed(phase=phase, error=e, target=target))
            raise
        self._bus.emit(PhaseCompleted(phase=phase, duration_seconds=self._clock.monotonic() - started))
        return result

    async def _critical_phase(self, loader: PhasedLoader, names: tuple[str, ...]) -> None:
        start, end = CRITICAL_RANGE
        await self._timed_phase(
            InitPhase.CRITICAL_MODELS,
            lambda: loader.load_models(names, start, end),
            target=", ".join(names),
        )
        if self._state is InitState.LOADING_CRITICAL:
            self._transition(InitState.BACKGROUND_RUNNING)

    async def _background_phase(self, loader: PhasedLoader, contexts: ProvisionedContexts, role: ContextRole) -> None:
        phase = _BACKGROUND_PHASES[role]
        context = contexts.get(role)
        if role is ContextRole.DATA:
            work = lambda: loader.load_data_in_chunks(context)  # noqa: E731
        else:
            work = lambda: loader.train_models_in_background(context)  # noqa: E731
        try:
            result = await self._timed_phase(phase, work, target=context.name if context else "in-process")
        except Exception as e:
            logger.error("Background phase failed", phase=phase.value, error=str(e))
            self._record_error(f"Background initialization failed: {e}")
            return
        logger.info("Background phase complete", phase=phase.value, result=result)

    async def _finalize(self) -> None:
        async def finalize() -> None:
            await asyncio.sleep(self._settings.loading.finalize_delay_seconds)
            self._transition(InitState.READY)
            self._is_initialized = True
            self._finished_at = self._clock.monotonic()
            self._update_status(progress=100.0, current_step="Initialization complete")

        await self._timed_phase(InitPhase.FINALIZE, finalize)
        logger.info(
            "Model initialization completed",
            duration_seconds=self._elapsed(),
            loaded_models=sorted(self._loaded_models),
            errors=len(self._errors),
        )

    # ------------------------------------------------------------------
    # Downstream handoff
    # ------------------------------------------------------------------

    def _require_ready(self) -> PredictorProtocol:
        if not self._is_initialized:
            raise NotInitializedError()
        if not self._predictor_ready:
            self._predictor.initialize_with_models(sorted(self._loaded_models))
            self._predictor_ready = True
        return self._predictor

    def get_model_metadata(self) -> list[ModelMetadata]:
        """Metadata of the loaded models.

        Raises:
            NotInitializedError: If initialization has not completed.
        """
        return self._require_ready().get_model_metadata()

    async def make_prediction(self, prediction_input: PredictionInput) -> PredictionResult:
        """Predict fire risk for one input.

        Raises:
            NotInitializedError: If initialization has not completed.
        """
        return await self._require_ready().predict(prediction_input)

    async def batch_predict(self, inputs: Sequence[PredictionInput]) -> list[PredictionResult]:
        """Predict for many inputs, preserving input order.

        Inputs are processed in batches of ``prediction.batch_size``: the
        inputs of one batch run concurrently and a batch starts only after
        the previous one has completed.

        Raises:
            NotInitializedError: If initialization has not completed.
        """
        predictor = self._require_ready()
        batch_size = self._settings.prediction.batch_size
        results: list[PredictionResult] = []
        for offset in range(0, len(inputs), batch_size):
            batch = inputs[offset : offset + batch_size]
            results.extend(await asyncio.gather(*(predictor.predict(item) for item in batch)))
        return results
