# src/firecast/engine/loader.py
"""Phased loading: critical models, chunked data, background training.

Each phase owns a sub-range of the overall 0-100 progress scale:

    critical models   [0, 60]
    data chunks       [20, 50]
    training          [50, 90]
    finalize          100 (set by the orchestrator)

Critical models and the background phases run concurrently, so the raw
values reported here interleave. The orchestrator ratchets them into a
single non-decreasing series.

load_models() never raises; one model failing is recorded and the rest
are still attempted. The two background phases raise BackgroundTaskError
on failure and leave isolation to the orchestrator.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Callable, Sequence
from contextlib import aclosing
from typing import Any, Protocol

import structlog

from firecast.contracts.enums import MessageType
from firecast.contracts.errors import BackgroundTaskError, ContextUnavailableError, ModelLoadError
from firecast.contracts.protocol import (
    WorkerMessage,
    WorkerRequest,
    is_terminal,
    load_data_request,
    train_model_request,
)
from firecast.core.config import FirecastSettings
from firecast.engine.catalog import ModelCatalog
from firecast.engine.context import ExecutionContext

logger = structlog.get_logger(__name__)

CRITICAL_RANGE: tuple[float, float] = (0.0, 60.0)
DATA_RANGE: tuple[float, float] = (20.0, 50.0)
TRAINING_RANGE: tuple[float, float] = (50.0, 90.0)

ProgressCallback = Callable[[float, str], None]
ErrorCallback = Callable[[str], None]


def progress_at(start: float, end: float, completed: int, total: int) -> float:
    """Progress after ``completed`` of ``total`` equal steps spanning [start, end].

    The result is clamped to ``end``.
    """
    if total <= 0:
        return end
    value = start + completed * (end - start) / total
    return min(value, end) if end >= start else max(value, end)


def scale_into(sub_range: tuple[float, float], percent: float) -> float:
    """Map a 0-100 phase-local percentage into ``sub_range``."""
    start, end = sub_range
    percent = min(max(percent, 0.0), 100.0)
    return start + percent * (end - start) / 100.0


class ModelSource(Protocol):
    """Something that can bring a named model into memory."""

    async def load(self, name: str) -> None:
        """Load ``name``.

        Raises:
            ModelLoadError: If the model cannot be loaded.
        """
        ...


class SimulatedModelSource:
    """Model source that simulates loading catalog models with a delay.

    Names missing from the catalog fail with ModelLoadError.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        *,
        min_delay: float = 0.5,
        max_delay: float = 1.5,
        rng: random.Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._rng = rng or random.Random()

    async def load(self, name: str) -> None:
        if name not in self._catalog:
            raise ModelLoadError(name, "not in model catalog")
        await asyncio.sleep(self._rng.uniform(self._min_delay, self._max_delay))


class PhasedLoader:
    """Runs the loading phases of one initialization run.

    Args:
        settings: Data, training, and worker settings
        source: Where models are loaded from
        loaded: The run's loaded-model set; mutated in place
        report: Called with (raw progress, step label) as work completes
        record_error: Called with a message for each recoverable failure
    """

    def __init__(
        self,
        settings: FirecastSettings,
        source: ModelSource,
        loaded: set[str],
        *,
        report: ProgressCallback,
        record_error: ErrorCallback,
    ) -> None:
        self._settings = settings
        self._source = source
        self._loaded = loaded
        self._report = report
        self._record_error = record_error

    async def load_model(self, name: str) -> bool:
        """Load one model. Returns False if it was already loaded."""
        if name in self._loaded:
            return False
        await self._source.load(name)
        self._loaded.add(name)
        logger.info("Loaded model", model=name)
        return True

    async def load_models(self, names: Sequence[str], start: float, end: float) -> None:
        total = len(names)
        for index, name in enumerate(names, start=1):
            try:
                await self.load_model(name)
                step = f"Loaded model: {name}"
            except Exception as e:
                message = f"Failed to load model {name}: {e}"
                logger.error("Model load failed", model=name, error=str(e))
                self._record_error(message)
                step = f"Failed to load model: {name}"
            self._report(progress_at(start, end, index, total), step)

    async def load_data_in_chunks(self, context: ExecutionContext | None) -> dict[str, Any]:
        """Load the dataset, through ``context`` if available.

        Raises:
            BackgroundTaskError: If the data context reports an error,
                crashes, or times out.
        """
        data = self._settings.data
        if context is None:
            chunks = data.simulated_chunks
            for index in range(1, chunks + 1):
                self._report(
                    scale_into(DATA_RANGE, index / chunks * 100),
                    f"Loading data: Chunk {index} of {chunks}",
                )
                await asyncio.sleep(data.chunk_delay_seconds)
            return {"success": True, "message": "Data loaded in-process", "chunksProcessed": chunks}

        def on_progress(message: WorkerMessage) -> None:
            self._report(
                scale_into(DATA_RANGE, float(message.payload.get("progress", 0))),
                f"Loading data: {message.payload.get('message', '')}",
            )

        return await self._run_exchange(
            "data",
            context,
            load_data_request(data.chunk_size, data.total_items),
            progress_type=MessageType.PROGRESS,
            on_progress=on_progress,
        )

    async def train_models_in_background(self, context: ExecutionContext | None) -> dict[str, Any]:
        """Train the background model, through ``context`` if available.

        Raises:
            BackgroundTaskError: If the training context reports an error,
                crashes, or times out.
        """
        training = self._settings.training
        if context is None:
            await asyncio.sleep(training.fallback_delay_seconds)
            self._report(TRAINING_RANGE[1], "Training: completed in-process")
            return {"success": True, "message": "Training completed in-process"}

        def on_progress(message: WorkerMessage) -> None:
            self._report(
                scale_into(TRAINING_RANGE, float(message.payload.get("progress", 0))),
                f"Training: {message.payload.get('message', '')}",
            )

        return await self._run_exchange(
            "training",
            context,
            train_model_request(training.model_name, training.epochs, training.batch_size),
            progress_type=MessageType.TRAINING_PROGRESS,
            on_progress=on_progress,
        )

    async def _run_exchange(
        self,
        phase: str,
        context: ExecutionContext,
        request: WorkerRequest,
        *,
        progress_type: MessageType,
        on_progress: Callable[[WorkerMessage], None],
    ) -> dict[str, Any]:
        timeout = self._settings.workers.request_timeout_seconds
        try:
            async with aclosing(context.exchange(request, timeout=timeout)) as messages:
                async for message in messages:
                    if message.is_error:
                        raise BackgroundTaskError(phase, message.error or "Unknown error")
                    if message.type is progress_type:
                        on_progress(message)
                    elif is_terminal(request.type, message):
                        logger.debug("Background request complete", phase=phase, context=context.name)
                        return dict(message.payload)
                    else:
                        logger.debug("Ignoring unexpected message", phase=phase, message_type=message.type.value)
        except ContextUnavailableError as e:
            raise BackgroundTaskError(phase, str(e)) from e
        raise BackgroundTaskError(phase, "exchange ended without a terminal message")
