# tests/unit/workers/test_worker_handlers.py
"""Tests for the data and training handlers, driven without a context thread."""

from __future__ import annotations

import random
import threading

import pytest

from firecast.contracts.enums import MessageType
from firecast.contracts.protocol import WorkerMessage
from firecast.engine.context import ContextStopped, WorkerPort
from firecast.workers import data_handlers, training_handlers
from firecast.workers.data import load_data_chunks
from firecast.workers.training import train_model


def _port() -> tuple[WorkerPort, list[WorkerMessage], threading.Event]:
    posted: list[WorkerMessage] = []
    stop = threading.Event()
    return WorkerPort(posted.append, stop), posted, stop


class TestLoadData:
    def test_progress_per_chunk_and_summary(self) -> None:
        port, posted, _ = _port()

        result = data_handlers(chunk_delay=0.0, seed=3)[MessageType.LOAD_DATA]({"chunkSize": 300, "totalItems": 1000}, port)

        assert [m.payload["progress"] for m in posted] == [30, 60, 90, 100]
        assert posted[-1].payload["message"] == "Loaded 1000 of 1000 items"
        assert result.type is MessageType.DATA_LOADED
        assert result.payload == {"success": True, "totalChunks": 4, "totalItems": 1000}

    def test_zero_items_loads_nothing(self) -> None:
        port, posted, _ = _port()

        result = load_data_chunks({"chunkSize": 100, "totalItems": 0}, port, chunk_delay=0.0, rng=random.Random(0))

        assert posted == []
        assert result.payload["totalChunks"] == 0

    def test_non_positive_chunk_size_rejected(self) -> None:
        port, _, _ = _port()
        with pytest.raises(ValueError, match="chunkSize"):
            load_data_chunks({"chunkSize": 0, "totalItems": 10}, port, chunk_delay=0.0, rng=random.Random(0))

    def test_stop_interrupts_loading(self) -> None:
        port, posted, stop = _port()
        stop.set()

        with pytest.raises(ContextStopped):
            load_data_chunks({"chunkSize": 10, "totalItems": 100}, port, chunk_delay=5.0, rng=random.Random(0))
        assert len(posted) == 1

    def test_process_data_echoes_payload(self) -> None:
        port, _, _ = _port()

        result = data_handlers()[MessageType.PROCESS_DATA]({"sensor": "T-101"}, port)

        assert result.type is MessageType.DATA_PROCESSED
        assert result.payload["processed"] is True
        assert result.payload["data"] == {"sensor": "T-101"}


class TestTraining:
    def test_epoch_progress_and_completion(self) -> None:
        port, posted, _ = _port()

        result = train_model(
            {"modelName": "wildfire-prediction", "epochs": 4, "batchSize": 32},
            port,
            epoch_delay=0.0,
            rng=random.Random(5),
        )

        assert [m.type for m in posted] == [MessageType.TRAINING_PROGRESS] * 4
        assert [m.payload["progress"] for m in posted] == [25, 50, 75, 100]
        assert posted[-1].payload["metrics"]["accuracy"] == 0.95
        assert result.type is MessageType.TRAINING_COMPLETE
        assert result.payload["modelName"] == "wildfire-prediction"
        assert result.payload["metrics"]["samplesTrained"] == 0

    def test_input_shape_taken_from_first_sample(self) -> None:
        port, _, _ = _port()
        sample = {"input": {"shape": [12]}, "output": {"shape": [1]}}

        result = train_model({"epochs": 1, "trainingData": [sample]}, port, epoch_delay=0.0, rng=random.Random(0))

        assert result.payload["modelInfo"]["inputShape"] == [12]
        assert result.payload["modelInfo"]["outputShape"] == [1]
        assert result.payload["metrics"]["samplesTrained"] == 1

    def test_non_positive_epochs_rejected(self) -> None:
        port, _, _ = _port()
        with pytest.raises(ValueError, match="epochs"):
            train_model({"epochs": 0}, port, epoch_delay=0.0, rng=random.Random(0))

    def test_validate_model_requires_test_data(self) -> None:
        port, _, _ = _port()
        with pytest.raises(ValueError, match="testData"):
            training_handlers()[MessageType.VALIDATE_MODEL]({}, port)

    def test_validate_model_reports_metrics(self) -> None:
        port, _, _ = _port()

        result = training_handlers(seed=2)[MessageType.VALIDATE_MODEL]({"testData": [{}] * 50}, port)

        assert result.type is MessageType.VALIDATION_COMPLETE
        assert result.payload["metrics"]["samplesValidated"] == 50
        assert 0.82 <= result.payload["metrics"]["accuracy"] <= 0.92
