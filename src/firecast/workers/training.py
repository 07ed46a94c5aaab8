# src/firecast/workers/training.py
"""Training worker handlers.

Runs inside the training execution context thread. Training is simulated:
each epoch waits ``epoch_delay`` seconds and reports a loss drawn at random
and an accuracy rising linearly from 0.80 towards 0.95.
"""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from functools import partial
from typing import Any

from firecast.contracts.enums import MessageType
from firecast.contracts.protocol import WorkerMessage
from firecast.engine.context import Handler, WorkerPort


def _shape_of(sample: Any, key: str) -> Any:
    if isinstance(sample, Mapping) and isinstance(sample.get(key), Mapping):
        return sample[key].get("shape")
    return None


def train_model(
    payload: Mapping[str, Any],
    port: WorkerPort,
    *,
    epoch_delay: float,
    rng: random.Random,
) -> WorkerMessage:
    model_name = str(payload.get("modelName", "wildfire-prediction"))
    epochs = int(payload.get("epochs", 10))
    training_data: Sequence[Any] = payload.get("trainingData") or ()
    if epochs <= 0:
        raise ValueError(f"epochs must be positive, got {epochs}")

    for epoch in range(1, epochs + 1):
        port.sleep(epoch_delay)
        progress = round(epoch / epochs * 100)
        loss = rng.random() * 0.1
        accuracy = 0.8 + 0.15 * (epoch / epochs)
        port.post(
            WorkerMessage(
                type=MessageType.TRAINING_PROGRESS,
                payload={
                    "epoch": epoch,
                    "totalEpochs": epochs,
                    "progress": progress,
                    "metrics": {"loss": round(loss, 4), "accuracy": round(accuracy, 4)},
                    "message": f"Epoch {epoch}/{epochs} - loss: {loss:.4f}, accuracy: {accuracy * 100:.2f}%",
                },
            )
        )

    first_sample = training_data[0] if training_data else None
    return WorkerMessage(
        type=MessageType.TRAINING_COMPLETE,
        payload={
            "success": True,
            "modelName": model_name,
            "metrics": {
                "finalLoss": round(rng.random() * 0.1, 4),
                "finalAccuracy": round(0.85 + rng.random() * 0.1, 4),
                "trainingTime": epochs * epoch_delay * 1000,
                "samplesTrained": len(training_data),
            },
            "modelInfo": {
                "parameters": rng.randrange(1_000_000),
                "inputShape": _shape_of(first_sample, "input"),
                "outputShape": _shape_of(first_sample, "output"),
            },
        },
    )


def validate_model(payload: Mapping[str, Any], port: WorkerPort, *, rng: random.Random) -> WorkerMessage:
    """Score a model against ``testData`` with simulated metrics."""
    test_data = payload.get("testData")
    if not isinstance(test_data, Sequence) or isinstance(test_data, str):
        raise ValueError("validateModel requires a testData list")

    samples = len(test_data)
    accuracy = 0.82 + rng.random() * 0.1
    return WorkerMessage(
        type=MessageType.VALIDATION_COMPLETE,
        payload={
            "success": True,
            "metrics": {
                "accuracy": round(accuracy, 4),
                "precision": round(0.8 + rng.random() * 0.1, 4),
                "recall": round(0.78 + rng.random() * 0.1, 4),
                "f1Score": round(0.79 + rng.random() * 0.1, 4),
                "samplesValidated": samples,
            },
            "confusionMatrix": {
                "truePositives": int(samples * accuracy * 0.7),
                "trueNegatives": int(samples * accuracy * 0.3),
                "falsePositives": int(samples * (1 - accuracy) * 0.4),
                "falseNegatives": int(samples * (1 - accuracy) * 0.6),
            },
        },
    )


def training_handlers(*, epoch_delay: float = 0.2, seed: int | None = None) -> dict[MessageType, Handler]:
    """Build the training worker's handler table."""
    rng = random.Random(seed)
    return {
        MessageType.TRAIN_MODEL: partial(train_model, epoch_delay=epoch_delay, rng=rng),
        MessageType.VALIDATE_MODEL: partial(validate_model, rng=rng),
    }
