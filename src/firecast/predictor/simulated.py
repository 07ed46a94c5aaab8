# src/firecast/predictor/simulated.py
"""Illustrative predictor.

Produces a random risk score with a high nominal confidence and derives
urgency and advice from it. The numbers are placeholders for a real
inference engine and carry no accuracy guarantee.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from firecast.contracts.enums import EvacuationUrgency
from firecast.contracts.errors import NotInitializedError
from firecast.contracts.models import ModelMetadata, PredictionInput, PredictionResult
from firecast.engine.catalog import ModelCatalog

# Upper bounds (exclusive) of each urgency band, in fire-risk points
_URGENCY_BANDS: tuple[tuple[float, EvacuationUrgency], ...] = (
    (20.0, EvacuationUrgency.NONE),
    (40.0, EvacuationUrgency.LOW),
    (60.0, EvacuationUrgency.MEDIUM),
    (80.0, EvacuationUrgency.HIGH),
)


def classify_urgency(fire_risk: float) -> EvacuationUrgency:
    for upper, urgency in _URGENCY_BANDS:
        if fire_risk < upper:
            return urgency
    return EvacuationUrgency.CRITICAL


def _weather_factor(prediction_input: PredictionInput) -> float:
    return (
        (prediction_input.temperature / 40) * 0.3
        + ((100 - prediction_input.humidity) / 100) * 0.3
        + (prediction_input.wind_speed / 30) * 0.4
    )


def recommendations_for(
    fire_risk: float,
    urgency: EvacuationUrgency,
    prediction_input: PredictionInput | None = None,
) -> tuple[str, ...]:
    """Advice lines for a risk score, plus condition-specific warnings."""
    if fire_risk > 75:
        advice = ["Immediate evacuation recommended", "Monitor emergency channels continuously"]
    elif fire_risk > 50:
        advice = ["Prepare evacuation plan", "Stay alert for evacuation orders"]
    elif fire_risk > 25:
        advice = ["Increase vigilance", "Check fire restrictions"]
    else:
        advice = ["Monitor weather conditions", "Maintain defensible space"]

    if prediction_input is not None:
        if _weather_factor(prediction_input) > 0.7:
            advice.append("Extreme weather conditions detected")
        if (100 - prediction_input.fuel_moisture) / 100 > 0.8:
            advice.append("High vegetation dryness - avoid outdoor burning")

    if urgency is EvacuationUrgency.CRITICAL:
        advice.extend(["CRITICAL: Evacuate immediately", "Follow all emergency instructions"])
    return tuple(advice)


class SimulatedPredictor:
    """PredictorProtocol implementation backed by a seeded RNG.

    Args:
        catalog: Source of model metadata
        seed: RNG seed; None for nondeterministic output
        now: Timestamp source (UTC)
    """

    MODEL_VERSION = "3.0.0"

    def __init__(
        self,
        catalog: ModelCatalog,
        *,
        seed: int | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._catalog = catalog
        self._rng = random.Random(seed)
        self._now = now
        self._models: frozenset[str] | None = None

    @property
    def initialized(self) -> bool:
        return self._models is not None

    def initialize_with_models(self, model_names: Iterable[str]) -> None:
        self._models = frozenset(model_names)

    async def predict(self, prediction_input: PredictionInput) -> PredictionResult:
        if self._models is None:
            raise NotInitializedError("Predictor has not been given any models")
        # Yield so a batch of predictions interleaves like real inference calls
        await asyncio.sleep(0)

        fire_risk = round(self._rng.random() * 100, 2)
        confidence = round((0.9 + self._rng.random() * 0.1) * 100, 2)
        urgency = classify_urgency(fire_risk)
        return PredictionResult(
            fire_risk=fire_risk,
            confidence=confidence,
            evacuation_urgency=urgency,
            recommendations=recommendations_for(fire_risk, urgency, prediction_input),
            model_version=self.MODEL_VERSION,
            prediction_timestamp=self._now(),
        )

    def get_model_metadata(self) -> list[ModelMetadata]:
        if self._models is None:
            raise NotInitializedError("Predictor has not been given any models")
        return self._catalog.metadata_for(self._models, as_of=self._now())
