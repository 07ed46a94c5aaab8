# src/firecast/engine/catalog.py
"""Model catalog: the known models and their published estimates.

The catalog feeds two things: the model_stats block of status snapshots
and the metadata returned by the predictor. Names missing from the
catalog can still be loaded by a custom ModelSource; they count as zero
parameters and are left out of the accuracy mean.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime

from firecast.contracts.models import ModelMetadata, ModelSpec
from firecast.contracts.status import ModelStats

_WEATHER_FEATURES = ("temperature", "humidity", "windSpeed", "windDirection", "pressure", "rainfall")

DEFAULT_MODELS: tuple[ModelSpec, ...] = (
    ModelSpec(
        name="wildfire-risk-v3",
        version="1.0.0",
        accuracy=0.95,
        parameters=1_250_000,
        features=(*_WEATHER_FEATURES, "seasonalRisk", "droughtIndex"),
        description="Fire risk score from weather and fuel indices",
    ),
    ModelSpec(
        name="fire-spread-v2",
        version="2.1.0",
        accuracy=0.92,
        parameters=860_000,
        features=("windSpeed", "windDirection", "temperature", "humidity", "slope"),
        description="Spread rate estimate from wind, moisture, and terrain",
    ),
    ModelSpec(
        name="ignition-probability-v1",
        version="1.2.0",
        accuracy=0.88,
        parameters=410_000,
        features=("temperature", "humidity", "windSpeed", "seasonalRisk", "droughtIndex"),
        description="Probability of ignition in the next 72 hours",
    ),
    ModelSpec(
        name="fire-intensity-v1",
        version="1.0.3",
        accuracy=0.86,
        parameters=530_000,
        features=("temperature", "windSpeed", "humidity", "fuelMoisture"),
        description="Fire radiative intensity estimate",
    ),
    ModelSpec(
        name="wildfire-prediction",
        version="1.0.0",
        accuracy=0.85,
        parameters=2_000_000,
        features=(*_WEATHER_FEATURES, "elevation", "slope", "vegetationType", "fuelMoisture", "fireHistory"),
        description="Wildfire prediction model using an ensemble of ML algorithms",
    ),
)


class ModelCatalog(Mapping[str, ModelSpec]):
    """Read-only mapping of model name to ModelSpec."""

    def __init__(self, specs: Iterable[ModelSpec] = DEFAULT_MODELS) -> None:
        self._specs = {spec.name: spec for spec in specs}

    def __getitem__(self, name: str) -> ModelSpec:
        return self._specs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def stats_for(self, names: Iterable[str]) -> ModelStats:
        """Aggregate stats over the given loaded model names."""
        ordered = tuple(sorted(names))
        known = [self._specs[name] for name in ordered if name in self._specs]
        average = sum(spec.accuracy for spec in known) / len(known) if known else 0.0
        return ModelStats(
            total_parameters=sum(spec.parameters for spec in known),
            average_accuracy=round(average, 4),
            model_names=ordered,
        )

    def metadata_for(self, names: Iterable[str], *, as_of: datetime) -> list[ModelMetadata]:
        """Metadata for the given names that the catalog knows, sorted by name."""
        return [
            ModelMetadata(
                name=spec.name,
                version=spec.version,
                accuracy=spec.accuracy,
                last_updated=as_of,
                features=spec.features,
                description=spec.description,
            )
            for spec in (self._specs[name] for name in sorted(names) if name in self._specs)
        ]
