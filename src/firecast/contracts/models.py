# src/firecast/contracts/models.py
"""Model catalog entries and prediction input/output types.

PredictionInput arrives from outside the process (CLI files, host
application) and is validated with pydantic. Everything else is an
internal frozen dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from firecast.contracts.enums import EvacuationUrgency


@dataclass(frozen=True, slots=True)
class ModelSpec:
    """Catalog description of a loadable model.

    Parameter counts and accuracies are published estimates used for
    status display only.
    """

    name: str
    version: str
    accuracy: float
    parameters: int
    features: tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True, slots=True)
class ModelMetadata:
    """Metadata for a loaded model, as returned to the host application."""

    name: str
    version: str
    accuracy: float
    last_updated: datetime
    features: tuple[str, ...]
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "accuracy": self.accuracy,
            "last_updated": self.last_updated.isoformat(),
            "features": list(self.features),
            "description": self.description,
        }


class PredictionInput(BaseModel):
    """Conditions at one location to predict fire risk for.

    Accepts both snake_case and the dashboard's camelCase field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    temperature: float = 20.0
    humidity: float = Field(default=50.0, ge=0, le=100)
    wind_speed: float = Field(default=0.0, ge=0, alias="windSpeed")
    wind_direction: float = Field(default=0.0, alias="windDirection")
    pressure: float = 1013.0
    rainfall: float = Field(default=0.0, ge=0)
    elevation: float = 0.0
    slope: float = 0.0
    vegetation_type: str = Field(default="unknown", alias="vegetationType")
    fuel_moisture: float = Field(default=50.0, alias="fuelMoisture")
    fire_history: float = Field(default=0.0, alias="fireHistory")
    seasonal_risk: float = Field(default=0.0, alias="seasonalRisk")
    drought_index: float = Field(default=0.0, alias="droughtIndex")
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True)
class PredictionResult:
    """Illustrative prediction for one input.

    Attributes:
        fire_risk: Risk score, 0-100
        confidence: Confidence, 0-100
        evacuation_urgency: Urgency band derived from fire_risk
        recommendations: Advice lines for the risk band
        model_version: Version of the predictor that produced the result
        prediction_timestamp: When the prediction was made (UTC)
    """

    fire_risk: float
    confidence: float
    evacuation_urgency: EvacuationUrgency
    recommendations: tuple[str, ...]
    model_version: str
    prediction_timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "fire_risk": self.fire_risk,
            "confidence": self.confidence,
            "evacuation_urgency": self.evacuation_urgency.value,
            "recommendations": list(self.recommendations),
            "model_version": self.model_version,
            "prediction_timestamp": self.prediction_timestamp.isoformat(),
        }
