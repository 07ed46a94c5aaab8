# src/firecast/predictor/protocols.py
"""Protocol for the downstream predictor the initializer hands off to."""

from collections.abc import Iterable
from typing import Protocol

from firecast.contracts.models import ModelMetadata, PredictionInput, PredictionResult


class PredictorProtocol(Protocol):
    """A predictor that becomes usable once models are loaded.

    The initializer calls initialize_with_models() once, lazily, before
    the first prediction or metadata request of a ready run.
    """

    def initialize_with_models(self, model_names: Iterable[str]) -> None:
        """Receive the names of the loaded models."""
        ...

    async def predict(self, prediction_input: PredictionInput) -> PredictionResult:
        """Predict fire risk for one input."""
        ...

    def get_model_metadata(self) -> list[ModelMetadata]:
        """Describe the models the predictor is using."""
        ...
