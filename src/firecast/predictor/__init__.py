"""Downstream predictor boundary.

The initializer hands the loaded model set to a PredictorProtocol
implementation and delegates prediction calls to it. SimulatedPredictor
produces illustrative numbers only.
"""

from firecast.predictor.protocols import PredictorProtocol
from firecast.predictor.simulated import SimulatedPredictor, classify_urgency, recommendations_for

__all__ = [
    "PredictorProtocol",
    "SimulatedPredictor",
    "classify_urgency",
    "recommendations_for",
]
