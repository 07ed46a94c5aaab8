"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes live in firecast.core.config and are not re-exported here.

Import patterns:
    from firecast.contracts import InitializationStatus, InitState, WorkerMessage
    from firecast.core.config import FirecastSettings
"""

from firecast.contracts.enums import (
    ContextRole,
    EvacuationUrgency,
    InitPhase,
    InitState,
    MessageType,
)
from firecast.contracts.errors import (
    BackgroundTaskError,
    ContextUnavailableError,
    FirecastError,
    InvalidStateTransition,
    ModelLoadError,
    NotInitializedError,
)
from firecast.contracts.events import (
    PhaseCompleted,
    PhaseFailed,
    PhaseStarted,
    RunFinished,
)
from firecast.contracts.models import (
    ModelMetadata,
    ModelSpec,
    PredictionInput,
    PredictionResult,
)
from firecast.contracts.protocol import (
    WorkerMessage,
    WorkerRequest,
    error_message,
    is_terminal,
    load_data_request,
    train_model_request,
)
from firecast.contracts.status import InitializationStatus, ModelStats

__all__ = [
    "BackgroundTaskError",
    "ContextRole",
    "ContextUnavailableError",
    "EvacuationUrgency",
    "FirecastError",
    "InitPhase",
    "InitState",
    "InitializationStatus",
    "InvalidStateTransition",
    "MessageType",
    "ModelLoadError",
    "ModelMetadata",
    "ModelSpec",
    "ModelStats",
    "NotInitializedError",
    "PhaseCompleted",
    "PhaseFailed",
    "PhaseStarted",
    "PredictionInput",
    "PredictionResult",
    "RunFinished",
    "WorkerMessage",
    "WorkerRequest",
    "error_message",
    "is_terminal",
    "load_data_request",
    "train_model_request",
]
