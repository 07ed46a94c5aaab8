# src/firecast/contracts/enums.py
"""Status codes, states, and message kinds used across subsystem boundaries."""

from enum import StrEnum


class InitState(StrEnum):
    """Lifecycle state of the model initializer.

    Both READY and FAILED_BUT_READY are terminal for a run and leave the
    initializer usable. FAILED_BUT_READY means an unexpected error escaped
    the phase guards; the UI is still unblocked.
    """

    UNINITIALIZED = "uninitialized"
    PROVISIONING = "provisioning"
    LOADING_CRITICAL = "loading_critical"
    BACKGROUND_RUNNING = "background_running"
    FINALIZING = "finalizing"
    READY = "ready"
    FAILED_BUT_READY = "failed_but_ready"


class InitPhase(StrEnum):
    """Named phases of an initialization run, used in lifecycle events."""

    PROVISION = "provision"
    CRITICAL_MODELS = "critical_models"
    DATA = "data"
    TRAINING = "training"
    FINALIZE = "finalize"


class ContextRole(StrEnum):
    """Which background execution context a handle belongs to."""

    DATA = "data"
    TRAINING = "training"


class MessageType(StrEnum):
    """Message types of the background request/response protocol.

    Values are the wire names used by the worker handlers.
    """

    # Data channel
    LOAD_DATA = "loadData"
    PROCESS_DATA = "processData"
    PROGRESS = "progress"
    DATA_LOADED = "dataLoaded"
    DATA_PROCESSED = "dataProcessed"

    # Training channel
    TRAIN_MODEL = "trainModel"
    VALIDATE_MODEL = "validateModel"
    TRAINING_PROGRESS = "trainingProgress"
    TRAINING_COMPLETE = "trainingComplete"
    VALIDATION_COMPLETE = "validationComplete"

    # Both channels
    ERROR = "error"


class EvacuationUrgency(StrEnum):
    """Evacuation urgency bands attached to prediction results."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
