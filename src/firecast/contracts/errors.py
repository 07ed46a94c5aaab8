# src/firecast/contracts/errors.py
"""Exception taxonomy for model initialization.

Only NotInitializedError is meant to reach callers of the public
initializer API. Everything else is raised inside a phase and translated
into an entry of the run's error log by the orchestrator.
"""

from firecast.contracts.enums import InitState


class FirecastError(Exception):
    """Base class for all firecast errors."""


class ModelLoadError(FirecastError):
    """Raised when a single named model cannot be loaded.

    Recovered per model: the loader records it and moves on to the
    next name.

    Attributes:
        model_name: Name of the model that failed
        reason: Human-readable failure description
    """

    def __init__(self, model_name: str, reason: str) -> None:
        self.model_name = model_name
        self.reason = reason
        super().__init__(reason)


class BackgroundTaskError(FirecastError):
    """Raised when a background phase fails.

    Covers an ``error`` protocol message, a request timeout, and a
    context that crashed mid-request. Recovered per phase.
    """

    def __init__(self, phase: str, message: str) -> None:
        self.phase = phase
        self.message = message
        super().__init__(f"{phase} failed: {message}")


class ContextUnavailableError(FirecastError):
    """Raised when posting a request to a terminated or crashed context."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Execution context '{name}' is not running")


class InvalidStateTransition(FirecastError):
    """Raised on a lifecycle transition the state machine does not allow.

    Indicates a bug in the orchestrator, never a runtime condition.
    """

    def __init__(self, current: InitState, target: InitState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Illegal transition {current.value} -> {target.value}")


class NotInitializedError(FirecastError):
    """Raised when prediction APIs are used before initialization completes."""

    def __init__(self, message: str = "Model not initialized") -> None:
        super().__init__(message)
