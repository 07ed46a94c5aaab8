# src/firecast/contracts/events.py
"""Lifecycle events for initialization runs.

Emitted by the orchestrator on the same bus as status snapshots and
consumed by CLI formatters. Status snapshots carry progress; these events
carry phase boundaries and the final outcome.
"""

from dataclasses import dataclass

from firecast.contracts.enums import InitPhase, InitState


@dataclass(frozen=True, slots=True)
class PhaseStarted:
    """Emitted when an initialization phase begins.

    Attributes:
        phase: The phase starting
        target: Optional detail (model list, context name)
    """

    phase: InitPhase
    target: str | None = None


@dataclass(frozen=True, slots=True)
class PhaseCompleted:
    """Emitted when an initialization phase completes without error."""

    phase: InitPhase
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class PhaseFailed:
    """Emitted when a phase fails.

    Stores the exception itself so formatters can show the type and
    message without re-parsing the error log.
    """

    phase: InitPhase
    error: BaseException
    target: str | None = None

    @property
    def error_message(self) -> str:
        """Human-readable error message for formatting."""
        return str(self.error)


@dataclass(frozen=True, slots=True)
class RunFinished:
    """Emitted once per run after the initializer becomes usable."""

    state: InitState
    loaded_models: int
    error_count: int
    duration_seconds: float
