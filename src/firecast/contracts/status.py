# src/firecast/contracts/status.py
"""Status snapshots delivered to subscribers.

Snapshots are frozen value objects. The orchestrator builds a new one for
every query and every broadcast; subscribers can keep them without ever
observing later changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ModelStats:
    """Aggregate statistics derived from the loaded-model set.

    These are catalog estimates, not measurements.

    Attributes:
        total_parameters: Sum of catalog parameter counts of loaded models
        average_accuracy: Mean catalog accuracy of loaded models known to
            the catalog (0.0 when none are)
        model_names: Loaded model names, sorted
    """

    total_parameters: int = 0
    average_accuracy: float = 0.0
    model_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class InitializationStatus:
    """Point-in-time view of an initialization run.

    Note:
        total_models counts the models requested for the critical phase.
        loaded_models may exceed it when models outside that list were
        loaded, so ``loaded_models <= total_models`` is not guaranteed.
    """

    is_initialized: bool = False
    total_models: int = 0
    loaded_models: int = 0
    initialization_time: float = 0.0
    errors: tuple[str, ...] = ()
    model_stats: ModelStats = field(default_factory=ModelStats)
    current_step: str = "Initializing..."
    progress: float = 0.0

    def to_dict(self) -> dict[str, object]:
        """Plain-dict form for JSON output."""
        return {
            "is_initialized": self.is_initialized,
            "total_models": self.total_models,
            "loaded_models": self.loaded_models,
            "initialization_time": self.initialization_time,
            "errors": list(self.errors),
            "model_stats": {
                "total_parameters": self.model_stats.total_parameters,
                "average_accuracy": self.model_stats.average_accuracy,
                "model_names": list(self.model_stats.model_names),
            },
            "current_step": self.current_step,
            "progress": self.progress,
        }
