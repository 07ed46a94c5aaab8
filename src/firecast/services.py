# src/firecast/services.py
"""Process-wide initializer instance.

The host application shares one ModelInitializer per process. It is built
lazily here, at the application boundary, and handed to whatever needs
it; library code takes the initializer as a parameter instead of reaching
for this module.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from firecast.core.config import FirecastSettings
    from firecast.engine.orchestrator import ModelInitializer

# Module-level singleton for the initializer
_initializer_cache: ModelInitializer | None = None


def get_initializer(settings: FirecastSettings | None = None) -> ModelInitializer:
    """Get the shared initializer (singleton).

    Args:
        settings: Used only when the instance is first created; ignored
            afterwards.

    Returns:
        The process-wide ModelInitializer
    """
    global _initializer_cache

    from firecast.engine.orchestrator import ModelInitializer

    if _initializer_cache is None:
        _initializer_cache = ModelInitializer(settings)
    return _initializer_cache


def reset_initializer() -> None:
    """Drop the shared instance so the next get_initializer() builds a fresh one."""
    global _initializer_cache
    _initializer_cache = None
