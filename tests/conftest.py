# tests/conftest.py
"""Shared test fixtures and helpers.

Settings Fixtures:
- fast_settings: background contexts enabled, every simulated delay zero
- inprocess_settings: same delays, background contexts disabled

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from firecast.core.config import FirecastSettings
from tests.helpers.firecast_fakes import make_settings


@pytest.fixture
def fast_settings() -> FirecastSettings:
    return make_settings()


@pytest.fixture
def inprocess_settings() -> FirecastSettings:
    return make_settings(workers_enabled=False)


@pytest.fixture(autouse=True)
def _reset_shared_initializer() -> Iterator[None]:
    """Each test starts without a process-wide initializer."""
    from firecast.services import reset_initializer

    reset_initializer()
    yield
    reset_initializer()


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
