# src/firecast/engine/__init__.py
"""Initialization engine.

- ModelInitializer: the initialization state machine and predictor handoff
- ExecutionContextProvisioner: background execution contexts per run
- PhasedLoader: critical models, chunked data, and background training
- ModelCatalog: known models and their published estimates

Example:
    from firecast.core.config import load_settings
    from firecast.engine import ModelInitializer

    initializer = ModelInitializer(load_settings())
    status = await initializer.initialize_all_models()
"""

from firecast.engine.catalog import DEFAULT_MODELS, ModelCatalog
from firecast.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from firecast.engine.context import ExecutionContext, WorkerPort
from firecast.engine.loader import ModelSource, PhasedLoader, SimulatedModelSource
from firecast.engine.orchestrator import ModelInitializer
from firecast.engine.provisioner import ExecutionContextProvisioner, ProvisionedContexts

__all__ = [
    "DEFAULT_CLOCK",
    "DEFAULT_MODELS",
    "Clock",
    "ExecutionContext",
    "ExecutionContextProvisioner",
    "MockClock",
    "ModelCatalog",
    "ModelInitializer",
    "ModelSource",
    "PhasedLoader",
    "ProvisionedContexts",
    "SimulatedModelSource",
    "SystemClock",
    "WorkerPort",
]
