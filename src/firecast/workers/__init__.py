"""Handler tables run inside background execution contexts."""

from firecast.workers.data import data_handlers
from firecast.workers.training import training_handlers

__all__ = ["data_handlers", "training_handlers"]
