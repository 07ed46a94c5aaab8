"""
Firecast: wildfire model initialization orchestrator.

Brings up the prediction models behind the wildfire dashboard through
background execution contexts, reporting progress to any number of
observers and degrading to in-process simulation when background
execution is unavailable.
"""

__version__ = "0.1.0"
