"""
Execution-time components: page context and selector resolution.
"""

from autobdd.runtime.context import PageContextManager
from autobdd.runtime.driver import Driver
from autobdd.runtime.resolver import (
    CollectingHealingSink,
    HealingSink,
    Resolution,
    ResolutionState,
    SelectorResolver,
    log_healing_event,
)

__all__ = [
    "CollectingHealingSink",
    "Driver",
    "HealingSink",
    "PageContextManager",
    "Resolution",
    "ResolutionState",
    "SelectorResolver",
    "log_healing_event",
]
