"""
Load lifecycle engine.

This module contains:
- LifecycleEngine: transition graph, guards and the command surface
- MatchingCoordinator: atomic claim resolution
- EarningsProjector: read-only trucker and business views
"""

from .earnings import BusinessSummary, EarningsProjector, TruckerSummary
from .lifecycle import TRANSITIONS, Command, Guard, LifecycleEngine, Transition
from .matching import MatchingCoordinator

__all__ = [
    "LifecycleEngine",
    "Command",
    "Guard",
    "Transition",
    "TRANSITIONS",
    "MatchingCoordinator",
    "EarningsProjector",
    "TruckerSummary",
    "BusinessSummary",
]
