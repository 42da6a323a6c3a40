"""
FreightMatch - load lifecycle engine matching posted freight with truckers.
"""

from .core.errors import (
    ActiveJobError,
    AuthorizationError,
    ConflictError,
    FreightMatchError,
    NotFoundError,
    StateError,
    ValidationError,
)
from .data.models import Actor, ActorRole, Load, LoadStatus, LoadTerms, TruckerCapability
from .engine import Command, EarningsProjector, LifecycleEngine, MatchingCoordinator

__version__ = "0.1.0"

__all__ = [
    "LifecycleEngine",
    "MatchingCoordinator",
    "EarningsProjector",
    "Command",
    "Actor",
    "ActorRole",
    "Load",
    "LoadStatus",
    "LoadTerms",
    "TruckerCapability",
    "FreightMatchError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "StateError",
    "ConflictError",
    "ActiveJobError",
]
