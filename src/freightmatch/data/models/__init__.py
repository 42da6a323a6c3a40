"""
Pydantic data models for the load lifecycle engine.

Core models:
- Load: Posted shipment and its lifecycle state
- LoadTerms: Shipment terms supplied when posting
- Actor: Authenticated caller (business or trucker)
- TruckerCapability: Vehicle attributes used for availability filtering
"""

from .actor import Actor, ActorRole, TruckerCapability
from .load import (
    ACTIVE_JOB_STATUSES,
    ASSIGNED_STATUSES,
    COMPLETED_STATUSES,
    STATUS_TIMESTAMPS,
    TERMINAL_STATUSES,
    Load,
    LoadStatus,
    LoadTerms,
)

__all__ = [
    "Actor",
    "ActorRole",
    "TruckerCapability",
    "Load",
    "LoadStatus",
    "LoadTerms",
    "STATUS_TIMESTAMPS",
    "ASSIGNED_STATUSES",
    "ACTIVE_JOB_STATUSES",
    "COMPLETED_STATUSES",
    "TERMINAL_STATUSES",
]
