"""
Actor models - identities supplied by the external auth collaborator.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ActorRole(str, Enum):
    """Role of the calling actor."""

    BUSINESS = "business"
    TRUCKER = "trucker"


class Actor(BaseModel):
    """Authenticated caller issuing a command."""

    actor_id: str = Field(..., min_length=1, description="Stable identity of the caller")
    role: ActorRole

    @classmethod
    def business(cls, actor_id: str) -> "Actor":
        return cls(actor_id=actor_id, role=ActorRole.BUSINESS)

    @classmethod
    def trucker(cls, actor_id: str) -> "Actor":
        return cls(actor_id=actor_id, role=ActorRole.TRUCKER)

    def __str__(self) -> str:
        return f"{self.role.value}:{self.actor_id}"

    class Config:
        """Pydantic configuration."""

        frozen = True


class TruckerCapability(BaseModel):
    """Vehicle attributes from a trucker's profile, used to filter available loads."""

    vehicle_type: Optional[str] = Field(None, description="Truck type (e.g. 'Semi-Truck')")
    capacity: Optional[float] = Field(
        None, gt=0, allow_inf_nan=False, description="Maximum load in tons"
    )
