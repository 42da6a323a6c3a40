"""
Load data model - represents a freight shipment moving through its lifecycle.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class LoadStatus(str, Enum):
    """Load status enumeration."""

    POSTED = "POSTED"
    MATCHED = "MATCHED"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


# Status -> the Load field stamped when that status is entered
STATUS_TIMESTAMPS: dict[LoadStatus, str] = {
    LoadStatus.POSTED: "posted_at",
    LoadStatus.MATCHED: "matched_at",
    LoadStatus.ASSIGNED: "assigned_at",
    LoadStatus.IN_TRANSIT: "picked_up_at",
    LoadStatus.DELIVERED: "delivered_at",
    LoadStatus.CLOSED: "closed_at",
    LoadStatus.CANCELLED: "cancelled_at",
}

# Status -> the statuses a load must have passed through to reach it
STATUS_PATHS: dict[LoadStatus, tuple[LoadStatus, ...]] = {
    LoadStatus.POSTED: (LoadStatus.POSTED,),
    LoadStatus.MATCHED: (LoadStatus.POSTED, LoadStatus.MATCHED),
    LoadStatus.ASSIGNED: (LoadStatus.POSTED, LoadStatus.MATCHED, LoadStatus.ASSIGNED),
    LoadStatus.IN_TRANSIT: (
        LoadStatus.POSTED,
        LoadStatus.MATCHED,
        LoadStatus.ASSIGNED,
        LoadStatus.IN_TRANSIT,
    ),
    LoadStatus.DELIVERED: (
        LoadStatus.POSTED,
        LoadStatus.MATCHED,
        LoadStatus.ASSIGNED,
        LoadStatus.IN_TRANSIT,
        LoadStatus.DELIVERED,
    ),
    LoadStatus.CLOSED: (
        LoadStatus.POSTED,
        LoadStatus.MATCHED,
        LoadStatus.ASSIGNED,
        LoadStatus.IN_TRANSIT,
        LoadStatus.DELIVERED,
        LoadStatus.CLOSED,
    ),
}

ASSIGNED_STATUSES = frozenset(
    {
        LoadStatus.MATCHED,
        LoadStatus.ASSIGNED,
        LoadStatus.IN_TRANSIT,
        LoadStatus.DELIVERED,
        LoadStatus.CLOSED,
    }
)
ACTIVE_JOB_STATUSES = frozenset(
    {LoadStatus.MATCHED, LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT}
)
COMPLETED_STATUSES = frozenset({LoadStatus.DELIVERED, LoadStatus.CLOSED})
TERMINAL_STATUSES = frozenset({LoadStatus.CLOSED, LoadStatus.CANCELLED})


class LoadTerms(BaseModel):
    """Shipment terms supplied by the business when posting a load."""

    origin: str = Field(..., min_length=1, description="Pickup city")
    destination: str = Field(..., min_length=1, description="Delivery city")
    cargo_type: Optional[str] = Field(None, description="Type of freight (e.g. 'Electronics')")
    vehicle_type_required: Optional[str] = Field(
        None, description="Required truck type; None accepts any vehicle"
    )
    weight: float = Field(..., gt=0, allow_inf_nan=False, description="Weight in tons")
    price: Decimal = Field(
        ..., gt=0, max_digits=14, decimal_places=2, description="Payout offered to the trucker"
    )
    pickup_date: Optional[date] = Field(None, description="Scheduled pickup date")

    @field_validator("origin", "destination", "cargo_type", "vehicle_type_required", mode="before")
    @classmethod
    def _strip(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("cargo_type", "vehicle_type_required")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode="after")
    def _distinct_endpoints(self) -> "LoadTerms":
        if self.origin.lower() == self.destination.lower():
            raise ValueError("origin and destination must differ")
        return self

    class Config:
        """Pydantic configuration."""

        extra = "forbid"


class Load(LoadTerms):
    """
    Represents a posted freight load.

    This is the core data model for lifecycle operations. The model checks
    its own invariants, so a record that breaks the assignee or timestamp
    rules can never be built, stored or returned.
    """

    # Identification
    id: str = Field(..., min_length=1, description="Opaque load identifier")
    posted_by: str = Field(..., min_length=1, description="Business that posted the load")

    # Status
    status: LoadStatus = Field(LoadStatus.POSTED, description="Current load status")
    assigned_to: Optional[str] = Field(None, description="Claiming trucker")

    # Transition timestamps
    posted_at: datetime
    matched_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "Load":
        has_assignee = self.assigned_to is not None
        if has_assignee != (self.status in ASSIGNED_STATUSES):
            raise ValueError(
                f"assigned_to must be set exactly when status is one of "
                f"{sorted(s.value for s in ASSIGNED_STATUSES)} (status={self.status.value})"
            )

        stamped = [s for s, field in STATUS_TIMESTAMPS.items() if getattr(self, field) is not None]
        if self.status == LoadStatus.CANCELLED:
            # Cancellation is allowed from POSTED or MATCHED
            allowed = [
                {LoadStatus.POSTED, LoadStatus.CANCELLED},
                {LoadStatus.POSTED, LoadStatus.MATCHED, LoadStatus.CANCELLED},
            ]
            if set(stamped) not in allowed:
                raise ValueError(f"unexpected timestamps for CANCELLED load: {stamped}")
        elif set(stamped) != set(STATUS_PATHS[self.status]):
            raise ValueError(f"unexpected timestamps for {self.status.value} load: {stamped}")

        previous: Optional[datetime] = None
        for _, ts in self.history():
            if previous is not None and ts < previous:
                raise ValueError("transition timestamps must not decrease")
            previous = ts
        return self

    @property
    def terms(self) -> LoadTerms:
        """The immutable shipment terms of this load."""
        return LoadTerms(**self.model_dump(include=set(LoadTerms.model_fields)))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def history(self) -> list[tuple[LoadStatus, datetime]]:
        """
        Reconstruct the load's history from its transition timestamps.

        Returns:
            (status, entered_at) pairs in lifecycle order
        """
        entries = []
        for status, field in STATUS_TIMESTAMPS.items():
            ts = getattr(self, field)
            if ts is not None:
                entries.append((status, ts))
        return entries

    def __str__(self) -> str:
        """String representation."""
        return f"{self.id}: {self.origin} -> {self.destination} [{self.status.value}]"

    class Config:
        """Pydantic configuration."""

        extra = "forbid"
        json_encoders = {
            datetime: lambda v: v.isoformat(),
            Decimal: lambda v: str(v),
        }
