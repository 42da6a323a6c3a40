"""
Earnings Projector - read-only views derived from the load store.

Nothing here is stored. Every figure is recomputed from the store's records
on each query so it can never drift from the lifecycle of the loads.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from freightmatch.data.models.load import (
    ACTIVE_JOB_STATUSES,
    COMPLETED_STATUSES,
    Load,
    LoadStatus,
)
from freightmatch.store.base import LoadStore

# Statuses the business dashboard counts as "active"
BUSINESS_ACTIVE_STATUSES = frozenset(
    {LoadStatus.POSTED, LoadStatus.MATCHED, LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT}
)


class TruckerSummary(BaseModel):
    """Trucker dashboard figures taken from one snapshot."""

    trucker_id: str
    active_job: Optional[Load] = None
    completed_trips: int
    total_earnings: Decimal


class BusinessSummary(BaseModel):
    """Business dashboard figures taken from one snapshot."""

    business_id: str
    total_loads: int
    active_loads: int
    completed_loads: int


class EarningsProjector:
    """Aggregations over a trucker's or business's loads."""

    def __init__(self, store: LoadStore) -> None:
        self.store = store

    @staticmethod
    def _completed(loads: list[Load]) -> list[Load]:
        return [l for l in loads if l.status in COMPLETED_STATUSES]

    @staticmethod
    def _active(loads: list[Load]) -> Optional[Load]:
        active = [l for l in loads if l.status in ACTIVE_JOB_STATUSES]
        if not active:
            return None
        return min(active, key=lambda l: (l.matched_at, l.id))

    def total_earnings(self, trucker_id: str) -> Decimal:
        """Sum of prices over the trucker's DELIVERED and CLOSED loads."""
        completed = self._completed(self.store.list_by_assignee(trucker_id))
        return sum((l.price for l in completed), Decimal("0"))

    def completed_trips(self, trucker_id: str) -> int:
        """Number of the trucker's DELIVERED and CLOSED loads."""
        return len(self._completed(self.store.list_by_assignee(trucker_id)))

    def active_job(self, trucker_id: str) -> Optional[Load]:
        """
        The load the trucker is currently working.

        With the one-active-job policy disabled a trucker may hold several;
        the earliest matched one is returned.
        """
        return self._active(self.store.list_by_assignee(trucker_id))

    def trucker_summary(self, trucker_id: str) -> TruckerSummary:
        loads = self.store.list_by_assignee(trucker_id)
        completed = self._completed(loads)
        return TruckerSummary(
            trucker_id=trucker_id,
            active_job=self._active(loads),
            completed_trips=len(completed),
            total_earnings=sum((l.price for l in completed), Decimal("0")),
        )

    def business_summary(self, business_id: str) -> BusinessSummary:
        loads = self.store.list_by_poster(business_id)
        return BusinessSummary(
            business_id=business_id,
            total_loads=len(loads),
            active_loads=sum(1 for l in loads if l.status in BUSINESS_ACTIVE_STATUSES),
            completed_loads=sum(1 for l in loads if l.status == LoadStatus.CLOSED),
        )
