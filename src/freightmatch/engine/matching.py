"""
Matching Coordinator - atomic resolution of trucker claims.

A claim moves a POSTED load to MATCHED and records the claimant. Several
truckers may race for the same load; the store's compare-and-set decides
the single winner and every other claimant gets a ConflictError. No queue
of applicants is kept: losers re-list available loads and try another.
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

import structlog

from freightmatch.core.errors import ActiveJobError, ConflictError
from freightmatch.data.models.actor import Actor
from freightmatch.data.models.load import ACTIVE_JOB_STATUSES, Load, LoadStatus
from freightmatch.store.base import LoadStore


def next_timestamp(load: Load, now: datetime) -> datetime:
    """Timestamp for the load's next status, never earlier than its last one."""
    _, last = load.history()[-1]
    return max(now, last)


class MatchingCoordinator:
    """
    Resolves the `claim` command with compare-and-swap.

    Optionally enforces the one-active-job policy: a trucker already holding
    a MATCHED, ASSIGNED or IN_TRANSIT load cannot claim another. The policy
    check and the swap run under a per-claimant lock so two concurrent claims
    by one trucker cannot both pass it.

    One lock is kept per trucker id for the coordinator's lifetime; the map is
    bounded by the number of distinct claimants.
    """

    def __init__(
        self,
        store: LoadStore,
        single_active_job: bool = True,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            store: Load store holding the authoritative records
            single_active_job: Reject claims from truckers with an active job
            logger: Optional structured logger
        """
        self.store = store
        self.single_active_job = single_active_job
        self.logger = logger or structlog.get_logger(component="matching")

        self._claimant_locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @contextmanager
    def _claimant_lock(self, trucker_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._claimant_locks[trucker_id]
        with lock:
            yield

    def active_jobs(self, trucker_id: str) -> list[Load]:
        """Loads the trucker currently holds."""
        return [
            l for l in self.store.list_by_assignee(trucker_id) if l.status in ACTIVE_JOB_STATUSES
        ]

    def claim(self, actor: Actor, load: Load) -> Load:
        """
        Claim a load for a trucker.

        Args:
            actor: Authorized trucker issuing the claim
            load: Latest snapshot of the load being claimed

        Returns:
            The load in MATCHED status with assigned_to set to the claimant

        Raises:
            ConflictError: If the load is no longer POSTED
            ActiveJobError: If the policy is on and the trucker holds an active job
        """
        if load.status != LoadStatus.POSTED:
            raise ConflictError("load no longer available", load_id=load.id)

        with self._claimant_lock(actor.actor_id):
            if self.single_active_job:
                active = self.active_jobs(actor.actor_id)
                if active:
                    raise ActiveJobError(
                        f"trucker {actor.actor_id} already holds active load {active[0].id}",
                        load_id=load.id,
                    )

            changes: dict[str, Any] = {
                "status": LoadStatus.MATCHED,
                "assigned_to": actor.actor_id,
                "matched_at": next_timestamp(load, self.store.now()),
            }
            updated = self.store.compare_and_set(load.id, LoadStatus.POSTED, changes)

        if updated is None:
            self.logger.info("claim_conflict", load_id=load.id, trucker_id=actor.actor_id)
            raise ConflictError("load no longer available", load_id=load.id)

        self.logger.info("load_claimed", load_id=load.id, trucker_id=actor.actor_id)
        return updated

    def __repr__(self) -> str:
        return f"MatchingCoordinator(single_active_job={self.single_active_job})"
