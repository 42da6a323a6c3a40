"""
In-memory load store.

A dict of immutable Load records guarded by one lock. Records are replaced,
never mutated in place, so a snapshot taken under the lock stays consistent
after it is released.
"""

import threading
from typing import Any, Mapping, Optional, Union

from freightmatch.core.errors import NotFoundError
from freightmatch.data.models.actor import TruckerCapability
from freightmatch.data.models.load import Load, LoadStatus, LoadTerms
from freightmatch.store.base import LoadStore


class InMemoryLoadStore(LoadStore):
    """Process-local load store."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loads: dict[str, Load] = {}
        self._lock = threading.Lock()
        self.logger.info("store_initialized", backend="memory")

    def create(self, posted_by: str, terms: Union[LoadTerms, Mapping[str, Any]]) -> Load:
        load = self.build_load(posted_by, terms)
        with self._lock:
            self._loads[load.id] = load
        return load.model_copy(deep=True)

    def get(self, load_id: str) -> Load:
        with self._lock:
            load = self._loads.get(load_id)
        if load is None:
            raise NotFoundError("load not found", load_id=load_id)
        return load.model_copy(deep=True)

    def _snapshot(self) -> list[Load]:
        with self._lock:
            return list(self._loads.values())

    def list_by_poster(self, business_id: str) -> list[Load]:
        return [
            l.model_copy(deep=True)
            for l in self.ordered(self._snapshot())
            if l.posted_by == business_id
        ]

    def list_available(self, capability: Optional[TruckerCapability] = None) -> list[Load]:
        return [
            l.model_copy(deep=True)
            for l in self.ordered(self._snapshot())
            if l.status == LoadStatus.POSTED and self.matches_capability(l, capability)
        ]

    def list_by_assignee(self, trucker_id: str) -> list[Load]:
        return [
            l.model_copy(deep=True)
            for l in self.ordered(self._snapshot())
            if l.assigned_to == trucker_id
        ]

    def compare_and_set(
        self, load_id: str, expected_status: LoadStatus, changes: Mapping[str, Any]
    ) -> Optional[Load]:
        with self._lock:
            current = self._loads.get(load_id)
            if current is None:
                raise NotFoundError("load not found", load_id=load_id)
            if current.status != expected_status:
                return None
            updated = self.apply_changes(current, changes)
            self._loads[load_id] = updated
        return updated.model_copy(deep=True)
