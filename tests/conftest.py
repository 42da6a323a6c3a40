"""Shared fixtures: deterministic clock, both store backends, engine and actors."""

import itertools
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Union

import pytest

from freightmatch.core.config import MatchingConfig
from freightmatch.core.errors import ConflictError
from freightmatch.data.models.actor import Actor
from freightmatch.data.models.load import Load, LoadStatus
from freightmatch.engine.earnings import EarningsProjector
from freightmatch.engine.lifecycle import LifecycleEngine
from freightmatch.engine.matching import MatchingCoordinator
from freightmatch.store.base import LoadStore
from freightmatch.store.memory import InMemoryLoadStore
from freightmatch.store.sql import SQLLoadStore


class SteppingClock:
    """Returns a strictly increasing UTC time on every call."""

    def __init__(
        self,
        start: datetime = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(minutes=5),
    ) -> None:
        self.start = start
        self.step = step
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return self.start + next(self._ticks) * self.step


MATCHING = MatchingConfig(
    vehicle_aliases={"semi-truck": ["semi", "tractor-trailer"], "mini-truck": ["tempo"]}
)

MUMBAI_DELHI: dict[str, Any] = {
    "origin": "Mumbai",
    "destination": "Delhi",
    "cargo_type": "Electronics",
    "vehicle_type_required": "Semi-Truck",
    "weight": 5,
    "price": 10000,
}


def make_store(backend: str, tmp_path: Any) -> LoadStore:
    if backend == "memory":
        return InMemoryLoadStore(clock=SteppingClock(), matching=MATCHING)
    return SQLLoadStore(
        database_url=f"sqlite:///{tmp_path / 'loads.db'}",
        clock=SteppingClock(),
        matching=MATCHING,
    )


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest, tmp_path: Any) -> LoadStore:
    return make_store(request.param, tmp_path)


@pytest.fixture
def memory_store() -> InMemoryLoadStore:
    return InMemoryLoadStore(clock=SteppingClock(), matching=MATCHING)


def make_engine(store: LoadStore, single_active_job: bool = True) -> LifecycleEngine:
    return LifecycleEngine(
        store,
        coordinator=MatchingCoordinator(store, single_active_job=single_active_job),
        projector=EarningsProjector(store),
    )


@pytest.fixture
def engine(store: LoadStore) -> LifecycleEngine:
    return make_engine(store)


@pytest.fixture
def business() -> Actor:
    return Actor.business("B")


@pytest.fixture
def other_business() -> Actor:
    return Actor.business("B2")


@pytest.fixture
def t1() -> Actor:
    return Actor.trucker("T1")


@pytest.fixture
def t2() -> Actor:
    return Actor.trucker("T2")


# Commands that take a POSTED load to each status, in order
PATH_TO: dict[LoadStatus, list[str]] = {
    LoadStatus.POSTED: [],
    LoadStatus.MATCHED: ["claim"],
    LoadStatus.ASSIGNED: ["claim", "confirm"],
    LoadStatus.IN_TRANSIT: ["claim", "confirm", "pickup"],
    LoadStatus.DELIVERED: ["claim", "confirm", "pickup", "deliver"],
    LoadStatus.CLOSED: ["claim", "confirm", "pickup", "deliver", "close"],
    LoadStatus.CANCELLED: ["cancel"],
}

TRUCKER_COMMANDS = {"claim", "pickup", "deliver"}


@pytest.fixture
def load_in(
    engine: LifecycleEngine, business: Actor, t1: Actor
) -> Callable[..., Load]:
    """Post a load and drive it to the requested status (business B, trucker T1)."""

    def _load_in(status: LoadStatus, price: int = 10000, **terms: Any) -> Load:
        load = engine.post(business, {**MUMBAI_DELHI, "price": price, **terms})
        for command in PATH_TO[status]:
            actor = t1 if command in TRUCKER_COMMANDS else business
            load = getattr(engine, command)(actor, load.id)
        assert load.status == status
        return load

    return _load_in


def race(
    engine: LifecycleEngine, truckers: list[Actor], load_ids: list[str]
) -> list[Union[Load, Exception]]:
    """Fire one claim per (trucker, load) pair at the same instant."""
    barrier = threading.Barrier(len(truckers))

    def attempt(pair: tuple[Actor, str]) -> Union[Load, Exception]:
        trucker, load_id = pair
        barrier.wait()
        try:
            return engine.claim(trucker, load_id)
        except ConflictError as e:
            return e

    with ThreadPoolExecutor(max_workers=len(truckers)) as pool:
        return list(pool.map(attempt, zip(truckers, load_ids)))
