"""
Application wiring - builds a ready-to-use engine from configuration.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import structlog

from freightmatch.core.config import ConfigManager, get_config
from freightmatch.core.errors import ConflictError
from freightmatch.core.logging import configure_logging
from freightmatch.data.models.actor import Actor
from freightmatch.engine.earnings import EarningsProjector
from freightmatch.engine.lifecycle import LifecycleEngine
from freightmatch.engine.matching import MatchingCoordinator
from freightmatch.store.base import LoadStore
from freightmatch.store.memory import InMemoryLoadStore
from freightmatch.store.sql import SQLLoadStore


def build_store(config_manager: ConfigManager) -> LoadStore:
    """
    Create the load store selected by FREIGHTMATCH_STORE.

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = config_manager.env.store_backend.lower()
    matching = config_manager.matching
    if backend == "memory":
        return InMemoryLoadStore(matching=matching)
    if backend == "sql":
        return SQLLoadStore(database_url=config_manager.env.database_url, matching=matching)
    raise ValueError(f"Unsupported store backend: {backend}")


def build_engine(
    config_manager: Optional[ConfigManager] = None,
    store: Optional[LoadStore] = None,
) -> LifecycleEngine:
    """
    Wire store, coordinator, projector and engine.

    Args:
        config_manager: Optional config manager (defaults to global instance)
        store: Optional pre-built store (defaults to the configured backend)

    Returns:
        LifecycleEngine ready to accept commands
    """
    config_manager = config_manager or get_config()
    if store is None:
        store = build_store(config_manager)
    coordinator = MatchingCoordinator(
        store, single_active_job=config_manager.lifecycle.single_active_job
    )
    return LifecycleEngine(store, coordinator=coordinator, projector=EarningsProjector(store))


def main() -> None:
    """Run the Mumbai -> Delhi scenario against an in-memory store."""
    config = get_config()
    configure_logging(config.env.log_level, config.env.log_json)
    logger = structlog.get_logger(component="demo")

    engine = build_engine(config, store=InMemoryLoadStore(matching=config.matching))

    business = Actor.business("B")
    t1, t2 = Actor.trucker("T1"), Actor.trucker("T2")

    load = engine.post(
        business, {"origin": "Mumbai", "destination": "Delhi", "weight": 5, "price": 10000}
    )

    # Both truckers race for the same load
    def attempt(trucker: Actor) -> str:
        try:
            engine.claim(trucker, load.id)
            return "won"
        except ConflictError:
            return "lost"

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = dict(zip(("T1", "T2"), pool.map(attempt, (t1, t2))))
    winner = t1 if outcomes["T1"] == "won" else t2
    loser = t2 if winner is t1 else t1
    logger.info("claim_race_finished", outcomes=outcomes)

    engine.confirm(business, load.id)
    engine.pickup(winner, load.id)
    engine.deliver(winner, load.id)
    final = engine.close(business, load.id)

    print("\n" + "=" * 80)
    print("LOAD LIFECYCLE")
    print("=" * 80)
    print(f"Load: {final}")
    for status, ts in final.history():
        print(f"  {status.value:<11} {ts.isoformat()}")
    print()
    print(f"Earnings {winner.actor_id}: {engine.total_earnings(winner.actor_id)}")
    print(f"Earnings {loser.actor_id}: {engine.total_earnings(loser.actor_id)}")
    print("=" * 80)


if __name__ == "__main__":
    main()
