"""
Lifecycle Engine - the authoritative state machine over a load's status.

This engine:
- Encodes the transition graph and the actor guard on every edge
- Checks authorization before the state precondition, so an unauthorized
  caller never learns a load's status from the error it receives
- Applies every transition as a conditional update against the load store
- Delegates `claim` to the Matching Coordinator for atomic resolution

Transition graph:

    POSTED      --claim(trucker)-->        MATCHED
    POSTED      --cancel(business)-->      CANCELLED
    MATCHED     --confirm(business)-->     ASSIGNED
    MATCHED     --cancel(business)-->      CANCELLED
    ASSIGNED    --pickup(trucker)-->       IN_TRANSIT
    IN_TRANSIT  --deliver(trucker)-->      DELIVERED
    DELIVERED   --close(business)-->       CLOSED
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union

import structlog
from pydantic import BaseModel

from freightmatch.core.errors import (
    AuthorizationError,
    FreightMatchError,
    StateError,
)
from freightmatch.data.models.actor import Actor, ActorRole, TruckerCapability
from freightmatch.data.models.load import STATUS_TIMESTAMPS, Load, LoadStatus, LoadTerms
from freightmatch.engine.earnings import EarningsProjector
from freightmatch.engine.matching import MatchingCoordinator, next_timestamp
from freightmatch.store.base import LoadStore


class Command(str, Enum):
    """Commands a gateway can issue."""

    POST = "post"
    CLAIM = "claim"
    CONFIRM = "confirm"
    PICKUP = "pickup"
    DELIVER = "deliver"
    CLOSE = "close"
    CANCEL = "cancel"


class Guard(str, Enum):
    """Who may issue a command."""

    ANY_BUSINESS = "any_business"
    ANY_TRUCKER = "any_trucker"
    POSTER = "poster"
    ASSIGNEE = "assignee"


class Transition(BaseModel):
    """One edge of the transition graph."""

    command: Command
    source: LoadStatus
    target: LoadStatus

    class Config:
        """Pydantic configuration."""

        frozen = True


TRANSITIONS: tuple[Transition, ...] = (
    Transition(command=Command.CLAIM, source=LoadStatus.POSTED, target=LoadStatus.MATCHED),
    Transition(command=Command.CANCEL, source=LoadStatus.POSTED, target=LoadStatus.CANCELLED),
    Transition(command=Command.CONFIRM, source=LoadStatus.MATCHED, target=LoadStatus.ASSIGNED),
    Transition(command=Command.CANCEL, source=LoadStatus.MATCHED, target=LoadStatus.CANCELLED),
    Transition(command=Command.PICKUP, source=LoadStatus.ASSIGNED, target=LoadStatus.IN_TRANSIT),
    Transition(command=Command.DELIVER, source=LoadStatus.IN_TRANSIT, target=LoadStatus.DELIVERED),
    Transition(command=Command.CLOSE, source=LoadStatus.DELIVERED, target=LoadStatus.CLOSED),
)

GUARDS: dict[Command, Guard] = {
    Command.POST: Guard.ANY_BUSINESS,
    Command.CLAIM: Guard.ANY_TRUCKER,
    Command.CONFIRM: Guard.POSTER,
    Command.PICKUP: Guard.ASSIGNEE,
    Command.DELIVER: Guard.ASSIGNEE,
    Command.CLOSE: Guard.POSTER,
    Command.CANCEL: Guard.POSTER,
}

_GUARD_ROLES: dict[Guard, ActorRole] = {
    Guard.ANY_BUSINESS: ActorRole.BUSINESS,
    Guard.ANY_TRUCKER: ActorRole.TRUCKER,
    Guard.POSTER: ActorRole.BUSINESS,
    Guard.ASSIGNEE: ActorRole.TRUCKER,
}


def find_transition(command: Command, status: LoadStatus) -> Optional[Transition]:
    """The edge leaving `status` for `command`, if the graph has one."""
    for edge in TRANSITIONS:
        if edge.command == command and edge.source == status:
            return edge
    return None


def check_role(actor: Actor, command: Command) -> None:
    """
    Check the caller's role for a command.

    Raises:
        AuthorizationError: If the role does not match
    """
    required = _GUARD_ROLES[GUARDS[command]]
    if actor.role != required:
        raise AuthorizationError(
            f"{command.value} requires a {required.value}, got {actor.role.value}"
        )


def check_identity(actor: Actor, command: Command, load: Load) -> None:
    """
    Check the caller's identity against the load for a command.

    Raises:
        AuthorizationError: If the caller is not the poster or assignee the guard names
    """
    guard = GUARDS[command]
    if guard == Guard.POSTER and actor.actor_id != load.posted_by:
        raise AuthorizationError(
            f"only the posting business may {command.value} this load", load_id=load.id
        )
    if guard == Guard.ASSIGNEE and actor.actor_id != load.assigned_to:
        raise AuthorizationError(
            f"only the assigned trucker may {command.value} this load", load_id=load.id
        )


class LifecycleEngine:
    """
    Validates and applies load transitions.

    Gateways call one method per command, naming the calling actor. Every
    method returns a detached copy of the updated load; copies held by
    gateways are stale after any later mutation and must be re-fetched.
    """

    def __init__(
        self,
        store: LoadStore,
        coordinator: Optional[MatchingCoordinator] = None,
        projector: Optional[EarningsProjector] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Load store holding the authoritative records
            coordinator: Claim resolver (defaults to one over the same store)
            projector: Earnings views (defaults to one over the same store)
            logger: Optional structured logger
        """
        self.store = store
        self.coordinator = coordinator or MatchingCoordinator(store)
        self.projector = projector or EarningsProjector(store)
        self.logger = logger or structlog.get_logger(component="lifecycle")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def post(self, actor: Actor, terms: Union[LoadTerms, Mapping[str, Any]]) -> Load:
        """
        Post a new load.

        Args:
            actor: Business posting the load
            terms: Shipment terms, validated here before reaching the store

        Returns:
            The new load in POSTED status

        Raises:
            AuthorizationError: If the caller is not a business
            ValidationError: If the terms are missing or malformed
        """
        try:
            check_role(actor, Command.POST)
            load = self.store.create(actor.actor_id, terms)
        except FreightMatchError as e:
            self._rejected(Command.POST, actor, None, e)
            raise

        self.logger.info(
            "load_posted",
            load_id=load.id,
            business_id=actor.actor_id,
            origin=load.origin,
            destination=load.destination,
        )
        return load

    def claim(self, actor: Actor, load_id: str) -> Load:
        """Claim a POSTED load for the calling trucker (POSTED -> MATCHED)."""
        return self._execute(Command.CLAIM, actor, load_id)

    def confirm(self, actor: Actor, load_id: str) -> Load:
        """Accept the claiming trucker (MATCHED -> ASSIGNED)."""
        return self._execute(Command.CONFIRM, actor, load_id)

    def pickup(self, actor: Actor, load_id: str) -> Load:
        """Record pickup by the assigned trucker (ASSIGNED -> IN_TRANSIT)."""
        return self._execute(Command.PICKUP, actor, load_id)

    def deliver(self, actor: Actor, load_id: str) -> Load:
        """Record delivery by the assigned trucker (IN_TRANSIT -> DELIVERED)."""
        return self._execute(Command.DELIVER, actor, load_id)

    def close(self, actor: Actor, load_id: str) -> Load:
        """Verify delivery and close the load (DELIVERED -> CLOSED)."""
        return self._execute(Command.CLOSE, actor, load_id)

    def cancel(self, actor: Actor, load_id: str) -> Load:
        """Cancel a load that has not been confirmed (POSTED/MATCHED -> CANCELLED)."""
        return self._execute(Command.CANCEL, actor, load_id)

    def execute(self, command: Command, actor: Actor, load_id: str) -> Load:
        """
        Dispatch a transition command by name.

        Args:
            command: Any command except POST
            actor: Calling actor
            load_id: Target load

        Returns:
            The updated load
        """
        command = Command(command)
        if command == Command.POST:
            raise ValueError("post takes load terms, not a load id")
        return self._execute(command, actor, load_id)

    def _execute(self, command: Command, actor: Actor, load_id: str) -> Load:
        try:
            check_role(actor, command)
            load = self.store.get(load_id)
            check_identity(actor, command, load)

            if command == Command.CLAIM:
                updated = self.coordinator.claim(actor, load)
            else:
                updated = self._apply(command, load)
        except FreightMatchError as e:
            self._rejected(command, actor, load_id, e)
            raise

        self.logger.info(
            "load_transitioned",
            load_id=load_id,
            command=command.value,
            actor=str(actor),
            status=updated.status.value,
        )
        return updated

    def _apply(self, command: Command, load: Load) -> Load:
        edge = find_transition(command, load.status)
        if edge is None:
            raise StateError(
                f"cannot {command.value} a load in status {load.status.value}", load_id=load.id
            )

        changes: dict[str, Any] = {
            "status": edge.target,
            STATUS_TIMESTAMPS[edge.target]: next_timestamp(load, self.store.now()),
        }
        if edge.target == LoadStatus.CANCELLED:
            changes["assigned_to"] = None

        updated = self.store.compare_and_set(load.id, edge.source, changes)
        if updated is None:
            raise StateError(
                f"load changed while applying {command.value}; re-fetch and retry",
                load_id=load.id,
            )
        return updated

    def _rejected(
        self, command: Command, actor: Actor, load_id: Optional[str], error: FreightMatchError
    ) -> None:
        self.logger.warning(
            "command_rejected",
            command=command.value,
            actor=str(actor),
            load_id=load_id,
            error_kind=error.kind,
            error=error.message,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, load_id: str) -> Load:
        return self.store.get(load_id)

    def list_posted_by(self, business_id: str) -> list[Load]:
        return self.store.list_by_poster(business_id)

    def list_available(self, capability: Optional[TruckerCapability] = None) -> list[Load]:
        return self.store.list_available(capability)

    def list_assigned_to(self, trucker_id: str) -> list[Load]:
        return self.store.list_by_assignee(trucker_id)

    def total_earnings(self, trucker_id: str) -> Decimal:
        return self.projector.total_earnings(trucker_id)

    def allowed_commands(self, actor: Actor, load_id: str) -> list[Command]:
        """
        Commands the actor may issue on the load right now.

        Uses the same graph and guards as the commands themselves. Claim
        policy (one active job) is not consulted here.
        """
        load = self.store.get(load_id)
        allowed = []
        for edge in TRANSITIONS:
            if edge.source != load.status:
                continue
            try:
                check_role(actor, edge.command)
                check_identity(actor, edge.command, load)
            except AuthorizationError:
                continue
            allowed.append(edge.command)
        return allowed

    def __repr__(self) -> str:
        return f"LifecycleEngine(store={self.store!r})"
