"""
Base load store - the authoritative record of every load.

Provides the contract shared by every backend:
- Creation with term validation and id assignment
- Point lookups and the listings the dashboards need
- A single conditional-update primitive (compare-and-set on status)

The store never decides whether a transition is allowed; the lifecycle
engine does. The store only guarantees that an update lands atomically and
only while the load is still in the status the engine expected.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from freightmatch.core.config import MatchingConfig
from freightmatch.core.errors import ValidationError
from freightmatch.data.models.actor import TruckerCapability
from freightmatch.data.models.load import Load, LoadStatus, LoadTerms

Clock = Callable[[], datetime]

IMMUTABLE_FIELDS = frozenset({"id", "posted_by"} | set(LoadTerms.model_fields))


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_terms(terms: Union[LoadTerms, Mapping[str, Any]]) -> LoadTerms:
    """
    Validate a post payload.

    Args:
        terms: LoadTerms instance or raw mapping from a gateway

    Returns:
        Validated LoadTerms

    Raises:
        ValidationError: If terms are missing or malformed
    """
    if isinstance(terms, LoadTerms) and not isinstance(terms, Load):
        return terms
    if isinstance(terms, Load):
        return terms.terms
    if not isinstance(terms, Mapping):
        raise ValidationError(f"load terms must be a mapping, got {type(terms).__name__}")
    try:
        return LoadTerms.model_validate(dict(terms))
    except PydanticValidationError as e:
        raise ValidationError(
            f"invalid load terms: {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
        ) from e


class LoadStore(ABC):
    """
    Base class for load stores.

    Provides:
    - Load construction and validation
    - Availability filtering by trucker capability
    - Stable listing order (posted_at, then id)
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        matching: Optional[MatchingConfig] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            clock: Source of transition timestamps (defaults to UTC now)
            matching: Vehicle alias rules for availability filtering
            logger: Optional structured logger
        """
        self.clock = clock or utc_now
        self.matching = matching or MatchingConfig()
        self.logger = logger or structlog.get_logger(component="load_store")

    def now(self) -> datetime:
        """Timestamp for the next state change."""
        return self.clock()

    @staticmethod
    def new_id() -> str:
        """Fresh opaque load identifier."""
        return f"LD-{uuid.uuid4().hex}"

    def build_load(self, posted_by: str, terms: Union[LoadTerms, Mapping[str, Any]]) -> Load:
        """Validate terms and build a freshly posted load."""
        if not posted_by:
            raise ValidationError("posted_by is required")
        parsed = parse_terms(terms)
        return Load(
            id=self.new_id(),
            posted_by=posted_by,
            status=LoadStatus.POSTED,
            posted_at=self.now(),
            **parsed.model_dump(),
        )

    @staticmethod
    def check_mutable(changes: Mapping[str, Any]) -> None:
        """Reject updates touching identity or shipment terms."""
        touched = IMMUTABLE_FIELDS.intersection(changes)
        if touched:
            raise ValueError(f"immutable load fields cannot change: {sorted(touched)}")

    @classmethod
    def apply_changes(cls, load: Load, changes: Mapping[str, Any]) -> Load:
        """
        Build the successor record of a load.

        Raises:
            ValueError: If the result would break a Load invariant
        """
        cls.check_mutable(changes)
        return Load.model_validate({**load.model_dump(), **changes})

    def matches_capability(self, load: Load, capability: Optional[TruckerCapability]) -> bool:
        """Check whether a trucker's vehicle can carry the load."""
        if capability is None:
            return True
        if capability.capacity is not None and load.weight > capability.capacity:
            return False
        if capability.vehicle_type and load.vehicle_type_required:
            required = self.matching.canonical_vehicle(load.vehicle_type_required)
            offered = self.matching.canonical_vehicle(capability.vehicle_type)
            if required != offered:
                return False
        return True

    @staticmethod
    def ordered(loads: Iterable[Load]) -> list[Load]:
        return sorted(loads, key=lambda l: (l.posted_at, l.id))

    @abstractmethod
    def create(self, posted_by: str, terms: Union[LoadTerms, Mapping[str, Any]]) -> Load:
        """
        Create a new load in POSTED status.

        Args:
            posted_by: Identity of the posting business
            terms: Shipment terms

        Returns:
            The stored load

        Raises:
            ValidationError: If terms are missing or malformed
        """

    @abstractmethod
    def get(self, load_id: str) -> Load:
        """
        Fetch a load by id.

        Raises:
            NotFoundError: If no load has this id
        """

    @abstractmethod
    def list_by_poster(self, business_id: str) -> list[Load]:
        """All loads posted by a business, any status."""

    @abstractmethod
    def list_available(self, capability: Optional[TruckerCapability] = None) -> list[Load]:
        """All POSTED loads, optionally filtered by vehicle type and capacity."""

    @abstractmethod
    def list_by_assignee(self, trucker_id: str) -> list[Load]:
        """All loads ever assigned to a trucker, any status."""

    @abstractmethod
    def compare_and_set(
        self, load_id: str, expected_status: LoadStatus, changes: Mapping[str, Any]
    ) -> Optional[Load]:
        """
        Atomically apply changes if the stored status equals expected_status.

        Args:
            load_id: Load to update
            expected_status: Status the load must still be in
            changes: Field values to write

        Returns:
            The updated load, or None if the status no longer matched

        Raises:
            NotFoundError: If no load has this id
        """

    def __repr__(self) -> str:
        """String representation of the store."""
        return f"{self.__class__.__name__}()"
