"""Tests for load, terms and actor models."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from freightmatch.data.models.actor import Actor, ActorRole, TruckerCapability
from freightmatch.data.models.load import Load, LoadStatus, LoadTerms

T0 = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


def _load(**overrides: object) -> Load:
    data: dict[str, object] = {
        "id": "LD-1",
        "posted_by": "B",
        "origin": "Mumbai",
        "destination": "Delhi",
        "weight": 5,
        "price": 10000,
        "status": LoadStatus.POSTED,
        "posted_at": T0,
    }
    data.update(overrides)
    return Load(**data)


class TestLoadTerms:
    def test_minimal_terms(self) -> None:
        terms = LoadTerms(origin="Mumbai", destination="Delhi", weight=5, price=10000)
        assert terms.price == Decimal("10000")
        assert terms.cargo_type is None
        assert terms.vehicle_type_required is None

    def test_strips_whitespace_and_blanks(self) -> None:
        terms = LoadTerms(
            origin="  Pune ",
            destination="Nagpur",
            cargo_type="   ",
            weight=1.5,
            price="2500",
            pickup_date="2025-04-01",
        )
        assert terms.origin == "Pune"
        assert terms.cargo_type is None
        assert terms.pickup_date == date(2025, 4, 1)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("origin", ""),
            ("origin", "   "),
            ("weight", 0),
            ("weight", -2),
            ("weight", float("inf")),
            ("weight", float("nan")),
            ("price", 0),
            ("price", "not-a-number"),
            ("price", "10.005"),
            ("price", "1234567890123.45"),
        ],
    )
    def test_rejects_invalid_values(self, field: str, value: object) -> None:
        data = {"origin": "Mumbai", "destination": "Delhi", "weight": 5, "price": 10000}
        data[field] = value
        with pytest.raises(PydanticValidationError):
            LoadTerms(**data)

    def test_rejects_same_origin_and_destination(self) -> None:
        with pytest.raises(PydanticValidationError, match="must differ"):
            LoadTerms(origin="Delhi", destination="delhi", weight=5, price=100)

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(PydanticValidationError):
            LoadTerms(origin="A", destination="B", weight=5, price=100, status="CLOSED")


class TestLoadInvariants:
    def test_posted_load(self) -> None:
        load = _load()
        assert load.status == LoadStatus.POSTED
        assert load.assigned_to is None
        assert not load.is_terminal

    def test_assignee_required_when_matched(self) -> None:
        with pytest.raises(PydanticValidationError, match="assigned_to"):
            _load(status=LoadStatus.MATCHED, matched_at=T0)

    def test_assignee_forbidden_when_posted(self) -> None:
        with pytest.raises(PydanticValidationError, match="assigned_to"):
            _load(assigned_to="T1")

    def test_assignee_forbidden_when_cancelled(self) -> None:
        with pytest.raises(PydanticValidationError, match="assigned_to"):
            _load(
                status=LoadStatus.CANCELLED,
                assigned_to="T1",
                matched_at=T0,
                cancelled_at=T0,
            )

    def test_missing_path_timestamp_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="timestamps"):
            _load(status=LoadStatus.ASSIGNED, assigned_to="T1", assigned_at=T0)

    def test_foreign_timestamp_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="timestamps"):
            _load(closed_at=T0)

    def test_decreasing_timestamps_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="decrease"):
            _load(
                status=LoadStatus.MATCHED,
                assigned_to="T1",
                matched_at=T0 - timedelta(minutes=1),
            )

    def test_cancelled_after_match(self) -> None:
        load = _load(
            status=LoadStatus.CANCELLED,
            matched_at=T0 + timedelta(minutes=1),
            cancelled_at=T0 + timedelta(minutes=2),
        )
        assert load.is_terminal
        assert [s for s, _ in load.history()] == [
            LoadStatus.POSTED,
            LoadStatus.MATCHED,
            LoadStatus.CANCELLED,
        ]

    def test_history_in_lifecycle_order(self) -> None:
        stamps = {
            "matched_at": T0 + timedelta(minutes=1),
            "assigned_at": T0 + timedelta(minutes=2),
            "picked_up_at": T0 + timedelta(minutes=3),
            "delivered_at": T0 + timedelta(minutes=4),
            "closed_at": T0 + timedelta(minutes=5),
        }
        load = _load(status=LoadStatus.CLOSED, assigned_to="T1", **stamps)
        history = load.history()
        assert [s for s, _ in history] == [
            LoadStatus.POSTED,
            LoadStatus.MATCHED,
            LoadStatus.ASSIGNED,
            LoadStatus.IN_TRANSIT,
            LoadStatus.DELIVERED,
            LoadStatus.CLOSED,
        ]
        assert history[-1][1] == stamps["closed_at"]

    def test_terms_view(self) -> None:
        load = _load(cargo_type="Steel")
        assert load.terms == LoadTerms(
            origin="Mumbai", destination="Delhi", cargo_type="Steel", weight=5, price=10000
        )


class TestActor:
    def test_constructors(self) -> None:
        assert Actor.business("B").role == ActorRole.BUSINESS
        assert Actor.trucker("T1").role == ActorRole.TRUCKER
        assert str(Actor.trucker("T1")) == "trucker:T1"

    def test_blank_identity_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Actor(actor_id="", role=ActorRole.TRUCKER)

    def test_capability_capacity_positive(self) -> None:
        with pytest.raises(PydanticValidationError):
            TruckerCapability(capacity=0)
        with pytest.raises(PydanticValidationError):
            TruckerCapability(capacity=float("inf"))
