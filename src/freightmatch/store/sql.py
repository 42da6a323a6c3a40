"""
SQL load store backed by SQLAlchemy.

One row per load. The conditional update is a single
`UPDATE loads SET ... WHERE id = :id AND status = :expected` statement, so
the database decides the winner of concurrent transitions: exactly one
statement sees the expected status and reports an affected row.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from sqlalchemy import Engine, create_engine, select, update
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import Date, DateTime, Float, Numeric, String

from freightmatch.core.errors import NotFoundError
from freightmatch.data.models.actor import TruckerCapability
from freightmatch.data.models.load import Load, LoadStatus, LoadTerms
from freightmatch.store.base import LoadStore


class Base(DeclarativeBase):
    pass


class LoadRow(Base):
    __tablename__ = "loads"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    posted_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    cargo_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    vehicle_type_required: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    pickup_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)

    posted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    matched_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_up_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


def _to_db(value: Any) -> Any:
    if isinstance(value, LoadStatus):
        return value.value
    if isinstance(value, datetime) and value.tzinfo is not None:
        # Stored as UTC; some dialects drop the offset
        return value.astimezone(timezone.utc)
    return value


def _from_db(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def make_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine suitable for multi-threaded use."""
    if database_url.startswith("sqlite"):
        # Writers wait on the file lock instead of failing with "database is locked"
        connect_args = {"check_same_thread": False, "timeout": 30}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty database
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
    return create_engine(database_url, pool_pre_ping=True)


class SQLLoadStore(LoadStore):
    """Load store persisted in a relational database."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the store and create the `loads` table if it doesn't exist.

        Args:
            database_url: SQLAlchemy URL (ignored when engine is given)
            engine: Pre-built SQLAlchemy engine
            **kwargs: Passed to LoadStore (clock, matching, logger)
        """
        super().__init__(**kwargs)
        if engine is None:
            if not database_url:
                raise ValueError("SQLLoadStore needs a database_url or an engine")
            engine = make_engine(database_url)
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

        with engine.begin() as conn:
            Base.metadata.create_all(conn)

        self.logger.info("store_initialized", backend="sql", dialect=engine.dialect.name)

    def _to_model(self, row: LoadRow) -> Load:
        data = {
            column.key: _from_db(getattr(row, column.key))
            for column in LoadRow.__table__.columns
        }
        return Load.model_validate(data)

    def create(self, posted_by: str, terms: Union[LoadTerms, Mapping[str, Any]]) -> Load:
        load = self.build_load(posted_by, terms)
        row = LoadRow(**{k: _to_db(v) for k, v in load.model_dump().items()})
        with self.SessionLocal.begin() as s:
            s.add(row)
        return load

    def get(self, load_id: str) -> Load:
        with self.SessionLocal() as s:
            row = s.get(LoadRow, load_id)
            if row is None:
                raise NotFoundError("load not found", load_id=load_id)
            return self._to_model(row)

    def _list(self, *criteria: Any) -> list[Load]:
        stmt = select(LoadRow).where(*criteria).order_by(LoadRow.posted_at, LoadRow.id)
        with self.SessionLocal() as s:
            return [self._to_model(row) for row in s.scalars(stmt)]

    def list_by_poster(self, business_id: str) -> list[Load]:
        return self._list(LoadRow.posted_by == business_id)

    def list_available(self, capability: Optional[TruckerCapability] = None) -> list[Load]:
        criteria = [LoadRow.status == LoadStatus.POSTED.value]
        if capability is not None and capability.capacity is not None:
            criteria.append(LoadRow.weight <= capability.capacity)
        # Vehicle aliases are resolved in Python
        return [l for l in self._list(*criteria) if self.matches_capability(l, capability)]

    def list_by_assignee(self, trucker_id: str) -> list[Load]:
        return self._list(LoadRow.assigned_to == trucker_id)

    def compare_and_set(
        self, load_id: str, expected_status: LoadStatus, changes: Mapping[str, Any]
    ) -> Optional[Load]:
        self.check_mutable(changes)
        stmt = (
            update(LoadRow)
            .where(LoadRow.id == load_id, LoadRow.status == expected_status.value)
            .values(**{k: _to_db(v) for k, v in changes.items()})
            .execution_options(synchronize_session=False)
        )
        with self.SessionLocal.begin() as s:
            result = s.execute(stmt)
            if result.rowcount == 0:
                if s.get(LoadRow, load_id) is None:
                    raise NotFoundError("load not found", load_id=load_id)
                return None
            row = s.get(LoadRow, load_id, populate_existing=True)
            # Raises (and rolls back) if the new record breaks a Load invariant
            return self._to_model(row)

    def __repr__(self) -> str:
        return f"SQLLoadStore(url={self.engine.url!r})"
