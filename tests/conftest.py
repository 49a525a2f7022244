"""Shared fixtures: an isolated in-memory database per test plus model factories."""

from datetime import date, time
from decimal import Decimal
import itertools
from typing import Any, Dict, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gigbook.core.enums import RequestStatus, RoleName, UserStatus
from gigbook.database import Base

# Import models so Base.metadata is populated for create_all.
import gigbook.models  # noqa: F401
from gigbook.models.booking_request import BookingRequest
from gigbook.models.user import User

EVENT_DATE = date(2030, 6, 15)

_sequence = itertools.count(1)


class RecordingEmitter:
    """Notification emitter that keeps every call for assertions."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []

    def notify(self, user_id: str, event_type: str, payload: Dict[str, Any]) -> None:
        self.sent.append((user_id, event_type, payload))

    def recipients_of(self, event_type: str) -> List[str]:
        return [user_id for user_id, sent_type, _ in self.sent if sent_type == event_type]


@pytest.fixture(scope="function")
def unit_db() -> Session:
    """
    Provide a session on a fresh in-memory database.

    Services commit their own transactions, so each test gets its own
    schema instead of a rolled-back outer transaction.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def make_user(unit_db: Session):
    def _make(
        role: RoleName = RoleName.MUSICIAN,
        status: UserStatus = UserStatus.ACTIVE,
        instruments: Optional[str] = "piano",
        name: Optional[str] = None,
    ) -> User:
        n = next(_sequence)
        user = User(
            email=f"user{n}@example.com",
            name=name or f"User {n}",
            role=role.value,
            status=status.value,
            instruments=instruments,
        )
        unit_db.add(user)
        unit_db.commit()
        return user

    return _make


@pytest.fixture
def leader(make_user) -> User:
    return make_user(role=RoleName.LEADER, instruments=None, name="Band Leader")


@pytest.fixture
def musician(make_user) -> User:
    return make_user(name="Pianist")


@pytest.fixture
def make_request(unit_db: Session, leader: User):
    def _make(
        start: time = time(20, 0),
        end: time = time(22, 0),
        event_date: date = EVENT_DATE,
        status: RequestStatus = RequestStatus.ACTIVE,
        musician_id: Optional[str] = None,
        instrument: str = "piano",
        extra_amount: Optional[Decimal] = None,
        leader_id: Optional[str] = None,
    ) -> BookingRequest:
        request = BookingRequest(
            leader_id=leader_id or leader.id,
            event_date=event_date,
            start_time=start,
            end_time=end,
            location="Teatro Nacional",
            required_instrument=instrument,
            extra_amount=extra_amount,
            status=status.value,
            musician_id=musician_id,
        )
        unit_db.add(request)
        unit_db.commit()
        return request

    return _make
