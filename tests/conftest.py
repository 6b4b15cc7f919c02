"""Shared test fixtures and helpers."""

import asyncio
import os
from datetime import date, time
from typing import Optional

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["OPENROUTESERVICE_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from showings.auth import create_access_token
from showings.config import settings
from showings.core import BookedVisit, CandidateSlot, GENERAL, PropertyLocation, SpecificProperty, Weekday
from showings.db import get_session
from showings.deps import get_notifier, get_travel_oracle
from showings.main import app
from showings.models import Appointment, Property, VisitAvailability
from showings.notifications import LoggingNotifier
from showings.routing import RateLimitedTravelTimeOracle, RoutingError, TravelTime

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 13)


class FakeOracle:
    """Travel-time oracle answering from a table, or ``default`` minutes."""

    def __init__(self, minutes: Optional[dict] = None, default: Optional[int] = None):
        self.minutes = minutes or {}
        self.default = default
        self.fail = False
        self.calls: list[tuple[int, int]] = []

    async def travel_time(self, origin, destination):
        self.calls.append((origin.id, destination.id))
        if self.fail:
            raise RoutingError("routing service unavailable")
        key = frozenset((origin.id, destination.id))
        if key in self.minutes:
            return TravelTime(duration_minutes=self.minutes[key], distance_km=1.0)
        if self.default is None:
            raise RoutingError("no route")
        return TravelTime(duration_minutes=self.default, distance_km=1.0)


class RecordingNotifier(LoggingNotifier):
    """LoggingNotifier that also keeps every message for inspection."""

    def __init__(self):
        self.sent: list[dict] = []

    def _record(self, kind, appointment, prop):
        message = super()._record(kind, appointment, prop)
        self.sent.append(message)
        return message


class HangingOracle:
    def __init__(self):
        self.calls = 0

    async def travel_time(self, origin, destination):
        self.calls += 1
        await asyncio.sleep(3600)


def hm(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def make_rule(
    weekday: Weekday = Weekday.monday,
    opens_at: str = "09:00",
    closes_at: str = "12:00",
    granularity: int = 30,
    visit: int = 45,
    margin: int = 15,
    active: bool = True,
    rule_id: Optional[int] = None,
) -> VisitAvailability:
    return VisitAvailability(
        id=rule_id,
        weekday=weekday,
        opens_at=time.fromisoformat(opens_at),
        closes_at=time.fromisoformat(closes_at),
        granularity_minutes=granularity,
        visit_minutes=visit,
        margin_minutes=margin,
        active=active,
    )


def make_location(
    prop_id: int, postal_code: str = "75001", city: str = "Paris", street: str = "rue de Rivoli"
) -> PropertyLocation:
    return PropertyLocation(id=prop_id, street=street, postal_code=postal_code, city=city)


def make_visit(at: str, location: Optional[PropertyLocation] = None, appointment_id: Optional[int] = None) -> BookedVisit:
    target = SpecificProperty(location) if location is not None else GENERAL
    return BookedVisit(appointment_id=appointment_id, start=hm(at), target=target)


def make_slot(at: str, duration: int = 45, margin: int = 15) -> CandidateSlot:
    return CandidateSlot(start=hm(at), duration=duration, margin=margin)


def add_property(session: Session, title: str = "Flat", postal_code: str = "75001", city: str = "Paris") -> Property:
    prop = Property(title=title, street_number="12", street="rue de Rivoli", postal_code=postal_code, city=city)
    session.add(prop)
    session.commit()
    session.refresh(prop)
    return prop


def add_rule(session: Session, **kwargs) -> VisitAvailability:
    rule = make_rule(**kwargs)
    session.add(rule)
    session.commit()
    session.refresh(rule)
    return rule


def add_appointment(
    session: Session,
    at: str,
    on: date = MONDAY,
    property_id: Optional[int] = None,
    status: str = "pending",
) -> Appointment:
    appt = Appointment(
        property_id=property_id,
        date=on,
        time=time.fromisoformat(at),
        name="Jane Doe",
        email="jane@example.com",
        phone="0612345678",
        consent=True,
        status=status,
    )
    session.add(appt)
    session.commit()
    session.refresh(appt)
    return appt


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def oracle():
    return FakeOracle(default=60)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(session, oracle, notifier):
    async def override_oracle():
        yield RateLimitedTravelTimeOracle(oracle, min_interval=0, timeout=1.0)

    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_travel_oracle] = override_oracle
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": settings.auth.admin_username, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
