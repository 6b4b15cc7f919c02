# showings/models.py

from typing import Optional
from datetime import datetime, date as Date, time as Time

from sqlmodel import SQLModel, Field

from showings.core import Weekday


class Property(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    title: str
    street_number: Optional[str] = None  # private, routing only
    street: str
    postal_code: str = Field(index=True)
    city: str = Field(index=True)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    property_id: Optional[int] = Field(default=None, foreign_key="property.id", index=True)  # None = general
    date: Date = Field(index=True)
    time: Time

    name: str
    email: str
    phone: str
    message: Optional[str] = None
    reason: str = "property_visit"
    consent: bool = False

    status: str = "pending"  # pending, confirmed or cancelled
    delegate_name: Optional[str] = None
    delegate_email: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class VisitAvailability(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    weekday: Weekday = Field(index=True)
    opens_at: Time
    closes_at: Time
    granularity_minutes: int = 30
    visit_minutes: int = 45
    margin_minutes: int = 15
    active: bool = True
