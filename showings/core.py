# showings/core.py

from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Optional, Union


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

    @classmethod
    def of(cls, day) -> "Weekday":
        # date.weekday(): 0 = Monday
        return list(cls)[day.weekday()]


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def blocked_interval(start: int, duration: int, margin: int) -> tuple[int, int]:
    """Half-open [start - margin, start + duration + margin) in minutes of day."""
    return start - margin, start + duration + margin


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class PropertyLocation:
    """Read-only view of a property used for routing and ranking."""
    id: int
    street: str
    postal_code: str
    city: str
    street_number: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def address(self) -> str:
        if self.street_number:
            return f"{self.street_number} {self.street}, {self.postal_code} {self.city}, France"
        return f"{self.street}, {self.postal_code} {self.city}, France"

    @property
    def department(self) -> str:
        return self.postal_code[:2]


@dataclass(frozen=True)
class SpecificProperty:
    location: PropertyLocation


class General:
    """Consultation not tied to a property: no travel, no proximity bonus."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "GENERAL"


GENERAL = General()

VisitTarget = Union[SpecificProperty, General]


@dataclass(frozen=True)
class BookedVisit:
    """An existing appointment as seen by the scheduling core."""
    appointment_id: Optional[int]
    start: int  # minutes of day
    target: VisitTarget

    @property
    def time(self) -> str:
        return format_minutes(self.start)

    @property
    def location(self) -> Optional[PropertyLocation]:
        if isinstance(self.target, SpecificProperty):
            return self.target.location
        return None


@dataclass
class CandidateSlot:
    start: int  # minutes of day
    duration: int
    margin: int
    available: bool = True
    priority: int = 0

    @property
    def time(self) -> str:
        return format_minutes(self.start)

    @property
    def blocked(self) -> tuple[int, int]:
        return blocked_interval(self.start, self.duration, self.margin)

    def as_dict(self) -> dict:
        return {"time": self.time, "available": self.available, "priority": self.priority}
