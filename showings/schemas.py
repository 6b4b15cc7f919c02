# showings/schemas.py

from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum
from datetime import date, time
from typing import List, Optional

from showings.core import Weekday

PHONE_PATTERN = r"^[\d\s.\-+()]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


class PropertyCreate(BaseModel):
    title: str = Field(min_length=1)
    street_number: Optional[str] = None
    street: str = Field(min_length=1)
    postal_code: str = Field(min_length=2, max_length=10)
    city: str = Field(min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class PropertyPublic(BaseModel):
    id: int
    title: str
    street: str
    postal_code: str
    city: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AppointmentCreate(BaseModel):
    property_id: Optional[int] = None  # omitted for a general consultation
    date: date
    time: time
    name: str = Field(min_length=2)
    email: str = Field(pattern=EMAIL_PATTERN)
    phone: str = Field(min_length=10, pattern=PHONE_PATTERN)
    message: Optional[str] = None
    reason: str = "property_visit"
    consent: bool

    @field_validator("time")
    @classmethod
    def whole_minutes(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)

    @field_validator("consent")
    @classmethod
    def consent_given(cls, value: bool) -> bool:
        if not value:
            raise ValueError("Consent to the privacy policy is required")
        return value


class AppointmentUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    delegate_name: Optional[str] = None
    delegate_email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)


class AppointmentPublic(BaseModel):
    id: int
    property_id: Optional[int]
    date: date
    time: time
    name: str
    email: str
    phone: str
    message: Optional[str]
    reason: str
    status: AppointmentStatus
    delegate_name: Optional[str]
    delegate_email: Optional[str]


class AvailabilityRuleCreate(BaseModel):
    weekday: Weekday
    opens_at: time
    closes_at: time
    granularity_minutes: int = Field(default=30, gt=0)
    visit_minutes: int = Field(default=45, gt=0)
    margin_minutes: int = Field(default=15, ge=0)
    active: bool = True

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.opens_at > self.closes_at:
            raise ValueError("opens_at cannot be later than closes_at")
        return self


class AvailabilityRuleUpdate(BaseModel):
    opens_at: Optional[time] = None
    closes_at: Optional[time] = None
    granularity_minutes: Optional[int] = Field(default=None, gt=0)
    visit_minutes: Optional[int] = Field(default=None, gt=0)
    margin_minutes: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None


class AvailabilityRulePublic(BaseModel):
    id: int
    weekday: Weekday
    opens_at: time
    closes_at: time
    granularity_minutes: int
    visit_minutes: int
    margin_minutes: int
    active: bool


class SlotPublic(BaseModel):
    time: str
    available: bool
    priority: int


class AvailableSlotsResponse(BaseModel):
    slots: List[SlotPublic]
