# showings/routers/appointments_routes.py

import logging
from datetime import datetime, date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session, select

from showings.availability import duration_and_margin_for, is_offered
from showings.auth import get_current_user
from showings.conflicts import find_booking_conflict
from showings.core import Weekday, to_minutes
from showings.db import get_session
from showings.deps import get_notifier, get_travel_oracle, require_role
from showings.models import Appointment, Property, VisitAvailability
from showings.notifications import Notifier
from showings.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
    AvailableSlotsResponse,
)
from showings.slots import booked_visits, compute_available_slots, target_of

logger = logging.getLogger(__name__)

GENERAL_REF = "general"

router = APIRouter(
    tags=["appointments"],
)


def parse_property_ref(property_ref: str) -> Optional[int]:
    """Property id from a path segment; None for a general consultation."""
    if property_ref == GENERAL_REF:
        return None
    try:
        return int(property_ref)
    except ValueError:
        raise HTTPException(status_code=422, detail="property must be a property id or 'general'")


def get_property_or_404(session: Session, property_id: Optional[int]) -> Optional[Property]:
    if property_id is None:
        return None
    prop = session.get(Property, property_id)
    if prop is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


def rules_for_date(session: Session, on_date: date) -> List[VisitAvailability]:
    return session.exec(
        select(VisitAvailability)
        .where(VisitAvailability.weekday == Weekday.of(on_date))
        .where(VisitAvailability.active == True)  # noqa: E712
    ).all()


def properties_by_id(session: Session, appointments) -> dict:
    ids = {a.property_id for a in appointments if a.property_id is not None}
    if not ids:
        return {}
    props = session.exec(select(Property).where(Property.id.in_(ids))).all()
    return {p.id: p for p in props}


@router.get("/appointments/available-slots/{property_ref}/{on_date}", response_model=AvailableSlotsResponse)
async def available_slots(
    property_ref: str,
    on_date: date,
    session: Session = Depends(get_session),
    oracle=Depends(get_travel_oracle),
):
    # 1) Target property (or general consultation)
    prop = get_property_or_404(session, parse_property_ref(property_ref))

    # 2) Weekly rules for that day
    rules = rules_for_date(session, on_date)
    if not rules:
        return {"slots": []}

    # 3) Snapshot of the day's appointments and their properties
    day_appts = session.exec(
        select(Appointment).where(Appointment.date == on_date)
    ).all()
    visits = booked_visits(day_appts, properties_by_id(session, day_appts))

    slots = await compute_available_slots(target_of(prop), on_date, rules, visits, oracle)
    return {"slots": [slot.as_dict() for slot in slots]}


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    # 1) Prevent booking in the past (naive local time)
    if datetime.combine(appt.date, appt.time) < datetime.now():
        raise HTTPException(status_code=422, detail="Cannot book an appointment in the past")

    # 2) Validate property
    prop = get_property_or_404(session, appt.property_id)

    # 3) Validate the requested time against the day's rules
    rules = rules_for_date(session, appt.date)
    start = to_minutes(appt.time)
    params = duration_and_margin_for(appt.date, start, rules)
    if params is None:
        raise HTTPException(status_code=422, detail="No visits are offered on that day")
    if not is_offered(appt.date, start, rules):
        raise HTTPException(status_code=422, detail="Requested time is not an offered visit slot")
    duration, margin = params

    # 4) Reject overlaps with existing appointments (read-time availability is advisory)
    day_appts = session.exec(
        select(Appointment)
        .where(Appointment.date == appt.date)
        .with_for_update()
    ).all()
    conflict = find_booking_conflict(start, duration, margin, booked_visits(day_appts, {}))
    if conflict is not None:
        logger.info("Booking rejected on %s at %s: overlaps %s", appt.date, appt.time, conflict.time)
        raise HTTPException(
            status_code=409,
            detail=f"An appointment is already scheduled at {conflict.time}. Please choose another slot.",
        )

    # 5) Create and save appointment
    db_appt = Appointment(**appt.model_dump(), status=AppointmentStatus.pending.value)
    session.add(db_appt)
    session.commit()
    session.refresh(db_appt)

    logger.info("Appointment %s booked on %s at %s", db_appt.id, db_appt.date, db_appt.time)
    notifier.appointment_received(db_appt, prop)
    return db_appt


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_appointments(
    on_date: Optional[date] = None,
    property_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    stmt = select(Appointment)
    if on_date is not None:
        stmt = stmt.where(Appointment.date == on_date)
    if property_id is not None:
        stmt = stmt.where(Appointment.property_id == property_id)
    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)

    stmt = stmt.order_by(Appointment.date, Appointment.time)
    return session.exec(stmt).all()


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return target


@router.patch("/appointments/{appt_id}", response_model=AppointmentPublic)
def update_appointment(
    appt_id: int,
    changes: AppointmentUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    require_role(current_user, "admin")

    # 1) Find the appointment in DB
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    previous_status = target.status
    data = changes.model_dump(exclude_unset=True)

    # 2) Reinstating a cancelled appointment must not double-book its slot
    new_status = data.pop("status", None)
    if new_status is not None:
        new_status = AppointmentStatus(new_status).value
        if previous_status == AppointmentStatus.cancelled.value and new_status != previous_status:
            _ensure_slot_free(session, target)
        target.status = new_status

    for key, value in data.items():
        setattr(target, key, value)

    session.add(target)
    session.commit()
    session.refresh(target)

    # 3) Notify on status transitions
    if target.status != previous_status:
        logger.info("Appointment %s status %s -> %s", target.id, previous_status, target.status)
        prop = session.get(Property, target.property_id) if target.property_id is not None else None
        if target.status == AppointmentStatus.confirmed.value:
            notifier.appointment_confirmed(target, prop)
        elif target.status == AppointmentStatus.cancelled.value:
            notifier.appointment_cancelled(target, prop)

    return target


def _ensure_slot_free(session: Session, target: Appointment):
    rules = rules_for_date(session, target.date)
    start = to_minutes(target.time)
    params = duration_and_margin_for(target.date, start, rules)
    if params is None:
        return
    duration, margin = params

    others = [
        a for a in session.exec(
            select(Appointment).where(Appointment.date == target.date).with_for_update()
        ).all()
        if a.id != target.id
    ]
    conflict = find_booking_conflict(start, duration, margin, booked_visits(others, {}))
    if conflict is not None:
        raise HTTPException(
            status_code=409,
            detail=f"An appointment is already scheduled at {conflict.time}",
        )


@router.delete("/appointments/{appt_id}", status_code=204)
def delete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    session.delete(target)
    session.commit()
    return Response(status_code=204)
