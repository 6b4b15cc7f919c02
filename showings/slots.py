# showings/slots.py

"""
Available visit slots for a property (or a general consultation) on a date.

Storage rows are turned into read-only snapshots first; the three stages
(rule expansion, conflict detection, ranking) only ever see those snapshots.
"""

import logging
from typing import Iterable, Mapping, Optional

from showings.availability import resolve_candidate_slots
from showings.conflicts import ConflictDetector
from showings.core import GENERAL, BookedVisit, CandidateSlot, PropertyLocation, SpecificProperty, VisitTarget, to_minutes
from showings.ranking import rank_slots
from showings.schemas import AppointmentStatus

logger = logging.getLogger(__name__)


def location_of(prop) -> PropertyLocation:
    return PropertyLocation(
        id=prop.id,
        street=prop.street,
        postal_code=prop.postal_code,
        city=prop.city,
        street_number=prop.street_number,
        latitude=prop.latitude,
        longitude=prop.longitude,
    )


def target_of(prop) -> VisitTarget:
    if prop is None:
        return GENERAL
    return SpecificProperty(location_of(prop))


def booked_visits(appointments: Iterable, properties: Mapping[int, object]) -> list[BookedVisit]:
    """Snapshots of the appointments still occupying their slot, ordered by time.

    Appointments at a property missing from ``properties`` are kept for the
    temporal check but carry no location.
    """
    visits = []
    for appt in appointments:
        if appt.status == AppointmentStatus.cancelled.value:
            continue
        prop = properties.get(appt.property_id) if appt.property_id is not None else None
        visits.append(
            BookedVisit(
                appointment_id=appt.id,
                start=to_minutes(appt.time),
                target=target_of(prop),
            )
        )
    visits.sort(key=lambda v: v.start)
    return visits


async def compute_available_slots(
    target: VisitTarget,
    day,
    rules: Iterable,
    appointments: Iterable[BookedVisit],
    oracle=None,
    detector: Optional[ConflictDetector] = None,
) -> list[CandidateSlot]:
    """Bookable slots for ``target`` on ``day``, best first.

    Candidates are checked one after the other so that travel-time lookups
    reach the oracle strictly in sequence.
    """
    appointments = list(appointments)
    if detector is None:
        detector = ConflictDetector(oracle)

    candidates = resolve_candidate_slots(day, rules)
    if not candidates:
        logger.info("No visit availability on %s", day.isoformat())
        return []

    available = []
    for candidate in candidates:
        if not await detector.is_blocked(candidate, target, appointments):
            available.append(candidate)

    ranked = rank_slots(available, target, appointments)
    optimised = sum(1 for slot in ranked if slot.priority > 0)
    if optimised and isinstance(target, SpecificProperty):
        logger.info(
            "%d route-optimised slots out of %d for %s on %s",
            optimised, len(ranked), target.location.city, day.isoformat(),
        )
    return ranked
