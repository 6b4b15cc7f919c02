# showings/ranking.py

from typing import Iterable, Optional

from showings.config import settings
from showings.core import BookedVisit, CandidateSlot, PropertyLocation, SpecificProperty, VisitTarget

SAME_POSTAL_CODE_BONUS = 15
SAME_CITY_BONUS = 8
SAME_DEPARTMENT_BONUS = 3


def proximity_bonus(here: PropertyLocation, other: Optional[PropertyLocation]) -> int:
    if other is None:
        return 0
    if other.city == here.city and other.postal_code == here.postal_code:
        return SAME_POSTAL_CODE_BONUS
    if other.city == here.city:
        return SAME_CITY_BONUS
    if other.department == here.department:
        return SAME_DEPARTMENT_BONUS
    return 0


def rank_slots(
    slots: Iterable[CandidateSlot],
    target: VisitTarget,
    appointments: Iterable[BookedVisit],
    window_minutes: Optional[int] = None,
) -> list[CandidateSlot]:
    """
    Score available slots by closeness to nearby same-day visits and order them.

    Appointments starting within ``window_minutes`` of a slot (either side)
    add a bonus depending on how close their property is to the target.
    General consultations score zero. Result is sorted by priority descending,
    then by time.
    """
    if window_minutes is None:
        window_minutes = settings.scheduling.ranking_window_minutes
    appointments = list(appointments)

    ranked = []
    for slot in slots:
        slot.priority = 0
        if isinstance(target, SpecificProperty):
            for appt in appointments:
                if abs(slot.start - appt.start) <= window_minutes:
                    slot.priority += proximity_bonus(target.location, appt.location)
        ranked.append(slot)

    ranked.sort(key=lambda s: (-s.priority, s.start))
    return ranked
