# showings/conflicts.py

"""
Conflict detection between a candidate visit and the day's appointments.

Two reasons block a slot: its blocked interval overlaps an existing one, or
the agent cannot drive between the two properties in the gap separating the
visits.
"""

import logging
from typing import Iterable, Optional

from showings.config import settings
from showings.core import BookedVisit, CandidateSlot, SpecificProperty, VisitTarget, blocked_interval, overlaps

logger = logging.getLogger(__name__)


def find_booking_conflict(
    start: int, duration: int, margin: int, appointments: Iterable[BookedVisit]
) -> Optional[BookedVisit]:
    """First appointment whose blocked interval overlaps a visit at ``start``.

    Temporal test only, no routing: this is the booking write path.
    """
    new_start, new_end = blocked_interval(start, duration, margin)
    for appt in appointments:
        appt_start, appt_end = blocked_interval(appt.start, duration, margin)
        if overlaps(new_start, new_end, appt_start, appt_end):
            return appt
    return None


class ConflictDetector:
    def __init__(self, oracle=None, travel_window_minutes: Optional[int] = None):
        self.oracle = oracle
        if travel_window_minutes is None:
            travel_window_minutes = settings.scheduling.travel_window_minutes
        self.travel_window_minutes = travel_window_minutes
        self._reported_no_oracle = False

    async def is_blocked(
        self,
        candidate: CandidateSlot,
        target: VisitTarget,
        appointments: Iterable[BookedVisit],
    ) -> bool:
        for appt in appointments:
            if self._overlaps(candidate, appt):
                return True
            if await self._travel_infeasible(candidate, target, appt):
                return True
        return False

    def _overlaps(self, candidate: CandidateSlot, appt: BookedVisit) -> bool:
        cand_start, cand_end = candidate.blocked
        appt_start, appt_end = blocked_interval(appt.start, candidate.duration, candidate.margin)
        return overlaps(cand_start, cand_end, appt_start, appt_end)

    async def _travel_infeasible(
        self, candidate: CandidateSlot, target: VisitTarget, appt: BookedVisit
    ) -> bool:
        if not isinstance(target, SpecificProperty):
            return False
        if abs(candidate.start - appt.start) > self.travel_window_minutes:
            return False

        other = appt.location
        here = target.location
        if other is None or other.id == here.id:
            return False

        if self.oracle is None:
            if not self._reported_no_oracle:
                logger.debug("No travel-time oracle configured, skipping travel checks")
                self._reported_no_oracle = True
            return False

        # Route in the direction the agent drives: from the earlier visit to the later one.
        after = candidate.start > appt.start
        if after:
            travel = await self.oracle.travel_time(other, here)
        else:
            travel = await self.oracle.travel_time(here, other)
        if travel is None:
            return False
        minutes = travel.duration_minutes

        if after:
            earliest = appt.start + candidate.duration + candidate.margin + minutes
            if candidate.start < earliest:
                logger.info(
                    "Slot %s blocked: not enough time after %s (travel %d min)",
                    candidate.time, appt.time, minutes,
                )
                return True
        else:
            latest_end = appt.start - minutes
            if candidate.start + candidate.duration + candidate.margin > latest_end:
                logger.info(
                    "Slot %s blocked: not enough time before %s (travel %d min)",
                    candidate.time, appt.time, minutes,
                )
                return True
        return False
