# showings/availability.py

"""Expansion of weekly visit-availability rules into candidate start times."""

from typing import Iterable, Optional

from showings.core import CandidateSlot, Weekday, to_minutes


def rules_for_day(day, rules: Iterable) -> list:
    """Active rules tagged with the weekday of ``day``, in opening order."""
    weekday = Weekday.of(day)
    matching = [r for r in rules if r.active and r.weekday == weekday]
    return sorted(matching, key=lambda r: (r.opens_at, r.id or 0))


def resolve_candidate_slots(day, rules: Iterable) -> list[CandidateSlot]:
    """
    Every start time offered on ``day``, ordered by time.

    Each rule contributes instants from its opening time up to and including
    its closing time, stepping by its granularity. An instant produced by
    several rules keeps the duration and margin of the earliest-opening one.
    A day without active rules yields an empty list.
    """
    seen: dict[int, CandidateSlot] = {}
    for rule in rules_for_day(day, rules):
        current = to_minutes(rule.opens_at)
        last = to_minutes(rule.closes_at)
        while current <= last:
            if current not in seen:
                seen[current] = CandidateSlot(
                    start=current,
                    duration=rule.visit_minutes,
                    margin=rule.margin_minutes,
                )
            current += rule.granularity_minutes
    return [seen[start] for start in sorted(seen)]


def duration_and_margin_for(day, instant: int, rules: Iterable) -> Optional[tuple[int, int]]:
    """
    (visit_minutes, margin_minutes) applying to a visit at ``instant`` on ``day``.

    Taken from the first rule whose window contains the instant, falling back
    to the first rule of the day. None when the day is closed.
    """
    day_rules = rules_for_day(day, rules)
    if not day_rules:
        return None
    for rule in day_rules:
        if to_minutes(rule.opens_at) <= instant <= to_minutes(rule.closes_at):
            return rule.visit_minutes, rule.margin_minutes
    first = day_rules[0]
    return first.visit_minutes, first.margin_minutes


def is_offered(day, instant: int, rules: Iterable) -> bool:
    return any(slot.start == instant for slot in resolve_candidate_slots(day, rules))
