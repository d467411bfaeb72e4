"""
Urgency scoring for spots.

The score combines three ingredients, each strictly monotonic:
- priority (high > medium > low) sets the base,
- lower readiness adds a bonus (new > learning > review > mastered),
- every overdue day adds a fixed amount.

Priority bases are spaced further apart than the largest readiness bonus, so a
high-priority spot always outranks a low-priority one that is not overdue.
All functions here are pure and take the evaluation time explicitly.
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from scoreread.models.enums import SpotPriority, ReadinessLevel
from scoreread.models.spot import Spot


PRIORITY_WEIGHTS = {
    SpotPriority.LOW: 1.0,
    SpotPriority.MEDIUM: 4.0,
    SpotPriority.HIGH: 7.0,
}
READINESS_WEIGHTS = {
    ReadinessLevel.NEW: 1.5,
    ReadinessLevel.LEARNING: 1.0,
    ReadinessLevel.REVIEW: 0.5,
    ReadinessLevel.MASTERED: 0.0,
}
OVERDUE_WEIGHT_PER_DAY = 1.0

SECONDS_PER_DAY = 24 * 60 * 60


def is_due(spot: Spot, now: datetime) -> bool:
    """A spot is due when it has no due date yet or the due date has arrived."""
    if spot.next_due is None:
        return True
    return now >= spot.next_due


def overdue_duration(spot: Spot, now: datetime) -> timedelta:
    """Time elapsed since the spot became due, clamped to zero."""
    if spot.next_due is None or now <= spot.next_due:
        return timedelta(0)
    return now - spot.next_due


def is_overdue_by(spot: Spot, now: datetime, threshold: timedelta) -> bool:
    """True when the spot has been overdue for strictly longer than `threshold`."""
    return overdue_duration(spot, now) > threshold


def urgency_score(spot: Spot, now: datetime) -> float:
    """Non-negative urgency of a spot at time `now`."""
    overdue_days = overdue_duration(spot, now).total_seconds() / SECONDS_PER_DAY
    return (
        PRIORITY_WEIGHTS[spot.priority]
        + READINESS_WEIGHTS[spot.readiness_level]
        + overdue_days * OVERDUE_WEIGHT_PER_DAY
    )


def urgency_sort_key(spot: Spot, now: datetime, score: float = None) -> Tuple[float, float, str]:
    """
    Sort key for "most urgent first".
    
    Ties on score are broken by longer overdue duration, then by spot id.
    A precomputed (e.g. re-weighted) score may be passed in.
    """
    if score is None:
        score = urgency_score(spot, now)
    return (-score, -overdue_duration(spot, now).total_seconds(), spot.id)


def rank_by_urgency(spots: Iterable[Spot], now: datetime) -> List[Spot]:
    """Return the spots ordered by urgency, most urgent first."""
    return sorted(spots, key=lambda spot: urgency_sort_key(spot, now))
