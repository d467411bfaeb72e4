"""
SRS (Spaced Repetition System) service computing a spot's next review.

Readiness moves along a four-step ladder (new -> learning -> review -> mastered)
and the review interval grows or resets depending on the practice result.
The time until the next review is that interval shaped by the spot's
difficulty, its success rate and an approaching concert.
This module only computes; persisting the update is the caller's job.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from scoreread.models.enums import ReadinessLevel, SpotResult, SpotColor, SUCCESS_RESULTS
from scoreread.models.spot import Spot

logger = logging.getLogger(__name__)


READINESS_LADDER = [
    ReadinessLevel.NEW,
    ReadinessLevel.LEARNING,
    ReadinessLevel.REVIEW,
    ReadinessLevel.MASTERED,
]

# Review intervals in hours
RETRY_INTERVAL_HOURS = 4          # Shortest tier, used after a poor result
MIN_GOOD_INTERVAL_HOURS = 24
MIN_EXCELLENT_INTERVAL_HOURS = 48
MAX_INTERVAL_HOURS = 7 * 24       # Mastered spots still come back weekly

FAIR_GROWTH = 1.2
GOOD_GROWTH = 2.0
EXCELLENT_GROWTH = 3.0

MORNING_HOUR = 8
EARLY_HOUR = 6

# Shaping of the scheduled review time
DIFFICULTY_STEP = 0.15            # difficulty 1 -> x1.0, difficulty 5 -> x0.4
MIN_SUCCESS_MULTIPLIER = 0.5      # success rate 0.0 -> x0.5, 1.0 -> x1.5
CONCERT_PRESSURE = [              # (days until the concert, multiplier)
    (3, 0.3),
    (7, 0.5),
    (14, 0.7),
    (30, 0.85),
]
RED_SPOT_PRESSURE = 0.8


@dataclass(frozen=True)
class ScheduleUpdate:
    """New scheduling state of a spot after one practice attempt."""
    readiness_level: ReadinessLevel
    next_due: datetime
    interval_hours: int
    scheduled_hours: float
    practice_count: int
    success_count: int
    failure_count: int
    color: SpotColor
    last_practiced: datetime
    last_result: SpotResult


def update_readiness_level(current_level: ReadinessLevel, result: SpotResult) -> ReadinessLevel:
    """
    Update readiness based on a practice result.
    
    Args:
        current_level: Current readiness level
        result: Practice result
    
    Returns:
        New readiness level
    """
    index = READINESS_LADDER.index(current_level)
    
    if result in SUCCESS_RESULTS:
        # Success: move up one step (ceiling mastered)
        return READINESS_LADDER[min(len(READINESS_LADDER) - 1, index + 1)]
    elif result == SpotResult.POOR:
        # Poor: move down one step (floor new)
        return READINESS_LADDER[max(0, index - 1)]
    else:
        # Fair: no change
        return current_level


def calculate_interval_hours(current_interval_hours: int, result: SpotResult) -> int:
    """
    Calculate the next review interval in hours.
    
    Poor resets to the retry tier, fair grows slightly, good and excellent grow
    faster. Every interval is capped at MAX_INTERVAL_HOURS.
    
    Args:
        current_interval_hours: Interval used for the previous review (0 for unpracticed spots)
        result: Practice result
    
    Returns:
        Interval in hours
    """
    current = max(0, current_interval_hours)
    
    if result == SpotResult.POOR:
        interval = RETRY_INTERVAL_HOURS
    elif result == SpotResult.FAIR:
        interval = max(RETRY_INTERVAL_HOURS, round(current * FAIR_GROWTH))
    elif result == SpotResult.GOOD:
        interval = max(MIN_GOOD_INTERVAL_HOURS, round(current * GOOD_GROWTH))
    else:
        interval = max(MIN_EXCELLENT_INTERVAL_HOURS, round(current * EXCELLENT_GROWTH))
    
    return min(MAX_INTERVAL_HOURS, interval)


def difficulty_multiplier(difficulty: int) -> float:
    """Harder spots come back sooner: 1.0 for difficulty 1 down to 0.4 for difficulty 5."""
    return 1.0 - (difficulty - 1) * DIFFICULTY_STEP


def success_multiplier(success_rate: float) -> float:
    """0.5 for a spot that never succeeds, up to 1.5 for one that always does."""
    return max(MIN_SUCCESS_MULTIPLIER, MIN_SUCCESS_MULTIPLIER + success_rate)


def concert_pressure(concert_date: Optional[datetime], color: SpotColor, now: datetime) -> float:
    """
    Multiplier shortening reviews as a concert approaches.

    No pressure without a concert date or once the concert has passed. Red
    spots get an extra squeeze on top of the deadline tier.
    """
    if concert_date is None:
        return 1.0

    days_until_concert = (concert_date - now).days
    if days_until_concert <= 0:
        return 1.0

    pressure = 1.0
    for max_days, multiplier in CONCERT_PRESSURE:
        if days_until_concert <= max_days:
            pressure = multiplier
            break

    if color == SpotColor.RED:
        pressure *= RED_SPOT_PRESSURE
    return pressure


def calculate_scheduled_hours(
    interval_hours: int,
    spot: Spot,
    result: SpotResult,
    now: datetime,
    concert_date: Optional[datetime] = None
) -> float:
    """
    Hours until the next review of a spot.

    The review interval is shaped by the spot's difficulty, its success rate
    (both before this attempt) and the concert deadline, then kept between
    the retry tier and the weekly cap. A poor result is always retried after
    the retry tier.

    Args:
        interval_hours: Review interval from calculate_interval_hours
        spot: Spot that was practiced
        result: Practice result
        now: Time of the attempt
        concert_date: Concert date of the spot's project, if any

    Returns:
        Hours until the next review
    """
    if result == SpotResult.POOR:
        return float(interval_hours)

    hours = (
        interval_hours
        * difficulty_multiplier(spot.difficulty)
        * success_multiplier(spot.success_rate)
        * concert_pressure(concert_date, spot.color, now)
    )
    return max(float(RETRY_INTERVAL_HOURS), min(float(MAX_INTERVAL_HOURS), hours))


def apply_sleep_gate(scheduled_time: datetime, sleep_gate_hour: Optional[int]) -> datetime:
    """
    Move a review that lands during the night to the next morning.
    
    Reviews at or after `sleep_gate_hour`, or before 06:00, are moved to 08:00.
    """
    if sleep_gate_hour is None:
        return scheduled_time
    
    if scheduled_time.hour >= sleep_gate_hour:
        next_day = scheduled_time + timedelta(days=1)
        return next_day.replace(hour=MORNING_HOUR, minute=0, second=0, microsecond=0)
    if scheduled_time.hour < EARLY_HOUR:
        return scheduled_time.replace(hour=MORNING_HOUR, minute=0, second=0, microsecond=0)
    return scheduled_time


def calculate_next_due(
    interval_hours: float,
    base_time: datetime = None,
    sleep_gate_hour: Optional[int] = None
) -> datetime:
    """
    Calculate the next review time.
    
    Args:
        interval_hours: Review interval in hours
        base_time: Base time to calculate from (defaults to now)
        sleep_gate_hour: Optional hour after which reviews move to the next morning
    
    Returns:
        Datetime for next review
    """
    if base_time is None:
        base_time = datetime.utcnow()
    
    return apply_sleep_gate(base_time + timedelta(hours=interval_hours), sleep_gate_hour)


def updated_color(current_color: SpotColor, result: SpotResult) -> SpotColor:
    """Triage color after a practice result."""
    if result == SpotResult.POOR:
        return SpotColor.RED
    elif result == SpotResult.FAIR:
        return SpotColor.YELLOW
    elif result == SpotResult.GOOD:
        return SpotColor.YELLOW if current_color == SpotColor.RED else SpotColor.GREEN
    return SpotColor.BLUE


def calculate_schedule_update(
    spot: Spot,
    result: SpotResult,
    now: datetime = None,
    sleep_gate_hour: Optional[int] = None,
    concert_date: Optional[datetime] = None
) -> ScheduleUpdate:
    """
    Compute a spot's scheduling state after one practice attempt.
    
    The spot itself is not modified. `practice_count` grows by exactly one
    whatever the result.
    
    Args:
        spot: Spot that was practiced
        result: Practice result
        now: Time of the attempt (defaults to now)
        sleep_gate_hour: Optional hour after which reviews move to the next morning
        concert_date: Concert date of the spot's project, if any
    
    Returns:
        ScheduleUpdate with the new readiness, interval and due date
    """
    if now is None:
        now = datetime.utcnow()
    
    interval_hours = calculate_interval_hours(spot.interval_hours, result)
    scheduled_hours = calculate_scheduled_hours(interval_hours, spot, result, now, concert_date)
    is_success = result in SUCCESS_RESULTS
    
    return ScheduleUpdate(
        readiness_level=update_readiness_level(spot.readiness_level, result),
        next_due=calculate_next_due(scheduled_hours, now, sleep_gate_hour),
        interval_hours=interval_hours,
        scheduled_hours=scheduled_hours,
        practice_count=spot.practice_count + 1,
        success_count=spot.success_count + (1 if is_success else 0),
        failure_count=spot.failure_count + (0 if is_success else 1),
        color=updated_color(spot.color, result),
        last_practiced=now,
        last_result=result,
    )


def apply_schedule_update(spot: Spot, update: ScheduleUpdate) -> Spot:
    """Copy a ScheduleUpdate onto a spot row and return it."""
    logger.debug(
        f"Spot {spot.id}: readiness {spot.readiness_level} -> {update.readiness_level}, "
        f"interval {spot.interval_hours}h -> {update.interval_hours}h, next_due={update.next_due}"
    )
    spot.readiness_level = update.readiness_level
    spot.next_due = update.next_due
    spot.interval_hours = update.interval_hours
    spot.practice_count = update.practice_count
    spot.success_count = update.success_count
    spot.failure_count = update.failure_count
    spot.color = update.color
    spot.last_practiced = update.last_practiced
    spot.last_result = update.last_result
    spot.updated_time = update.last_practiced
    return spot
