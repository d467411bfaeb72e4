"""
Daily plan and urgent list for the practice dashboard.
"""
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Sequence, Set

from scoreread.models.enums import SpotPriority, SpotColor
from scoreread.models.spot import Spot
from scoreread.services.selection_service import candidate_pool
from scoreread.services.urgency_service import is_due, is_overdue_by, rank_by_urgency

logger = logging.getLogger(__name__)


DAILY_PLAN_LIMIT = 20
URGENT_LIST_LIMIT = 10
URGENT_OVERDUE_THRESHOLD = timedelta(days=1)


class DailyPlanMode(str, Enum):
    """Which spots the daily plan may contain."""
    DUE_ONLY = "due_only"
    # Also show every spot of a piece nobody has practiced yet, due or not
    INCLUDE_NEW_PIECES = "include_new_pieces"


def new_piece_ids(spots: Sequence[Spot]) -> Set[str]:
    """Pieces whose spots have never been practiced."""
    practiced = {spot.piece_id for spot in spots if spot.practice_count > 0}
    return {spot.piece_id for spot in spots} - practiced


def build_daily_plan(
    spots: Sequence[Spot],
    now: datetime,
    limit: int = DAILY_PLAN_LIMIT,
    mode: DailyPlanMode = DailyPlanMode.DUE_ONLY
) -> List[Spot]:
    """
    Today's practice plan: due spots, most urgent first, capped at `limit`.
    
    Args:
        spots: Candidate spots (inactive ones are ignored)
        now: Evaluation time
        limit: Maximum number of spots
        mode: DUE_ONLY (default) or INCLUDE_NEW_PIECES
    
    Returns:
        Ordered list of spots; empty when nothing is due
    """
    pool = candidate_pool(spots)
    if not pool:
        logger.info("Daily plan: no spots to plan from")
        return []
    
    fresh_pieces = new_piece_ids(pool) if mode == DailyPlanMode.INCLUDE_NEW_PIECES else set()
    planned = [spot for spot in pool if is_due(spot, now) or spot.piece_id in fresh_pieces]
    daily_plan = rank_by_urgency(planned, now)[:max(0, limit)]
    
    logger.info(f"Daily plan: {len(daily_plan)} spots from {len(pool)} active ({mode.value})")
    return daily_plan


def is_urgent(spot: Spot, now: datetime) -> bool:
    """Overdue by more than a day, high priority, or tagged red."""
    return (
        is_overdue_by(spot, now, URGENT_OVERDUE_THRESHOLD)
        or spot.priority == SpotPriority.HIGH
        or spot.color == SpotColor.RED
    )


def build_urgent_list(
    spots: Sequence[Spot],
    now: datetime,
    limit: int = URGENT_LIST_LIMIT
) -> List[Spot]:
    """Urgent spots, most urgent first, capped at `limit`."""
    pool = candidate_pool(spots)
    urgent = rank_by_urgency([spot for spot in pool if is_urgent(spot, now)], now)[:max(0, limit)]
    logger.info(f"Urgent list: {len(urgent)} spots")
    return urgent
