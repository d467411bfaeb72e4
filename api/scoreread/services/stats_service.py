"""
Practice statistics for the dashboard.

Stats are derived from the current spot pool, finalized sessions, the spot
history and, optionally, the live session that has not been persisted yet.
A live session whose id already appears among the finalized sessions is
ignored so its time is never counted twice.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence, Set

from scoreread.models.enums import ReadinessLevel, SessionStatus, SUCCESS_RESULTS
from scoreread.models.practice_session import PracticeSession, SpotSession
from scoreread.models.spot import Spot
from scoreread.models.spot_history import SpotHistory
from scoreread.schemas.practice import PracticeStats
from scoreread.services.urgency_service import is_due

logger = logging.getLogger(__name__)


STATS_WINDOW_DAYS = 7


def _completed_spot_sessions(sessions: Iterable[PracticeSession]) -> Iterable[SpotSession]:
    for session in sessions:
        for spot_session in session.completed_spot_sessions:
            if spot_session.end_time is not None:
                yield spot_session


def _minutes(seconds: float) -> int:
    return int(seconds // 60)


def compute_practice_stats(
    spots: Sequence[Spot],
    sessions: Sequence[PracticeSession],
    spot_history: Sequence[SpotHistory],
    now: datetime,
    live_session: Optional[PracticeSession] = None,
    window_days: int = STATS_WINDOW_DAYS
) -> PracticeStats:
    """
    Compute dashboard statistics.
    
    Practice time is the time spent on completed spots (pauses excluded), so
    a cancelled session still counts the spots that were finished.
    
    Args:
        spots: Current active spot pool
        sessions: Finalized sessions (at least those of the trailing window)
        spot_history: Spot history entries (at least those of the trailing window)
        now: Evaluation time
        live_session: In-progress session not yet persisted, if any
        window_days: Length of the trailing window in days
    
    Returns:
        A new PracticeStats
    """
    window_start = now - timedelta(days=window_days)
    today = now.date()
    
    considered = list(sessions)
    if live_session is not None:
        if any(session.id == live_session.id for session in sessions):
            logger.debug(f"Live session {live_session.id} already persisted, using stored copy")
        else:
            considered.append(live_session)
    
    today_seconds = 0.0
    weekly_seconds = 0.0
    today_spot_ids: Set[str] = set()
    for spot_session in _completed_spot_sessions(considered):
        seconds = spot_session.duration_seconds or 0.0
        if spot_session.end_time >= window_start:
            weekly_seconds += seconds
        if spot_session.end_time.date() == today:
            today_seconds += seconds
            today_spot_ids.add(spot_session.spot_id)
    
    weekly_session_count = sum(
        1 for session in considered
        if session.status == SessionStatus.COMPLETED
        and session.end_time is not None
        and session.end_time >= window_start
    )
    
    improved_spot_ids = {
        entry.spot_id for entry in spot_history
        if entry.result in SUCCESS_RESULTS and entry.timestamp >= window_start
    }
    if live_session is not None:
        improved_spot_ids.update(
            spot_session.spot_id for spot_session in _completed_spot_sessions([live_session])
            if spot_session.result in SUCCESS_RESULTS and spot_session.end_time >= window_start
        )
    
    stats = PracticeStats(
        total_spots=len(spots),
        due_spots=sum(1 for spot in spots if is_due(spot, now)),
        mastered_spots=sum(1 for spot in spots if spot.readiness_level == ReadinessLevel.MASTERED),
        learning_spots=sum(1 for spot in spots if spot.readiness_level == ReadinessLevel.LEARNING),
        today_practice_minutes=_minutes(today_seconds),
        today_spots_practiced=len(today_spot_ids),
        weekly_practice_minutes=_minutes(weekly_seconds),
        weekly_session_count=weekly_session_count,
        weekly_improved_spots=len(improved_spot_ids),
    )
    logger.info(
        f"Stats: total={stats.total_spots}, due={stats.due_spots}, "
        f"today={stats.today_practice_minutes}min/{stats.today_spots_practiced} spots, "
        f"week={stats.weekly_practice_minutes}min/{stats.weekly_session_count} sessions"
    )
    return stats
