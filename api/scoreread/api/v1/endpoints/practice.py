"""
Practice dashboard endpoints: daily plan, urgent list and stats.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends

from scoreread.core.config import settings
from scoreread.models.spot import Spot
from scoreread.schemas.practice import PracticeStats, SpotListResponse, DashboardResponse
from scoreread.services.practice_plan_service import DailyPlanMode, build_daily_plan, build_urgent_list
from scoreread.services.practice_repository import PracticeRepository
from scoreread.services.practice_session_service import PracticeSessionManager
from scoreread.services.stats_service import STATS_WINDOW_DAYS, compute_practice_stats
from scoreread.api.v1.endpoints.utils import get_repository, get_session_manager, spot_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practice", tags=["practice"])


def _load_spots(repository: PracticeRepository, project_id: Optional[str]) -> List[Spot]:
    if project_id is not None:
        return repository.get_spots_for_project(project_id)
    return repository.get_all_active_spots()


def _stats(
    repository: PracticeRepository,
    manager: PracticeSessionManager,
    spots: List[Spot],
    now: datetime,
    project_id: Optional[str] = None
) -> PracticeStats:
    sessions = repository.get_recent_practice_sessions(STATS_WINDOW_DAYS, now)
    history = repository.get_spot_history_since(now - timedelta(days=STATS_WINDOW_DAYS))
    if project_id is not None:
        spot_ids = {spot.id for spot in spots}
        sessions = [session for session in sessions if session.project_id == project_id]
        history = [entry for entry in history if entry.spot_id in spot_ids]
    live_session = manager.live_session
    if project_id is not None and live_session is not None and live_session.project_id != project_id:
        live_session = None
    return compute_practice_stats(spots, sessions, history, now, live_session=live_session)


@router.get("/daily-plan", response_model=SpotListResponse)
async def get_daily_plan(
    project_id: Optional[str] = None,
    mode: DailyPlanMode = DailyPlanMode.DUE_ONLY,
    repository: PracticeRepository = Depends(get_repository)
):
    """Today's plan: due spots, most urgent first."""
    now = datetime.utcnow()
    spots = _load_spots(repository, project_id)
    plan = build_daily_plan(spots, now, settings.daily_plan_limit, mode)
    return SpotListResponse(
        spots=[spot_response(spot, now) for spot in plan],
        has_candidates=bool(spots),
    )


@router.get("/urgent", response_model=SpotListResponse)
async def get_urgent_spots(
    project_id: Optional[str] = None,
    repository: PracticeRepository = Depends(get_repository)
):
    """Spots that are long overdue, high priority or red."""
    now = datetime.utcnow()
    spots = _load_spots(repository, project_id)
    urgent = build_urgent_list(spots, now, settings.urgent_list_limit)
    return SpotListResponse(
        spots=[spot_response(spot, now) for spot in urgent],
        has_candidates=bool(spots),
    )


@router.get("/stats", response_model=PracticeStats)
async def get_stats(
    project_id: Optional[str] = None,
    repository: PracticeRepository = Depends(get_repository),
    manager: PracticeSessionManager = Depends(get_session_manager)
):
    """Practice statistics, including the session in progress."""
    now = datetime.utcnow()
    return _stats(repository, manager, _load_spots(repository, project_id), now, project_id)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    project_id: Optional[str] = None,
    repository: PracticeRepository = Depends(get_repository),
    manager: PracticeSessionManager = Depends(get_session_manager)
):
    """Daily plan, urgent list and stats in one call."""
    now = datetime.utcnow()
    spots = _load_spots(repository, project_id)
    
    daily_goal_minutes = settings.default_daily_goal_minutes
    if project_id is not None:
        project = repository.get_project_by_id(project_id)
        if project is not None:
            daily_goal_minutes = project.daily_goal_minutes
    
    return DashboardResponse(
        daily_plan=[spot_response(spot, now) for spot in build_daily_plan(spots, now, settings.daily_plan_limit)],
        urgent_spots=[spot_response(spot, now) for spot in build_urgent_list(spots, now, settings.urgent_list_limit)],
        stats=_stats(repository, manager, spots, now, project_id),
        daily_goal_minutes=daily_goal_minutes,
        project_id=project_id,
    )
