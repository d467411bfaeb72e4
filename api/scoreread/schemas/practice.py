"""
Practice dashboard schemas.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from scoreread.schemas.spot import SpotResponse


class PracticeStats(BaseModel):
    """Read-only practice aggregate; recomputed and replaced, never edited."""
    model_config = ConfigDict(frozen=True)
    
    total_spots: int = 0
    due_spots: int = 0
    mastered_spots: int = 0
    learning_spots: int = 0
    today_practice_minutes: int = 0
    today_spots_practiced: int = 0
    weekly_practice_minutes: int = 0
    weekly_session_count: int = 0
    weekly_improved_spots: int = 0


class SpotListResponse(BaseModel):
    """Ordered list of spots (daily plan or urgent list)."""
    spots: List[SpotResponse]
    has_candidates: bool = Field(..., description="False when the pool was empty and the user should create spots")


class DashboardResponse(BaseModel):
    """Everything the practice dashboard shows."""
    daily_plan: List[SpotResponse]
    urgent_spots: List[SpotResponse]
    stats: PracticeStats
    daily_goal_minutes: int
    project_id: Optional[str] = None
