"""
Practice session schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from scoreread.models.enums import SessionType, SessionStatus, SpotSessionStatus, SpotResult
from scoreread.schemas.spot import SpotResponse


class SpotSessionResponse(BaseModel):
    """One spot's slice of a practice session."""
    id: str
    spot_id: str
    order_index: int
    allocated_minutes: int
    status: SpotSessionStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    paused_seconds: float = 0.0
    result: Optional[SpotResult] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class PracticeSessionResponse(BaseModel):
    """Practice session with its spot sessions in order."""
    id: str
    name: str
    session_type: SessionType
    status: SessionStatus
    planned_minutes: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    paused_seconds: float = 0.0
    project_id: Optional[str] = None
    spot_sessions: List[SpotSessionResponse] = []

    class Config:
        from_attributes = True


class ActiveSessionResponse(BaseModel):
    """Snapshot of the session manager."""
    phase: str
    is_running: bool
    unsaved: bool = Field(False, description="Finished but not stored yet; POST /sessions/retry-save to store it")
    total_spots: int
    completed_spots: int
    progress: float
    current_spot: Optional[SpotResponse] = None
    session: Optional[PracticeSessionResponse] = None


class StartSessionRequest(BaseModel):
    """Request schema for starting a practice session."""
    session_type: SessionType = SessionType.SMART
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    spot_ids: Optional[List[str]] = Field(None, description="Spots to practice, in order (custom sessions only)")
    max_spots: Optional[int] = Field(None, ge=1)
    include_all: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "session_type": "balanced",
                "project_name": "Spring Recital 2025",
                "max_spots": 10
            }
        }


class CompleteSpotRequest(BaseModel):
    """Result for the spot currently being practiced."""
    result: SpotResult
    notes: Optional[str] = None


class ClearSessionRequest(BaseModel):
    force: bool = False
