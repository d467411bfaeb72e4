"""
Library schemas: projects, pieces and spots.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from scoreread.models.enums import ReadinessLevel, SpotPriority, SpotColor, SpotResult


class ProjectResponse(BaseModel):
    """Project response schema."""
    id: str
    name: str
    description: Optional[str] = None
    concert_date: Optional[datetime] = None
    daily_goal_minutes: int
    created_time: Optional[datetime] = None
    
    class Config:
        from_attributes = True


class CreateProjectRequest(BaseModel):
    """Request schema for creating a project."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    concert_date: Optional[datetime] = None
    daily_goal_minutes: int = Field(30, ge=1, le=600)


class ProjectsResponse(BaseModel):
    projects: List[ProjectResponse]


class PieceResponse(BaseModel):
    """Piece response schema."""
    id: str
    title: str
    composer: Optional[str] = None
    project_id: Optional[str] = None
    
    class Config:
        from_attributes = True


class CreatePieceRequest(BaseModel):
    """Request schema for creating a piece."""
    title: str = Field(..., min_length=1)
    composer: Optional[str] = None
    project_id: Optional[str] = None


class SpotResponse(BaseModel):
    """Spot response schema, including values derived at request time."""
    id: str
    piece_id: str
    title: str
    description: Optional[str] = None
    page_number: int
    priority: SpotPriority
    readiness_level: ReadinessLevel
    color: SpotColor
    next_due: Optional[datetime] = None
    last_practiced: Optional[datetime] = None
    last_result: Optional[SpotResult] = None
    practice_count: int
    success_count: int
    failure_count: int
    interval_hours: int
    practice_minutes: int
    is_active: bool
    is_due: bool = False
    urgency_score: float = 0.0
    
    class Config:
        from_attributes = True


class CreateSpotRequest(BaseModel):
    """Request schema for marking a new spot on a piece."""
    piece_id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    page_number: int = Field(1, ge=1)
    priority: SpotPriority = SpotPriority.MEDIUM
    color: SpotColor = SpotColor.RED
    recommended_minutes: Optional[int] = Field(None, ge=1, le=60)
    
    class Config:
        json_schema_extra = {
            "example": {
                "piece_id": "4b0f2c1e9d8a4f7b9c3e2a1d0f6b5c4a",
                "title": "Triplet passage",
                "description": "Measures 15-22",
                "page_number": 2,
                "priority": "high",
                "color": "red"
            }
        }


class SpotsResponse(BaseModel):
    spots: List[SpotResponse]


class RecordPracticeRequest(BaseModel):
    """Standalone practice result for one spot, outside a session."""
    result: SpotResult
    duration_minutes: int = Field(0, ge=0, le=600)
    
    class Config:
        json_schema_extra = {
            "example": {
                "result": "good",
                "duration_minutes": 8
            }
        }
