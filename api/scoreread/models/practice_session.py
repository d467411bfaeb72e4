"""
PracticeSession and SpotSession models.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime
from uuid import uuid4

from scoreread.models.enums import (
    SessionType,
    SessionStatus,
    SpotSessionStatus,
    SpotResult,
    SUCCESS_RESULTS,
)


class PracticeSession(SQLModel, table=True):
    """PracticeSession table - one practice run over an ordered list of spots."""
    __tablename__ = "practice_session"
    
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    name: str
    session_type: SessionType
    status: SessionStatus = Field(default=SessionStatus.ACTIVE)
    planned_minutes: int = Field(default=30)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None  # Set exactly once, when status leaves active
    paused_seconds: float = Field(default=0.0)
    project_id: Optional[str] = Field(default=None, foreign_key="project.id", index=True)
    created_time: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    spot_sessions: List["SpotSession"] = Relationship(
        back_populates="session",
        sa_relationship_kwargs={
            "order_by": "SpotSession.order_index",
            "cascade": "all, delete-orphan",
        },
    )
    
    @property
    def active_seconds(self) -> Optional[float]:
        """Wall-clock duration minus paused time, once the session has ended."""
        if self.start_time is None or self.end_time is None:
            return None
        return max(0.0, (self.end_time - self.start_time).total_seconds() - self.paused_seconds)
    
    @property
    def completed_spot_sessions(self) -> List["SpotSession"]:
        return [s for s in self.spot_sessions if s.status == SpotSessionStatus.COMPLETED]
    
    @property
    def completion_percentage(self) -> float:
        """Completed share of the session's spots (0.0 to 1.0)."""
        if not self.spot_sessions:
            return 0.0
        return len(self.completed_spot_sessions) / len(self.spot_sessions)
    
    @property
    def success_rate(self) -> float:
        """Share of completed spots rated good or excellent (0.0 to 1.0)."""
        completed = self.completed_spot_sessions
        if not completed:
            return 0.0
        return sum(1 for s in completed if s.result in SUCCESS_RESULTS) / len(completed)
    
    @property
    def current_spot_session(self) -> Optional["SpotSession"]:
        for spot_session in self.spot_sessions:
            if spot_session.status == SpotSessionStatus.ACTIVE:
                return spot_session
        return None


class SpotSession(SQLModel, table=True):
    """SpotSession table - one spot's slice of a practice session."""
    __tablename__ = "spot_session"
    
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    session_id: str = Field(foreign_key="practice_session.id", index=True)
    spot_id: str = Field(foreign_key="spot.id", index=True)
    order_index: int  # 0-based position within the session
    allocated_minutes: int = Field(default=5)
    status: SpotSessionStatus = Field(default=SpotSessionStatus.PENDING)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    paused_seconds: float = Field(default=0.0)
    result: Optional[SpotResult] = None
    notes: Optional[str] = None
    
    # Relationships
    session: Optional[PracticeSession] = Relationship(back_populates="spot_sessions")
    
    @property
    def duration_seconds(self) -> Optional[float]:
        """Time spent practicing this spot, excluding pauses."""
        if self.start_time is None or self.end_time is None:
            return None
        return max(0.0, (self.end_time - self.start_time).total_seconds() - self.paused_seconds)
