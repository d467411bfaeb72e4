"""
Spot model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import uuid4

from scoreread.models.enums import ReadinessLevel, SpotPriority, SpotColor, SpotResult

if TYPE_CHECKING:
    from scoreread.models.piece import Piece


# Extra minutes on top of the difficulty-based base time
COLOR_MINUTES = {
    SpotColor.RED: 4,
    SpotColor.YELLOW: 2,
    SpotColor.GREEN: 1,
    SpotColor.BLUE: -1,
}
READINESS_MINUTES = {
    ReadinessLevel.NEW: 3,
    ReadinessLevel.LEARNING: 2,
    ReadinessLevel.REVIEW: 0,
    ReadinessLevel.MASTERED: -2,
}
MIN_PRACTICE_MINUTES = 3
MAX_PRACTICE_MINUTES = 15


class Spot(SQLModel, table=True):
    """Spot table - a schedulable practice region of a piece."""
    __tablename__ = "spot"
    
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    piece_id: str = Field(foreign_key="piece.id", index=True)
    title: str
    description: Optional[str] = None
    page_number: int = Field(default=1)
    priority: SpotPriority = Field(default=SpotPriority.MEDIUM)
    readiness_level: ReadinessLevel = Field(default=ReadinessLevel.NEW)
    color: SpotColor = Field(default=SpotColor.RED)
    next_due: Optional[datetime] = Field(default=None, index=True)  # None = due now
    last_practiced: Optional[datetime] = None
    last_result: Optional[SpotResult] = None
    practice_count: int = Field(default=0)
    success_count: int = Field(default=0)
    failure_count: int = Field(default=0)
    interval_hours: int = Field(default=0)  # Current review interval set by the scheduler
    recommended_minutes: Optional[int] = None  # Explicit override of the computed practice time
    is_active: bool = Field(default=True)
    created_time: datetime = Field(default_factory=datetime.utcnow)
    updated_time: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    piece: Optional["Piece"] = Relationship(back_populates="spots")
    
    @property
    def success_rate(self) -> float:
        """Share of attempts rated good or excellent (0.0 to 1.0)."""
        if self.practice_count == 0:
            return 0.0
        return self.success_count / self.practice_count
    
    @property
    def difficulty(self) -> int:
        """Difficulty on a 1-5 scale, derived from the failure rate."""
        if self.practice_count == 0:
            return 3
        failure_rate = self.failure_count / self.practice_count
        if failure_rate > 0.7:
            return 5
        if failure_rate > 0.5:
            return 4
        if failure_rate > 0.3:
            return 3
        if failure_rate > 0.1:
            return 2
        return 1
    
    @property
    def practice_minutes(self) -> int:
        """Recommended practice time in minutes, clamped to 3-15."""
        if self.recommended_minutes is not None:
            return self.recommended_minutes
        
        minutes = 3 + self.difficulty
        minutes += COLOR_MINUTES[self.color]
        minutes += READINESS_MINUTES[self.readiness_level]
        
        if self.practice_count > 0:
            if self.success_rate < 0.4:
                minutes += 3
            elif self.success_rate > 0.8:
                minutes -= 1
        
        return max(MIN_PRACTICE_MINUTES, min(MAX_PRACTICE_MINUTES, minutes))
