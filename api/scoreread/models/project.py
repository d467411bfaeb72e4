"""
Project model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from uuid import uuid4

if TYPE_CHECKING:
    from scoreread.models.piece import Piece


class Project(SQLModel, table=True):
    """Project table - a set of pieces prepared for a performance or goal."""
    __tablename__ = "project"
    
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    concert_date: Optional[datetime] = None
    daily_goal_minutes: int = Field(default=30)
    created_time: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    pieces: List["Piece"] = Relationship(back_populates="project")
