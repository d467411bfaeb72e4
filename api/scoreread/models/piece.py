"""
Piece model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from uuid import uuid4

if TYPE_CHECKING:
    from scoreread.models.project import Project
    from scoreread.models.spot import Spot


class Piece(SQLModel, table=True):
    """Piece table - one score in the library."""
    __tablename__ = "piece"
    
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    title: str
    composer: Optional[str] = None
    project_id: Optional[str] = Field(default=None, foreign_key="project.id", index=True)
    created_time: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    project: Optional["Project"] = Relationship(back_populates="pieces")
    spots: List["Spot"] = Relationship(back_populates="piece")
