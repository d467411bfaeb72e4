"""
SpotHistory model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4

from scoreread.models.enums import SpotResult


class SpotHistory(SQLModel, table=True):
    """SpotHistory table - one recorded practice attempt on a spot."""
    __tablename__ = "spot_history"
    
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    spot_id: str = Field(foreign_key="spot.id", index=True)
    timestamp: datetime = Field(default_factory=datetime.utcnow, index=True)
    result: SpotResult
    practice_minutes: int = Field(default=0)
    notes: Optional[str] = None
