"""
Models package - imports all models so they register with SQLModel.
"""
from scoreread.models.enums import (
    ReadinessLevel,
    SpotPriority,
    SpotColor,
    SpotResult,
    SessionType,
    SessionStatus,
    SpotSessionStatus,
)
from scoreread.models.project import Project
from scoreread.models.piece import Piece
from scoreread.models.spot import Spot
from scoreread.models.spot_history import SpotHistory
from scoreread.models.practice_session import PracticeSession, SpotSession

__all__ = [
    'ReadinessLevel',
    'SpotPriority',
    'SpotColor',
    'SpotResult',
    'SessionType',
    'SessionStatus',
    'SpotSessionStatus',
    'Project',
    'Piece',
    'Spot',
    'SpotHistory',
    'PracticeSession',
    'SpotSession',
]
