"""
Shared helpers for endpoint operations.
"""
from datetime import datetime

from fastapi import Request

from scoreread.models.spot import Spot
from scoreread.schemas.spot import SpotResponse
from scoreread.services.practice_repository import PracticeRepository
from scoreread.services.practice_session_service import PracticeSessionManager
from scoreread.services.urgency_service import is_due, urgency_score


def get_repository(request: Request) -> PracticeRepository:
    """Dependency for the application's practice repository."""
    return request.app.state.repository


def get_session_manager(request: Request) -> PracticeSessionManager:
    """Dependency for the application's single practice session manager."""
    return request.app.state.session_manager


def spot_response(spot: Spot, now: datetime) -> SpotResponse:
    """
    Build a SpotResponse with the values that depend on the current time.
    
    Args:
        spot: Spot to serialize
        now: Evaluation time for due state and urgency
        
    Returns:
        SpotResponse
    """
    return SpotResponse.model_validate(spot).model_copy(
        update={"is_due": is_due(spot, now), "urgency_score": urgency_score(spot, now)}
    )
