"""
Library endpoints: projects, pieces and spots.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status

from scoreread.core.exceptions import ConflictError, NotFoundError
from scoreread.models.piece import Piece
from scoreread.models.project import Project
from scoreread.models.spot import Spot
from scoreread.schemas.spot import (
    ProjectResponse,
    CreateProjectRequest,
    ProjectsResponse,
    PieceResponse,
    CreatePieceRequest,
    SpotResponse,
    CreateSpotRequest,
    SpotsResponse,
    RecordPracticeRequest,
)
from scoreread.services.practice_repository import PracticeRepository
from scoreread.api.v1.endpoints.utils import get_repository, spot_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/library", tags=["library"])


@router.get("/projects", response_model=ProjectsResponse)
async def get_projects(repository: PracticeRepository = Depends(get_repository)):
    """Get all projects, oldest first."""
    projects = repository.get_projects()
    return ProjectsResponse(
        projects=[ProjectResponse.model_validate(project) for project in projects]
    )


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    repository: PracticeRepository = Depends(get_repository)
):
    """Create a new project. Project names are unique."""
    name = request.name.strip()
    if repository.get_project_by_name(name):
        raise ConflictError(f"Project '{name}' already exists")
    
    project = Project(
        name=name,
        description=request.description,
        concert_date=request.concert_date,
        daily_goal_minutes=request.daily_goal_minutes,
    )
    repository.save_project(project)
    
    logger.info(f"Created project {project.id} '{project.name}'")
    return ProjectResponse.model_validate(project)


@router.post("/pieces", response_model=PieceResponse, status_code=status.HTTP_201_CREATED)
async def create_piece(
    request: CreatePieceRequest,
    repository: PracticeRepository = Depends(get_repository)
):
    """Add a piece, optionally to a project."""
    if request.project_id is not None and not repository.get_project_by_id(request.project_id):
        raise NotFoundError(f"Project with id {request.project_id} not found")
    
    piece = Piece(
        title=request.title.strip(),
        composer=request.composer,
        project_id=request.project_id,
    )
    repository.save_piece(piece)
    
    logger.info(f"Created piece {piece.id} '{piece.title}'")
    return PieceResponse.model_validate(piece)


@router.post("/spots", response_model=SpotResponse, status_code=status.HTTP_201_CREATED)
async def create_spot(
    request: CreateSpotRequest,
    repository: PracticeRepository = Depends(get_repository)
):
    """Mark a new spot on a piece. New spots are due immediately."""
    if not repository.get_piece(request.piece_id):
        raise NotFoundError(f"Piece with id {request.piece_id} not found")
    
    spot = Spot(
        piece_id=request.piece_id,
        title=request.title.strip(),
        description=request.description,
        page_number=request.page_number,
        priority=request.priority,
        color=request.color,
        recommended_minutes=request.recommended_minutes,
    )
    repository.save_spot(spot)
    
    logger.info(f"Created spot {spot.id} '{spot.title}' on piece {spot.piece_id}")
    return spot_response(spot, datetime.utcnow())


@router.get("/spots", response_model=SpotsResponse)
async def get_spots(
    project_id: Optional[str] = None,
    piece_id: Optional[str] = None,
    repository: PracticeRepository = Depends(get_repository)
):
    """Get active spots, optionally filtered by piece or project."""
    if piece_id is not None:
        spots = repository.get_spots_for_piece(piece_id)
    elif project_id is not None:
        spots = repository.get_spots_for_project(project_id)
    else:
        spots = repository.get_all_active_spots()
    
    now = datetime.utcnow()
    return SpotsResponse(spots=[spot_response(spot, now) for spot in spots])


@router.post("/spots/{spot_id}/deactivate", response_model=SpotResponse)
async def deactivate_spot(
    spot_id: str,
    repository: PracticeRepository = Depends(get_repository)
):
    """Remove a spot from practice while keeping its history."""
    spot = repository.deactivate_spot(spot_id)
    return spot_response(spot, datetime.utcnow())


@router.post("/spots/{spot_id}/practice", response_model=SpotResponse)
async def record_practice(
    spot_id: str,
    request: RecordPracticeRequest,
    repository: PracticeRepository = Depends(get_repository)
):
    """Record a practice result for one spot outside a session and reschedule it."""
    now = datetime.utcnow()
    spot = repository.record_practice_session(spot_id, request.result, request.duration_minutes, now)
    return spot_response(spot, now)
