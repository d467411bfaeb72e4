"""
Practice session endpoints.

Commands act on the application's single PracticeSessionManager; finished
sessions are read back from the practice history.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from scoreread.core.exceptions import NotFoundError
from scoreread.schemas.session import (
    ActiveSessionResponse,
    PracticeSessionResponse,
    StartSessionRequest,
    CompleteSpotRequest,
    ClearSessionRequest,
)
from scoreread.services.practice_repository import PracticeRepository
from scoreread.services.practice_session_service import ActivePracticeSessionState, PracticeSessionManager
from scoreread.api.v1.endpoints.utils import get_repository, get_session_manager, spot_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def session_state_response(state: ActivePracticeSessionState) -> ActiveSessionResponse:
    """Serialize a manager snapshot."""
    current_spot = state.current_spot
    return ActiveSessionResponse(
        phase=state.phase.value,
        is_running=state.is_running,
        unsaved=state.unsaved,
        total_spots=state.total_spots,
        completed_spots=state.completed_spots,
        progress=state.progress,
        current_spot=spot_response(current_spot, datetime.utcnow()) if current_spot else None,
        session=PracticeSessionResponse.model_validate(state.session) if state.session else None,
    )


@router.get("/current", response_model=ActiveSessionResponse)
async def get_current_session(manager: PracticeSessionManager = Depends(get_session_manager)):
    """Get the session in progress (phase 'idle' when there is none)."""
    return session_state_response(manager.snapshot())


@router.post("/start", response_model=ActiveSessionResponse)
async def start_session(
    request: StartSessionRequest,
    manager: PracticeSessionManager = Depends(get_session_manager)
):
    """Select spots for the requested session type and start practicing the first one."""
    state = await manager.start(
        request.session_type,
        project_id=request.project_id,
        project_name=request.project_name,
        spot_ids=request.spot_ids,
        max_spots=request.max_spots,
        include_all=request.include_all,
    )
    return session_state_response(state)


@router.post("/complete-current", response_model=ActiveSessionResponse)
async def complete_current_spot(
    request: CompleteSpotRequest,
    manager: PracticeSessionManager = Depends(get_session_manager)
):
    """Record a result for the current spot and advance to the next one."""
    state = await manager.complete_current(request.result, notes=request.notes)
    return session_state_response(state)


@router.post("/pause", response_model=ActiveSessionResponse)
async def pause_session(manager: PracticeSessionManager = Depends(get_session_manager)):
    return session_state_response(manager.pause())


@router.post("/resume", response_model=ActiveSessionResponse)
async def resume_session(manager: PracticeSessionManager = Depends(get_session_manager)):
    return session_state_response(manager.resume())


@router.post("/cancel", response_model=ActiveSessionResponse)
async def cancel_session(manager: PracticeSessionManager = Depends(get_session_manager)):
    """Stop early; completed spots are kept."""
    state = await manager.cancel()
    return session_state_response(state)


@router.post("/retry-save", response_model=ActiveSessionResponse)
async def retry_save_session(manager: PracticeSessionManager = Depends(get_session_manager)):
    """Store a finished session whose earlier save failed."""
    state = await manager.retry_save()
    return session_state_response(state)


@router.post("/clear", response_model=ActiveSessionResponse)
async def clear_session(
    request: ClearSessionRequest = ClearSessionRequest(),
    manager: PracticeSessionManager = Depends(get_session_manager)
):
    """Return to idle after a session has finished."""
    return session_state_response(manager.clear(force=request.force))


@router.get("/{session_id}", response_model=PracticeSessionResponse)
async def get_practice_session(
    session_id: str,
    repository: PracticeRepository = Depends(get_repository)
):
    """Get a finished session from the practice history."""
    practice_session = repository.get_practice_session(session_id)
    if not practice_session:
        raise NotFoundError(f"Practice session with id {session_id} not found")
    return PracticeSessionResponse.model_validate(practice_session)
