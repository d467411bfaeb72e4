"""
Practice session state machine.

PracticeSessionManager owns the one in-progress PracticeSession and its
SpotSessions. Commands that touch storage (start, complete_current, cancel,
retry_save) are serialized: a second command arriving while one is still in
flight is rejected with SessionBusy instead of being interleaved.

Phases: idle -> active (running or paused) -> completed | cancelled -> idle.
Paused time is excluded from spot and session durations.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool

from scoreread.core.config import Settings, settings as default_settings
from scoreread.core.exceptions import (
    InvalidStateTransition,
    NoCandidatesAvailable,
    NoProjectFound,
    PersistenceFailure,
    SessionBusy,
)
from scoreread.models.enums import SessionStatus, SessionType, SpotResult, SpotSessionStatus
from scoreread.models.practice_session import PracticeSession, SpotSession
from scoreread.models.project import Project
from scoreread.models.spot import Spot
from scoreread.services.selection_service import (
    SMART_HISTORY_WINDOW,
    BalancedFrequencies,
    SelectionContext,
    select_spots,
)

logger = logging.getLogger(__name__)


SESSION_TYPE_NAMES = {
    SessionType.SMART: "Smart Practice",
    SessionType.CUSTOM: "Custom Selection",
    SessionType.CRITICAL: "Critical Focus",
    SessionType.BALANCED: "Balanced Practice",
    SessionType.MAINTENANCE: "Maintenance Session",
    SessionType.WARMUP: "Quick Warmup",
}


class SessionPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class ActivePracticeSessionState:
    """In-memory state of the manager. Read it, never mutate it from outside."""
    phase: SessionPhase = SessionPhase.IDLE
    session: Optional[PracticeSession] = None
    spots: Dict[str, Spot] = field(default_factory=dict)
    is_running: bool = False
    paused_at: Optional[datetime] = None
    unsaved: bool = False  # Finalized but not yet written to storage

    @property
    def total_spots(self) -> int:
        return len(self.session.spot_sessions) if self.session else 0

    @property
    def completed_spots(self) -> int:
        return len(self.session.completed_spot_sessions) if self.session else 0

    @property
    def progress(self) -> float:
        return self.session.completion_percentage if self.session else 0.0

    @property
    def current_spot_session(self) -> Optional[SpotSession]:
        return self.session.current_spot_session if self.session else None

    @property
    def current_spot(self) -> Optional[Spot]:
        current = self.current_spot_session
        if current is None:
            return None
        return self.spots.get(current.spot_id)


def session_display_name(session_type: SessionType, project: Optional[Project]) -> str:
    type_name = SESSION_TYPE_NAMES[SessionType(session_type)]
    if project is None:
        return type_name
    return f"{project.name} - {type_name}"


class PracticeSessionManager:
    """Single owner of the live practice session."""

    def __init__(self, repository, app_settings: Settings = None):
        self.repository = repository
        self.settings = app_settings or default_settings
        self.state = ActivePracticeSessionState()
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _command(self, name: str):
        if self._lock.locked():
            logger.warning(f"Rejected '{name}': another session command is in flight")
            raise SessionBusy(f"Cannot {name} while another session command is running")
        async with self._lock:
            yield

    def snapshot(self) -> ActivePracticeSessionState:
        return self.state

    @property
    def live_session(self) -> Optional[PracticeSession]:
        """Session to merge into stats: anything in memory, persisted or not."""
        return self.state.session

    # ------------------------------------------------------------------ #
    #  Commands                                                            #
    # ------------------------------------------------------------------ #

    async def start(
        self,
        session_type: SessionType,
        project_id: Optional[str] = None,
        project_name: Optional[str] = None,
        spot_ids: Optional[Sequence[str]] = None,
        max_spots: Optional[int] = None,
        include_all: bool = False,
        now: Optional[datetime] = None
    ) -> ActivePracticeSessionState:
        """
        Select spots and begin a session with the first one active.

        Raises:
            InvalidStateTransition: A session is already loaded (clear it first)
            NoProjectFound: A project was requested but none exist
            NoCandidatesAvailable: The selection came back empty; state stays idle
        """
        session_type = SessionType(session_type)
        async with self._command("start a session"):
            if self.state.phase != SessionPhase.IDLE:
                raise InvalidStateTransition(
                    f"Cannot start a session while one is {self.state.phase.value}"
                )
            if now is None:
                now = datetime.utcnow()

            project = await self._resolve_project(project_id, project_name)
            if project is not None:
                pool = await run_in_threadpool(self.repository.get_spots_for_project, project.id)
            else:
                pool = await run_in_threadpool(self.repository.get_all_active_spots)

            if session_type == SessionType.CUSTOM and spot_ids is not None:
                pool = self._pick_spots(pool, spot_ids)

            history = []
            if session_type == SessionType.SMART:
                history = await run_in_threadpool(
                    self.repository.get_spot_history_since, now - SMART_HISTORY_WINDOW
                )

            context = SelectionContext(
                now=now,
                project=project,
                history=history,
                frequencies=BalancedFrequencies.from_settings(self.settings),
                max_spots=max_spots,
                include_all=include_all,
            )
            if session_type == SessionType.SMART:
                if context.max_spots is None:
                    context.max_spots = self.settings.smart_default_max_spots
                if project is not None and not include_all:
                    context.time_budget_minutes = project.daily_goal_minutes

            selected = select_spots(session_type, pool, context)
            if not selected:
                logger.warning(
                    f"No spots available for {session_type.value} session "
                    f"(pool of {len(pool)} spots)"
                )
                raise NoCandidatesAvailable(session_type=session_type.value)

            practice_session = self._build_session(session_type, project, selected, now)
            self.state = ActivePracticeSessionState(
                phase=SessionPhase.ACTIVE,
                session=practice_session,
                spots={spot.id: spot for spot in selected},
                is_running=True,
            )
            logger.info(
                f"Started session {practice_session.id} '{practice_session.name}' "
                f"with {len(selected)} spots"
            )
            return self.state

    async def complete_current(
        self,
        result: SpotResult,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ActivePracticeSessionState:
        """
        Record a result for the active spot and move on.

        The spot's new schedule is stored before the cursor advances; if that
        write fails the spot stays active and the command can be repeated.
        After the last spot the session is finalized and written once.
        """
        result = SpotResult(result)
        async with self._command("complete the current spot"):
            current = self.state.current_spot_session
            if self.state.phase != SessionPhase.ACTIVE or current is None:
                raise InvalidStateTransition("No active spot to complete")
            if now is None:
                now = datetime.utcnow()
            self._fold_pause(now)

            elapsed = max(0.0, (now - current.start_time).total_seconds() - current.paused_seconds)
            updated_spot = await run_in_threadpool(
                self.repository.record_practice_session,
                current.spot_id,
                result,
                int(round(elapsed / 60)),
                now,
            )
            self.state.spots[updated_spot.id] = updated_spot

            current.status = SpotSessionStatus.COMPLETED
            current.end_time = now
            current.result = result
            current.notes = notes

            next_spot_session = self._next_pending()
            if next_spot_session is not None:
                next_spot_session.status = SpotSessionStatus.ACTIVE
                next_spot_session.start_time = now
                logger.info(
                    f"Session {self.state.session.id}: spot {current.spot_id} -> {result.value}, "
                    f"{self.state.completed_spots}/{self.state.total_spots} done"
                )
                return self.state

            self._finalize(SessionStatus.COMPLETED, SessionPhase.COMPLETED, now)
            await self._persist_finalized()
            return self.state

    def pause(self, now: Optional[datetime] = None) -> ActivePracticeSessionState:
        """Hold the clock. No-op unless a session is active and running."""
        if self.state.phase == SessionPhase.ACTIVE and self.state.is_running:
            self.state.is_running = False
            self.state.paused_at = now or datetime.utcnow()
            logger.info(f"Paused session {self.state.session.id}")
        return self.state

    def resume(self, now: Optional[datetime] = None) -> ActivePracticeSessionState:
        """Restart the clock. No-op unless a session is active and paused."""
        if self.state.phase == SessionPhase.ACTIVE and not self.state.is_running:
            self._fold_pause(now or datetime.utcnow())
            logger.info(f"Resumed session {self.state.session.id}")
        return self.state

    async def cancel(self, now: Optional[datetime] = None) -> ActivePracticeSessionState:
        """
        Stop early and store what was done.

        Completed spots keep their results; the spot that was in progress goes
        back to pending along with the rest.
        """
        async with self._command("cancel the session"):
            if self.state.phase != SessionPhase.ACTIVE:
                raise InvalidStateTransition(f"Cannot cancel a session that is {self.state.phase.value}")
            if now is None:
                now = datetime.utcnow()
            self._fold_pause(now)

            current = self.state.current_spot_session
            if current is not None:
                current.status = SpotSessionStatus.PENDING
                current.start_time = None
                current.paused_seconds = 0.0

            self._finalize(SessionStatus.CANCELLED, SessionPhase.CANCELLED, now)
            await self._persist_finalized()
            return self.state

    async def retry_save(self) -> ActivePracticeSessionState:
        """Write a finalized session whose earlier write failed."""
        async with self._command("save the session"):
            if not self.state.unsaved:
                raise InvalidStateTransition("There is no unsaved session")
            await self._persist_finalized()
            return self.state

    def clear(self, force: bool = False) -> ActivePracticeSessionState:
        """
        Drop the in-memory session and return to idle.

        An active session must be cancelled first. A finalized session that
        was never stored is only discarded with force=True.
        """
        if self._lock.locked():
            raise SessionBusy("Cannot clear while another session command is running")
        if self.state.phase == SessionPhase.ACTIVE:
            raise InvalidStateTransition("Cannot clear an active session; cancel it first")
        if self.state.unsaved:
            if not force:
                raise InvalidStateTransition("Session has not been saved; retry the save or force the clear")
            logger.warning(f"Discarding unsaved session {self.state.session.id}")

        self.state = ActivePracticeSessionState()
        return self.state

    # ------------------------------------------------------------------ #
    #  Helpers                                                             #
    # ------------------------------------------------------------------ #

    async def _resolve_project(
        self,
        project_id: Optional[str],
        project_name: Optional[str]
    ) -> Optional[Project]:
        """
        Find the requested project, falling back to the first one.

        With no project requested, the whole active pool is used.
        """
        if project_id is None and project_name is None:
            return None

        project = None
        if project_id is not None:
            project = await run_in_threadpool(self.repository.get_project_by_id, project_id)
        if project is None and project_name is not None:
            project = await run_in_threadpool(self.repository.get_project_by_name, project_name)
        if project is not None:
            return project

        projects = await run_in_threadpool(self.repository.get_projects)
        if not projects:
            raise NoProjectFound(f"Project {project_id or project_name} not found and no projects exist")

        fallback = projects[0]
        logger.warning(
            f"Project {project_id or project_name} not found, "
            f"falling back to '{fallback.name}' ({fallback.id})"
        )
        return fallback

    @staticmethod
    def _pick_spots(pool: Sequence[Spot], spot_ids: Sequence[str]) -> List[Spot]:
        by_id = {spot.id: spot for spot in pool}
        missing = [spot_id for spot_id in spot_ids if spot_id not in by_id]
        if missing:
            logger.warning(f"Ignoring {len(missing)} requested spots outside the pool: {missing}")
        return [by_id[spot_id] for spot_id in spot_ids if spot_id in by_id]

    def _build_session(
        self,
        session_type: SessionType,
        project: Optional[Project],
        selected: Sequence[Spot],
        now: datetime
    ) -> PracticeSession:
        planned_minutes = project.daily_goal_minutes if project else self.settings.default_daily_goal_minutes
        practice_session = PracticeSession(
            name=session_display_name(session_type, project),
            session_type=session_type,
            status=SessionStatus.ACTIVE,
            planned_minutes=planned_minutes,
            start_time=now,
            project_id=project.id if project else None,
        )
        practice_session.spot_sessions = [
            SpotSession(
                session_id=practice_session.id,
                spot_id=spot.id,
                order_index=index,
                allocated_minutes=spot.practice_minutes,
            )
            for index, spot in enumerate(selected)
        ]
        first = practice_session.spot_sessions[0]
        first.status = SpotSessionStatus.ACTIVE
        first.start_time = now
        return practice_session

    def _next_pending(self) -> Optional[SpotSession]:
        for spot_session in self.state.session.spot_sessions:
            if spot_session.status == SpotSessionStatus.PENDING:
                return spot_session
        return None

    def _fold_pause(self, now: datetime) -> None:
        """End a pause in progress and charge its length to the session and the active spot."""
        if self.state.paused_at is None:
            return
        paused_for = max(timedelta(0), now - self.state.paused_at).total_seconds()
        self.state.session.paused_seconds += paused_for
        current = self.state.current_spot_session
        if current is not None:
            current.paused_seconds += paused_for
        self.state.paused_at = None
        self.state.is_running = True

    def _finalize(self, status: SessionStatus, phase: SessionPhase, now: datetime) -> None:
        session = self.state.session
        session.status = status
        session.end_time = now
        self.state.phase = phase
        self.state.is_running = False
        self.state.unsaved = True
        logger.info(
            f"Session {session.id} {status.value}: "
            f"{self.state.completed_spots}/{self.state.total_spots} spots"
        )

    async def _persist_finalized(self) -> None:
        try:
            await run_in_threadpool(self.repository.insert_practice_session, self.state.session)
        except PersistenceFailure:
            logger.error(f"Session {self.state.session.id} finalized but not saved; retry is possible")
            raise
        self.state.unsaved = False
