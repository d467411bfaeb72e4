"""
Storage for spots, practice history and projects.

The core talks to storage through the three protocols below. PracticeRepository
implements all of them on a SQLModel engine. Every call opens its own
database session with expire_on_commit disabled, so returned rows are
detached but fully loaded and safe to read after the call returns.
Database errors are logged and re-raised as PersistenceFailure.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportArgumentType=false
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from scoreread.core.exceptions import NotFoundError, PersistenceFailure
from scoreread.models.enums import SpotResult
from scoreread.models.piece import Piece
from scoreread.models.practice_session import PracticeSession
from scoreread.models.project import Project
from scoreread.models.spot import Spot
from scoreread.models.spot_history import SpotHistory
from scoreread.services.srs_service import calculate_schedule_update, apply_schedule_update

logger = logging.getLogger(__name__)


class SpotStore(Protocol):
    def get_all_active_spots(self) -> List[Spot]: ...
    def get_spots_for_piece(self, piece_id: str) -> List[Spot]: ...
    def get_spots_for_project(self, project_id: str) -> List[Spot]: ...
    def save_spot(self, spot: Spot) -> None: ...
    def record_practice_session(
        self, spot_id: str, result: SpotResult, duration_minutes: int, now: Optional[datetime] = None
    ) -> Spot: ...


class PracticeHistoryStore(Protocol):
    def get_practice_sessions(self) -> List[PracticeSession]: ...
    def get_recent_practice_sessions(self, days: int, now: Optional[datetime] = None) -> List[PracticeSession]: ...
    def get_today_practice_sessions(self, now: Optional[datetime] = None) -> List[PracticeSession]: ...
    def get_spot_history_since(self, timestamp: datetime) -> List[SpotHistory]: ...
    def insert_practice_session(self, session: PracticeSession) -> None: ...


class ProjectStore(Protocol):
    def get_projects(self) -> List[Project]: ...
    def get_project_by_id(self, project_id: str) -> Optional[Project]: ...
    def get_project_by_name(self, name: str) -> Optional[Project]: ...
    def get_piece(self, piece_id: str) -> Optional[Piece]: ...


class PracticeRepository:
    """SQLModel implementation of SpotStore, PracticeHistoryStore and ProjectStore."""
    
    def __init__(self, engine, sleep_gate_hour: Optional[int] = None):
        self.engine = engine
        self.sleep_gate_hour = sleep_gate_hour
    
    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = Session(self.engine, expire_on_commit=False)
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Storage error during {operation}: {str(e)}")
            raise PersistenceFailure(f"Failed to {operation}: {str(e)}", operation=operation) from e
        finally:
            session.close()
    
    # ------------------------------------------------------------------ #
    #  Spots                                                               #
    # ------------------------------------------------------------------ #
    
    def get_all_active_spots(self) -> List[Spot]:
        with self._session("load active spots") as session:
            query = select(Spot).where(Spot.is_active == True).order_by(Spot.created_time)  # noqa: E712
            return list(session.exec(query).all())
    
    def get_spots_for_piece(self, piece_id: str) -> List[Spot]:
        with self._session("load spots for piece") as session:
            query = (
                select(Spot)
                .where(Spot.piece_id == piece_id, Spot.is_active == True)  # noqa: E712
                .order_by(Spot.created_time)
            )
            return list(session.exec(query).all())
    
    def get_spots_for_project(self, project_id: str) -> List[Spot]:
        with self._session("load spots for project") as session:
            query = (
                select(Spot)
                .join(Piece, Piece.id == Spot.piece_id)
                .where(Piece.project_id == project_id, Spot.is_active == True)  # noqa: E712
                .order_by(Spot.created_time)
            )
            return list(session.exec(query).all())
    
    def get_spot(self, spot_id: str) -> Optional[Spot]:
        with self._session("load spot") as session:
            return session.get(Spot, spot_id)
    
    def save_spot(self, spot: Spot) -> None:
        with self._session("save spot") as session:
            session.merge(spot)
            session.commit()
    
    def _concert_date(self, session: Session, spot: Spot) -> Optional[datetime]:
        piece = session.get(Piece, spot.piece_id)
        if not piece or not piece.project_id:
            return None
        project = session.get(Project, piece.project_id)
        return project.concert_date if project else None

    def deactivate_spot(self, spot_id: str) -> Spot:
        """Soft-delete: the spot leaves every pool but keeps its history."""
        with self._session("deactivate spot") as session:
            spot = session.get(Spot, spot_id)
            if not spot:
                raise NotFoundError(f"Spot with id {spot_id} not found")
            spot.is_active = False
            spot.updated_time = datetime.utcnow()
            session.add(spot)
            session.commit()
            logger.info(f"Deactivated spot {spot_id}")
            return spot
    
    def record_practice_session(
        self,
        spot_id: str,
        result: SpotResult,
        duration_minutes: int,
        now: Optional[datetime] = None
    ) -> Spot:
        """
        Apply the scheduler to a spot, store a history entry and return the updated spot.
        
        Reviews are pulled closer when the spot's project has an upcoming
        concert. Both writes happen in one transaction.
        """
        if now is None:
            now = datetime.utcnow()
        
        with self._session("record practice") as session:
            spot = session.get(Spot, spot_id)
            if not spot:
                raise NotFoundError(f"Spot with id {spot_id} not found")
            
            update = calculate_schedule_update(
                spot, result, now, self.sleep_gate_hour, self._concert_date(session, spot)
            )
            apply_schedule_update(spot, update)
            session.add(spot)
            session.add(SpotHistory(
                spot_id=spot_id,
                timestamp=now,
                result=result,
                practice_minutes=duration_minutes,
            ))
            session.commit()
            
            logger.info(
                f"Recorded {SpotResult(result).value} for spot {spot_id}: "
                f"readiness={update.readiness_level.value}, next_due={update.next_due}, "
                f"practice_count={update.practice_count}"
            )
            return spot
    
    # ------------------------------------------------------------------ #
    #  Practice history                                                    #
    # ------------------------------------------------------------------ #
    
    def _sessions_query(self):
        return (
            select(PracticeSession)
            .options(selectinload(PracticeSession.spot_sessions))
            .order_by(PracticeSession.start_time)
        )
    
    def get_practice_sessions(self) -> List[PracticeSession]:
        with self._session("load practice sessions") as session:
            return list(session.exec(self._sessions_query()).all())
    
    def get_practice_session(self, session_id: str) -> Optional[PracticeSession]:
        with self._session("load practice session") as session:
            query = self._sessions_query().where(PracticeSession.id == session_id)
            return session.exec(query).first()
    
    def get_recent_practice_sessions(self, days: int, now: Optional[datetime] = None) -> List[PracticeSession]:
        if now is None:
            now = datetime.utcnow()
        since = now - timedelta(days=days)
        with self._session("load recent practice sessions") as session:
            query = self._sessions_query().where(PracticeSession.end_time >= since)
            return list(session.exec(query).all())
    
    def get_today_practice_sessions(self, now: Optional[datetime] = None) -> List[PracticeSession]:
        if now is None:
            now = datetime.utcnow()
        start_of_day = datetime(now.year, now.month, now.day)
        with self._session("load today's practice sessions") as session:
            query = self._sessions_query().where(
                PracticeSession.end_time >= start_of_day,
                PracticeSession.end_time < start_of_day + timedelta(days=1),
            )
            return list(session.exec(query).all())
    
    def get_spot_history_since(self, timestamp: datetime) -> List[SpotHistory]:
        with self._session("load spot history") as session:
            query = (
                select(SpotHistory)
                .where(SpotHistory.timestamp >= timestamp)
                .order_by(SpotHistory.timestamp)
            )
            return list(session.exec(query).all())
    
    def insert_practice_session(self, practice_session: PracticeSession) -> None:
        """Write a finalized session and its spot sessions (insert or overwrite)."""
        with self._session("save practice session") as session:
            session.merge(practice_session)
            session.commit()
            logger.info(
                f"Saved practice session {practice_session.id} "
                f"({practice_session.status}, {len(practice_session.spot_sessions)} spots)"
            )
    
    # ------------------------------------------------------------------ #
    #  Projects and pieces                                                 #
    # ------------------------------------------------------------------ #
    
    def get_projects(self) -> List[Project]:
        with self._session("load projects") as session:
            return list(session.exec(select(Project).order_by(Project.created_time)).all())
    
    def get_project_by_id(self, project_id: str) -> Optional[Project]:
        with self._session("load project") as session:
            return session.get(Project, project_id)
    
    def get_project_by_name(self, name: str) -> Optional[Project]:
        with self._session("load project") as session:
            return session.exec(select(Project).where(Project.name == name)).first()
    
    def get_piece(self, piece_id: str) -> Optional[Piece]:
        with self._session("load piece") as session:
            return session.get(Piece, piece_id)

    def save_project(self, project: Project) -> None:
        with self._session("save project") as session:
            session.merge(project)
            session.commit()

    def save_piece(self, piece: Piece) -> None:
        with self._session("save piece") as session:
            session.merge(piece)
            session.commit()
