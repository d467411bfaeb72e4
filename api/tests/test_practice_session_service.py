"""
Tests for the practice session state machine.

Commands are driven with asyncio.run against an in-memory SQLite repository.
"""
import asyncio
import logging
import threading
from datetime import timedelta

import pytest

from scoreread.core.config import Settings
from scoreread.core.exceptions import (
    InvalidStateTransition,
    NoCandidatesAvailable,
    NoProjectFound,
    PersistenceFailure,
    SessionBusy,
)
from scoreread.models.enums import (
    ReadinessLevel,
    SessionStatus,
    SessionType,
    SpotResult,
    SpotSessionStatus,
)
from scoreread.services.practice_repository import PracticeRepository
from scoreread.services.practice_session_service import PracticeSessionManager, SessionPhase


class CountingRepository(PracticeRepository):
    """Counts finalized session writes."""

    def __init__(self, engine):
        super().__init__(engine)
        self.saved_session_ids = []

    def insert_practice_session(self, practice_session):
        super().insert_practice_session(practice_session)
        self.saved_session_ids.append(practice_session.id)


class FlakyRepository(CountingRepository):
    """Fails the first `failures` writes of each kind."""

    def __init__(self, engine, session_failures=0, spot_failures=0):
        super().__init__(engine)
        self.session_failures = session_failures
        self.spot_failures = spot_failures

    def insert_practice_session(self, practice_session):
        if self.session_failures > 0:
            self.session_failures -= 1
            raise PersistenceFailure("database is locked", operation="save practice session")
        super().insert_practice_session(practice_session)

    def record_practice_session(self, spot_id, result, duration_minutes, now=None):
        if self.spot_failures > 0:
            self.spot_failures -= 1
            raise PersistenceFailure("database is locked", operation="record practice")
        return super().record_practice_session(spot_id, result, duration_minutes, now)


class GatedRepository(CountingRepository):
    """Blocks spot loading until released, to keep a command in flight."""

    def __init__(self, engine):
        super().__init__(engine)
        self.entered = threading.Event()
        self.release = threading.Event()

    def get_all_active_spots(self):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().get_all_active_spots()


@pytest.fixture
def counting_repository(engine):
    return CountingRepository(engine)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://")


def minutes_after(now, minutes):
    return now + timedelta(minutes=minutes)


class TestStart:

    def test_empty_pool_stays_idle(self, counting_repository, settings, now):
        manager = PracticeSessionManager(counting_repository, settings)

        with pytest.raises(NoCandidatesAvailable) as exc_info:
            asyncio.run(manager.start(SessionType.SMART, now=now))

        assert exc_info.value.session_type == "smart"
        assert manager.state.phase == SessionPhase.IDLE
        assert manager.state.session is None
        assert counting_repository.saved_session_ids == []

    def test_first_spot_active_rest_pending(self, counting_repository, settings, project_and_piece, add_spots, now):
        project, _ = project_and_piece
        add_spots(3)
        manager = PracticeSessionManager(counting_repository, settings)

        state = asyncio.run(manager.start(SessionType.SMART, project_id=project.id, now=now))

        assert state.phase == SessionPhase.ACTIVE
        assert state.is_running
        assert state.session.name == "Spring Recital 2025 - Smart Practice"
        assert state.session.planned_minutes == 45
        assert state.session.project_id == project.id
        statuses = [s.status for s in state.session.spot_sessions]
        assert statuses == [SpotSessionStatus.ACTIVE, SpotSessionStatus.PENDING, SpotSessionStatus.PENDING]
        assert [s.order_index for s in state.session.spot_sessions] == [0, 1, 2]
        assert state.session.spot_sessions[0].start_time == now
        assert state.current_spot.id == state.session.spot_sessions[0].spot_id

    def test_start_while_active_is_rejected(self, counting_repository, settings, add_spots, now):
        add_spots(2)
        manager = PracticeSessionManager(counting_repository, settings)
        first = asyncio.run(manager.start(SessionType.SMART, now=now)).session

        with pytest.raises(InvalidStateTransition):
            asyncio.run(manager.start(SessionType.CRITICAL, now=now))

        assert manager.state.session is first

    def test_custom_session_keeps_requested_order(self, counting_repository, settings, add_spots, now):
        first, second, third = add_spots(3)
        manager = PracticeSessionManager(counting_repository, settings)

        state = asyncio.run(manager.start(
            SessionType.CUSTOM, spot_ids=[third.id, first.id, "not-a-spot"], now=now
        ))

        assert [s.spot_id for s in state.session.spot_sessions] == [third.id, first.id]

    def test_missing_project_falls_back_to_first(self, counting_repository, settings, project_and_piece, add_spots, now, caplog):
        project, _ = project_and_piece
        add_spots(1)
        manager = PracticeSessionManager(counting_repository, settings)

        with caplog.at_level(logging.WARNING, logger="scoreread"):
            state = asyncio.run(manager.start(SessionType.SMART, project_name="Winter Gala", now=now))

        assert state.session.project_id == project.id
        assert "falling back" in caplog.text

    def test_missing_project_without_any_projects(self, counting_repository, settings, now):
        manager = PracticeSessionManager(counting_repository, settings)

        with pytest.raises(NoProjectFound):
            asyncio.run(manager.start(SessionType.SMART, project_name="Winter Gala", now=now))

        assert manager.state.phase == SessionPhase.IDLE


class TestCompleteCurrent:

    def test_smart_session_over_three_spots(self, counting_repository, settings, project_and_piece, add_spots, now):
        project, _ = project_and_piece
        spots = add_spots(3)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, project_id=project.id, now=now))

        for step in range(1, 4):
            asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 5 * step)))

        state = manager.state
        assert state.phase == SessionPhase.COMPLETED
        assert state.completed_spots == 3
        assert state.progress == 1.0
        assert state.session.status == SessionStatus.COMPLETED
        assert state.session.end_time >= state.session.start_time
        for spot in spots:
            assert counting_repository.get_spot(spot.id).readiness_level == ReadinessLevel.LEARNING
        assert counting_repository.saved_session_ids == [state.session.id]

    def test_completion_persists_exactly_once(self, counting_repository, settings, add_spots, now):
        add_spots(1)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))
        asyncio.run(manager.complete_current(SpotResult.EXCELLENT, now=minutes_after(now, 4)))

        with pytest.raises(InvalidStateTransition):
            asyncio.run(manager.complete_current(SpotResult.EXCELLENT, now=minutes_after(now, 5)))

        assert len(counting_repository.saved_session_ids) == 1
        stored, = counting_repository.get_practice_sessions()
        assert stored.status == SessionStatus.COMPLETED

    def test_finished_session_reads_back_from_storage(self, counting_repository, settings, add_spots, now):
        spots = add_spots(2)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))
        asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 5)))
        state = asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 10)))

        stored = counting_repository.get_practice_session(state.session.id)

        assert stored.status == SessionStatus.COMPLETED
        assert stored.start_time == now
        assert stored.end_time == minutes_after(now, 10)
        assert [s.spot_id for s in stored.spot_sessions] == [s.spot_id for s in state.session.spot_sessions]
        assert [s.end_time for s in stored.spot_sessions] == [minutes_after(now, 5), minutes_after(now, 10)]
        assert [s.result for s in stored.spot_sessions] == [SpotResult.GOOD, SpotResult.GOOD]
        history = counting_repository.get_spot_history_since(now)
        assert sorted(h.spot_id for h in history) == sorted(spot.id for spot in spots)

    def test_advances_in_selection_order(self, counting_repository, settings, add_spots, now):
        add_spots(3)
        manager = PracticeSessionManager(counting_repository, settings)
        state = asyncio.run(manager.start(SessionType.CUSTOM, now=now))
        order = [s.spot_id for s in state.session.spot_sessions]

        state = asyncio.run(manager.complete_current(SpotResult.FAIR, notes="left hand", now=minutes_after(now, 3)))

        first, second, third = state.session.spot_sessions
        assert first.status == SpotSessionStatus.COMPLETED
        assert first.result == SpotResult.FAIR
        assert first.notes == "left hand"
        assert second.status == SpotSessionStatus.ACTIVE
        assert second.start_time == minutes_after(now, 3)
        assert third.status == SpotSessionStatus.PENDING
        assert state.current_spot.id == order[1]
        assert state.progress == pytest.approx(1 / 3)

    def test_completed_spot_uses_stored_copy(self, counting_repository, settings, add_spots, now):
        spot, _ = add_spots(2)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.CUSTOM, now=now))

        asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 3)))

        assert manager.state.spots[spot.id].practice_count == 1

    def test_complete_without_session(self, counting_repository, settings, now):
        manager = PracticeSessionManager(counting_repository, settings)

        with pytest.raises(InvalidStateTransition):
            asyncio.run(manager.complete_current(SpotResult.GOOD, now=now))


class TestCancel:

    def test_cancel_after_two_of_five(self, counting_repository, settings, add_spots, now):
        add_spots(5)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.CUSTOM, now=now))
        asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 5)))
        asyncio.run(manager.complete_current(SpotResult.POOR, now=minutes_after(now, 10)))

        state = asyncio.run(manager.cancel(now=minutes_after(now, 12)))

        assert state.phase == SessionPhase.CANCELLED
        assert counting_repository.saved_session_ids == [state.session.id]
        stored, = counting_repository.get_practice_sessions()
        assert stored.status == SessionStatus.CANCELLED
        assert stored.end_time == minutes_after(now, 12)
        statuses = [s.status for s in stored.spot_sessions]
        assert statuses == [SpotSessionStatus.COMPLETED] * 2 + [SpotSessionStatus.PENDING] * 3
        assert [s.result for s in stored.spot_sessions[:2]] == [SpotResult.GOOD, SpotResult.POOR]
        assert stored.spot_sessions[2].start_time is None

    def test_cancel_when_idle(self, counting_repository, settings):
        manager = PracticeSessionManager(counting_repository, settings)

        with pytest.raises(InvalidStateTransition):
            asyncio.run(manager.cancel())


class TestPause:

    def test_paused_time_is_excluded(self, counting_repository, settings, add_spots, now):
        add_spots(1)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))

        manager.pause(now=minutes_after(now, 1))
        assert manager.state.is_running is False
        manager.resume(now=minutes_after(now, 4))
        asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 10)))

        practice_session = manager.state.session
        spot_session = practice_session.spot_sessions[0]
        assert spot_session.paused_seconds == 180
        assert spot_session.duration_seconds == 7 * 60
        assert practice_session.active_seconds == 7 * 60
        history = counting_repository.get_spot_history_since(now)
        assert history[0].practice_minutes == 7

    def test_complete_while_paused_ends_the_pause(self, counting_repository, settings, add_spots, now):
        add_spots(2)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.CUSTOM, now=now))
        manager.pause(now=minutes_after(now, 2))

        state = asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 6)))

        assert state.is_running is True
        assert state.session.spot_sessions[0].paused_seconds == 240
        assert state.session.spot_sessions[1].paused_seconds == 0

    def test_pause_and_resume_are_noops_when_idle(self, counting_repository, settings, now):
        manager = PracticeSessionManager(counting_repository, settings)

        assert manager.pause(now=now).phase == SessionPhase.IDLE
        assert manager.resume(now=now).is_running is False

    def test_double_pause_keeps_first_pause_start(self, counting_repository, settings, add_spots, now):
        add_spots(1)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))

        manager.pause(now=minutes_after(now, 1))
        manager.pause(now=minutes_after(now, 3))

        assert manager.state.paused_at == minutes_after(now, 1)


class TestPersistenceFailures:

    def test_unsaved_session_can_be_retried(self, engine, settings, add_spots, now):
        add_spots(1)
        repository = FlakyRepository(engine, session_failures=1)
        manager = PracticeSessionManager(repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))

        with pytest.raises(PersistenceFailure):
            asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 5)))

        assert manager.state.phase == SessionPhase.COMPLETED
        assert manager.state.unsaved is True
        with pytest.raises(InvalidStateTransition):
            manager.clear()

        asyncio.run(manager.retry_save())

        assert manager.state.unsaved is False
        assert repository.saved_session_ids == [manager.state.session.id]
        assert manager.clear().phase == SessionPhase.IDLE

    def test_forced_clear_discards_unsaved_session(self, engine, settings, add_spots, now):
        add_spots(1)
        repository = FlakyRepository(engine, session_failures=1)
        manager = PracticeSessionManager(repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))
        with pytest.raises(PersistenceFailure):
            asyncio.run(manager.cancel(now=minutes_after(now, 1)))

        state = manager.clear(force=True)

        assert state.phase == SessionPhase.IDLE
        assert repository.get_practice_sessions() == []

    def test_failed_spot_update_keeps_spot_active(self, engine, settings, add_spots, now):
        add_spots(2)
        repository = FlakyRepository(engine, spot_failures=1)
        manager = PracticeSessionManager(repository, settings)
        asyncio.run(manager.start(SessionType.CUSTOM, now=now))

        with pytest.raises(PersistenceFailure):
            asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 3)))

        assert manager.state.completed_spots == 0
        assert manager.state.session.spot_sessions[0].status == SpotSessionStatus.ACTIVE

        state = asyncio.run(manager.complete_current(SpotResult.GOOD, now=minutes_after(now, 4)))
        assert state.completed_spots == 1

    def test_retry_without_unsaved_session(self, counting_repository, settings):
        manager = PracticeSessionManager(counting_repository, settings)

        with pytest.raises(InvalidStateTransition):
            asyncio.run(manager.retry_save())


class TestClear:

    def test_clear_active_session_is_rejected(self, counting_repository, settings, add_spots, now):
        add_spots(1)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))

        with pytest.raises(InvalidStateTransition):
            manager.clear()

    def test_clear_then_start_again(self, counting_repository, settings, add_spots, now):
        add_spots(1)
        manager = PracticeSessionManager(counting_repository, settings)
        asyncio.run(manager.start(SessionType.SMART, now=now))
        asyncio.run(manager.cancel(now=minutes_after(now, 1)))

        manager.clear()
        state = asyncio.run(manager.start(SessionType.SMART, now=minutes_after(now, 2)))

        assert state.phase == SessionPhase.ACTIVE
        assert len(counting_repository.saved_session_ids) == 1


class TestSerializedCommands:

    def test_command_in_flight_rejects_others(self, engine, settings, add_spots, now):
        add_spots(2)
        repository = GatedRepository(engine)
        manager = PracticeSessionManager(repository, settings)

        async def scenario():
            start = asyncio.create_task(manager.start(SessionType.SMART, now=now))
            while not repository.entered.is_set():
                await asyncio.sleep(0.01)

            with pytest.raises(SessionBusy):
                await manager.start(SessionType.CRITICAL, now=now)
            with pytest.raises(SessionBusy):
                await manager.cancel(now=now)

            repository.release.set()
            return await start

        state = asyncio.run(scenario())

        assert state.phase == SessionPhase.ACTIVE
        assert state.session.session_type == SessionType.SMART
