"""
HTTP tests for the library, practice and session endpoints.
"""
import logging

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from scoreread.core.exceptions import PersistenceFailure
from scoreread.main import app
from scoreread.models import Spot
from scoreread.api.v1.endpoints.utils import get_repository, get_session_manager
from scoreread.services.practice_repository import PracticeRepository
from scoreread.services.practice_session_service import PracticeSessionManager


API = "/api/v1"


class FailingSaveRepository(PracticeRepository):

    def insert_practice_session(self, practice_session):
        raise PersistenceFailure("disk full", operation="save practice session")


class FailingLibraryRepository(PracticeRepository):

    def _session(self, operation):
        if operation == "save spot":
            SQLModel.metadata.drop_all(self.engine, tables=[Spot.__table__])
        return super()._session(operation)


@pytest.fixture
def make_client(engine):
    def _make_client(repository=None):
        repository = repository or PracticeRepository(engine)
        manager = PracticeSessionManager(repository)

        app.dependency_overrides[get_repository] = lambda: repository
        app.dependency_overrides[get_session_manager] = lambda: manager
        return TestClient(app)

    yield _make_client
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


def create_library(client, spot_count=3):
    project = client.post(f"{API}/library/projects", json={"name": "Spring Recital 2025", "daily_goal_minutes": 45}).json()
    piece = client.post(
        f"{API}/library/pieces",
        json={"title": "Moonlight Sonata", "composer": "Beethoven", "project_id": project["id"]},
    ).json()
    spots = [
        client.post(
            f"{API}/library/spots",
            json={"piece_id": piece["id"], "title": f"Spot {index + 1}", "priority": "high"},
        ).json()
        for index in range(spot_count)
    ]
    return project, piece, spots


class TestRoot:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").json()["status"] == "running"

    def test_startup_configures_logging(self, make_client):
        with make_client() as client:
            assert client.get("/health").status_code == 200
        package_logger = logging.getLogger("scoreread")
        assert package_logger.handlers
        package_logger.handlers.clear()


class TestLibrary:

    def test_create_and_list(self, client):
        project, piece, spots = create_library(client, spot_count=2)

        assert client.get(f"{API}/library/projects").json()["projects"][0]["id"] == project["id"]
        listed = client.get(f"{API}/library/spots", params={"project_id": project["id"]}).json()["spots"]
        assert [spot["id"] for spot in listed] == [spot["id"] for spot in spots]
        assert listed[0]["is_due"] is True
        assert listed[0]["readiness_level"] == "new"

    def test_duplicate_project_conflicts(self, client):
        client.post(f"{API}/library/projects", json={"name": "Recital"})
        response = client.post(f"{API}/library/projects", json={"name": "Recital"})
        assert response.status_code == 409

    def test_spot_on_unknown_piece(self, client):
        response = client.post(f"{API}/library/spots", json={"piece_id": "nope", "title": "Coda"})
        assert response.status_code == 404
        assert response.json()["type"] == "NotFoundError"

    def test_record_practice_and_deactivate(self, client):
        _, _, spots = create_library(client, spot_count=1)
        spot_id = spots[0]["id"]

        practiced = client.post(
            f"{API}/library/spots/{spot_id}/practice", json={"result": "excellent", "duration_minutes": 6}
        ).json()
        assert practiced["practice_count"] == 1
        assert practiced["readiness_level"] == "learning"
        assert practiced["is_due"] is False

        client.post(f"{API}/library/spots/{spot_id}/deactivate")
        assert client.get(f"{API}/library/spots").json()["spots"] == []

    def test_storage_failure_on_create_is_retryable(self, engine, make_client):
        client = make_client(FailingLibraryRepository(engine))
        _, piece, _ = create_library(client, spot_count=0)

        response = client.post(f"{API}/library/spots", json={"piece_id": piece["id"], "title": "Coda"})

        assert response.status_code == 503
        assert response.json()["retryable"] is True
        assert response.json()["operation"] == "save spot"


class TestPractice:

    def test_dashboard(self, client):
        project, _, spots = create_library(client)

        dashboard = client.get(f"{API}/practice/dashboard", params={"project_id": project["id"]}).json()

        assert len(dashboard["daily_plan"]) == 3
        assert len(dashboard["urgent_spots"]) == 3
        assert dashboard["stats"]["total_spots"] == 3
        assert dashboard["stats"]["due_spots"] == 3
        assert dashboard["daily_goal_minutes"] == 45

    def test_daily_plan_without_spots(self, client):
        plan = client.get(f"{API}/practice/daily-plan").json()
        assert plan == {"spots": [], "has_candidates": False}


class TestSessions:

    def test_start_without_spots(self, client):
        response = client.post(f"{API}/sessions/start", json={"session_type": "smart"})

        assert response.status_code == 422
        assert response.json()["type"] == "NoCandidatesAvailable"
        assert response.json()["session_type"] == "smart"
        assert client.get(f"{API}/sessions/current").json()["phase"] == "idle"

    def test_full_session(self, client):
        project, _, _ = create_library(client)

        started = client.post(
            f"{API}/sessions/start", json={"session_type": "critical", "project_id": project["id"]}
        ).json()
        assert started["phase"] == "active"
        assert started["total_spots"] == 3
        assert started["current_spot"]["id"] == started["session"]["spot_sessions"][0]["spot_id"]

        assert client.post(f"{API}/sessions/pause").json()["is_running"] is False
        assert client.post(f"{API}/sessions/resume").json()["is_running"] is True

        for _ in range(3):
            state = client.post(f"{API}/sessions/complete-current", json={"result": "good"}).json()

        assert state["phase"] == "completed"
        assert state["progress"] == 1.0
        assert state["unsaved"] is False
        assert client.post(f"{API}/sessions/complete-current", json={"result": "good"}).status_code == 409

        stats = client.get(f"{API}/practice/stats").json()
        assert stats["weekly_session_count"] == 1
        assert stats["weekly_improved_spots"] == 3

        stored = client.get(f"{API}/sessions/{state['session']['id']}").json()
        assert stored["status"] == "completed"
        assert [s["result"] for s in stored["spot_sessions"]] == ["good", "good", "good"]

        assert client.post(f"{API}/sessions/clear", json={}).json()["phase"] == "idle"

    def test_unknown_stored_session(self, client):
        response = client.get(f"{API}/sessions/missing")
        assert response.status_code == 404

    def test_start_twice_conflicts(self, client):
        create_library(client, spot_count=1)
        client.post(f"{API}/sessions/start", json={"session_type": "smart"})

        response = client.post(f"{API}/sessions/start", json={"session_type": "smart"})

        assert response.status_code == 409
        assert response.json()["type"] == "InvalidStateTransition"

    def test_failed_save_is_retryable(self, engine, make_client):
        client = make_client(FailingSaveRepository(engine))
        create_library(client, spot_count=1)
        client.post(f"{API}/sessions/start", json={"session_type": "smart"})

        response = client.post(f"{API}/sessions/cancel")

        assert response.status_code == 503
        assert response.json()["retryable"] is True
        current = client.get(f"{API}/sessions/current").json()
        assert current["phase"] == "cancelled"
        assert current["unsaved"] is True
        assert client.post(f"{API}/sessions/clear", json={}).status_code == 409
        assert client.post(f"{API}/sessions/clear", json={"force": True}).json()["phase"] == "idle"
