import os
from datetime import datetime, timedelta
from itertools import count

import pytest

# Must be set before scoreread.core.database builds its module-level engine
os.environ["DATABASE_URL"] = "sqlite://"

from sqlmodel import Session

from scoreread.core.database import build_engine, init_db
from scoreread.models import Project, Piece, Spot
from scoreread.services.practice_repository import PracticeRepository


NOW = datetime(2025, 3, 10, 12, 0, 0)

_spot_ids = count(1)


def make_spot(**overrides) -> Spot:
    """In-memory spot for pure function tests; never persisted."""
    number = next(_spot_ids)
    fields = {
        "id": f"spot-{number:04d}",
        "piece_id": "piece-1",
        "title": f"Spot {number}",
        "created_time": NOW - timedelta(days=30),
    }
    fields.update(overrides)
    return Spot(**fields)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def repository(engine):
    return PracticeRepository(engine)


@pytest.fixture
def project_and_piece(engine):
    """A stored project with one piece."""
    project = Project(name="Spring Recital 2025", daily_goal_minutes=45)
    piece = Piece(title="Moonlight Sonata", composer="Beethoven", project_id=project.id)
    with Session(engine, expire_on_commit=False) as session:
        session.add(project)
        session.add(piece)
        session.commit()
    return project, piece


@pytest.fixture
def add_spots(engine, project_and_piece):
    """Factory storing `n` spots on the sample piece, in creation order."""
    _, piece = project_and_piece
    created = count()

    def _add_spots(n, **overrides):
        spots = []
        for _ in range(n):
            index = next(created)
            fields = {
                "piece_id": piece.id,
                "title": f"Spot {index + 1}",
                "created_time": NOW - timedelta(days=30) + timedelta(seconds=index),
            }
            fields.update(overrides)
            spots.append(Spot(**fields))
        with Session(engine, expire_on_commit=False) as session:
            for spot in spots:
                session.add(spot)
            session.commit()
        return spots

    return _add_spots


@pytest.fixture
def spot_factory():
    return make_spot
