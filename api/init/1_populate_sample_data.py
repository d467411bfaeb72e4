"""
Script to seed a sample project with two pieces and a handful of spots.

Spots cover every readiness level so each session type has something to pick.
Skips seeding when the sample project already exists.
"""
import sys
from datetime import datetime, timedelta
from sqlmodel import Session, select
from scoreread.core.database import engine, init_db
from scoreread.models import (
    Project,
    Piece,
    Spot,
    ReadinessLevel,
    SpotPriority,
    SpotColor,
)
import logging

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

SAMPLE_PROJECT_NAME = "Spring Recital 2025"


def build_sample_spots(moonlight: Piece, clair: Piece, now: datetime):
    return [
        Spot(
            piece_id=moonlight.id,
            title="Opening Adagio",
            description="Measures 1-8",
            page_number=1,
            priority=SpotPriority.HIGH,
            readiness_level=ReadinessLevel.LEARNING,
            color=SpotColor.RED,
            last_practiced=now - timedelta(days=3),
            next_due=now - timedelta(days=1),  # Overdue
            practice_count=5,
            success_count=2,
            failure_count=3,
            interval_hours=48,
            recommended_minutes=10,
        ),
        Spot(
            piece_id=moonlight.id,
            title="Triplet Passage",
            description="Measures 15-22",
            page_number=2,
            priority=SpotPriority.HIGH,
            readiness_level=ReadinessLevel.NEW,
            color=SpotColor.RED,
            recommended_minutes=15,
        ),
        Spot(
            piece_id=clair.id,
            title="Arabesque Section",
            description="Measures 27-35",
            page_number=3,
            priority=SpotPriority.MEDIUM,
            readiness_level=ReadinessLevel.REVIEW,
            color=SpotColor.YELLOW,
            last_practiced=now - timedelta(days=5),
            next_due=now + timedelta(days=2),
            practice_count=8,
            success_count=6,
            failure_count=2,
            interval_hours=72,
            recommended_minutes=8,
        ),
        Spot(
            piece_id=clair.id,
            title="Gentle Ending",
            description="Measures 65-72",
            page_number=6,
            priority=SpotPriority.LOW,
            readiness_level=ReadinessLevel.MASTERED,
            color=SpotColor.GREEN,
            last_practiced=now - timedelta(days=10),
            next_due=now + timedelta(days=14),
            practice_count=12,
            success_count=11,
            failure_count=1,
            interval_hours=168,
            recommended_minutes=5,
        ),
    ]


def populate_sample_data():
    """Create the sample project, pieces and spots."""
    init_db()
    now = datetime.utcnow()
    
    with Session(engine) as session:
        existing = session.exec(select(Project).where(Project.name == SAMPLE_PROJECT_NAME)).first()
        if existing:
            logger.info(f"Sample project already exists ({existing.id}), skipping")
            return
        
        try:
            project = Project(
                name=SAMPLE_PROJECT_NAME,
                description="Preparing for spring recital",
                concert_date=now + timedelta(days=30),
                daily_goal_minutes=45,
            )
            moonlight = Piece(title="Moonlight Sonata", composer="Beethoven", project_id=project.id)
            clair = Piece(title="Clair de Lune", composer="Debussy", project_id=project.id)
            spots = build_sample_spots(moonlight, clair, now)
            
            session.add(project)
            session.add(moonlight)
            session.add(clair)
            for spot in spots:
                session.add(spot)
            session.commit()
            
            logger.info(f"Created project '{project.name}' with 2 pieces and {len(spots)} spots")
            
        except Exception as e:
            session.rollback()
            logger.error("Error populating sample data: %s", e, exc_info=True)
            raise


if __name__ == "__main__":
    logger.info("Starting sample data population...")
    try:
        populate_sample_data()
        logger.info("Successfully completed!")
    except Exception as e:
        logger.error("Error during sample data population: %s", e, exc_info=True)
        sys.exit(1)
