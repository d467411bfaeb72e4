"""
Script to clear practice data: sessions, spot history, spots, pieces and projects.
"""
import sys
from sqlmodel import Session, text
from scoreread.core.database import engine
import logging

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Children before parents (foreign key constraints)
TABLES = ["spot_session", "practice_session", "spot_history", "spot", "piece", "project"]


def clear_tables():
    """Clear all data from the practice tables."""
    with Session(engine) as session:
        try:
            for table in TABLES:
                logger.info(f"Deleting all rows from {table}...")
                session.exec(text(f"DELETE FROM {table}"))
            
            session.commit()
            logger.info("Successfully cleared practice tables")
            
        except Exception as e:
            session.rollback()
            logger.error("Error clearing tables: %s", e, exc_info=True)
            raise


if __name__ == "__main__":
    logger.info("Starting table clearing...")
    try:
        clear_tables()
        logger.info("Successfully completed!")
    except Exception as e:
        logger.error("Error during table clearing: %s", e, exc_info=True)
        sys.exit(1)
