from sqlmodel import SQLModel, create_engine
from sqlalchemy.pool import StaticPool
from scoreread.core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(db_url: str, echo: bool = False):
    """
    Create a SQLAlchemy engine for the given URL.
    
    SQLite URLs get thread-safe connect args (the session manager runs storage
    calls in a threadpool); in-memory SQLite shares one connection.
    """
    # SQLAlchemy prefers postgresql:// over postgres://
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, echo=echo, **kwargs)
    
    return create_engine(
        db_url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


logger.info(f"Connecting to database: {settings.database_url[:20]}...")  # Log partial URL for debugging

engine = build_engine(settings.database_url)


def init_db(target_engine=None):
    """Initialize database tables."""
    # Import models to register them with SQLModel
    from scoreread import models  # noqa: F401
    
    SQLModel.metadata.create_all(target_engine or engine)
