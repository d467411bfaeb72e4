from pydantic_settings import BaseSettings
from typing import Optional
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env explicitly before creating Settings, preferring the api directory
api_dir = Path(__file__).parent.parent.parent
env_path = api_dir / ".env"

if env_path.exists():
    load_dotenv(env_path, override=True)
    _logger.info(f"Loaded .env file from: {env_path}")
else:
    current_env = Path(".env")
    if current_env.exists():
        load_dotenv(current_env, override=True)
        _logger.info(f"Loaded .env file from: {current_env.absolute()}")
    else:
        _logger.debug(f".env file not found at {env_path} or {current_env.absolute()}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Database
    database_url: str = "sqlite:///./scoreread.db"
    
    # API
    api_v1_prefix: str = "/api/v1"
    
    # CORS
    cors_origins: list[str] = ["*"]
    
    # Logging
    log_level: str = "INFO"
    
    # Balanced session mix, in percent (normalized before use)
    balanced_critical_percent: float = 50.0
    balanced_review_percent: float = 30.0
    balanced_maintenance_percent: float = 20.0
    
    # Dashboard sizes
    daily_plan_limit: int = 20
    urgent_list_limit: int = 10
    
    # Smart sessions
    smart_default_max_spots: int = 20
    
    # Reviews landing at or after this hour are pushed to 08:00 (disabled when unset)
    sleep_gate_hour: Optional[int] = None
    
    # Used when a project has no daily goal of its own
    default_daily_goal_minutes: int = 30
    
    class Config:
        env_file = ".env"
        case_sensitive = False
    
    def __init__(self, **kwargs):
        # Hosting platforms provide DATABASE_URL uppercase
        if not kwargs.get("database_url") and os.getenv("DATABASE_URL"):
            kwargs["database_url"] = os.getenv("DATABASE_URL", "")
        super().__init__(**kwargs)


# Create settings instance
settings = Settings()
