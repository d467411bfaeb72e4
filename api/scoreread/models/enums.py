"""
Model enums.
"""
from enum import Enum


class ReadinessLevel(str, Enum):
    """Coarse mastery tier of a spot, advanced only by the scheduler."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


class SpotPriority(str, Enum):
    """User-assigned importance of a spot."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SpotColor(str, Enum):
    """Visual triage tag of a spot (red = critical, blue = nearly solved)."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"


class SpotResult(str, Enum):
    """Outcome of one practice attempt on a spot."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class SessionType(str, Enum):
    """Kind of practice session; each maps to one selection strategy."""
    SMART = "smart"
    CRITICAL = "critical"
    BALANCED = "balanced"
    MAINTENANCE = "maintenance"
    WARMUP = "warmup"
    CUSTOM = "custom"


class SessionStatus(str, Enum):
    """Persisted status of a practice session."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SpotSessionStatus(str, Enum):
    """Status of one spot within a practice session."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


SUCCESS_RESULTS = frozenset({SpotResult.GOOD, SpotResult.EXCELLENT})
