"""
Selection strategies turning a spot pool into an ordered practice list.

Every strategy shares one contract: the result is an ordered subset of the
input pool without duplicate ids or inactive spots, and never longer than the
pool or the strategy's cap. An empty pool gives an empty list; deciding what an
empty selection means is up to the caller.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from scoreread.core.exceptions import ValidationError
from scoreread.models.enums import (
    SessionType,
    SpotPriority,
    SpotColor,
    ReadinessLevel,
    SUCCESS_RESULTS,
)
from scoreread.models.project import Project
from scoreread.models.spot import Spot
from scoreread.models.spot_history import SpotHistory
from scoreread.services.urgency_service import (
    is_due,
    is_overdue_by,
    urgency_score,
    urgency_sort_key,
    rank_by_urgency,
)

logger = logging.getLogger(__name__)


# Default caps per strategy
CRITICAL_MAX_SPOTS = 10
BALANCED_MAX_SPOTS = 10
MAINTENANCE_MAX_SPOTS = 10
WARMUP_MAX_SPOTS = 3
SMART_MAX_SPOTS = 20

# Critical: overdue for longer than this qualifies regardless of priority
CRITICAL_OVERDUE_THRESHOLD = timedelta(days=2)

# Warmup: easy or short spots only
WARMUP_MAX_DIFFICULTY = 2
WARMUP_MAX_MINUTES = 6

# Smart: history re-weighting
SMART_HISTORY_WINDOW = timedelta(days=3)
SMART_RECENT_SUCCESS_WINDOW = timedelta(hours=12)
SMART_FAILURE_BOOST = 0.5        # +50% per recent unsuccessful attempt
SMART_MAX_BOOSTED_FAILURES = 3
SMART_RECENT_SUCCESS_PENALTY = 0.25  # Score multiplier after a very recent success

BUCKET_CRITICAL = "critical"
BUCKET_REVIEW = "review"
BUCKET_MAINTENANCE = "maintenance"
BUCKET_ORDER = [BUCKET_CRITICAL, BUCKET_REVIEW, BUCKET_MAINTENANCE]


@dataclass(frozen=True)
class BalancedFrequencies:
    """Relative share of each bucket in a balanced session (any positive scale)."""
    critical: float = 50.0
    review: float = 30.0
    maintenance: float = 20.0
    
    def __post_init__(self):
        if min(self.critical, self.review, self.maintenance) < 0:
            raise ValidationError("Balanced frequencies must not be negative")
    
    @classmethod
    def from_settings(cls, settings) -> "BalancedFrequencies":
        return cls(
            critical=settings.balanced_critical_percent,
            review=settings.balanced_review_percent,
            maintenance=settings.balanced_maintenance_percent,
        )
    
    def normalized(self) -> Dict[str, float]:
        """Weights per bucket summing to 1 (equal thirds when all are zero)."""
        raw = {
            BUCKET_CRITICAL: self.critical,
            BUCKET_REVIEW: self.review,
            BUCKET_MAINTENANCE: self.maintenance,
        }
        total = sum(raw.values())
        if total <= 0:
            return {bucket: 1.0 / len(raw) for bucket in raw}
        return {bucket: value / total for bucket, value in raw.items()}


@dataclass
class SelectionContext:
    """Everything a strategy may look at besides the spot pool."""
    now: datetime
    project: Optional[Project] = None
    history: Sequence[SpotHistory] = ()
    frequencies: BalancedFrequencies = field(default_factory=BalancedFrequencies)
    max_spots: Optional[int] = None
    include_all: bool = False
    time_budget_minutes: Optional[int] = None


SelectionStrategy = Callable[[Sequence[Spot], SelectionContext], List[Spot]]


def candidate_pool(spots: Sequence[Spot]) -> List[Spot]:
    """Active spots only, first occurrence of each id, input order kept."""
    seen = set()
    pool = []
    for spot in spots:
        if not spot.is_active or spot.id in seen:
            continue
        seen.add(spot.id)
        pool.append(spot)
    return pool


def resolve_cap(context: SelectionContext, default_cap: int, pool_size: int) -> int:
    """Cap for a strategy: the whole pool, an explicit max, or the default."""
    if context.include_all:
        return pool_size
    if context.max_spots is not None:
        return max(0, min(context.max_spots, pool_size))
    return min(default_cap, pool_size)


def select_critical_spots(spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """
    Critical focus: due high-priority spots, plus anything long overdue.
    """
    pool = candidate_pool(spots)
    critical = [
        spot for spot in pool
        if (is_due(spot, context.now) and spot.priority == SpotPriority.HIGH)
        or is_overdue_by(spot, context.now, CRITICAL_OVERDUE_THRESHOLD)
    ]
    cap = resolve_cap(context, CRITICAL_MAX_SPOTS, len(pool))
    selected = rank_by_urgency(critical, context.now)[:cap]
    logger.info(f"Critical selection: {len(selected)} of {len(pool)} active spots")
    return selected


def balanced_bucket(spot: Spot) -> str:
    """Bucket of a spot for balanced sessions."""
    if spot.readiness_level == ReadinessLevel.MASTERED:
        return BUCKET_MAINTENANCE
    if spot.priority == SpotPriority.HIGH or spot.color == SpotColor.RED:
        return BUCKET_CRITICAL
    return BUCKET_REVIEW


def allocate_bucket_counts(
    total: int,
    weights: Dict[str, float],
    capacities: Dict[str, int]
) -> Dict[str, int]:
    """
    Split `total` picks across buckets in proportion to `weights`.
    
    Uses largest-remainder rounding. A bucket that runs out of spots hands its
    remaining share to the other buckets in proportion to their weights, so
    no share is dropped while spots remain anywhere. Buckets with zero weight
    only receive picks once every weighted bucket is exhausted.
    
    Args:
        total: Number of picks wanted
        weights: Normalized weight per bucket
        capacities: Number of spots available per bucket
    
    Returns:
        Number of picks per bucket
    """
    counts = {bucket: 0 for bucket in weights}
    remaining = min(total, sum(capacities.get(bucket, 0) for bucket in weights))
    open_buckets = [bucket for bucket in weights if capacities.get(bucket, 0) > 0]
    
    while remaining > 0 and open_buckets:
        weight_sum = sum(weights[bucket] for bucket in open_buckets)
        if weight_sum <= 0:
            shares = {bucket: remaining / len(open_buckets) for bucket in open_buckets}
        else:
            shares = {bucket: remaining * weights[bucket] / weight_sum for bucket in open_buckets}
        
        picks = {bucket: int(shares[bucket]) for bucket in open_buckets}
        leftover = remaining - sum(picks.values())
        by_remainder = sorted(
            open_buckets,
            key=lambda bucket: (-(shares[bucket] - picks[bucket]), -weights[bucket], open_buckets.index(bucket)),
        )
        for bucket in by_remainder[:leftover]:
            picks[bucket] += 1
        
        progressed = 0
        for bucket in open_buckets:
            take = min(picks[bucket], capacities[bucket] - counts[bucket])
            counts[bucket] += take
            progressed += take
        
        remaining -= progressed
        open_buckets = [bucket for bucket in open_buckets if counts[bucket] < capacities[bucket]]
        if progressed == 0:
            break
    
    return counts


def select_balanced_spots(spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """
    Balanced practice: a mix of critical, review and maintenance spots.
    
    Picks per bucket follow the configured frequencies; within a bucket the
    most urgent spots are taken first. The result lists critical picks, then
    review, then maintenance.
    """
    pool = candidate_pool(spots)
    buckets: Dict[str, List[Spot]] = {bucket: [] for bucket in BUCKET_ORDER}
    for spot in pool:
        buckets[balanced_bucket(spot)].append(spot)
    
    cap = resolve_cap(context, BALANCED_MAX_SPOTS, len(pool))
    counts = allocate_bucket_counts(
        cap,
        context.frequencies.normalized(),
        {bucket: len(members) for bucket, members in buckets.items()},
    )
    
    selected: List[Spot] = []
    for bucket in BUCKET_ORDER:
        selected.extend(rank_by_urgency(buckets[bucket], context.now)[:counts[bucket]])
    
    logger.info(
        f"Balanced selection: {len(selected)} spots "
        f"(critical: {counts[BUCKET_CRITICAL]}, review: {counts[BUCKET_REVIEW]}, "
        f"maintenance: {counts[BUCKET_MAINTENANCE]})"
    )
    return selected


def select_maintenance_spots(spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """
    Maintenance / repertoire review: mastered spots, longest unpracticed first.
    
    Spots never practiced count as the longest unpracticed.
    """
    pool = candidate_pool(spots)
    mastered = [spot for spot in pool if spot.readiness_level == ReadinessLevel.MASTERED]
    mastered.sort(key=lambda spot: (spot.last_practiced or datetime.min, spot.id))
    cap = resolve_cap(context, MAINTENANCE_MAX_SPOTS, len(pool))
    return mastered[:cap]


def select_warmup_spots(spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """
    Quick warmup: easy or short spots, shortest recommended time first.
    """
    pool = candidate_pool(spots)
    easy = [
        spot for spot in pool
        if spot.difficulty <= WARMUP_MAX_DIFFICULTY or spot.practice_minutes <= WARMUP_MAX_MINUTES
    ]
    easy.sort(key=lambda spot: (spot.practice_minutes, spot.difficulty, spot.id))
    cap = resolve_cap(context, WARMUP_MAX_SPOTS, len(pool))
    return easy[:cap]


def history_weight(spot_id: str, history: Sequence[SpotHistory], now: datetime) -> float:
    """
    Multiplier applied to a spot's urgency from its recent practice history.
    
    Unsuccessful attempts (poor/fair) within SMART_HISTORY_WINDOW raise the
    multiplier; a successful attempt within SMART_RECENT_SUCCESS_WINDOW cuts it
    so the spot is not repeated right away.
    """
    failures = 0
    recent_success = False
    for entry in history:
        if entry.spot_id != spot_id or entry.timestamp > now:
            continue
        age = now - entry.timestamp
        if age > SMART_HISTORY_WINDOW:
            continue
        if entry.result in SUCCESS_RESULTS:
            if age <= SMART_RECENT_SUCCESS_WINDOW:
                recent_success = True
        else:
            failures += 1
    
    weight = 1.0 + SMART_FAILURE_BOOST * min(failures, SMART_MAX_BOOSTED_FAILURES)
    if recent_success:
        weight *= SMART_RECENT_SUCCESS_PENALTY
    return weight


def select_smart_spots(spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """
    Smart practice: urgency re-weighted by recent practice history.
    
    With a time budget, spots are taken in order until the next one would
    exceed the budget; the first spot is always kept.
    """
    pool = candidate_pool(spots)
    scores = {
        spot.id: urgency_score(spot, context.now) * history_weight(spot.id, context.history, context.now)
        for spot in pool
    }
    ranked = sorted(pool, key=lambda spot: urgency_sort_key(spot, context.now, scores[spot.id]))
    cap = resolve_cap(context, SMART_MAX_SPOTS, len(pool))
    ranked = ranked[:cap]
    
    if context.time_budget_minutes is None:
        return ranked
    
    selected: List[Spot] = []
    total_minutes = 0
    for spot in ranked:
        if selected and total_minutes + spot.practice_minutes > context.time_budget_minutes:
            break
        selected.append(spot)
        total_minutes += spot.practice_minutes
    
    logger.info(
        f"Smart selection: {len(selected)} spots, {total_minutes} of "
        f"{context.time_budget_minutes} budgeted minutes"
    )
    return selected


def select_custom_spots(spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """Custom selection: the caller's spots in the caller's order."""
    pool = candidate_pool(spots)
    if context.max_spots is not None and not context.include_all:
        return pool[:max(0, context.max_spots)]
    return pool


SELECTION_STRATEGIES: Dict[SessionType, SelectionStrategy] = {
    SessionType.SMART: select_smart_spots,
    SessionType.CRITICAL: select_critical_spots,
    SessionType.BALANCED: select_balanced_spots,
    SessionType.MAINTENANCE: select_maintenance_spots,
    SessionType.WARMUP: select_warmup_spots,
    SessionType.CUSTOM: select_custom_spots,
}


def select_spots(session_type: SessionType, spots: Sequence[Spot], context: SelectionContext) -> List[Spot]:
    """Run the strategy registered for `session_type`."""
    strategy = SELECTION_STRATEGIES[SessionType(session_type)]
    return strategy(spots, context)
