"""
Tests for the daily plan and the urgent list.
"""
from datetime import timedelta

from scoreread.models.enums import SpotPriority, SpotColor
from scoreread.services.practice_plan_service import (
    DAILY_PLAN_LIMIT,
    URGENT_LIST_LIMIT,
    DailyPlanMode,
    build_daily_plan,
    build_urgent_list,
    is_urgent,
)


class TestDailyPlan:

    def test_only_due_spots_most_urgent_first(self, spot_factory, now):
        low_due = spot_factory(priority=SpotPriority.LOW, next_due=now - timedelta(hours=1))
        high_due = spot_factory(priority=SpotPriority.HIGH, next_due=now - timedelta(hours=1))
        not_due = spot_factory(priority=SpotPriority.HIGH, next_due=now + timedelta(days=1))

        assert build_daily_plan([low_due, not_due, high_due], now) == [high_due, low_due]

    def test_capped(self, spot_factory, now):
        spots = [spot_factory(next_due=None) for _ in range(DAILY_PLAN_LIMIT + 5)]
        assert len(build_daily_plan(spots, now)) == DAILY_PLAN_LIMIT

    def test_empty_pool(self, now):
        assert build_daily_plan([], now) == []

    def test_new_piece_mode_includes_spots_not_yet_due(self, spot_factory, now):
        fresh = spot_factory(piece_id="fresh-piece", next_due=now + timedelta(days=3))
        practiced = spot_factory(
            piece_id="old-piece", next_due=now + timedelta(days=3), practice_count=4
        )

        assert build_daily_plan([fresh, practiced], now) == []
        assert build_daily_plan([fresh, practiced], now, mode=DailyPlanMode.INCLUDE_NEW_PIECES) == [fresh]


class TestUrgentList:

    def test_urgent_conditions(self, spot_factory, now):
        assert is_urgent(spot_factory(priority=SpotPriority.HIGH, color=SpotColor.GREEN), now)
        assert is_urgent(spot_factory(priority=SpotPriority.LOW, color=SpotColor.RED), now)
        assert is_urgent(
            spot_factory(
                priority=SpotPriority.LOW,
                color=SpotColor.GREEN,
                next_due=now - timedelta(days=1, hours=1),
            ),
            now,
        )
        assert not is_urgent(
            spot_factory(
                priority=SpotPriority.MEDIUM,
                color=SpotColor.YELLOW,
                next_due=now - timedelta(hours=12),
            ),
            now,
        )

    def test_ordered_and_capped(self, spot_factory, now):
        spots = [spot_factory(color=SpotColor.RED, priority=SpotPriority.LOW) for _ in range(URGENT_LIST_LIMIT)]
        top = spot_factory(color=SpotColor.RED, priority=SpotPriority.HIGH)

        urgent = build_urgent_list(spots + [top], now)

        assert len(urgent) == URGENT_LIST_LIMIT
        assert urgent[0] is top
