"""
Tests for the Health Streak Tracker.

Current streak is anchored on today; longest streak only continues across
gaps of exactly one calendar day.
"""
import pytest
from datetime import date, timedelta
from services.transformation import ConfigService, DailyHealthRecord, StreakTracker
from services.transformation.badges import BadgeCriteria
from services.transformation.constants import CriteriaType
from fixtures.snapshot_fixtures import make_snapshot, outstanding_snapshot

DAY_1 = date(2026, 3, 1)


def day(n: int) -> date:
    """Calendar date of plan day n (1-indexed)."""
    return DAY_1 + timedelta(days=n - 1)


def qualifying(n: int) -> DailyHealthRecord:
    return DailyHealthRecord.from_scores(day(n), 97.0)


def failing(n: int) -> DailyHealthRecord:
    return DailyHealthRecord.from_scores(day(n), 80.0)


def tracker_on(today: date) -> StreakTracker:
    return StreakTracker(today_provider=lambda: today)


class TestQualification:
    """met_criteria is score >= threshold"""

    def test_threshold_is_inclusive(self):
        assert DailyHealthRecord.from_scores(DAY_1, 95.0).met_criteria is True
        assert DailyHealthRecord.from_scores(DAY_1, 94.99).met_criteria is False

    def test_threshold_comes_from_config(self):
        ConfigService.set("streaks.threshold", 90.0)
        assert DailyHealthRecord.from_scores(DAY_1, 91.0).met_criteria is True


class TestCurrentStreak:
    """Walk back from today"""

    def test_five_days_evaluated_on_day_five(self):
        tracker = tracker_on(day(5))
        for n in range(1, 6):
            tracker.add_record(qualifying(n))

        assert tracker.history.current_streak == 5
        assert tracker.history.streak_start_date == day(1)

    def test_missing_today_means_zero(self):
        """Days 1-5 qualify, day 6 has no record"""
        tracker = tracker_on(day(6))
        for n in range(1, 6):
            tracker.add_record(qualifying(n))

        assert tracker.history.current_streak == 0
        assert tracker.history.streak_start_date is None
        assert tracker.history.longest_streak == 5

    def test_failing_today_means_zero(self):
        tracker = tracker_on(day(3))
        tracker.add_record(qualifying(1))
        tracker.add_record(qualifying(2))
        tracker.add_record(failing(3))

        assert tracker.history.current_streak == 0

    def test_gap_stops_walk_back(self):
        tracker = tracker_on(day(6))
        for n in (1, 2, 4, 5, 6):
            tracker.add_record(qualifying(n))

        assert tracker.history.current_streak == 3, "Day 3 is missing, so only days 4-6 count"
        assert tracker.history.streak_start_date == day(4)

    def test_failing_day_stops_walk_back(self):
        tracker = tracker_on(day(4))
        tracker.add_record(qualifying(1))
        tracker.add_record(failing(2))
        tracker.add_record(qualifying(3))
        tracker.add_record(qualifying(4))

        assert tracker.history.current_streak == 2

    def test_records_added_out_of_order(self):
        tracker = tracker_on(day(3))
        for n in (3, 1, 2):
            tracker.add_record(qualifying(n))

        assert [r.record_date for r in tracker.history.records] == [day(1), day(2), day(3)]
        assert tracker.history.current_streak == 3


class TestLongestStreak:
    """Longest run of consecutive qualifying days"""

    def test_gap_resets_run(self):
        tracker = tracker_on(day(20))
        for n in (1, 2, 3, 4, 6, 7):
            tracker.add_record(qualifying(n))

        assert tracker.history.longest_streak == 4

    def test_failing_records_do_not_break_adjacency_accounting(self):
        """A failing day between qualifying days leaves a 2-day gap"""
        tracker = tracker_on(day(20))
        tracker.add_record(qualifying(1))
        tracker.add_record(failing(2))
        tracker.add_record(qualifying(3))

        assert tracker.history.longest_streak == 1

    @pytest.mark.parametrize("days", [
        [1, 2, 3],
        [1, 3, 4, 5, 9],
        [2, 3, 4, 5, 6, 7],
        [],
    ])
    def test_longest_never_below_current(self, days):
        tracker = tracker_on(day(7))
        for n in days:
            tracker.add_record(qualifying(n))

        history = tracker.history
        assert history.longest_streak >= history.current_streak, (
            f"longest {history.longest_streak} < current {history.current_streak}"
        )


class TestUpsert:
    """One record per calendar day; resubmission replaces"""

    def test_same_day_resubmission_replaces(self):
        tracker = tracker_on(day(1))
        tracker.add_record(qualifying(1))
        tracker.add_record(failing(1))

        assert len(tracker.history.records) == 1
        assert tracker.history.records[0].health_score == 80.0
        assert tracker.history.current_streak == 0

    def test_record_snapshot_scores_and_upserts(self):
        tracker = tracker_on(day(1))
        record = tracker.record_snapshot(outstanding_snapshot())

        assert record.record_date == day(1)
        assert record.health_score == 100.0
        assert record.eating_score == 100.0
        assert record.met_criteria is True
        assert tracker.history.current_streak == 1

    def test_bare_snapshot_does_not_qualify(self):
        tracker = tracker_on(day(1))
        record = tracker.record_snapshot(make_snapshot())
        assert record.met_criteria is False


class TestStreakDaysForCriteria:
    """get_streak_days only answers streak criteria"""

    @pytest.fixture
    def tracker(self):
        tracker = tracker_on(day(3))
        for n in (1, 2, 3):
            tracker.add_record(qualifying(n))
        return tracker

    @pytest.mark.parametrize("kind", [CriteriaType.OUTSTANDING_HEALTH_STREAK, CriteriaType.HEALTH_STREAK])
    def test_streak_criteria_return_current(self, tracker, kind):
        assert tracker.get_streak_days(BadgeCriteria(kind, 365)) == 3

    def test_other_criteria_return_zero(self, tracker):
        assert tracker.get_streak_days(BadgeCriteria(CriteriaType.CONSECUTIVE_DAYS, 100)) == 0
