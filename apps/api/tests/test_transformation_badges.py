"""
Tests for Badge Evaluation

Covers the catalog, progress formulas by criteria type, the grandmaster
gate and the monotonic earned state.
"""
import threading
import pytest
from dataclasses import replace
from datetime import datetime, timezone
from services.transformation import (
    BadgeCatalog,
    BadgeCategory,
    BadgeEvaluationEngine,
    BadgeLevel,
    EarnedBadgeState,
    ExercisePlan,
    HealthHistory,
)
from services.transformation.badges import BadgeCriteria, BadgeDefinition, default_catalog
from services.transformation.collaborators import DayPlan, PlannedActivity
from services.transformation.constants import CriteriaType
from fixtures.snapshot_fixtures import excellent_checkin, make_snapshot, outstanding_snapshot

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def by_id(views):
    return {v.badge.id: v for v in views}


def evaluate(snapshot=None, exercise_plan=None, history=None, state=None, now=NOW, engine=None):
    engine = engine or BadgeEvaluationEngine()
    state = state if state is not None else EarnedBadgeState()
    return by_id(engine.evaluate(BadgeCatalog(), snapshot, exercise_plan, history, state, now))


def weekly_plan(minutes):
    return ExercisePlan(weekly_plan=[
        DayPlan("Monday", [PlannedActivity("Run", minutes)]),
    ])


class StaticSeries:
    def __init__(self, value):
        self.value = value
        self.calls = []

    def progress(self, badge, history):
        self.calls.append(badge.id)
        return self.value


class TestCatalog:
    """Static catalog contents"""

    def test_seventeen_unique_badges(self):
        catalog = BadgeCatalog()
        ids = [b.id for b in catalog]

        assert len(catalog) == 17
        assert len(set(ids)) == 17

    def test_certified_badges(self):
        certified = {b.id for b in BadgeCatalog() if b.requires_certificate}
        assert certified == {"usa_master", "international_master", "grandmaster", "world_grandmaster"}

    def test_lookup_and_category(self):
        catalog = BadgeCatalog()

        assert catalog.get("grandmaster").level == BadgeLevel.GRANDMASTER
        assert catalog.get("unknown") is None
        assert {b.id for b in catalog.by_category(BadgeCategory.WELLNESS)} == {"optimal_eater", "emotional_master"}

    def test_duplicate_ids_rejected(self):
        badge = default_catalog()[0]
        with pytest.raises(ValueError):
            BadgeCatalog([badge, badge])

    def test_to_dict_includes_level_details(self):
        data = BadgeCatalog().get("world_grandmaster").to_dict()

        assert data["requires_certificate"] is True
        assert data["criteria"]["target"] == 1095
        assert data["criteria"]["condition"] == "world_grandmaster"


class TestProgress:
    """Progress formula per criteria type"""

    def test_absent_snapshot_scores_zero(self):
        views = evaluate(snapshot=None)

        assert all(v.progress == 0.0 for v in views.values())
        assert not any(v.earned for v in views.values())

    def test_bare_snapshot_health_score(self):
        views = evaluate(make_snapshot())

        # base score 50 only
        assert views["great_health"].progress == pytest.approx(50 / 85)
        assert views["perfect_vision"].progress == 0.0

    def test_outstanding_snapshot_earns_score_badges(self):
        views = evaluate(outstanding_snapshot())
        earned = {badge_id for badge_id, v in views.items() if v.earned}

        assert earned == {
            "perfect_vision", "eagle_ears", "touch_master", "taste_expert",
            "outstanding_health", "great_health", "optimal_eater", "emotional_master",
        }

    def test_weekly_exercise_minutes(self):
        view = evaluate(make_snapshot(), exercise_plan=weekly_plan(250.0))["cardio_king"]

        assert view.progress == pytest.approx(0.5)
        assert view.display_progress == "50%"

    def test_weekly_exercise_capped(self):
        view = evaluate(make_snapshot(), exercise_plan=weekly_plan(900.0))["cardio_king"]
        assert view.progress == 1.0
        assert view.display_progress == "Earned"

    def test_progress_always_in_unit_interval(self):
        history = HealthHistory(current_streak=5000)
        views = evaluate(outstanding_snapshot(), weekly_plan(10000.0), history)
        assert all(0.0 <= v.progress <= 1.0 for v in views.values())

    def test_non_positive_target_counts_as_complete(self):
        badge = BadgeDefinition(
            "zero", "Zero", "", BadgeCategory.HEALTH, BadgeLevel.BRONZE, "", "#000000",
            BadgeCriteria(CriteriaType.HEALTH_SCORE, 0),
        )
        assert BadgeEvaluationEngine().progress(badge, None, None, None) == 1.0


class TestStreakBadges:
    """Outstanding-health streak badges and the grandmaster gate"""

    def test_usa_master_after_a_year(self):
        views = evaluate(make_snapshot(), history=HealthHistory(current_streak=365))

        assert views["usa_master"].earned
        assert views["international_master"].earned
        assert views["grandmaster"].progress == 0.0

    def test_partial_streak(self):
        views = evaluate(make_snapshot(), history=HealthHistory(current_streak=73))
        assert views["usa_master"].progress == pytest.approx(0.2)
        assert views["usa_master"].display_progress == "20%"

    def test_grandmaster_gate_blocks_without_eating_and_emotion(self):
        views = evaluate(make_snapshot(), history=HealthHistory(current_streak=800))

        assert views["grandmaster"].progress == 0.0
        assert views["world_grandmaster"].progress == 0.0

    def test_grandmaster_gate_passes_with_excellent_eating_and_emotion(self):
        views = evaluate(outstanding_snapshot(), history=HealthHistory(current_streak=800))

        assert views["grandmaster"].earned
        assert views["world_grandmaster"].progress == pytest.approx(800 / 1095)

    def test_grandmaster_gate_blocks_emotion_just_under_threshold(self):
        # Mood 63 with every other component at its best -> emotional 88.9
        checkin = replace(excellent_checkin(), mood_score=63.0)
        snapshot = outstanding_snapshot(emotional_entries=[checkin])
        assert snapshot.eating_score() >= 85
        assert snapshot.emotional_score() == pytest.approx(88.9)

        views = evaluate(snapshot, history=HealthHistory(current_streak=800))

        assert views["usa_master"].earned
        assert views["grandmaster"].progress == 0.0
        assert views["world_grandmaster"].progress == 0.0

    def test_gate_applies_even_without_snapshot(self):
        views = evaluate(None, history=HealthHistory(current_streak=800))

        assert views["usa_master"].earned
        assert views["grandmaster"].progress == 0.0

    def test_no_history_means_no_streak(self):
        views = evaluate(outstanding_snapshot(), history=None)
        assert views["usa_master"].progress == 0.0


class TestHistoricalCriteria:
    """Criteria needing a time series"""

    def test_zero_without_provider(self):
        views = evaluate(outstanding_snapshot(), history=HealthHistory(current_streak=200))

        for badge_id in ("nutrition_master", "calorie_champion", "fitness_warrior", "streak_master"):
            assert views[badge_id].progress == 0.0

    def test_provider_supplies_progress(self):
        series = StaticSeries(0.25)
        views = evaluate(make_snapshot(), engine=BadgeEvaluationEngine(series_provider=series))

        assert views["streak_master"].progress == 0.25
        assert set(series.calls) == {"nutrition_master", "calorie_champion", "fitness_warrior", "streak_master"}

    def test_provider_values_are_clamped(self):
        views = evaluate(make_snapshot(), engine=BadgeEvaluationEngine(series_provider=StaticSeries(3.0)))
        assert views["fitness_warrior"].progress == 1.0


class TestEarnedState:
    """Earned badges stay earned; earned_date marks the first pass only"""

    def test_earned_date_only_on_first_pass(self):
        state = EarnedBadgeState()
        first = evaluate(outstanding_snapshot(), state=state, now=NOW)["great_health"]
        second = evaluate(outstanding_snapshot(), state=state, now=LATER)["great_health"]

        assert first.earned and first.earned_date == NOW
        assert second.earned and second.earned_date is None
        assert second.first_earned_at == NOW

    def test_earned_badges_never_revoked(self):
        state = EarnedBadgeState()
        evaluate(outstanding_snapshot(), state=state)
        views = evaluate(make_snapshot(), state=state, now=LATER)

        assert views["great_health"].earned
        assert views["great_health"].progress == pytest.approx(50 / 85)
        assert views["great_health"].display_progress == "Earned"

    def test_state_is_seeded_from_existing(self):
        state = EarnedBadgeState({"usa_master": NOW})
        view = evaluate(make_snapshot(), state=state, now=LATER)["usa_master"]

        assert view.earned
        assert view.earned_date is None
        assert view.first_earned_at == NOW

    def test_mark_earned_is_first_writer_wins(self):
        state = EarnedBadgeState()

        assert state.mark_earned("great_health", NOW) is True
        assert state.mark_earned("great_health", LATER) is False
        assert state.first_earned_at["great_health"] == NOW

    def test_concurrent_mark_earned(self):
        state = EarnedBadgeState()
        results = []
        barrier = threading.Barrier(8)

        def worker(i):
            barrier.wait()
            results.append(state.mark_earned("grandmaster", NOW))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert state.earned_ids == {"grandmaster"}

    def test_view_to_dict(self):
        data = evaluate(outstanding_snapshot())["great_health"].to_dict()

        assert data["earned"] is True
        assert data["display_progress"] == "Earned"
        assert data["earned_date"] == NOW.isoformat()
