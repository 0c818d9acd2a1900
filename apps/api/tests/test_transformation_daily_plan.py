"""
Tests for the Daily Plan Expander.

N-day plans produce exactly N entries in day order, each with positive
routine targets. The working snapshot advances toward goals as days pass.
"""
import pytest
from datetime import date, timedelta
from services.transformation import (
    ConfigService,
    DailyPlanExpander,
    ExercisePlan,
    GoalCategory,
    LongTermPlanner,
    PlanDuration,
    PlanExpansionTimeout,
    Season,
    UrgencyLevel,
)
from services.transformation.collaborators import DietPlan, GuidelineExercisePlanner, ReferenceDietSolver
from services.transformation.daily_plan import detect_supplements
from services.transformation.snapshot import BloodTest, ExerciseLog
from fixtures.snapshot_fixtures import make_snapshot

START = date(2026, 1, 1)


class RecordingDietSolver:
    """Captures the snapshot weight seen on each call."""

    def __init__(self):
        self.weights = []

    def solve(self, snapshot, season):
        self.weights.append(snapshot.weight_kg)
        return {"season": season.value, "weight": snapshot.weight_kg}


class StubExercisePlanner:
    def recommend(self, snapshot, goals):
        return ExercisePlan()


class TickingClock:
    """Advances one second per read."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        value = self.now
        self.now += 1.0
        return value


def make_plan(urgency=UrgencyLevel.MEDIUM, duration=None, snapshot=None):
    return LongTermPlanner().generate_plan(snapshot or make_snapshot(), urgency, duration, START)


class TestExpansionShape:
    """Entry count, order and routine bounds"""

    @pytest.mark.parametrize("urgency", list(UrgencyLevel))
    def test_one_entry_per_day_with_positive_targets(self, urgency):
        plan = make_plan(urgency, PlanDuration.THREE_MONTHS)
        entries = DailyPlanExpander(RecordingDietSolver(), StubExercisePlanner()).expand(
            plan, make_snapshot(), Season.SUMMER
        )

        assert len(entries) == 90
        assert [e.day_number for e in entries] == list(range(1, 91))
        for entry in entries:
            assert entry.meditation_minutes > 0
            assert entry.breathing_minutes > 0
            assert 0 < entry.sleep_target_hours <= 10
            assert entry.water_intake_liters > 0

    def test_one_year_plan_with_reference_collaborators(self):
        plan = make_plan(UrgencyLevel.LOW)
        entries = DailyPlanExpander().expand(plan, make_snapshot(), Season.WINTER)

        assert len(entries) == 365
        assert entries[-1].date == START + timedelta(days=364)
        assert isinstance(entries[0].diet_plan, DietPlan)
        assert isinstance(entries[0].exercise_plan, ExercisePlan)

    def test_dates_follow_day_numbers(self):
        entries = DailyPlanExpander().expand(make_plan(), make_snapshot(), Season.FALL, max_days=3)
        assert [e.date for e in entries] == [START, START + timedelta(days=1), START + timedelta(days=2)]

    def test_max_days_limits_preview(self):
        entries = DailyPlanExpander().expand(make_plan(), make_snapshot(), Season.SPRING, max_days=10)
        assert len(entries) == 10

    def test_phase_name_attached(self):
        plan = make_plan(duration=PlanDuration.THREE_MONTHS)
        entries = DailyPlanExpander().expand(plan, make_snapshot(), Season.SPRING)

        assert entries[0].phase_name == "Foundation"
        assert entries[-1].phase_name == plan.phases[-1].name

    def test_weekly_check_in_note(self):
        entries = DailyPlanExpander().expand(make_plan(), make_snapshot(), Season.SPRING, max_days=14)
        noted = [e.day_number for e in entries if e.notes]
        assert noted == [7, 14]


class TestRoutineTargets:
    """Meditation, breathing, sleep and water scale with difficulty"""

    def test_moderate_foundation_defaults(self):
        entry = DailyPlanExpander().expand(make_plan(UrgencyLevel.MEDIUM), make_snapshot(), Season.SUMMER, max_days=1)[0]

        assert entry.meditation_minutes == 10.0
        assert entry.breathing_minutes == 15.0
        assert entry.sleep_target_hours == 8.0
        assert entry.water_intake_liters == 2.5

    def test_extreme_difficulty(self):
        entry = DailyPlanExpander().expand(make_plan(UrgencyLevel.CRITICAL), make_snapshot(), Season.SUMMER, max_days=1)[0]

        assert entry.meditation_minutes == 20.0
        assert entry.breathing_minutes == 30.0
        assert entry.sleep_target_hours == 7.5

    def test_exercise_logs_add_water(self):
        snapshot = make_snapshot(exercise_logs=[ExerciseLog(log_date=START, total_minutes=40.0)])
        entry = DailyPlanExpander().expand(make_plan(), snapshot, Season.SUMMER, max_days=1)[0]
        assert entry.water_intake_liters == 3.0

    def test_routine_defaults_are_configurable(self):
        ConfigService.set("daily_routine.meditation_minutes", 20.0)
        entry = DailyPlanExpander().expand(make_plan(), make_snapshot(), Season.SUMMER, max_days=1)[0]
        assert entry.meditation_minutes == 20.0


class TestSupplements:
    """Deficiencies in the latest blood test drive supplements"""

    def test_no_labs_no_supplements(self):
        assert detect_supplements(make_snapshot()) == []

    def test_low_vitamin_d(self):
        names = [s.name for s in detect_supplements(make_snapshot(blood_tests=[BloodTest(vitamin_d=18.0)]))]
        assert names == ["Vitamin D3"]

    def test_multiple_deficiencies(self):
        snapshot = make_snapshot(blood_tests=[BloodTest(
            total_cholesterol=215.0,
            vitamin_b12=150.0,
            ferritin=12.0,
            magnesium=1.5,
        )])
        names = {s.name for s in detect_supplements(snapshot)}
        assert names == {"Omega-3 Fatty Acids", "Vitamin B12", "Iron", "Magnesium Glycinate"}

    def test_only_latest_blood_test_counts(self):
        snapshot = make_snapshot(blood_tests=[BloodTest(vitamin_d=10.0), BloodTest(vitamin_d=40.0)])
        assert detect_supplements(snapshot) == []

    def test_supplements_attached_to_entries(self):
        snapshot = make_snapshot(blood_tests=[BloodTest(vitamin_d=18.0)])
        entry = DailyPlanExpander().expand(make_plan(), snapshot, Season.WINTER, max_days=1)[0]
        assert entry.supplements[0].dosage == "2000-5000 IU"


class TestProgressiveAdjustment:
    """Later days see a snapshot advanced toward the goals"""

    def test_weight_trends_toward_goal(self):
        snapshot = make_snapshot(weight_kg=100.0, height_cm=175.0)
        plan = make_plan(UrgencyLevel.HIGH, PlanDuration.THREE_MONTHS, snapshot)
        solver = RecordingDietSolver()

        DailyPlanExpander(solver, StubExercisePlanner()).expand(plan, snapshot, Season.SUMMER)

        target = plan.goal_for(GoalCategory.WEIGHT).target_value
        assert solver.weights[0] == 100.0, "Day 1 uses the caller's snapshot"
        assert solver.weights == sorted(solver.weights, reverse=True)
        assert solver.weights[-1] == pytest.approx(100.0 + (target - 100.0) * 89 / 90)

    def test_working_snapshot_is_closed_form_in_day_number(self):
        snapshot = make_snapshot(weight_kg=100.0, height_cm=175.0)
        plan = make_plan(UrgencyLevel.HIGH, PlanDuration.THREE_MONTHS, snapshot)
        solver = RecordingDietSolver()

        DailyPlanExpander(solver, StubExercisePlanner()).expand(plan, snapshot, Season.SUMMER)

        for day_number in (2, 45, 90):
            expected = DailyPlanExpander.adjust_snapshot(snapshot, plan, day_number - 1)
            assert solver.weights[day_number - 1] == pytest.approx(expected.weight_kg)

    def test_day_one_and_last_day_differ(self):
        snapshot = make_snapshot(weight_kg=100.0, height_cm=175.0)
        plan = make_plan(UrgencyLevel.HIGH, PlanDuration.THREE_MONTHS, snapshot)
        entries = DailyPlanExpander(ReferenceDietSolver(), GuidelineExercisePlanner()).expand(
            plan, snapshot, Season.SUMMER
        )
        assert entries[0].diet_plan.calorie_target > entries[-1].diet_plan.calorie_target

    def test_caller_snapshot_untouched(self):
        snapshot = make_snapshot(weight_kg=100.0, height_cm=175.0)
        DailyPlanExpander().expand(make_plan(snapshot=snapshot), snapshot, Season.SUMMER, max_days=30)
        assert snapshot.weight_kg == 100.0


class TestDeadline:
    """Caller-side deadline bounds long expansions"""

    def test_timeout_carries_partial_entries(self):
        expander = DailyPlanExpander(RecordingDietSolver(), StubExercisePlanner(), clock=TickingClock())

        with pytest.raises(PlanExpansionTimeout) as excinfo:
            expander.expand(make_plan(), make_snapshot(), Season.SUMMER, deadline_s=5)

        assert len(excinfo.value.entries) == 5
        assert isinstance(excinfo.value, TimeoutError)

    def test_generous_deadline_completes(self):
        entries = DailyPlanExpander().expand(
            make_plan(duration=PlanDuration.THREE_MONTHS), make_snapshot(), Season.SUMMER, deadline_s=600
        )
        assert len(entries) == 90

    def test_entry_serializes(self):
        entry = DailyPlanExpander().expand(make_plan(), make_snapshot(), Season.SUMMER, max_days=1)[0]
        data = entry.to_dict()

        assert data["day_number"] == 1
        assert data["diet_plan"]["season"] == "summer"
        assert data["exercise_plan"]["total_minutes"] > 0
