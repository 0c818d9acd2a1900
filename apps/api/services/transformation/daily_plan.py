"""
Daily Plan Expander

Expands a LongTermPlan into one DailyPlanEntry per day.

For day n (1-indexed), in increasing order:
1. Ask the diet solver for a plan (working snapshot, season)
2. Ask the exercise planner for a plan (working snapshot, exercise goals)
3. Derive supplements from lab deficiencies in the working snapshot
4. Attach meditation, breathing, sleep and water targets
5. Advance the working snapshot toward the weight and muscle goals

Step 5 is closed-form: the working snapshot for day n is the baseline
interpolated (n - 1) / duration of the way to each goal target. No day
depends on another day's solver output.

A caller-side deadline bounds long expansions (3650 days with slow
solvers). When it elapses, PlanExpansionTimeout is raised carrying the
entries produced so far.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from .collaborators import (
    DietSolver,
    ExercisePlanner,
    GuidelineExercisePlanner,
    ReferenceDietSolver,
)
from .config import ConfigService
from .constants import GoalCategory, Season
from .plan_models import LongTermPlan, PlanPhase
from .snapshot import HealthSnapshot

logger = logging.getLogger(__name__)

MAX_SLEEP_HOURS = 10.0
WEEKLY_CHECK_IN_NOTE = "Weekly check-in: Assess progress and adjust as needed"


@dataclass(frozen=True)
class SupplementRecommendation:
    name: str
    dosage: str
    timing: str
    purpose: str


@dataclass
class DailyPlanEntry:
    """One day's prescriptions."""
    date: date
    day_number: int
    diet_plan: Any
    exercise_plan: Any
    supplements: List[SupplementRecommendation] = field(default_factory=list)
    meditation_minutes: float = 10.0
    breathing_minutes: float = 15.0
    sleep_target_hours: float = 8.0
    water_intake_liters: float = 2.5
    phase_name: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        def handle(value):
            return value.to_dict() if hasattr(value, "to_dict") else value

        return {
            "date": self.date.isoformat(),
            "day_number": self.day_number,
            "phase_name": self.phase_name,
            "diet_plan": handle(self.diet_plan),
            "exercise_plan": handle(self.exercise_plan),
            "supplements": [
                {"name": s.name, "dosage": s.dosage, "timing": s.timing, "purpose": s.purpose}
                for s in self.supplements
            ],
            "meditation_minutes": self.meditation_minutes,
            "breathing_minutes": self.breathing_minutes,
            "sleep_target_hours": self.sleep_target_hours,
            "water_intake_liters": self.water_intake_liters,
            "notes": self.notes,
        }


class PlanExpansionTimeout(TimeoutError):
    """Raised when the caller deadline elapses mid-expansion."""

    def __init__(self, message: str, entries: List[DailyPlanEntry]):
        super().__init__(message)
        self.entries = entries


# (config key, snapshot attribute, compare, supplement)
_DEFICIENCY_RULES = [
    ("vitamin_d_ng_ml", "vitamin_d", "below", SupplementRecommendation(
        name="Vitamin D3",
        dosage="2000-5000 IU",
        timing="Morning with food",
        purpose="Address vitamin D deficiency",
    )),
    ("total_cholesterol_mg_dl", "total_cholesterol", "above", SupplementRecommendation(
        name="Omega-3 Fatty Acids",
        dosage="1000-2000 mg",
        timing="With meals",
        purpose="Support cardiovascular health",
    )),
    ("vitamin_b12_pg_ml", "vitamin_b12", "below", SupplementRecommendation(
        name="Vitamin B12",
        dosage="1000 mcg",
        timing="Morning",
        purpose="Address vitamin B12 deficiency",
    )),
    ("ferritin_ng_ml", "ferritin", "below", SupplementRecommendation(
        name="Iron",
        dosage="18-27 mg",
        timing="Morning on an empty stomach with vitamin C",
        purpose="Replenish iron stores",
    )),
    ("magnesium_mg_dl", "magnesium", "below", SupplementRecommendation(
        name="Magnesium Glycinate",
        dosage="200-400 mg",
        timing="Evening",
        purpose="Address magnesium deficiency",
    )),
]


def detect_supplements(snapshot: HealthSnapshot) -> List[SupplementRecommendation]:
    """Supplements for every deficiency in the latest blood test."""
    latest = snapshot.latest_blood_test
    if latest is None:
        return []

    supplements = []
    for key, attribute, compare, supplement in _DEFICIENCY_RULES:
        threshold = ConfigService.get_deficiency_threshold(key)
        value = getattr(latest, attribute)
        if threshold is None or value is None:
            continue
        if (compare == "below" and value < threshold) or (compare == "above" and value > threshold):
            supplements.append(supplement)
    return supplements


class DailyPlanExpander:
    """
    Usage:
        expander = DailyPlanExpander()
        entries = expander.expand(plan, snapshot, Season.SUMMER)
        len(entries) == plan.duration_days
    """

    def __init__(
        self,
        diet_solver: Optional[DietSolver] = None,
        exercise_planner: Optional[ExercisePlanner] = None,
        clock=time.monotonic,
    ):
        self.diet_solver = diet_solver or ReferenceDietSolver()
        self.exercise_planner = exercise_planner or GuidelineExercisePlanner()
        self._clock = clock

    def expand(
        self,
        plan: LongTermPlan,
        snapshot: HealthSnapshot,
        season: Season,
        max_days: Optional[int] = None,
        deadline_s: Optional[float] = None,
    ) -> List[DailyPlanEntry]:
        """
        Args:
            max_days: Stop after this many days (preview). Defaults to the full plan.
            deadline_s: Seconds allowed before PlanExpansionTimeout is raised.
        """
        total_days = plan.duration_days
        days = total_days if max_days is None else max(0, min(max_days, total_days))
        multiplier = ConfigService.get_difficulty_multiplier(plan.difficulty.value)
        started = self._clock()

        logger.info(f"Expanding plan {plan.id}: {days}/{total_days} days, season={season.value}")

        entries: List[DailyPlanEntry] = []
        working = snapshot
        for day_number in range(1, days + 1):
            if deadline_s is not None and self._clock() - started > deadline_s:
                logger.warning(
                    f"Plan {plan.id} expansion hit {deadline_s}s deadline after {len(entries)} days"
                )
                raise PlanExpansionTimeout(
                    f"Daily plan expansion exceeded {deadline_s}s after {len(entries)} of {days} days",
                    entries,
                )

            phase = plan.phase_for_day(day_number)
            entries.append(self._build_entry(plan, phase, day_number, working, season, multiplier))
            working = self.adjust_snapshot(snapshot, plan, day_number)

        logger.info(f"Expanded plan {plan.id} into {len(entries)} daily entries")
        return entries

    def _build_entry(
        self,
        plan: LongTermPlan,
        phase: Optional[PlanPhase],
        day_number: int,
        working: HealthSnapshot,
        season: Season,
        multiplier: float,
    ) -> DailyPlanEntry:
        scale = phase.mindfulness_scale if phase else 1.0
        routine = ConfigService.get_routine_default

        sleep = routine("sleep_hours") - (multiplier - 1.0) * 0.5
        sleep = min(MAX_SLEEP_HOURS, max(routine("sleep_hours_min") or 6.0, sleep))

        water = routine("water_liters")
        if working.exercise_logs:
            water += routine("exercise_water_bonus_liters")

        return DailyPlanEntry(
            date=plan.start_date + timedelta(days=day_number - 1),
            day_number=day_number,
            diet_plan=self.diet_solver.solve(working, season),
            exercise_plan=self.exercise_planner.recommend(working, working.exercise_goals),
            supplements=detect_supplements(working),
            meditation_minutes=round(routine("meditation_minutes") * multiplier * scale, 1),
            breathing_minutes=round(routine("breathing_minutes") * multiplier * scale, 1),
            sleep_target_hours=round(sleep, 2),
            water_intake_liters=water,
            phase_name=phase.name if phase else None,
            notes=WEEKLY_CHECK_IN_NOTE if day_number % 7 == 0 else None,
        )

    @staticmethod
    def adjust_snapshot(baseline: HealthSnapshot, plan: LongTermPlan, day_number: int) -> HealthSnapshot:
        """Snapshot with weight and muscle mass advanced to day_number / duration of the way to target."""
        progress = day_number / plan.duration_days
        changes = {}

        weight_goal = plan.goal_for(GoalCategory.WEIGHT)
        if weight_goal is not None:
            expected = weight_goal.expected_value_at(progress)
            if expected is not None:
                changes["weight_kg"] = expected

        muscle_goal = plan.goal_for(GoalCategory.MUSCLE_MASS)
        if muscle_goal is not None:
            expected = muscle_goal.expected_value_at(progress)
            if expected is not None:
                changes["muscle_mass_kg"] = expected

        return replace(baseline, **changes) if changes else baseline
