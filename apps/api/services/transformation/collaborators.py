"""
Plan collaborators.

The daily expander and badge engine treat diet and exercise planning as
black boxes. Anything satisfying the protocols below can be injected.

Reference implementations are provided so the service runs end to end:
- ReferenceDietSolver: Mifflin-St Jeor energy estimate, seasonal produce.
- GuidelineExercisePlanner: weekly template built from ExerciseGoals
  (150 min cardio, 2 strength sessions by default).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .constants import Season
from .snapshot import ExerciseGoals, HealthSnapshot

ACTIVITY_FACTORS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

SEASONAL_FOCUS = {
    Season.SPRING: ["asparagus", "peas", "spinach", "strawberries"],
    Season.SUMMER: ["tomatoes", "berries", "zucchini", "leafy greens"],
    Season.FALL: ["squash", "apples", "sweet potatoes", "brussels sprouts"],
    Season.WINTER: ["citrus", "kale", "root vegetables", "legumes"],
}

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass
class DietPlan:
    season: Season
    calorie_target: float
    protein_grams: float
    focus_foods: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season.value,
            "calorie_target": round(self.calorie_target),
            "protein_grams": round(self.protein_grams),
            "focus_foods": list(self.focus_foods),
        }


@dataclass
class PlannedActivity:
    name: str
    duration_minutes: float
    time_of_day: str = "morning"


@dataclass
class DayPlan:
    day_of_week: str
    activities: List[PlannedActivity] = field(default_factory=list)

    def total_minutes(self) -> float:
        return sum(a.duration_minutes for a in self.activities)


@dataclass
class ExercisePlan:
    weekly_plan: List[DayPlan] = field(default_factory=list)

    def total_minutes(self) -> float:
        return sum(day.total_minutes() for day in self.weekly_plan)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekly_plan": [
                {
                    "day_of_week": day.day_of_week,
                    "activities": [
                        {"name": a.name, "duration_minutes": a.duration_minutes, "time_of_day": a.time_of_day}
                        for a in day.activities
                    ],
                }
                for day in self.weekly_plan
            ],
            "total_minutes": self.total_minutes(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExercisePlan":
        return cls(weekly_plan=[
            DayPlan(
                day_of_week=day["day_of_week"],
                activities=[
                    PlannedActivity(
                        name=a["name"],
                        duration_minutes=float(a["duration_minutes"]),
                        time_of_day=a.get("time_of_day", "morning"),
                    )
                    for a in day.get("activities", [])
                ],
            )
            for day in data.get("weekly_plan", [])
        ])


class DietSolver(Protocol):
    def solve(self, snapshot: HealthSnapshot, season: Season) -> Any: ...


class ExercisePlanner(Protocol):
    def recommend(self, snapshot: HealthSnapshot, goals: Optional[ExerciseGoals]) -> ExercisePlan: ...


class ReferenceDietSolver:
    """Daily energy and protein targets from body metrics."""

    def solve(self, snapshot: HealthSnapshot, season: Season) -> DietPlan:
        bmr = 10 * snapshot.weight_kg + 6.25 * snapshot.height_cm - 5 * snapshot.age
        if snapshot.gender == "male":
            bmr += 5
        elif snapshot.gender == "female":
            bmr -= 161
        else:
            bmr -= 78

        factor = ACTIVITY_FACTORS.get(snapshot.activity_level, ACTIVITY_FACTORS["moderate"])
        lean_mass = snapshot.muscle_mass_kg or snapshot.weight_kg * 0.4

        return DietPlan(
            season=season,
            calorie_target=max(1200.0, bmr * factor),
            protein_grams=max(snapshot.weight_kg * 1.2, lean_mass * 2.2),
            focus_foods=list(SEASONAL_FOCUS[season]),
        )


class GuidelineExercisePlanner:
    """Spread weekly targets across a seven-day template."""

    def recommend(self, snapshot: HealthSnapshot, goals: Optional[ExerciseGoals]) -> ExercisePlan:
        goals = goals or snapshot.exercise_goals or ExerciseGoals()
        days = [DayPlan(day_of_week=name) for name in WEEKDAYS]

        cardio_days = [0, 2, 4, 6]
        per_session = goals.weekly_cardio_minutes / len(cardio_days)
        for i in cardio_days:
            days[i].activities.append(PlannedActivity("Brisk walk or cycling", round(per_session, 1)))

        strength_days = [1, 3, 5][:max(0, goals.weekly_strength_sessions)]
        for i in strength_days:
            days[i].activities.append(PlannedActivity("Full-body strength", 45.0, "afternoon"))

        if goals.weekly_flexibility_minutes > 0:
            per_day = goals.weekly_flexibility_minutes / 7
            for day in days:
                day.activities.append(PlannedActivity("Mobility and stretching", round(per_day, 1), "evening"))

        if goals.weekly_mind_body_minutes > 0:
            yoga_days = [days[5], days[6]]
            for day in yoga_days:
                day.activities.append(PlannedActivity("Yoga", round(goals.weekly_mind_body_minutes / 2, 1), "morning"))

        return ExercisePlan(weekly_plan=days)
