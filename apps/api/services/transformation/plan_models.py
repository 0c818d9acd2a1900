"""
Long-term plan data structures.

Goals and phases are frozen once a plan is built; a re-plan creates new
ones. Milestones stay mutable so a confirmed checkpoint can flip its
`achieved` flag.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from .constants import DifficultyLevel, GoalCategory, PlanDuration, UrgencyLevel


@dataclass(frozen=True)
class TransformationGoal:
    category: GoalCategory
    description: str
    priority: int  # 1-10
    current_value: Optional[float] = None
    target_value: Optional[float] = None
    deadline: Optional[date] = None
    id: UUID = field(default_factory=uuid4)

    def expected_value_at(self, progress: float) -> Optional[float]:
        """Linear interpolation from current to target at `progress` (0-1)."""
        if self.current_value is None or self.target_value is None:
            return None
        return self.current_value + (self.target_value - self.current_value) * progress


@dataclass(frozen=True)
class PlanPhase:
    """Inclusive day range [start_day, end_day] within the plan."""
    name: str
    start_day: int
    end_day: int
    focus: str
    diet_adjustments: List[str] = field(default_factory=list)
    exercise_adjustments: List[str] = field(default_factory=list)
    supplement_recommendations: List[str] = field(default_factory=list)
    mindfulness_scale: float = 1.0
    id: UUID = field(default_factory=uuid4)

    @property
    def length_days(self) -> int:
        return self.end_day - self.start_day + 1

    def contains(self, day_number: int) -> bool:
        return self.start_day <= day_number <= self.end_day


@dataclass
class Milestone:
    name: str
    target_date: date
    description: str
    metrics: Dict[str, float] = field(default_factory=dict)
    achieved: bool = False
    id: UUID = field(default_factory=uuid4)


@dataclass
class LongTermPlan:
    duration: PlanDuration
    difficulty: DifficultyLevel
    urgency: UrgencyLevel
    start_date: date
    goals: List[TransformationGoal] = field(default_factory=list)
    phases: List[PlanPhase] = field(default_factory=list)
    milestones: List[Milestone] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)

    @property
    def duration_days(self) -> int:
        return self.duration.days

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.duration.days)

    def phase_for_day(self, day_number: int) -> Optional[PlanPhase]:
        for phase in self.phases:
            if phase.contains(day_number):
                return phase
        return None

    def goal_for(self, category: GoalCategory) -> Optional[TransformationGoal]:
        for goal in self.goals:
            if goal.category == category:
                return goal
        return None

    def mark_milestone_achieved(self, milestone_id: UUID) -> bool:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                milestone.achieved = True
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": str(self.id),
            "duration": self.duration.value,
            "duration_days": self.duration_days,
            "difficulty": self.difficulty.value,
            "urgency": self.urgency.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "goals": [
                {
                    "id": str(g.id),
                    "category": g.category.value,
                    "description": g.description,
                    "priority": g.priority,
                    "current_value": g.current_value,
                    "target_value": g.target_value,
                    "deadline": g.deadline.isoformat() if g.deadline else None,
                }
                for g in self.goals
            ],
            "phases": [
                {
                    "id": str(p.id),
                    "name": p.name,
                    "start_day": p.start_day,
                    "end_day": p.end_day,
                    "focus": p.focus,
                    "diet_adjustments": list(p.diet_adjustments),
                    "exercise_adjustments": list(p.exercise_adjustments),
                    "supplement_recommendations": list(p.supplement_recommendations),
                    "mindfulness_scale": p.mindfulness_scale,
                }
                for p in self.phases
            ],
            "milestones": [
                {
                    "id": str(m.id),
                    "name": m.name,
                    "target_date": m.target_date.isoformat(),
                    "description": m.description,
                    "metrics": dict(m.metrics),
                    "achieved": m.achieved,
                }
                for m in self.milestones
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LongTermPlan":
        return cls(
            id=UUID(data["id"]),
            duration=PlanDuration(data["duration"]),
            difficulty=DifficultyLevel(data["difficulty"]),
            urgency=UrgencyLevel(data["urgency"]),
            start_date=date.fromisoformat(data["start_date"]),
            goals=[
                TransformationGoal(
                    id=UUID(g["id"]),
                    category=GoalCategory(g["category"]),
                    description=g["description"],
                    priority=g["priority"],
                    current_value=g.get("current_value"),
                    target_value=g.get("target_value"),
                    deadline=date.fromisoformat(g["deadline"]) if g.get("deadline") else None,
                )
                for g in data.get("goals", [])
            ],
            phases=[
                PlanPhase(
                    id=UUID(p["id"]),
                    name=p["name"],
                    start_day=p["start_day"],
                    end_day=p["end_day"],
                    focus=p["focus"],
                    diet_adjustments=list(p.get("diet_adjustments", [])),
                    exercise_adjustments=list(p.get("exercise_adjustments", [])),
                    supplement_recommendations=list(p.get("supplement_recommendations", [])),
                    mindfulness_scale=p.get("mindfulness_scale", 1.0),
                )
                for p in data.get("phases", [])
            ],
            milestones=[
                Milestone(
                    id=UUID(m["id"]),
                    name=m["name"],
                    target_date=date.fromisoformat(m["target_date"]),
                    description=m["description"],
                    metrics=dict(m.get("metrics", {})),
                    achieved=m.get("achieved", False),
                )
                for m in data.get("milestones", [])
            ],
        )
