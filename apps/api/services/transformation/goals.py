"""
Goal Deriver

Inspects a snapshot and urgency level and proposes transformation goals.
A goal is derived only when its triggering data is present. Priority and
target aggressiveness both scale with urgency:

    low -> gentle (0.5)   medium -> moderate (1.0)
    high -> aggressive (1.5)   critical -> extreme (2.0)

Numeric targets are policy, not contract. What must hold is that a more
urgent plan never asks for less.
"""

import logging
from datetime import date
from typing import List, Optional

from .config import ConfigService
from .constants import (
    ESTIMATED_MUSCLE_FRACTION,
    GoalCategory,
    HIGH_BODY_FAT_PCT,
    URGENCY_PRIORITY_BONUS,
    UrgencyLevel,
)
from .plan_models import TransformationGoal
from .snapshot import HealthSnapshot, LibidoLevel, StressLevel

logger = logging.getLogger(__name__)


class GoalDeriver:
    """Derive TransformationGoals from a snapshot."""

    def derive_goals(
        self,
        snapshot: HealthSnapshot,
        urgency: UrgencyLevel,
        deadline: Optional[date] = None,
    ) -> List[TransformationGoal]:
        multiplier = ConfigService.get_difficulty_multiplier(
            urgency.recommended_difficulty().value
        )
        bonus = URGENCY_PRIORITY_BONUS[urgency]

        def priority(base: int) -> int:
            return max(1, min(10, base + bonus))

        goals: List[TransformationGoal] = []

        weight_goal = self._weight_goal(snapshot, multiplier, priority(7), deadline)
        if weight_goal:
            goals.append(weight_goal)

        goals.append(self._muscle_goal(snapshot, multiplier, priority, deadline))

        latest = snapshot.latest_blood_test
        cholesterol_trigger = ConfigService.get("goals.high_cholesterol_mg_dl", 240.0)
        if latest and latest.total_cholesterol is not None and latest.total_cholesterol > cholesterol_trigger:
            # Desirable total cholesterol is under 200 mg/dL
            target = max(180.0, latest.total_cholesterol - (latest.total_cholesterol - 200.0) * min(1.0, multiplier / 2.0))
            goals.append(TransformationGoal(
                category=GoalCategory.CARDIOVASCULAR,
                description="Improve cardiovascular health and reduce cholesterol",
                priority=priority(7),
                current_value=latest.total_cholesterol,
                target_value=round(target, 1),
                deadline=deadline,
            ))

        mental = snapshot.mental_health
        if mental and mental.stress_level in (StressLevel.HIGH, StressLevel.VERY_HIGH):
            goals.append(TransformationGoal(
                category=GoalCategory.MENTAL_HEALTH,
                description="Reduce stress and improve mental well-being",
                priority=priority(8),
                current_value=mental.stress_level.score,
                target_value=max(0.0, mental.stress_level.score - 25.0 * multiplier),
                deadline=deadline,
            ))

        body_fat_goal = self._body_fat_goal(snapshot, multiplier, priority(6), deadline)
        if body_fat_goal:
            goals.append(body_fat_goal)

        if latest and self._organ_markers_elevated(latest):
            goals.append(TransformationGoal(
                category=GoalCategory.ORGAN_HEALTH,
                description="Support liver and kidney function",
                priority=priority(7),
                deadline=deadline,
            ))

        if latest and self._hormones_out_of_range(latest, snapshot.gender):
            goals.append(TransformationGoal(
                category=GoalCategory.HORMONAL,
                description="Restore hormonal balance",
                priority=priority(6),
                deadline=deadline,
            ))

        if snapshot.cognitive_score is not None and snapshot.cognitive_score < 70.0:
            goals.append(TransformationGoal(
                category=GoalCategory.COGNITIVE,
                description="Sharpen memory and focus",
                priority=priority(5),
                current_value=snapshot.cognitive_score,
                target_value=min(100.0, snapshot.cognitive_score + 10.0 * multiplier),
                deadline=deadline,
            ))

        if snapshot.libido_level == LibidoLevel.LOW:
            goals.append(TransformationGoal(
                category=GoalCategory.SEXUAL_HEALTH,
                description="Improve sexual health and vitality",
                priority=priority(4),
                deadline=deadline,
            ))

        logger.debug(
            f"Derived {len(goals)} goals for urgency={urgency.value}: "
            f"{[g.category.value for g in goals]}"
        )
        return goals

    def _weight_goal(self, snapshot, multiplier, priority, deadline) -> Optional[TransformationGoal]:
        if snapshot.weight_kg <= 0 or snapshot.height_cm <= 0:
            return None

        target_bmi = ConfigService.get("goals.target_bmi", 22.0)
        ideal = target_bmi * (snapshot.height_cm / 100) ** 2
        # Fraction of the gap to close: gentle 25%, moderate 50%, aggressive 75%, extreme 100%
        closure = min(1.0, multiplier / 2.0)
        target = snapshot.weight_kg + (ideal - snapshot.weight_kg) * closure

        return TransformationGoal(
            category=GoalCategory.WEIGHT,
            description=f"Reach a healthy weight of {target:.1f} kg",
            priority=priority,
            current_value=snapshot.weight_kg,
            target_value=round(target, 1),
            deadline=deadline,
        )

    def _muscle_goal(self, snapshot, multiplier, priority, deadline) -> TransformationGoal:
        if snapshot.muscle_mass_kg is not None:
            current = snapshot.muscle_mass_kg
            target = current * (1 + 0.1 * multiplier)
            return TransformationGoal(
                category=GoalCategory.MUSCLE_MASS,
                description=f"Increase muscle mass to {target:.1f} kg",
                priority=priority(7),
                current_value=current,
                target_value=round(target, 1),
                deadline=deadline,
            )

        estimated = snapshot.weight_kg * ESTIMATED_MUSCLE_FRACTION
        target = estimated * (1 + 0.15 * multiplier)
        return TransformationGoal(
            category=GoalCategory.MUSCLE_MASS,
            description=f"Build muscle mass to {target:.1f} kg",
            priority=priority(5),
            current_value=round(estimated, 1),
            target_value=round(target, 1),
            deadline=deadline,
        )

    def _body_fat_goal(self, snapshot, multiplier, priority, deadline) -> Optional[TransformationGoal]:
        if snapshot.body_fat_percentage is None:
            return None

        thresholds = ConfigService.get("goals.high_body_fat_pct", HIGH_BODY_FAT_PCT)
        limit = thresholds.get(snapshot.gender, thresholds.get("other", 28.0))
        if snapshot.body_fat_percentage <= limit:
            return None

        target = max(limit - 3.0, snapshot.body_fat_percentage - 2.5 * multiplier)
        return TransformationGoal(
            category=GoalCategory.BODY_FAT,
            description=f"Lower body fat to {target:.1f}%",
            priority=priority,
            current_value=snapshot.body_fat_percentage,
            target_value=round(target, 1),
            deadline=deadline,
        )

    @staticmethod
    def _organ_markers_elevated(test) -> bool:
        return (
            (test.alt is not None and test.alt > 40.0)
            or (test.ast is not None and test.ast > 40.0)
            or (test.egfr is not None and test.egfr < 60.0)
        )

    @staticmethod
    def _hormones_out_of_range(test, gender: str) -> bool:
        if test.tsh is not None and not 0.4 <= test.tsh <= 4.5:
            return True
        if gender == "male" and test.testosterone is not None and test.testosterone < 300.0:
            return True
        return False
