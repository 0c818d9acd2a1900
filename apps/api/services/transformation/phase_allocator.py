"""
Phase Allocator

Splits a plan's days into 3-6 named phases.

    phase_count = min(6, max(3, months // 2))
    days_per_phase = duration_days // phase_count

Every phase but the last spans `days_per_phase` days; the last absorbs the
remainder so the final phase always ends exactly on `duration_days`.
Phases are contiguous: phases[i].end_day + 1 == phases[i + 1].start_day.
"""

import logging
from typing import List

from .config import ConfigService
from .constants import DifficultyLevel, PHASE_NAMES, PlanDuration
from .plan_models import PlanPhase

logger = logging.getLogger(__name__)

MIN_PHASES = 3
MAX_PHASES = 6


class PhaseAllocator:
    """Partition plan days into ordered, non-overlapping phases."""

    def allocate(self, duration_days: int, difficulty: DifficultyLevel) -> List[PlanPhase]:
        count = self.phase_count(duration_days)
        names = ConfigService.get("phases.names", PHASE_NAMES) or PHASE_NAMES
        days_per_phase = duration_days // count

        phases = []
        for index in range(count):
            start_day = index * days_per_phase + 1
            end_day = duration_days if index == count - 1 else (index + 1) * days_per_phase
            phases.append(PlanPhase(
                name=names[min(index, len(names) - 1)],
                start_day=start_day,
                end_day=end_day,
                focus=self._focus(index, count),
                diet_adjustments=self._diet_adjustments(difficulty),
                exercise_adjustments=self._exercise_adjustments(difficulty),
                supplement_recommendations=self._supplements(difficulty),
                mindfulness_scale=round(1.0 + 0.1 * index, 2),
            ))

        logger.debug(
            f"Allocated {count} phases over {duration_days} days "
            f"({days_per_phase} days each, difficulty={difficulty.value})"
        )
        return phases

    @staticmethod
    def phase_count(duration_days: int) -> int:
        try:
            months = PlanDuration.from_days(duration_days).months
        except ValueError:
            months = max(1, round(duration_days / 30))
        count = min(MAX_PHASES, max(MIN_PHASES, months // 2))
        # Never produce a phase shorter than one day
        return max(1, min(count, duration_days))

    @staticmethod
    def _focus(index: int, total: int) -> str:
        if index == 0:
            return "Establish healthy habits and baseline"
        if index < total // 2:
            return "Build strength and endurance"
        return "Optimize and refine performance"

    @staticmethod
    def _diet_adjustments(difficulty: DifficultyLevel) -> List[str]:
        adjustments = ["Gradual calorie adjustment", "Increase protein intake"]
        if difficulty in (DifficultyLevel.AGGRESSIVE, DifficultyLevel.EXTREME):
            adjustments.append("Strict macronutrient tracking")
        return adjustments

    @staticmethod
    def _exercise_adjustments(difficulty: DifficultyLevel) -> List[str]:
        adjustments = ["Progressive overload", "Recovery days"]
        if difficulty == DifficultyLevel.EXTREME:
            adjustments.append("High-intensity training")
        return adjustments

    @staticmethod
    def _supplements(difficulty: DifficultyLevel) -> List[str]:
        supplements = ["Multivitamin", "Omega-3"]
        if difficulty in (DifficultyLevel.AGGRESSIVE, DifficultyLevel.EXTREME):
            supplements.append("Protein supplement")
        return supplements
