"""
Milestone Scheduler

Places calibration checkpoints across a plan. Count is
min(6, months // 2), at least one. Checkpoints are evenly spaced so the
last one lands on the plan's end date, and each carries the interpolated
value every numeric goal is expected to have reached by then.
"""

import logging
from datetime import timedelta
from typing import Dict, List

from .plan_models import LongTermPlan, Milestone, TransformationGoal

logger = logging.getLogger(__name__)

MAX_MILESTONES = 6


class MilestoneScheduler:

    def schedule(self, plan: LongTermPlan) -> List[Milestone]:
        months = plan.duration.months
        count = max(1, min(MAX_MILESTONES, months // 2))
        total_days = plan.duration_days

        milestones = []
        for index in range(1, count + 1):
            progress = index / count
            offset = round(total_days * progress)
            if (months * index) % count == 0:
                name = f"{months * index // count}-Month Milestone"
            else:
                name = f"Day {offset} Milestone"

            milestones.append(Milestone(
                name=name,
                target_date=plan.start_date + timedelta(days=offset),
                description=f"Assess progress at {int(progress * 100)}% of plan",
                metrics=self._metrics(progress, plan.goals),
            ))

        logger.debug(f"Scheduled {len(milestones)} milestones for plan {plan.id}")
        return milestones

    @staticmethod
    def _metrics(progress: float, goals: List[TransformationGoal]) -> Dict[str, float]:
        metrics = {}
        for goal in goals:
            expected = goal.expected_value_at(progress)
            if expected is not None:
                metrics[goal.category.value] = round(expected, 2)
        return metrics
