"""
Long-Term Planner

Composes goal derivation, phase allocation and milestone scheduling into a
LongTermPlan.

Usage:
    planner = LongTermPlanner()
    plan = planner.generate_plan(snapshot, UrgencyLevel.HIGH)
    plan.duration  # PlanDuration.THREE_MONTHS (recommended for high urgency)
"""

import logging
from datetime import date
from typing import Optional

from .constants import PlanDuration, UrgencyLevel
from .goals import GoalDeriver
from .milestones import MilestoneScheduler
from .phase_allocator import PhaseAllocator
from .plan_models import LongTermPlan
from .snapshot import HealthSnapshot

logger = logging.getLogger(__name__)


class LongTermPlanner:

    def __init__(
        self,
        goal_deriver: Optional[GoalDeriver] = None,
        phase_allocator: Optional[PhaseAllocator] = None,
        milestone_scheduler: Optional[MilestoneScheduler] = None,
    ):
        self.goal_deriver = goal_deriver or GoalDeriver()
        self.phase_allocator = phase_allocator or PhaseAllocator()
        self.milestone_scheduler = milestone_scheduler or MilestoneScheduler()

    def generate_plan(
        self,
        snapshot: HealthSnapshot,
        urgency: UrgencyLevel,
        duration: Optional[PlanDuration] = None,
        start_date: Optional[date] = None,
    ) -> LongTermPlan:
        """
        Build a plan. Difficulty always follows urgency; duration defaults
        to the urgency's recommendation.
        """
        duration = duration or urgency.recommended_duration()
        difficulty = urgency.recommended_difficulty()
        start_date = start_date or date.today()

        plan = LongTermPlan(
            duration=duration,
            difficulty=difficulty,
            urgency=urgency,
            start_date=start_date,
        )
        plan.goals = self.goal_deriver.derive_goals(snapshot, urgency, deadline=plan.end_date)
        plan.phases = self.phase_allocator.allocate(duration.days, difficulty)
        plan.milestones = self.milestone_scheduler.schedule(plan)

        logger.info(
            f"Generated {duration.value} plan {plan.id}: difficulty={difficulty.value}, "
            f"{len(plan.goals)} goals, {len(plan.phases)} phases, {len(plan.milestones)} milestones"
        )
        return plan

    def replan(self, plan: LongTermPlan, snapshot: HealthSnapshot, start_date: Optional[date] = None) -> LongTermPlan:
        """Fresh plan with new goals for the same urgency and duration. Milestone flags are not carried over."""
        return self.generate_plan(snapshot, plan.urgency, plan.duration, start_date)
