"""
Daily Plan Expansion Tasks

Long plans (up to 3650 days) are expanded off the request path. The task
rebuilds the plan and snapshot from their JSON forms, runs the expander
under the configured deadline and returns serialized entries.
"""

from typing import Any, Dict, Optional
from celery import Task
from core.config import settings
from tasks import celery_app
from schemas import HealthSnapshotSchema
from services.transformation import (
    DailyPlanExpander,
    LongTermPlan,
    PlanExpansionTimeout,
    Season,
)
import logging

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.expand_daily_plan", bind=True)
def expand_daily_plan_task(
    self: Task,
    plan: Dict[str, Any],
    snapshot: Dict[str, Any],
    season: str,
    max_days: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Expand a serialized LongTermPlan into daily entries.

    Returns {"status": "complete" | "partial", "plan_id", "entries": [...]}.
    A partial result means the deadline elapsed first.
    """
    long_term_plan = LongTermPlan.from_dict(plan)
    health_snapshot = HealthSnapshotSchema(**snapshot).to_domain()

    expander = DailyPlanExpander()
    try:
        entries = expander.expand(
            long_term_plan,
            health_snapshot,
            Season(season),
            max_days=max_days,
            deadline_s=settings.DAILY_PLAN_SOFT_TIME_LIMIT_S,
        )
        status = "complete"
    except PlanExpansionTimeout as e:
        logger.warning(f"Task {self.request.id}: {e}")
        entries = e.entries
        status = "partial"

    return {
        "status": status,
        "plan_id": str(long_term_plan.id),
        "entries": [entry.to_dict() for entry in entries],
    }
