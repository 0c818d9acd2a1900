"""
Tests for the daily plan expansion Celery task.

Tasks run eagerly in tests (CELERY_TASK_ALWAYS_EAGER).
"""
from datetime import date
from core.config import settings
from schemas import HealthSnapshotSchema
from services.transformation import LongTermPlanner, PlanDuration, UrgencyLevel
from tasks.plan_tasks import expand_daily_plan_task
from fixtures.snapshot_fixtures import SNAPSHOT_PAYLOAD


def plan_dict(duration=PlanDuration.THREE_MONTHS):
    snapshot = HealthSnapshotSchema(**SNAPSHOT_PAYLOAD).to_domain()
    return LongTermPlanner().generate_plan(snapshot, UrgencyLevel.HIGH, duration, date(2026, 2, 1)).to_dict()


class TestExpandDailyPlanTask:

    def test_full_expansion(self):
        plan = plan_dict()
        result = expand_daily_plan_task.apply(args=[plan, SNAPSHOT_PAYLOAD, "summer"]).get()

        assert result["status"] == "complete"
        assert result["plan_id"] == plan["id"]
        assert len(result["entries"]) == 90
        assert result["entries"][-1]["date"] == "2026-05-01"

    def test_preview_window(self):
        result = expand_daily_plan_task.apply(args=[plan_dict(), SNAPSHOT_PAYLOAD, "fall", 5]).get()
        assert [e["day_number"] for e in result["entries"]] == [1, 2, 3, 4, 5]

    def test_deadline_returns_partial(self, monkeypatch):
        monkeypatch.setattr(settings, "DAILY_PLAN_SOFT_TIME_LIMIT_S", -1)
        result = expand_daily_plan_task.apply(args=[plan_dict(), SNAPSHOT_PAYLOAD, "winter"]).get()

        assert result["status"] == "partial"
        assert result["entries"] == []

    def test_delay_runs_eagerly(self):
        async_result = expand_daily_plan_task.delay(plan_dict(), SNAPSHOT_PAYLOAD, "spring", 2)
        assert async_result.get()["status"] == "complete"
