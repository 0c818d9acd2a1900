"""
Health Streak Tracker

"A streak is only as long as its weakest day."

Tracks consecutive calendar days on which the overall health score met
the qualifying threshold (95.0 by default).

- Current streak: anchored on today. If today's record qualifies, walk
  backward one calendar day at a time while each day has a qualifying
  record. No qualifying record today means a current streak of 0.
- Longest streak: scan qualifying records in date order. A run continues
  only when the previous qualifying record is exactly one day earlier.

Records are upserted by calendar day and the history is recomputed in full
on every write, so callers must serialize writes per user.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .config import ConfigService
from .constants import CriteriaType
from .health_score import HealthScoreEngine
from .snapshot import HealthSnapshot

if TYPE_CHECKING:
    from .badges import BadgeCriteria

logger = logging.getLogger(__name__)

STREAK_CRITERIA = frozenset({
    CriteriaType.OUTSTANDING_HEALTH_STREAK,
    CriteriaType.HEALTH_STREAK,
})


@dataclass
class DailyHealthRecord:
    """One scored calendar day."""
    record_date: date
    health_score: float
    met_criteria: bool
    eating_score: Optional[float] = None
    emotional_score: Optional[float] = None

    @classmethod
    def from_scores(
        cls,
        record_date: date,
        health_score: float,
        eating_score: Optional[float] = None,
        emotional_score: Optional[float] = None,
        threshold: Optional[float] = None,
    ) -> "DailyHealthRecord":
        if threshold is None:
            threshold = ConfigService.get_streak_threshold()
        return cls(
            record_date=record_date,
            health_score=health_score,
            eating_score=eating_score,
            emotional_score=emotional_score,
            met_criteria=health_score >= threshold,
        )


@dataclass
class HealthHistory:
    """Date-ordered daily records plus derived streak values."""
    records: List[DailyHealthRecord] = field(default_factory=list)
    current_streak: int = 0
    longest_streak: int = 0
    streak_start_date: Optional[date] = None

    def record_for(self, day: date) -> Optional[DailyHealthRecord]:
        for record in reversed(self.records):
            if record.record_date == day:
                return record
        return None

    def get_streak_days(self, criteria: "BadgeCriteria") -> int:
        if criteria.type in STREAK_CRITERIA:
            return self.current_streak
        return 0


class StreakTracker:
    """
    Maintain a HealthHistory for one user.

    Usage:
        tracker = StreakTracker()
        tracker.add_record(DailyHealthRecord.from_scores(date.today(), 96.0))
        tracker.history.current_streak  # 1
    """

    def __init__(
        self,
        history: Optional[HealthHistory] = None,
        today_provider: Callable[[], date] = date.today,
        score_engine: Optional[HealthScoreEngine] = None,
    ):
        self.history = history if history is not None else HealthHistory()
        self._today = today_provider
        self._engine = score_engine or HealthScoreEngine()

    def add_record(self, record: DailyHealthRecord, today: Optional[date] = None) -> HealthHistory:
        """Upsert by calendar day, then recompute all derived values."""
        by_day: Dict[date, DailyHealthRecord] = {r.record_date: r for r in self.history.records}
        replaced = record.record_date in by_day
        by_day[record.record_date] = record

        self.history.records = [by_day[d] for d in sorted(by_day)]
        self.recompute(today)

        logger.debug(
            f"{'Replaced' if replaced else 'Added'} health record for {record.record_date}: "
            f"score={record.health_score:.1f} met={record.met_criteria} "
            f"current={self.history.current_streak} longest={self.history.longest_streak}"
        )
        return self.history

    def record_snapshot(
        self,
        snapshot: HealthSnapshot,
        on: Optional[date] = None,
        today: Optional[date] = None,
    ) -> DailyHealthRecord:
        """Score a snapshot and upsert it as the record for `on` (default today)."""
        record = DailyHealthRecord.from_scores(
            record_date=on or today or self._today(),
            health_score=self._engine.score(snapshot),
            eating_score=snapshot.eating_score(),
            emotional_score=snapshot.emotional_score(),
        )
        self.add_record(record, today=today)
        return record

    def recompute(self, today: Optional[date] = None) -> HealthHistory:
        today = today or self._today()
        history = self.history

        current, start = self._current_streak(today)
        history.current_streak = current
        history.streak_start_date = start
        history.longest_streak = self._longest_streak()
        return history

    def get_streak_days(self, criteria: "BadgeCriteria") -> int:
        return self.history.get_streak_days(criteria)

    def _current_streak(self, today: date):
        by_day = {r.record_date: r for r in self.history.records}
        today_record = by_day.get(today)
        if today_record is None or not today_record.met_criteria:
            return 0, None

        streak = 1
        start = today_record.record_date
        check = today - timedelta(days=1)
        while True:
            record = by_day.get(check)
            if record is None or not record.met_criteria:
                break
            streak += 1
            start = record.record_date
            check -= timedelta(days=1)

        return streak, start

    def _longest_streak(self) -> int:
        longest = 0
        run = 0
        last: Optional[date] = None

        for record in self.history.records:
            if not record.met_criteria:
                continue
            if last is not None and (record.record_date - last).days == 1:
                run += 1
            else:
                run = 1
            longest = max(longest, run)
            last = record.record_date

        return longest
