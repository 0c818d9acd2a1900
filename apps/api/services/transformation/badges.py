"""
Badge Evaluation

Evaluates a static badge catalog against a snapshot, a weekly exercise
plan and the streak history.

Progress by criteria type:
- health/vision/hearing/tactile/tongue score: min(sub_score / target, 1),
  0 when the analysis is absent
- weekly exercise: min(total planned minutes / target, 1)
- eating/emotional score: min(summary score / target, 1), 0 without samples
- outstanding health streak: min(streak days / target, 1); the
  "grandmaster" and "world_grandmaster" conditions force 0 unless
  eating >= 85 and emotional >= 90
- everything needing a historical series: 0, unless a
  HistoricalSeriesProvider is supplied

Earned state is monotonic. A badge id enters EarnedBadgeState the first
time its progress reaches 1.0 and is never removed here.

BadgeView.earned_date is only set on the pass where the badge first
becomes earned; later passes report None even though `earned` stays True.
The durable first-earn timestamp is EarnedBadgeState.first_earned_at.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Protocol, Set

from .config import ConfigService
from .constants import (
    BadgeCategory,
    BadgeLevel,
    CriteriaType,
    GATED_STREAK_CONDITIONS,
    HISTORICAL_CRITERIA,
)
from .health_score import HealthScoreEngine
from .snapshot import HealthSnapshot
from .streaks import HealthHistory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeCriteria:
    type: CriteriaType
    target: float
    duration_days: Optional[int] = None
    condition: Optional[str] = None


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    category: BadgeCategory
    level: BadgeLevel
    icon: str
    color_hex: str
    criteria: BadgeCriteria

    @property
    def requires_certificate(self) -> bool:
        return self.level.requires_certificate

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "level": self.level.value,
            "level_display_name": self.level.display_name,
            "reward_multiplier": self.level.multiplier,
            "requires_certificate": self.requires_certificate,
            "icon": self.icon,
            "color_hex": self.color_hex,
            "criteria": {
                "type": self.criteria.type.value,
                "target": self.criteria.target,
                "duration_days": self.criteria.duration_days,
                "condition": self.criteria.condition,
            },
        }


def _badge(badge_id, name, description, category, level, icon, color, criteria) -> BadgeDefinition:
    return BadgeDefinition(badge_id, name, description, category, level, icon, color, criteria)


def default_catalog() -> List[BadgeDefinition]:
    """The fixed badge catalog. Ids are stable across releases."""
    C = CriteriaType
    return [
        _badge("nutrition_master", "Nutrition Master", "Maintain optimal nutrition for 30 consecutive days",
               BadgeCategory.NUTRITION, BadgeLevel.GOLD, "fork.knife", "#FFD700",
               BadgeCriteria(C.CONSISTENCY, 30, 30, "nutrition")),
        _badge("calorie_champion", "Calorie Champion", "Meet daily calorie goals for 7 days",
               BadgeCategory.NUTRITION, BadgeLevel.BRONZE, "flame.fill", "#CD7F32",
               BadgeCriteria(C.DAILY_CALORIES, 7, 7)),
        _badge("fitness_warrior", "Fitness Warrior", "Complete 100 exercise sessions",
               BadgeCategory.EXERCISE, BadgeLevel.PLATINUM, "figure.run", "#E5E4E2",
               BadgeCriteria(C.TOTAL_MEALS, 100, None, "exercise")),
        _badge("cardio_king", "Cardio King", "Complete 500 minutes of cardio in a week",
               BadgeCategory.EXERCISE, BadgeLevel.GOLD, "heart.fill", "#FFD700",
               BadgeCriteria(C.WEEKLY_EXERCISE, 500, 7, "cardio")),
        _badge("perfect_vision", "Perfect Vision", "Maintain excellent vision health for 90 days",
               BadgeCategory.HEALTH, BadgeLevel.DIAMOND, "eye.fill", "#B9F2FF",
               BadgeCriteria(C.VISION_SCORE, 90, 90, "excellent")),
        _badge("eagle_ears", "Eagle Ears", "Maintain excellent hearing health for 90 days",
               BadgeCategory.HEALTH, BadgeLevel.DIAMOND, "ear.fill", "#B9F2FF",
               BadgeCriteria(C.HEARING_SCORE, 90, 90, "excellent")),
        _badge("touch_master", "Touch Master", "Maintain excellent tactile health for 90 days",
               BadgeCategory.HEALTH, BadgeLevel.DIAMOND, "hand.tap.fill", "#B9F2FF",
               BadgeCriteria(C.TACTILE_SCORE, 90, 90, "excellent")),
        _badge("taste_expert", "Taste Expert", "Maintain excellent tongue health for 90 days",
               BadgeCategory.HEALTH, BadgeLevel.DIAMOND, "mouth.fill", "#B9F2FF",
               BadgeCriteria(C.TONGUE_SCORE, 90, 90, "excellent")),
        _badge("streak_master", "Streak Master", "Maintain a 100-day streak",
               BadgeCategory.CONSISTENCY, BadgeLevel.PLATINUM, "flame.fill", "#E5E4E2",
               BadgeCriteria(C.CONSECUTIVE_DAYS, 100, 100)),
        _badge("outstanding_health", "Outstanding Health", "Achieve an overall health score of 95+",
               BadgeCategory.ACHIEVEMENT, BadgeLevel.DIAMOND, "star.fill", "#B9F2FF",
               BadgeCriteria(C.HEALTH_SCORE, 95)),
        _badge("great_health", "Great Health", "Achieve an overall health score of 85+",
               BadgeCategory.ACHIEVEMENT, BadgeLevel.GOLD, "star.fill", "#FFD700",
               BadgeCriteria(C.HEALTH_SCORE, 85)),
        _badge("usa_master", "USA Master of Health",
               "Maintain outstanding health (95+ score) for 365 consecutive days in USA",
               BadgeCategory.ACHIEVEMENT, BadgeLevel.USA_MASTER, "star.circle.fill", "#1E90FF",
               BadgeCriteria(C.OUTSTANDING_HEALTH_STREAK, 365, 365, "usa")),
        _badge("international_master", "International Master of Health",
               "Maintain outstanding health (95+ score) for 365 consecutive days internationally",
               BadgeCategory.ACHIEVEMENT, BadgeLevel.INTERNATIONAL_MASTER, "globe.americas.fill", "#4169E1",
               BadgeCriteria(C.OUTSTANDING_HEALTH_STREAK, 365, 365, "international")),
        _badge("grandmaster", "Grandmaster of Health",
               "Maintain outstanding health (95+ score) for 730 consecutive days "
               "with excellent eating and emotional health",
               BadgeCategory.ACHIEVEMENT, BadgeLevel.GRANDMASTER, "crown.fill", "#FFD700",
               BadgeCriteria(C.OUTSTANDING_HEALTH_STREAK, 730, 730, "grandmaster")),
        _badge("world_grandmaster", "World Grandmaster of Health",
               "Maintain outstanding health (95+ score) for 1095 consecutive days "
               "with perfect eating metrics and emotional health",
               BadgeCategory.ACHIEVEMENT, BadgeLevel.WORLD_GRANDMASTER, "star.circle.fill", "#FF1493",
               BadgeCriteria(C.OUTSTANDING_HEALTH_STREAK, 1095, 1095, "world_grandmaster")),
        _badge("optimal_eater", "Optimal Eater", "Maintain optimal eating speed and chewing habits for 30 days",
               BadgeCategory.WELLNESS, BadgeLevel.GOLD, "fork.knife.circle.fill", "#FFD700",
               BadgeCriteria(C.EATING_SCORE, 85, 30)),
        _badge("emotional_master", "Emotional Master", "Maintain excellent emotional health (90+ score) for 90 days",
               BadgeCategory.WELLNESS, BadgeLevel.PLATINUM, "heart.circle.fill", "#E5E4E2",
               BadgeCriteria(C.EMOTIONAL_SCORE, 90, 90)),
    ]


class BadgeCatalog:
    """Read-only catalog, loaded once per process."""

    def __init__(self, badges: Optional[Iterable[BadgeDefinition]] = None):
        self._badges = list(badges) if badges is not None else default_catalog()
        self._by_id = {b.id: b for b in self._badges}
        if len(self._by_id) != len(self._badges):
            raise ValueError("Badge ids must be unique")

    def __iter__(self):
        return iter(self._badges)

    def __len__(self) -> int:
        return len(self._badges)

    def get(self, badge_id: str) -> Optional[BadgeDefinition]:
        return self._by_id.get(badge_id)

    def by_category(self, category: BadgeCategory) -> List[BadgeDefinition]:
        return [b for b in self._badges if b.category == category]


class EarnedBadgeState:
    """
    Per-user monotonic set of earned badge ids.

    Insertions are guarded by a lock so concurrent evaluations for the same
    user agree on which pass earned a badge first.
    """

    def __init__(self, first_earned_at: Optional[Dict[str, datetime]] = None):
        self._first_earned_at: Dict[str, datetime] = dict(first_earned_at or {})
        self._lock = threading.Lock()

    @property
    def earned_ids(self) -> Set[str]:
        with self._lock:
            return set(self._first_earned_at)

    @property
    def first_earned_at(self) -> Dict[str, datetime]:
        with self._lock:
            return dict(self._first_earned_at)

    def __contains__(self, badge_id: str) -> bool:
        with self._lock:
            return badge_id in self._first_earned_at

    def mark_earned(self, badge_id: str, when: datetime) -> bool:
        """Insert if absent. Returns True only for the first insertion."""
        with self._lock:
            if badge_id in self._first_earned_at:
                return False
            self._first_earned_at[badge_id] = when
            return True


class HistoricalSeriesProvider(Protocol):
    """Supplies progress for criteria that need a time series."""

    def progress(self, badge: BadgeDefinition, history: Optional[HealthHistory]) -> Optional[float]: ...


@dataclass
class BadgeView:
    badge: BadgeDefinition
    progress: float
    earned: bool
    earned_date: Optional[datetime] = None
    first_earned_at: Optional[datetime] = None

    @property
    def display_progress(self) -> str:
        if self.earned:
            return "Earned"
        return f"{int(self.progress * 100)}%"

    def to_dict(self) -> Dict:
        data = self.badge.to_dict()
        data.update({
            "progress": round(self.progress, 4),
            "display_progress": self.display_progress,
            "earned": self.earned,
            "earned_date": self.earned_date.isoformat() if self.earned_date else None,
            "first_earned_at": self.first_earned_at.isoformat() if self.first_earned_at else None,
        })
        return data


class BadgeEvaluationEngine:

    def __init__(
        self,
        score_engine: Optional[HealthScoreEngine] = None,
        series_provider: Optional[HistoricalSeriesProvider] = None,
    ):
        self.score_engine = score_engine or HealthScoreEngine()
        self.series_provider = series_provider

    def evaluate(
        self,
        catalog: Iterable[BadgeDefinition],
        snapshot: Optional[HealthSnapshot],
        exercise_plan,
        history: Optional[HealthHistory],
        earned_state: EarnedBadgeState,
        now: Optional[datetime] = None,
    ) -> List[BadgeView]:
        now = now or datetime.now(timezone.utc)
        views = []

        for badge in catalog:
            progress = min(max(self.progress(badge, snapshot, exercise_plan, history), 0.0), 1.0)
            newly_earned = progress >= 1.0 and earned_state.mark_earned(badge.id, now)
            if newly_earned:
                logger.info(f"Badge earned: {badge.id} ({badge.level.value})")

            views.append(BadgeView(
                badge=badge,
                progress=progress,
                earned=badge.id in earned_state,
                earned_date=now if newly_earned else None,
                first_earned_at=earned_state.first_earned_at.get(badge.id),
            ))

        return views

    def progress(self, badge: BadgeDefinition, snapshot, exercise_plan, history) -> float:
        criteria = badge.criteria
        kind = criteria.type
        target = criteria.target
        if target <= 0:
            return 1.0

        if kind == CriteriaType.HEALTH_SCORE:
            return min(self.score_engine.score(snapshot) / target, 1.0)

        if kind in _SUB_SCORERS:
            attribute, scorer = _SUB_SCORERS[kind]
            analysis = getattr(snapshot, attribute, None) if snapshot is not None else None
            if analysis is None:
                return 0.0
            return min(getattr(self.score_engine, scorer)(analysis) / target, 1.0)

        if kind == CriteriaType.WEEKLY_EXERCISE:
            if exercise_plan is None:
                return 0.0
            return min(exercise_plan.total_minutes() / target, 1.0)

        if kind == CriteriaType.EATING_SCORE:
            score = snapshot.eating_score() if snapshot is not None else None
            return 0.0 if score is None else min(score / target, 1.0)

        if kind == CriteriaType.EMOTIONAL_SCORE:
            score = snapshot.emotional_score() if snapshot is not None else None
            return 0.0 if score is None else min(score / target, 1.0)

        if kind == CriteriaType.OUTSTANDING_HEALTH_STREAK:
            if criteria.condition in GATED_STREAK_CONDITIONS and not self._passes_grandmaster_gate(snapshot):
                return 0.0
            streak_days = history.get_streak_days(criteria) if history is not None else 0
            return min(streak_days / target, 1.0)

        if kind in HISTORICAL_CRITERIA:
            if self.series_provider is None:
                return 0.0
            value = self.series_provider.progress(badge, history)
            return 0.0 if value is None else value

        return 0.0

    @staticmethod
    def _passes_grandmaster_gate(snapshot: Optional[HealthSnapshot]) -> bool:
        eating = (snapshot.eating_score() if snapshot is not None else None) or 0.0
        emotional = (snapshot.emotional_score() if snapshot is not None else None) or 0.0
        min_eating = ConfigService.get("badges.grandmaster_min_eating_score", 85.0)
        min_emotional = ConfigService.get("badges.grandmaster_min_emotional_score", 90.0)
        return eating >= min_eating and emotional >= min_emotional


_SUB_SCORERS = {
    CriteriaType.VISION_SCORE: ("vision_analysis", "vision_score"),
    CriteriaType.HEARING_SCORE: ("hearing_analysis", "hearing_score"),
    CriteriaType.TACTILE_SCORE: ("tactile_analysis", "tactile_score"),
    CriteriaType.TONGUE_SCORE: ("tongue_analysis", "tongue_score"),
}
