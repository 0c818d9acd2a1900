"""
Health Snapshot

Point-in-time aggregate of a user's measurements. Owned by the caller and
treated as read-only; the daily expander derives adjusted copies with
dataclasses.replace().

The eating and emotional summaries live here too: they fold raw samples
into the 0-100 scores consumed by streaks and badges.
"""

import statistics
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Dict

from .constants import (
    EMOTIONAL_WEIGHTS,
    OPTIMAL_BITES_PER_MINUTE,
    OPTIMAL_CHEWS_PER_BITE,
    OPTIMAL_MEAL_MINUTES,
)


class StressLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def score(self) -> float:
        return {"none": 0.0, "low": 25.0, "moderate": 50.0, "high": 75.0, "very_high": 100.0}[self.value]


class AnxietyLevel(str, Enum):
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    EXTREME = "extreme"

    @property
    def score(self) -> float:
        return {"none": 0.0, "mild": 25.0, "moderate": 50.0, "severe": 75.0, "extreme": 100.0}[self.value]


class FivePointLevel(str, Enum):
    """Happiness, energy and social connection share this scale."""
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def score(self) -> float:
        return {"very_low": 20.0, "low": 40.0, "moderate": 60.0, "high": 80.0, "very_high": 100.0}[self.value]


class EyeStrain(str, Enum):
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class LibidoLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


@dataclass
class BloodTest:
    """Lab panel. Every marker is optional."""
    test_date: Optional[date] = None
    total_cholesterol: Optional[float] = None  # mg/dL
    ldl_cholesterol: Optional[float] = None    # mg/dL
    hdl_cholesterol: Optional[float] = None    # mg/dL
    triglycerides: Optional[float] = None      # mg/dL
    glucose: Optional[float] = None            # mg/dL
    hba1c: Optional[float] = None              # %
    hemoglobin: Optional[float] = None         # g/dL
    vitamin_d: Optional[float] = None          # ng/mL
    vitamin_b12: Optional[float] = None        # pg/mL
    ferritin: Optional[float] = None           # ng/mL
    magnesium: Optional[float] = None          # mg/dL
    alt: Optional[float] = None                # U/L
    ast: Optional[float] = None                # U/L
    egfr: Optional[float] = None               # mL/min/1.73m2
    tsh: Optional[float] = None                # mIU/L
    testosterone: Optional[float] = None       # ng/dL
    crp: Optional[float] = None                # mg/L


@dataclass
class EyeAnalysis:
    average_acuity: Optional[float] = None
    average_strain: Optional[EyeStrain] = None


@dataclass
class VisionAnalysis:
    right_eye: Optional[EyeAnalysis] = None
    left_eye: Optional[EyeAnalysis] = None


@dataclass
class HearingAnalysis:
    average_threshold_db: Optional[float] = None  # dB HL, lower is better


@dataclass
class TactileAnalysis:
    average_sensitivity: Optional[float] = None  # 0-1


@dataclass
class TongueAnalysis:
    average_taste_score: Optional[float] = None     # 0-1
    average_mobility_score: Optional[float] = None  # 0-1


@dataclass
class MentalHealth:
    stress_level: StressLevel = StressLevel.MODERATE
    anxiety_level: AnxietyLevel = AnxietyLevel.NONE
    in_therapy: bool = False


@dataclass
class EatingMetric:
    """One observed meal."""
    duration_minutes: float
    total_bites: int
    total_chews: int
    meal_date: Optional[date] = None

    @property
    def bites_per_minute(self) -> float:
        if self.duration_minutes <= 0:
            return 0.0
        return self.total_bites / self.duration_minutes

    @property
    def chews_per_minute(self) -> float:
        if self.duration_minutes <= 0:
            return 0.0
        return self.total_chews / self.duration_minutes

    @property
    def chews_per_bite(self) -> float:
        if self.total_bites <= 0:
            return 0.0
        return self.total_chews / self.total_bites

    @property
    def bites_per_chew(self) -> float:
        if self.total_chews <= 0:
            return 0.0
        return self.total_bites / self.total_chews


@dataclass
class EmotionalEntry:
    """One emotional check-in."""
    mood_score: float  # 0-100
    stress_level: StressLevel = StressLevel.MODERATE
    anxiety_level: AnxietyLevel = AnxietyLevel.NONE
    happiness_level: FivePointLevel = FivePointLevel.MODERATE
    energy_level: FivePointLevel = FivePointLevel.MODERATE
    social_connection: FivePointLevel = FivePointLevel.MODERATE
    entry_date: Optional[date] = None

    @property
    def overall_score(self) -> float:
        score = (
            self.mood_score * EMOTIONAL_WEIGHTS["mood"]
            + (100.0 - self.stress_level.score) * EMOTIONAL_WEIGHTS["stress"]
            + (100.0 - self.anxiety_level.score) * EMOTIONAL_WEIGHTS["anxiety"]
            + self.happiness_level.score * EMOTIONAL_WEIGHTS["happiness"]
            + self.energy_level.score * EMOTIONAL_WEIGHTS["energy"]
            + self.social_connection.score * EMOTIONAL_WEIGHTS["social"]
        )
        return min(max(score, 0.0), 100.0)


@dataclass
class ExerciseLog:
    log_date: date
    total_minutes: float = 0.0
    calories_burned: float = 0.0


@dataclass
class ExerciseGoals:
    weekly_cardio_minutes: float = 150.0
    weekly_strength_sessions: int = 2
    weekly_flexibility_minutes: float = 60.0
    weekly_mind_body_minutes: float = 120.0
    target_muscle_mass_kg: Optional[float] = None


@dataclass
class HealthSnapshot:
    """Point-in-time aggregate of a user's health measurements."""
    age: int
    gender: str  # male | female | other
    weight_kg: float
    height_cm: float
    activity_level: str = "moderate"

    muscle_mass_kg: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    cognitive_score: Optional[float] = None  # 0-100
    libido_level: Optional[LibidoLevel] = None
    mental_health: Optional[MentalHealth] = None

    blood_tests: List[BloodTest] = field(default_factory=list)

    vision_analysis: Optional[VisionAnalysis] = None
    hearing_analysis: Optional[HearingAnalysis] = None
    tactile_analysis: Optional[TactileAnalysis] = None
    tongue_analysis: Optional[TongueAnalysis] = None

    eating_metrics: List[EatingMetric] = field(default_factory=list)
    emotional_entries: List[EmotionalEntry] = field(default_factory=list)
    exercise_logs: List[ExerciseLog] = field(default_factory=list)
    exercise_goals: Optional[ExerciseGoals] = None

    @property
    def latest_blood_test(self) -> Optional[BloodTest]:
        return self.blood_tests[-1] if self.blood_tests else None

    @property
    def bmi(self) -> Optional[float]:
        if self.height_cm <= 0:
            return None
        return self.weight_kg / (self.height_cm / 100) ** 2

    def eating_score(self) -> Optional[float]:
        if not self.eating_metrics:
            return None
        return EatingMetricsSummary.from_metrics(self.eating_metrics).optimal_eating_score

    def emotional_score(self) -> Optional[float]:
        if not self.emotional_entries:
            return None
        return EmotionalHealthSummary.from_entries(self.emotional_entries).average_overall_score


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


@dataclass
class EatingMetricsSummary:
    total_meals: int
    average_duration: float = 0.0
    average_bites_per_minute: float = 0.0
    average_chews_per_minute: float = 0.0
    average_chews_per_bite: float = 0.0
    average_bites_per_chew: float = 0.0

    @classmethod
    def from_metrics(cls, metrics: List[EatingMetric]) -> "EatingMetricsSummary":
        if not metrics:
            return cls(total_meals=0)
        return cls(
            total_meals=len(metrics),
            average_duration=_mean([m.duration_minutes for m in metrics]),
            average_bites_per_minute=_mean([m.bites_per_minute for m in metrics]),
            average_chews_per_minute=_mean([m.chews_per_minute for m in metrics]),
            average_chews_per_bite=_mean([m.chews_per_bite for m in metrics]),
            average_bites_per_chew=_mean([m.bites_per_chew for m in metrics]),
        )

    @property
    def optimal_eating_score(self) -> float:
        """0-100, rewards a measured pace and penalizes deviation linearly."""
        score = 50.0

        low, high = OPTIMAL_BITES_PER_MINUTE
        pace = self.average_bites_per_minute
        if low <= pace <= high:
            score += 20.0
        elif pace < low:
            score += 10.0 - (low - pace) * 0.5
        else:
            score -= (pace - high) * 0.5

        low, high = OPTIMAL_CHEWS_PER_BITE
        chews = self.average_chews_per_bite
        if low <= chews <= high:
            score += 20.0
        elif chews < low:
            score += 10.0 - (low - chews) * 0.5
        else:
            score -= (chews - high) * 0.3

        low, high = OPTIMAL_MEAL_MINUTES
        minutes = self.average_duration
        if low <= minutes <= high:
            score += 10.0
        elif minutes < low:
            score -= (low - minutes) * 0.5
        else:
            score -= (minutes - high) * 0.3

        return min(max(score, 0.0), 100.0)


class EmotionalTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    FLUCTUATING = "fluctuating"


@dataclass
class EmotionalHealthSummary:
    total_entries: int
    average_mood_score: float = 0.0
    average_overall_score: float = 0.0
    trend: EmotionalTrend = EmotionalTrend.STABLE
    component_averages: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_entries(cls, entries: List[EmotionalEntry]) -> "EmotionalHealthSummary":
        if not entries:
            return cls(total_entries=0)

        overall = [e.overall_score for e in entries]
        trend = EmotionalTrend.STABLE
        if len(entries) >= 2:
            half = len(entries) // 2
            older = _mean(overall[:half])
            recent = _mean(overall[-half:])
            if recent > older + 5:
                trend = EmotionalTrend.IMPROVING
            elif recent < older - 5:
                trend = EmotionalTrend.DECLINING
            elif statistics.pstdev(overall) > 15:
                trend = EmotionalTrend.FLUCTUATING

        return cls(
            total_entries=len(entries),
            average_mood_score=_mean([e.mood_score for e in entries]),
            average_overall_score=_mean(overall),
            trend=trend,
            component_averages={
                "stress": _mean([e.stress_level.score for e in entries]),
                "anxiety": _mean([e.anxiety_level.score for e in entries]),
                "happiness": _mean([e.happiness_level.score for e in entries]),
                "energy": _mean([e.energy_level.score for e in entries]),
                "social": _mean([e.social_connection.score for e in entries]),
            },
        )
