"""
Constants for health transformation planning.

These are DEFAULTS that can be overridden by config (see config.py).
They exist here for type safety and documentation.
"""

from enum import Enum
from typing import Dict, List


class PlanDuration(str, Enum):
    """Supported long-term plan lengths."""
    THREE_MONTHS = "3_months"
    SIX_MONTHS = "6_months"
    ONE_YEAR = "1_year"
    TWO_YEARS = "2_years"
    FIVE_YEARS = "5_years"
    TEN_YEARS = "10_years"

    @property
    def days(self) -> int:
        return PLAN_DURATION_DAYS[self]

    @property
    def months(self) -> int:
        return PLAN_DURATION_MONTHS[self]

    @classmethod
    def from_days(cls, days: int) -> "PlanDuration":
        for duration, duration_days in PLAN_DURATION_DAYS.items():
            if duration_days == days:
                return duration
        raise ValueError(f"{days} is not a supported plan duration in days")


class DifficultyLevel(str, Enum):
    """How hard the plan pushes."""
    GENTLE = "gentle"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    EXTREME = "extreme"

    @property
    def intensity_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self]


class UrgencyLevel(str, Enum):
    """How urgently the user needs to change course."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def recommended_difficulty(self) -> DifficultyLevel:
        return URGENCY_RECOMMENDATIONS[self][0]

    def recommended_duration(self) -> PlanDuration:
        return URGENCY_RECOMMENDATIONS[self][1]


class GoalCategory(str, Enum):
    """Transformation goal categories."""
    WEIGHT = "weight"
    MUSCLE_MASS = "muscle_mass"
    BODY_FAT = "body_fat"
    CARDIOVASCULAR = "cardiovascular"
    STRENGTH = "strength"
    FLEXIBILITY = "flexibility"
    MENTAL_HEALTH = "mental_health"
    COGNITIVE = "cognitive"
    ORGAN_HEALTH = "organ_health"
    HORMONAL = "hormonal"
    SKIN_HEALTH = "skin_health"
    SEXUAL_HEALTH = "sexual_health"


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class BadgeCategory(str, Enum):
    NUTRITION = "nutrition"
    EXERCISE = "exercise"
    HEALTH = "health"
    CONSISTENCY = "consistency"
    ACHIEVEMENT = "achievement"
    WELLNESS = "wellness"


class BadgeLevel(str, Enum):
    """Badge tiers, lowest to highest."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"
    USA_MASTER = "usa_master"
    INTERNATIONAL_MASTER = "international_master"
    GRANDMASTER = "grandmaster"
    WORLD_GRANDMASTER = "world_grandmaster"

    @property
    def multiplier(self) -> float:
        return BADGE_LEVEL_MULTIPLIERS[self]

    @property
    def requires_certificate(self) -> bool:
        return self in CERTIFIED_LEVELS

    @property
    def display_name(self) -> str:
        return BADGE_LEVEL_DISPLAY_NAMES[self]


class CriteriaType(str, Enum):
    """Discriminator selecting a badge's progress formula."""
    DAILY_CALORIES = "daily_calories"
    WEEKLY_EXERCISE = "weekly_exercise"
    CONSECUTIVE_DAYS = "consecutive_days"
    TOTAL_MEALS = "total_meals"
    HEALTH_SCORE = "health_score"
    VISION_SCORE = "vision_score"
    HEARING_SCORE = "hearing_score"
    TACTILE_SCORE = "tactile_score"
    TONGUE_SCORE = "tongue_score"
    CONSISTENCY = "consistency"
    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MUSCLE_GAIN = "muscle_gain"
    FLEXIBILITY = "flexibility"
    CARDIOVASCULAR = "cardiovascular"
    EATING_SCORE = "eating_score"
    EMOTIONAL_SCORE = "emotional_score"
    HEALTH_STREAK = "health_streak"
    OUTSTANDING_HEALTH_STREAK = "outstanding_health_streak"


PLAN_DURATION_DAYS = {
    PlanDuration.THREE_MONTHS: 90,
    PlanDuration.SIX_MONTHS: 180,
    PlanDuration.ONE_YEAR: 365,
    PlanDuration.TWO_YEARS: 730,
    PlanDuration.FIVE_YEARS: 1825,
    PlanDuration.TEN_YEARS: 3650,
}

PLAN_DURATION_MONTHS = {
    PlanDuration.THREE_MONTHS: 3,
    PlanDuration.SIX_MONTHS: 6,
    PlanDuration.ONE_YEAR: 12,
    PlanDuration.TWO_YEARS: 24,
    PlanDuration.FIVE_YEARS: 60,
    PlanDuration.TEN_YEARS: 120,
}

DIFFICULTY_MULTIPLIERS = {
    DifficultyLevel.GENTLE: 0.5,
    DifficultyLevel.MODERATE: 1.0,
    DifficultyLevel.AGGRESSIVE: 1.5,
    DifficultyLevel.EXTREME: 2.0,
}

# urgency -> (difficulty, duration)
URGENCY_RECOMMENDATIONS = {
    UrgencyLevel.LOW: (DifficultyLevel.GENTLE, PlanDuration.ONE_YEAR),
    UrgencyLevel.MEDIUM: (DifficultyLevel.MODERATE, PlanDuration.SIX_MONTHS),
    UrgencyLevel.HIGH: (DifficultyLevel.AGGRESSIVE, PlanDuration.THREE_MONTHS),
    UrgencyLevel.CRITICAL: (DifficultyLevel.EXTREME, PlanDuration.THREE_MONTHS),
}

# Added to a goal's base priority, result capped at 10
URGENCY_PRIORITY_BONUS = {
    UrgencyLevel.LOW: 0,
    UrgencyLevel.MEDIUM: 1,
    UrgencyLevel.HIGH: 2,
    UrgencyLevel.CRITICAL: 3,
}

BADGE_LEVEL_MULTIPLIERS = {
    BadgeLevel.BRONZE: 1.0,
    BadgeLevel.SILVER: 1.5,
    BadgeLevel.GOLD: 2.0,
    BadgeLevel.PLATINUM: 3.0,
    BadgeLevel.DIAMOND: 5.0,
    BadgeLevel.USA_MASTER: 10.0,
    BadgeLevel.INTERNATIONAL_MASTER: 15.0,
    BadgeLevel.GRANDMASTER: 25.0,
    BadgeLevel.WORLD_GRANDMASTER: 50.0,
}

BADGE_LEVEL_DISPLAY_NAMES = {
    BadgeLevel.BRONZE: "Bronze",
    BadgeLevel.SILVER: "Silver",
    BadgeLevel.GOLD: "Gold",
    BadgeLevel.PLATINUM: "Platinum",
    BadgeLevel.DIAMOND: "Diamond",
    BadgeLevel.USA_MASTER: "USA Master of Health",
    BadgeLevel.INTERNATIONAL_MASTER: "International Master of Health",
    BadgeLevel.GRANDMASTER: "Grandmaster of Health",
    BadgeLevel.WORLD_GRANDMASTER: "World Grandmaster of Health",
}

CERTIFIED_LEVELS = frozenset({
    BadgeLevel.USA_MASTER,
    BadgeLevel.INTERNATIONAL_MASTER,
    BadgeLevel.GRANDMASTER,
    BadgeLevel.WORLD_GRANDMASTER,
})

# Certificate validity in years; absent key = never expires
CERTIFICATE_VALIDITY_YEARS = {
    BadgeLevel.USA_MASTER: 1,
    BadgeLevel.INTERNATIONAL_MASTER: 1,
    BadgeLevel.GRANDMASTER: 2,
}

CERTIFICATE_REGIONS = {
    BadgeLevel.USA_MASTER: "USA",
    BadgeLevel.INTERNATIONAL_MASTER: "International",
}

# Parity overhead per error-correction level (fraction of payload bytes)
ERROR_CORRECTION_OVERHEAD = {
    0: 0.07,
    1: 0.15,
    2: 0.25,
    3: 0.30,
}

# Criteria types that need a historical series the snapshot does not carry
HISTORICAL_CRITERIA: List[CriteriaType] = [
    CriteriaType.DAILY_CALORIES,
    CriteriaType.CONSISTENCY,
    CriteriaType.CONSECUTIVE_DAYS,
    CriteriaType.TOTAL_MEALS,
    CriteriaType.WEIGHT_LOSS,
    CriteriaType.WEIGHT_GAIN,
    CriteriaType.MUSCLE_GAIN,
    CriteriaType.FLEXIBILITY,
    CriteriaType.CARDIOVASCULAR,
    CriteriaType.HEALTH_STREAK,
]

# Conditions on outstanding-health streaks that also gate on eating/emotion
GATED_STREAK_CONDITIONS = frozenset({"grandmaster", "world_grandmaster"})

PHASE_NAMES = [
    "Foundation",
    "Building",
    "Optimization",
    "Refinement",
    "Mastery",
    "Transformation",
]

STRAIN_PENALTIES = {
    "none": 0.0,
    "mild": 5.0,
    "moderate": 10.0,
    "severe": 20.0,
}

# (upper bound dB, score); anything above the last bound scores HEARING_FLOOR_SCORE
HEARING_BANDS = [
    (25.0, 100.0),
    (40.0, 80.0),
    (55.0, 60.0),
]
HEARING_FLOOR_SCORE = 40.0

# Overall score weights for each sub-assessment
HEALTH_SCORE_WEIGHTS: Dict[str, float] = {
    "vision": 0.15,
    "hearing": 0.15,
    "tactile": 0.10,
    "tongue": 0.10,
}
HEALTH_SCORE_BASE = 50.0
LAB_PRESENCE_BONUS = 10.0

# Emotional score weights (mood, inverted stress, inverted anxiety, happiness, energy, social)
EMOTIONAL_WEIGHTS: Dict[str, float] = {
    "mood": 0.30,
    "stress": 0.20,
    "anxiety": 0.20,
    "happiness": 0.15,
    "energy": 0.10,
    "social": 0.05,
}

# Eating-pace targets (inclusive ranges)
OPTIMAL_BITES_PER_MINUTE = (15.0, 25.0)
OPTIMAL_CHEWS_PER_BITE = (20.0, 30.0)
OPTIMAL_MEAL_MINUTES = (20.0, 30.0)

# Streaks
STREAK_SCORE_THRESHOLD = 95.0

# Grandmaster gates
GRANDMASTER_MIN_EATING_SCORE = 85.0
GRANDMASTER_MIN_EMOTIONAL_SCORE = 90.0

# Goal triggers
TARGET_BMI = 22.0
HIGH_CHOLESTEROL_MG_DL = 240.0
HIGH_BODY_FAT_PCT = {"male": 25.0, "female": 32.0, "other": 28.0}
ESTIMATED_MUSCLE_FRACTION = 0.4

# Daily routine defaults
DAILY_ROUTINE_DEFAULTS = {
    "meditation_minutes": 10.0,
    "breathing_minutes": 15.0,
    "sleep_hours": 8.0,
    "sleep_hours_min": 6.0,
    "water_liters": 2.5,
    "exercise_water_bonus_liters": 0.5,
}

# Lab deficiency thresholds used for supplement recommendations
DEFICIENCY_THRESHOLDS = {
    "vitamin_d_ng_ml": 30.0,
    "vitamin_b12_pg_ml": 200.0,
    "ferritin_ng_ml": 30.0,
    "magnesium_mg_dl": 1.8,
    "total_cholesterol_mg_dl": 200.0,
}
