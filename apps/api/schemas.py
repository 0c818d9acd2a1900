from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, List, Dict, Any

from services.transformation.snapshot import (
    AnxietyLevel,
    BloodTest,
    EatingMetric,
    EmotionalEntry,
    ExerciseGoals,
    ExerciseLog,
    EyeAnalysis,
    EyeStrain,
    FivePointLevel,
    HealthSnapshot,
    HearingAnalysis,
    LibidoLevel,
    MentalHealth,
    StressLevel,
    TactileAnalysis,
    TongueAnalysis,
    VisionAnalysis,
)


class BloodTestSchema(BaseModel):
    test_date: Optional[date] = None
    total_cholesterol: Optional[float] = None
    ldl_cholesterol: Optional[float] = None
    hdl_cholesterol: Optional[float] = None
    triglycerides: Optional[float] = None
    glucose: Optional[float] = None
    hba1c: Optional[float] = None
    hemoglobin: Optional[float] = None
    vitamin_d: Optional[float] = None
    vitamin_b12: Optional[float] = None
    ferritin: Optional[float] = None
    magnesium: Optional[float] = None
    alt: Optional[float] = None
    ast: Optional[float] = None
    egfr: Optional[float] = None
    tsh: Optional[float] = None
    testosterone: Optional[float] = None
    crp: Optional[float] = None

    def to_domain(self) -> BloodTest:
        return BloodTest(**self.model_dump())


class EyeSchema(BaseModel):
    average_acuity: Optional[float] = None
    average_strain: Optional[EyeStrain] = None


class VisionSchema(BaseModel):
    right_eye: Optional[EyeSchema] = None
    left_eye: Optional[EyeSchema] = None

    def to_domain(self) -> VisionAnalysis:
        def eye(value: Optional[EyeSchema]) -> Optional[EyeAnalysis]:
            if value is None:
                return None
            return EyeAnalysis(average_acuity=value.average_acuity, average_strain=value.average_strain)

        return VisionAnalysis(right_eye=eye(self.right_eye), left_eye=eye(self.left_eye))


class MentalHealthSchema(BaseModel):
    stress_level: StressLevel = StressLevel.MODERATE
    anxiety_level: AnxietyLevel = AnxietyLevel.NONE
    in_therapy: bool = False


class EatingMetricSchema(BaseModel):
    duration_minutes: float = Field(..., ge=0)
    total_bites: int = Field(..., ge=0)
    total_chews: int = Field(..., ge=0)
    meal_date: Optional[date] = None


class EmotionalEntrySchema(BaseModel):
    mood_score: float = Field(..., ge=0, le=100)
    stress_level: StressLevel = StressLevel.MODERATE
    anxiety_level: AnxietyLevel = AnxietyLevel.NONE
    happiness_level: FivePointLevel = FivePointLevel.MODERATE
    energy_level: FivePointLevel = FivePointLevel.MODERATE
    social_connection: FivePointLevel = FivePointLevel.MODERATE
    entry_date: Optional[date] = None


class ExerciseLogSchema(BaseModel):
    log_date: date
    total_minutes: float = 0.0
    calories_burned: float = 0.0


class ExerciseGoalsSchema(BaseModel):
    weekly_cardio_minutes: float = 150.0
    weekly_strength_sessions: int = 2
    weekly_flexibility_minutes: float = 60.0
    weekly_mind_body_minutes: float = 120.0
    target_muscle_mass_kg: Optional[float] = None


class HealthSnapshotSchema(BaseModel):
    """Point-in-time health measurements."""
    age: int
    gender: str = Field("other", description="male, female or other")
    weight_kg: float
    height_cm: float
    activity_level: str = "moderate"
    muscle_mass_kg: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    cognitive_score: Optional[float] = None
    libido_level: Optional[LibidoLevel] = None
    mental_health: Optional[MentalHealthSchema] = None
    blood_tests: List[BloodTestSchema] = Field(default_factory=list)
    vision_analysis: Optional[VisionSchema] = None
    hearing_threshold_db: Optional[float] = None
    tactile_sensitivity: Optional[float] = Field(None, ge=0, le=1)
    tongue_taste_score: Optional[float] = Field(None, ge=0, le=1)
    tongue_mobility_score: Optional[float] = Field(None, ge=0, le=1)
    eating_metrics: List[EatingMetricSchema] = Field(default_factory=list)
    emotional_entries: List[EmotionalEntrySchema] = Field(default_factory=list)
    exercise_logs: List[ExerciseLogSchema] = Field(default_factory=list)
    exercise_goals: Optional[ExerciseGoalsSchema] = None

    def to_domain(self) -> HealthSnapshot:
        tongue = None
        if self.tongue_taste_score is not None or self.tongue_mobility_score is not None:
            tongue = TongueAnalysis(
                average_taste_score=self.tongue_taste_score,
                average_mobility_score=self.tongue_mobility_score,
            )
        return HealthSnapshot(
            age=self.age,
            gender=self.gender,
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            activity_level=self.activity_level,
            muscle_mass_kg=self.muscle_mass_kg,
            body_fat_percentage=self.body_fat_percentage,
            cognitive_score=self.cognitive_score,
            libido_level=self.libido_level,
            mental_health=MentalHealth(**self.mental_health.model_dump()) if self.mental_health else None,
            blood_tests=[b.to_domain() for b in self.blood_tests],
            vision_analysis=self.vision_analysis.to_domain() if self.vision_analysis else None,
            hearing_analysis=(
                HearingAnalysis(average_threshold_db=self.hearing_threshold_db)
                if self.hearing_threshold_db is not None else None
            ),
            tactile_analysis=(
                TactileAnalysis(average_sensitivity=self.tactile_sensitivity)
                if self.tactile_sensitivity is not None else None
            ),
            tongue_analysis=tongue,
            eating_metrics=[EatingMetric(**m.model_dump()) for m in self.eating_metrics],
            emotional_entries=[EmotionalEntry(**e.model_dump()) for e in self.emotional_entries],
            exercise_logs=[ExerciseLog(**log.model_dump()) for log in self.exercise_logs],
            exercise_goals=ExerciseGoals(**self.exercise_goals.model_dump()) if self.exercise_goals else None,
        )


class PlannedActivitySchema(BaseModel):
    name: str
    duration_minutes: float = Field(..., ge=0)
    time_of_day: str = "morning"


class DayPlanSchema(BaseModel):
    day_of_week: str
    activities: List[PlannedActivitySchema] = Field(default_factory=list)


class ExercisePlanSchema(BaseModel):
    weekly_plan: List[DayPlanSchema] = Field(default_factory=list)


class StreakSummary(BaseModel):
    current_streak: int
    longest_streak: int
    streak_start_date: Optional[date] = None
    total_records: int


class DailyRecordResponse(BaseModel):
    record_date: date
    health_score: float
    eating_score: Optional[float] = None
    emotional_score: Optional[float] = None
    met_criteria: bool
    streak: StreakSummary


class VerifyResponse(BaseModel):
    valid: bool
    payload_intact: Optional[bool] = None


class CertificateRecord(BaseModel):
    """Serialized certificate as returned by the issue endpoint."""
    id: str
    badge_id: str
    badge_name: str
    badge_level: str
    recipient_name: str
    issued_at: str
    expires_at: Optional[str] = None
    certificate_number: str
    verification_hash: str
    signature: Dict[str, Any]
    metadata: Dict[str, Any]
    payload: str = ""
