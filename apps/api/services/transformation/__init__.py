# Health Transformation
#
# Long-horizon planning, daily scoring, streaks, badges and certificates.
#
# Flow:
# - LongTermPlanner (GoalDeriver + PhaseAllocator + MilestoneScheduler) -> LongTermPlan
# - DailyPlanExpander: LongTermPlan + snapshot -> DailyPlanEntry per day
# - HealthScoreEngine -> DailyHealthRecord -> StreakTracker
# - BadgeEvaluationEngine: snapshot + exercise plan + history -> BadgeView[]
# - CertificateIssuer: earned certified-tier BadgeView -> Certificate
#
# Business rules are config-driven (config/transformation_rules.yaml).

from .config import ConfigService
from .constants import (
    BadgeCategory,
    BadgeLevel,
    CriteriaType,
    DifficultyLevel,
    GoalCategory,
    PlanDuration,
    Season,
    UrgencyLevel,
)
from .snapshot import HealthSnapshot, EatingMetricsSummary, EmotionalHealthSummary
from .health_score import HealthScoreEngine
from .streaks import DailyHealthRecord, HealthHistory, StreakTracker
from .plan_models import LongTermPlan, Milestone, PlanPhase, TransformationGoal
from .goals import GoalDeriver
from .phase_allocator import PhaseAllocator
from .milestones import MilestoneScheduler
from .planner import LongTermPlanner
from .collaborators import (
    DietSolver,
    ExercisePlan,
    ExercisePlanner,
    GuidelineExercisePlanner,
    ReferenceDietSolver,
)
from .daily_plan import (
    DailyPlanEntry,
    DailyPlanExpander,
    PlanExpansionTimeout,
    SupplementRecommendation,
)
from .badges import (
    BadgeCatalog,
    BadgeCriteria,
    BadgeDefinition,
    BadgeEvaluationEngine,
    BadgeView,
    EarnedBadgeState,
    HistoricalSeriesProvider,
    default_catalog,
)
from .certificates import (
    Certificate,
    CertificateIssuer,
    IssuerIdentity,
    decode_payload,
    payload_intact,
    render_qr_png,
)

__all__ = [
    # Config
    'ConfigService',

    # Enums
    'BadgeCategory',
    'BadgeLevel',
    'CriteriaType',
    'DifficultyLevel',
    'GoalCategory',
    'PlanDuration',
    'Season',
    'UrgencyLevel',

    # Scoring and streaks
    'HealthSnapshot',
    'EatingMetricsSummary',
    'EmotionalHealthSummary',
    'HealthScoreEngine',
    'DailyHealthRecord',
    'HealthHistory',
    'StreakTracker',

    # Planning
    'LongTermPlan',
    'Milestone',
    'PlanPhase',
    'TransformationGoal',
    'GoalDeriver',
    'PhaseAllocator',
    'MilestoneScheduler',
    'LongTermPlanner',
    'DietSolver',
    'ExercisePlan',
    'ExercisePlanner',
    'GuidelineExercisePlanner',
    'ReferenceDietSolver',
    'DailyPlanEntry',
    'DailyPlanExpander',
    'PlanExpansionTimeout',
    'SupplementRecommendation',

    # Badges and certificates
    'BadgeCatalog',
    'BadgeCriteria',
    'BadgeDefinition',
    'BadgeEvaluationEngine',
    'BadgeView',
    'EarnedBadgeState',
    'HistoricalSeriesProvider',
    'default_catalog',
    'Certificate',
    'CertificateIssuer',
    'IssuerIdentity',
    'decode_payload',
    'payload_intact',
    'render_qr_png',
]
