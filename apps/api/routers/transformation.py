"""
Health Transformation API Router

Endpoints for:
- Long-term plan generation and daily expansion (sync preview, async full)
- Daily health records and streaks
- Badge evaluation and catalog
- Certificate issuance, verification and QR rendering
"""

from fastapi import APIRouter, Depends, Query, Response
from qrcode.exceptions import DataOverflowError
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import date
import logging

from core.config import settings
from core.database import get_db
from core.exceptions import ConflictError, ExpansionTimeoutError, NotFoundError, ValidationError
from schemas import (
    CertificateRecord,
    DailyRecordResponse,
    ExercisePlanSchema,
    HealthSnapshotSchema,
    StreakSummary,
    VerifyResponse,
)
from services.transformation import (
    BadgeCatalog,
    BadgeCategory,
    BadgeEvaluationEngine,
    BadgeView,
    Certificate,
    CertificateIssuer,
    DailyPlanExpander,
    ExercisePlan,
    GuidelineExercisePlanner,
    HealthHistory,
    IssuerIdentity,
    LongTermPlanner,
    PlanDuration,
    PlanExpansionTimeout,
    Season,
    UrgencyLevel,
    payload_intact,
    render_qr_png,
)
from services.transformation.repository import TransformationRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/transformation", tags=["Health Transformation"])

# Loaded once per process
badge_catalog = BadgeCatalog()


def get_certificate_issuer() -> CertificateIssuer:
    return CertificateIssuer(
        identity=IssuerIdentity(
            name=settings.CERTIFICATE_ISSUER_NAME,
            title=settings.CERTIFICATE_ISSUER_TITLE,
            organization=settings.CERTIFICATE_ISSUER_ORGANIZATION,
        ),
        verify_base_url=settings.CERTIFICATE_VERIFY_BASE_URL,
        error_correction_level=settings.CERTIFICATE_ERROR_CORRECTION_LEVEL,
    )


# ============ Request Models ============

class PlanRequest(BaseModel):
    """Generate a long-term plan."""
    snapshot: HealthSnapshotSchema
    urgency: UrgencyLevel = Field(..., description="low, medium, high or critical")
    duration: Optional[PlanDuration] = Field(None, description="Defaults to the urgency's recommendation")
    start_date: Optional[date] = None


class DailyPlanRequest(PlanRequest):
    season: Season
    max_days: Optional[int] = Field(None, ge=1, description="Preview window; defaults to the configured preview size")


class AsyncDailyPlanRequest(PlanRequest):
    season: Season
    max_days: Optional[int] = Field(None, ge=1)


class HealthRecordRequest(BaseModel):
    snapshot: HealthSnapshotSchema
    record_date: Optional[date] = Field(None, description="Defaults to today")


class BadgeEvaluationRequest(BaseModel):
    snapshot: Optional[HealthSnapshotSchema] = None
    exercise_plan: Optional[ExercisePlanSchema] = Field(
        None, description="Weekly plan; generated from the snapshot when omitted"
    )


class CertificateRequest(BaseModel):
    badge_id: str
    recipient_name: str = Field(..., min_length=1)
    snapshot: Optional[HealthSnapshotSchema] = None


# ============ Helpers ============

def _streak_summary(history: HealthHistory) -> StreakSummary:
    return StreakSummary(
        current_streak=history.current_streak,
        longest_streak=history.longest_streak,
        streak_start_date=history.streak_start_date,
        total_records=len(history.records),
    )


def _generate_plan(request: PlanRequest):
    return LongTermPlanner().generate_plan(
        request.snapshot.to_domain(),
        request.urgency,
        duration=request.duration,
        start_date=request.start_date,
    )


# ============ Plans ============

@router.post("/plans")
def create_plan(request: PlanRequest) -> Dict[str, Any]:
    """Generate goals, phases and milestones for a snapshot."""
    return _generate_plan(request).to_dict()


@router.post("/plans/daily")
def preview_daily_plan(request: DailyPlanRequest) -> Dict[str, Any]:
    """
    Expand the first `max_days` days of a freshly generated plan.

    Full expansions belong on /plans/daily/async.
    """
    plan = _generate_plan(request)
    max_days = request.max_days or settings.DAILY_PLAN_PREVIEW_MAX_DAYS

    try:
        entries = DailyPlanExpander().expand(
            plan,
            request.snapshot.to_domain(),
            request.season,
            max_days=max_days,
            deadline_s=settings.DAILY_PLAN_SOFT_TIME_LIMIT_S,
        )
    except PlanExpansionTimeout as e:
        raise ExpansionTimeoutError(str(e), completed_days=len(e.entries))

    return {
        "plan": plan.to_dict(),
        "entries": [entry.to_dict() for entry in entries],
    }


@router.post("/plans/daily/async", status_code=202)
def enqueue_daily_plan(request: AsyncDailyPlanRequest) -> Dict[str, Any]:
    from tasks.plan_tasks import expand_daily_plan_task

    plan = _generate_plan(request)
    result = expand_daily_plan_task.delay(
        plan.to_dict(),
        request.snapshot.model_dump(mode="json"),
        request.season.value,
        request.max_days,
    )
    logger.info(f"Enqueued daily expansion for plan {plan.id}: task {result.id}")
    return {"task_id": result.id, "plan_id": str(plan.id), "plan": plan.to_dict()}


# ============ Health records & streaks ============

@router.post("/users/{user_id}/health-records", response_model=DailyRecordResponse)
def submit_health_record(
    user_id: str,
    request: HealthRecordRequest,
    db: Session = Depends(get_db),
):
    """Score a snapshot and upsert it as the record for its day."""
    repo = TransformationRepository(db)
    tracker = repo.tracker_for(user_id)
    record = tracker.record_snapshot(request.snapshot.to_domain(), on=request.record_date)
    repo.upsert_record(user_id, record)

    return DailyRecordResponse(
        record_date=record.record_date,
        health_score=round(record.health_score, 2),
        eating_score=record.eating_score,
        emotional_score=record.emotional_score,
        met_criteria=record.met_criteria,
        streak=_streak_summary(tracker.history),
    )


@router.get("/users/{user_id}/streak", response_model=StreakSummary)
def get_streak(user_id: str, db: Session = Depends(get_db)):
    return _streak_summary(TransformationRepository(db).load_history(user_id))


# ============ Badges ============

@router.get("/badges/catalog")
def get_badge_catalog(category: Optional[BadgeCategory] = Query(None)) -> List[Dict[str, Any]]:
    badges = badge_catalog.by_category(category) if category else list(badge_catalog)
    return [badge.to_dict() for badge in badges]


@router.post("/users/{user_id}/badges/evaluate")
def evaluate_badges(
    user_id: str,
    request: BadgeEvaluationRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Evaluate every catalog badge; newly earned ids are persisted."""
    repo = TransformationRepository(db)
    snapshot = request.snapshot.to_domain() if request.snapshot else None

    if request.exercise_plan is not None:
        exercise_plan = ExercisePlan.from_dict(request.exercise_plan.model_dump())
    elif snapshot is not None:
        exercise_plan = GuidelineExercisePlanner().recommend(snapshot, snapshot.exercise_goals)
    else:
        exercise_plan = None

    earned_state = repo.load_earned_state(user_id)
    views = BadgeEvaluationEngine().evaluate(
        badge_catalog,
        snapshot,
        exercise_plan,
        repo.load_history(user_id),
        earned_state,
    )
    newly_earned = repo.save_earned_state(user_id, earned_state)

    return {
        "badges": [view.to_dict() for view in views],
        "newly_earned": newly_earned,
    }


# ============ Certificates ============

@router.post("/users/{user_id}/certificates", status_code=201)
def issue_certificate(
    user_id: str,
    request: CertificateRequest,
    db: Session = Depends(get_db),
    issuer: CertificateIssuer = Depends(get_certificate_issuer),
) -> Dict[str, Any]:
    badge = badge_catalog.get(request.badge_id)
    if badge is None:
        raise NotFoundError("Badge", request.badge_id)

    repo = TransformationRepository(db)
    earned_state = repo.load_earned_state(user_id)
    earned = request.badge_id in earned_state
    view = BadgeView(
        badge=badge,
        progress=1.0 if earned else 0.0,
        earned=earned,
        first_earned_at=earned_state.first_earned_at.get(request.badge_id),
    )

    history = repo.load_history(user_id)
    snapshot = request.snapshot.to_domain() if request.snapshot else None
    certificate = issuer.issue(view, request.recipient_name, snapshot, history.current_streak)
    if certificate is None:
        raise ConflictError(
            f"Badge {request.badge_id} is not eligible for a certificate "
            f"(earned={earned}, level={badge.level.value})",
            error_code="CERTIFICATE_NOT_ELIGIBLE",
        )

    repo.append_certificate(user_id, certificate)
    return certificate.to_dict()


@router.post("/certificates/verify", response_model=VerifyResponse)
def verify_certificate(
    record: CertificateRecord,
    issuer: CertificateIssuer = Depends(get_certificate_issuer),
):
    try:
        certificate = Certificate.from_dict(record.model_dump())
    except (KeyError, ValueError, TypeError) as e:
        raise ValidationError(f"Malformed certificate record: {e}", field="certificate")

    return VerifyResponse(
        valid=issuer.verify(certificate),
        payload_intact=payload_intact(certificate.payload) if certificate.payload else None,
    )


@router.get("/certificates/{certificate_number}/qr")
def certificate_qr(
    certificate_number: str,
    db: Session = Depends(get_db),
    issuer: CertificateIssuer = Depends(get_certificate_issuer),
):
    """Issued certificate payload as a QR code PNG."""
    certificate = TransformationRepository(db).get_certificate(certificate_number)
    if certificate is None:
        raise NotFoundError("Certificate", certificate_number)

    try:
        png = render_qr_png(certificate.payload, issuer.error_correction_level)
    except DataOverflowError:
        raise ConflictError(
            f"Certificate {certificate_number} payload does not fit in a QR code",
            error_code="CERTIFICATE_QR_OVERFLOW",
        )

    return Response(
        content=png,
        media_type="image/png",
        headers={
            "Content-Disposition": f'inline; filename="{certificate_number}_qr.png"',
            "Cache-Control": "max-age=86400",
        },
    )


@router.get("/health")
def transformation_health() -> Dict[str, Any]:
    return {"status": "healthy", "badges": len(badge_catalog)}
