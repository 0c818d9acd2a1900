from sqlalchemy import Column, Integer, Boolean, Float, Date, DateTime, Text, String, JSON, Index, UniqueConstraint
from sqlalchemy.sql import func
from core.database import Base
import uuid


def _uuid_str() -> str:
    return str(uuid.uuid4())


class HealthRecord(Base):
    """
    One scored calendar day per user.

    Same-day resubmission replaces the row (see TransformationRepository.upsert_record).
    """
    __tablename__ = "health_record"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String(64), nullable=False)
    record_date = Column(Date, nullable=False)
    health_score = Column(Float, nullable=False)
    eating_score = Column(Float, nullable=True)
    emotional_score = Column(Float, nullable=True)
    met_criteria = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "record_date", name="uq_health_record_user_day"),
        Index("ix_health_record_user_date", "user_id", "record_date"),
    )


class EarnedBadge(Base):
    """
    Monotonic earned-badge set, one row per (user, badge).

    earned_at is the first time progress reached 1.0 and is never rewritten.
    """
    __tablename__ = "earned_badge"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    badge_id = Column(String(64), nullable=False)
    earned_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_earned_badge_user_badge"),
        Index("ix_earned_badge_user", "user_id"),
    )


class IssuedCertificate(Base):
    """Append-only. Rows are never updated after insert."""
    __tablename__ = "issued_certificate"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False)
    certificate_number = Column(String(64), unique=True, nullable=False)
    badge_id = Column(String(64), nullable=False)
    badge_level = Column(Text, nullable=False)
    recipient_name = Column(Text, nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    verification_hash = Column(String(64), nullable=False)
    record = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_issued_certificate_user", "user_id"),
    )
