"""
Transformation Repository

Loads and saves per-user streak history, earned badges and certificates.

Writes for one user must be serialized by the caller: upsert_record
recomputes the whole history after each write. Earned-badge inserts
tolerate concurrent writers through the (user, badge) unique constraint.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import EarnedBadge, HealthRecord, IssuedCertificate

from .badges import EarnedBadgeState
from .certificates import Certificate
from .streaks import DailyHealthRecord, HealthHistory, StreakTracker

logger = logging.getLogger(__name__)


def _aware(moment: datetime) -> datetime:
    # SQLite drops tzinfo on round trip
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


class TransformationRepository:

    def __init__(self, db: Session):
        self.db = db

    # --- Health history ---

    def load_history(self, user_id: str, today: Optional[date] = None) -> HealthHistory:
        rows = (
            self.db.query(HealthRecord)
            .filter(HealthRecord.user_id == user_id)
            .order_by(HealthRecord.record_date)
            .all()
        )
        history = HealthHistory(records=[
            DailyHealthRecord(
                record_date=row.record_date,
                health_score=row.health_score,
                met_criteria=row.met_criteria,
                eating_score=row.eating_score,
                emotional_score=row.emotional_score,
            )
            for row in rows
        ])
        StreakTracker(history).recompute(today)
        return history

    def tracker_for(self, user_id: str, today: Optional[date] = None) -> StreakTracker:
        return StreakTracker(self.load_history(user_id, today))

    def upsert_record(self, user_id: str, record: DailyHealthRecord) -> None:
        row = (
            self.db.query(HealthRecord)
            .filter(HealthRecord.user_id == user_id, HealthRecord.record_date == record.record_date)
            .first()
        )
        if row is None:
            row = HealthRecord(user_id=user_id, record_date=record.record_date)
            self.db.add(row)
        row.health_score = record.health_score
        row.eating_score = record.eating_score
        row.emotional_score = record.emotional_score
        row.met_criteria = record.met_criteria
        self.db.flush()

    # --- Earned badges ---

    def load_earned_state(self, user_id: str) -> EarnedBadgeState:
        rows = self.db.query(EarnedBadge).filter(EarnedBadge.user_id == user_id).all()
        return EarnedBadgeState({row.badge_id: _aware(row.earned_at) for row in rows})

    def _stored_badge_ids(self, user_id: str) -> Set[str]:
        return {
            badge_id
            for (badge_id,) in self.db.query(EarnedBadge.badge_id).filter(EarnedBadge.user_id == user_id)
        }

    def save_earned_state(self, user_id: str, state: EarnedBadgeState) -> List[str]:
        """
        Insert ids not yet stored. Existing rows keep their first earned_at.

        Each insert runs in its own savepoint, so a row written by a
        concurrent evaluation after the read is skipped instead of failing
        the whole save.
        """
        stored = self._stored_badge_ids(user_id)
        added = []
        for badge_id, earned_at in sorted(state.first_earned_at.items()):
            if badge_id in stored:
                continue
            try:
                with self.db.begin_nested():
                    self.db.add(EarnedBadge(user_id=user_id, badge_id=badge_id, earned_at=earned_at))
            except IntegrityError:
                logger.info(f"Badge {badge_id} for user {user_id} already stored by another evaluation")
                continue
            added.append(badge_id)
        if added:
            logger.info(f"Persisted {len(added)} newly earned badges for user {user_id}: {added}")
        return added

    # --- Certificates ---

    def append_certificate(self, user_id: str, certificate: Certificate) -> None:
        self.db.add(IssuedCertificate(
            id=str(certificate.id),
            user_id=user_id,
            certificate_number=certificate.certificate_number,
            badge_id=certificate.badge_id,
            badge_level=certificate.badge_level.value,
            recipient_name=certificate.recipient_name,
            issued_at=certificate.issued_at,
            expires_at=certificate.expires_at,
            verification_hash=certificate.verification_hash,
            record=certificate.to_dict(),
        ))
        self.db.flush()

    def list_certificates(self, user_id: str) -> List[Certificate]:
        rows = (
            self.db.query(IssuedCertificate)
            .filter(IssuedCertificate.user_id == user_id)
            .order_by(IssuedCertificate.issued_at)
            .all()
        )
        return [Certificate.from_dict(row.record) for row in rows]

    def get_certificate(self, certificate_number: str) -> Optional[Certificate]:
        row = (
            self.db.query(IssuedCertificate)
            .filter(IssuedCertificate.certificate_number == certificate_number)
            .first()
        )
        return Certificate.from_dict(row.record) if row else None
