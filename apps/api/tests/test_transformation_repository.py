"""
Tests for TransformationRepository persistence.
"""
import random
from datetime import date, datetime, timedelta, timezone
from sqlalchemy import insert
from services.transformation import (
    BadgeCatalog,
    BadgeView,
    CertificateIssuer,
    DailyHealthRecord,
    EarnedBadgeState,
)
from services.transformation.repository import TransformationRepository
from models import EarnedBadge, HealthRecord

TODAY = date(2026, 6, 30)
EARNED_AT = datetime(2026, 6, 1, 8, 0, tzinfo=timezone.utc)


def record(day, score):
    return DailyHealthRecord.from_scores(day, score)


class TestHealthHistoryPersistence:
    """Daily records and derived streaks"""

    def test_empty_history(self, db_session):
        history = TransformationRepository(db_session).load_history("user-1", TODAY)

        assert history.records == []
        assert history.current_streak == 0
        assert history.longest_streak == 0

    def test_streak_recomputed_on_load(self, db_session):
        repo = TransformationRepository(db_session)
        for offset in range(5):
            repo.upsert_record("user-1", record(TODAY - timedelta(days=offset), 97.0))

        history = repo.load_history("user-1", TODAY)

        assert [r.record_date for r in history.records] == sorted(r.record_date for r in history.records)
        assert history.current_streak == 5
        assert history.streak_start_date == TODAY - timedelta(days=4)

    def test_upsert_replaces_same_day(self, db_session):
        repo = TransformationRepository(db_session)
        repo.upsert_record("user-1", record(TODAY, 97.0))
        repo.upsert_record("user-1", record(TODAY, 60.0))

        assert db_session.query(HealthRecord).count() == 1
        history = repo.load_history("user-1", TODAY)
        assert history.records[0].health_score == 60.0
        assert history.current_streak == 0

    def test_users_are_isolated(self, db_session):
        repo = TransformationRepository(db_session)
        repo.upsert_record("user-1", record(TODAY, 97.0))
        repo.upsert_record("user-2", record(TODAY, 40.0))

        assert repo.load_history("user-1", TODAY).current_streak == 1
        assert repo.load_history("user-2", TODAY).current_streak == 0

    def test_tracker_continues_stored_history(self, db_session):
        repo = TransformationRepository(db_session)
        repo.upsert_record("user-1", record(TODAY - timedelta(days=1), 97.0))

        tracker = repo.tracker_for("user-1", TODAY)
        tracker.add_record(record(TODAY, 99.0), today=TODAY)

        assert tracker.history.current_streak == 2


class TestEarnedBadgePersistence:
    """Monotonic earned-badge rows"""

    def test_round_trip(self, db_session):
        repo = TransformationRepository(db_session)
        state = EarnedBadgeState()
        state.mark_earned("great_health", EARNED_AT)

        assert repo.save_earned_state("user-1", state) == ["great_health"]

        loaded = repo.load_earned_state("user-1")
        assert loaded.earned_ids == {"great_health"}
        assert loaded.first_earned_at["great_health"] == EARNED_AT

    def test_existing_rows_keep_first_earned_at(self, db_session):
        repo = TransformationRepository(db_session)
        first = EarnedBadgeState({"great_health": EARNED_AT})
        repo.save_earned_state("user-1", first)

        second = EarnedBadgeState({"great_health": EARNED_AT + timedelta(days=3)})
        second.mark_earned("optimal_eater", EARNED_AT + timedelta(days=3))

        assert repo.save_earned_state("user-1", second) == ["optimal_eater"]
        assert db_session.query(EarnedBadge).count() == 2
        assert repo.load_earned_state("user-1").first_earned_at["great_health"] == EARNED_AT

    def test_nothing_new_to_save(self, db_session):
        repo = TransformationRepository(db_session)
        state = EarnedBadgeState({"great_health": EARNED_AT})
        repo.save_earned_state("user-1", state)

        assert repo.save_earned_state("user-1", state) == []

    def test_row_written_after_read_is_skipped(self, db_session, monkeypatch):
        repo = TransformationRepository(db_session)
        db_session.execute(insert(EarnedBadge).values(
            user_id="user-1", badge_id="great_health", earned_at=EARNED_AT,
        ))
        # Stale read: another evaluation stored great_health after this one looked
        monkeypatch.setattr(repo, "_stored_badge_ids", lambda user_id: set())

        later = EARNED_AT + timedelta(days=2)
        state = EarnedBadgeState({"great_health": later, "optimal_eater": later})

        assert repo.save_earned_state("user-1", state) == ["optimal_eater"]
        loaded = repo.load_earned_state("user-1")
        assert loaded.earned_ids == {"great_health", "optimal_eater"}
        assert loaded.first_earned_at["great_health"] == EARNED_AT


class TestCertificatePersistence:
    """Append-only certificate log"""

    def _issue(self, badge_id="usa_master", when=EARNED_AT, seed=1):
        view = BadgeView(badge=BadgeCatalog().get(badge_id), progress=1.0, earned=True)
        issuer = CertificateIssuer(clock=lambda: when, rng=random.Random(seed))
        return issuer, issuer.issue(view, "Jane Doe", None, 365)

    def test_append_and_lookup(self, db_session):
        repo = TransformationRepository(db_session)
        issuer, cert = self._issue()
        repo.append_certificate("user-1", cert)

        loaded = repo.get_certificate(cert.certificate_number)
        assert loaded == cert
        assert issuer.verify(loaded)

    def test_unknown_number(self, db_session):
        assert TransformationRepository(db_session).get_certificate("HC-0-0000") is None

    def test_list_in_issue_order(self, db_session):
        repo = TransformationRepository(db_session)
        _, later = self._issue("grandmaster", EARNED_AT + timedelta(days=30), seed=2)
        _, earlier = self._issue("usa_master", EARNED_AT, seed=3)
        repo.append_certificate("user-1", later)
        repo.append_certificate("user-1", earlier)
        repo.append_certificate("user-2", self._issue(when=EARNED_AT + timedelta(days=60), seed=4)[1])

        numbers = [c.certificate_number for c in repo.list_certificates("user-1")]
        assert numbers == [earlier.certificate_number, later.certificate_number]
