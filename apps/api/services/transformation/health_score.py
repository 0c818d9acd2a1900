"""
Health Score Engine

Folds a snapshot's sub-assessments into a single 0-100 score.

    overall = 50
            + vision  * 0.15   (if a vision analysis exists)
            + hearing * 0.15   (if a hearing analysis exists)
            + tactile * 0.10   (if a tactile analysis exists)
            + tongue  * 0.10   (if a tongue analysis exists)
            + 10               (if any blood test exists)

Each sub-score is independently clamped to [0, 100] with a base of 50.
Missing analyses contribute nothing; they never raise.
"""

import logging
from typing import Optional

from .constants import (
    HEALTH_SCORE_BASE,
    HEALTH_SCORE_WEIGHTS,
    HEARING_BANDS,
    HEARING_FLOOR_SCORE,
    LAB_PRESENCE_BONUS,
    STRAIN_PENALTIES,
)
from .snapshot import (
    HealthSnapshot,
    VisionAnalysis,
    HearingAnalysis,
    TactileAnalysis,
    TongueAnalysis,
)

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(max(value, low), high)


class HealthScoreEngine:
    """Compute overall and per-sense health scores."""

    def score(self, snapshot: Optional[HealthSnapshot]) -> float:
        if snapshot is None:
            return 0.0

        score = HEALTH_SCORE_BASE

        if snapshot.vision_analysis is not None:
            score += self.vision_score(snapshot.vision_analysis) * HEALTH_SCORE_WEIGHTS["vision"]
        if snapshot.hearing_analysis is not None:
            score += self.hearing_score(snapshot.hearing_analysis) * HEALTH_SCORE_WEIGHTS["hearing"]
        if snapshot.tactile_analysis is not None:
            score += self.tactile_score(snapshot.tactile_analysis) * HEALTH_SCORE_WEIGHTS["tactile"]
        if snapshot.tongue_analysis is not None:
            score += self.tongue_score(snapshot.tongue_analysis) * HEALTH_SCORE_WEIGHTS["tongue"]
        if snapshot.blood_tests:
            score += LAB_PRESENCE_BONUS

        return _clamp(score)

    def vision_score(self, analysis: VisionAnalysis) -> float:
        score = HEALTH_SCORE_BASE

        right = analysis.right_eye
        left = analysis.left_eye
        if right is not None and right.average_acuity is not None:
            score += (right.average_acuity / 20.0) * 20.0
        if left is not None and left.average_acuity is not None:
            score += (left.average_acuity / 20.0) * 20.0

        # Strain is read from the right eye only
        if right is not None and right.average_strain is not None:
            score -= STRAIN_PENALTIES.get(right.average_strain.value, 0.0)

        return _clamp(score)

    def hearing_score(self, analysis: HearingAnalysis) -> float:
        threshold = analysis.average_threshold_db
        if threshold is None:
            return HEALTH_SCORE_BASE

        for upper_db, band_score in HEARING_BANDS:
            if threshold <= upper_db:
                return _clamp(band_score)
        return _clamp(HEARING_FLOOR_SCORE)

    def tactile_score(self, analysis: TactileAnalysis) -> float:
        if analysis.average_sensitivity is None:
            return HEALTH_SCORE_BASE
        return _clamp(analysis.average_sensitivity * 100.0)

    def tongue_score(self, analysis: TongueAnalysis) -> float:
        score = HEALTH_SCORE_BASE
        if analysis.average_taste_score is not None:
            score += analysis.average_taste_score * 25.0
        if analysis.average_mobility_score is not None:
            score += analysis.average_mobility_score * 25.0
        return _clamp(score)

    def breakdown(self, snapshot: HealthSnapshot) -> dict:
        """Per-component scores for display; absent analyses map to None."""
        return {
            "overall": round(self.score(snapshot), 1),
            "vision": self.vision_score(snapshot.vision_analysis) if snapshot.vision_analysis else None,
            "hearing": self.hearing_score(snapshot.hearing_analysis) if snapshot.hearing_analysis else None,
            "tactile": self.tactile_score(snapshot.tactile_analysis) if snapshot.tactile_analysis else None,
            "tongue": self.tongue_score(snapshot.tongue_analysis) if snapshot.tongue_analysis else None,
            "eating": snapshot.eating_score(),
            "emotional": snapshot.emotional_score(),
        }
