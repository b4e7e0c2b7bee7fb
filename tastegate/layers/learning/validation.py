"""
Outcome Validation - Predicted vs Observed

After a post has been live long enough to measure, compares its
conviction score with the engagement it actually earned:
- accuracy = 100 - |predicted - actual| / max(predicted, actual) * 100
- quality buckets: excellent >= 90, good >= 75, fair >= 60,
  poor >= 40, very_poor otherwise
- feedback signals only for errors of 15 points or more

The resulting ValidationRecord is written back onto the content item
and is the input to genome feedback.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ...core.collaborators import MetricsFetcher
from ...core.entities import (
    ActualOutcome,
    ContentItem,
    FeedbackSignal,
    PredictedOutcome,
    PredictionQuality,
    ValidationFeedback,
    ValidationRecord,
    ValidationStatus
)
from ...core.repositories import ContentRepository
from ..intelligence.conviction import round_half_up


logger = logging.getLogger(__name__)


FEEDBACK_DELTA_THRESHOLD = 15
FEEDBACK_WEIGHT_SCALE = 50
HIGH_ENGAGEMENT = 70

QUALITY_THRESHOLDS = [
    (90, PredictionQuality.EXCELLENT),
    (75, PredictionQuality.GOOD),
    (60, PredictionQuality.FAIR),
    (40, PredictionQuality.POOR),
]

TREND_WINDOW = 10


def calculate_accuracy(predicted: float, actual: float) -> int:
    """Percentage accuracy of a prediction, 0-100."""
    if actual == 0:
        return 100 if predicted == 0 else 0

    error = abs(predicted - actual)
    accuracy = 100 - error / max(predicted, actual) * 100
    return max(0, round_half_up(accuracy))


def determine_prediction_quality(accuracy: float) -> PredictionQuality:
    for minimum, quality in QUALITY_THRESHOLDS:
        if accuracy >= minimum:
            return quality
    return PredictionQuality.VERY_POOR


def _instagram_score(ig: dict) -> float:
    likes = ig.get("likes") or 0
    comments = ig.get("comments") or 0
    reach = ig.get("reach") or 0
    if reach:
        rate = (likes + comments * 3 + (ig.get("saved") or 0) * 5) / reach * 100
        return min(100.0, rate * 10)
    return min(100.0, (likes * 0.5 + comments * 2) / 10)


def _tiktok_score(tt: dict) -> float:
    likes = tt.get("likes") or 0
    comments = tt.get("comments") or 0
    shares = tt.get("shares") or 0
    views = tt.get("views") or 0
    if views > 0:
        rate = (likes + comments * 3 + shares * 5) / views * 100
        return min(100.0, rate * 10)
    return min(100.0, (likes * 0.5 + comments * 2 + shares * 3) / 20)


def calculate_engagement_score(metrics: dict) -> int:
    """
    Composite 0-100 engagement from raw platform metrics.

    Platforms reporting an error are ignored; the score is the mean
    across the remaining platforms.
    """
    scores = []

    ig = metrics.get("instagram")
    if isinstance(ig, dict) and not ig.get("error"):
        scores.append(_instagram_score(ig))

    tt = metrics.get("tiktok")
    if isinstance(tt, dict) and not tt.get("error"):
        scores.append(_tiktok_score(tt))

    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def _taste_confidence(predicted_taste: float, actual: float) -> str:
    both_high = predicted_taste >= 70 and actual >= 70
    both_low = predicted_taste < 50 and actual < 50
    if both_high or both_low:
        return "high"
    if abs(predicted_taste - actual) > 30:
        return "low"
    return "medium"


def analyze_components(predicted: PredictedOutcome, actual: ActualOutcome) -> dict:
    """Per-component view of where the prediction went wrong."""
    predicted_performance = predicted.breakdown.performance
    engagement = actual.engagement_score
    delta = engagement - predicted_performance

    if engagement >= HIGH_ENGAGEMENT:
        assessment = "underestimated" if engagement > predicted_performance else "accurate"
    else:
        assessment = "overestimated" if engagement < predicted_performance else "accurate"

    # Taste has no direct observable; engagement stands in for it
    predicted_taste = 0
    return {
        "performance": {
            "predicted": predicted_performance,
            "actual": engagement,
            "delta": delta,
            "assessment": assessment,
        },
        "taste": {
            "predicted": predicted_taste,
            "proxy": engagement,
            "confidence": _taste_confidence(predicted_taste, engagement),
        },
        "brand": {
            "predicted": predicted.breakdown.brand,
            "note": "Brand validation requires multi-post consistency tracking",
        },
    }


def generate_feedback(record: ValidationRecord) -> ValidationFeedback:
    """Directional feedback signals for errors of 15 points or more."""
    feedback = ValidationFeedback()
    delta = record.actual.engagement_score - record.predicted.conviction_score
    if abs(delta) < FEEDBACK_DELTA_THRESHOLD:
        return feedback

    archetype = record.predicted.archetype_match
    feedback.should_update_genome = True
    feedback.weight = min(1.0, abs(delta) / FEEDBACK_WEIGHT_SCALE)

    if delta > 0:
        feedback.signals.append(FeedbackSignal(
            type="underestimated",
            action="increase_archetype_confidence",
            message="Content performed better than predicted",
            archetype=archetype,
            magnitude=delta
        ))
    else:
        feedback.signals.append(FeedbackSignal(
            type="overestimated",
            action="decrease_archetype_confidence",
            message="Content performed worse than predicted",
            archetype=archetype,
            magnitude=abs(delta)
        ))

    performance = record.component_analysis.get("performance")
    if performance:
        feedback.signals.append(FeedbackSignal(
            type="performance_component",
            action=(
                "reduce_performance_weight"
                if performance["assessment"] == "overestimated"
                else "increase_performance_weight"
            ),
            assessment=performance["assessment"],
            delta=performance["delta"]
        ))

    if record.was_user_override and delta >= FEEDBACK_DELTA_THRESHOLD:
        feedback.signals.append(FeedbackSignal(
            type="successful_override",
            action="boost_override_confidence",
            message="User override led to strong performance",
            archetype=archetype,
            magnitude=delta
        ))
        feedback.weight = min(1.0, feedback.weight * 2)

    return feedback


def _improvement_rate(accuracies: list[int]) -> int:
    """Second-half mean minus first-half mean, oldest first."""
    if len(accuracies) < 3:
        return 0
    midpoint = len(accuracies) // 2
    first, second = accuracies[:midpoint], accuracies[midpoint:]
    return round_half_up(sum(second) / len(second) - sum(first) / len(first))


class ConvictionValidator:
    """
    Validates conviction predictions against observed metrics.

    Provides:
    - Single and batch validation
    - Accuracy statistics across validated content
    """

    def __init__(
        self,
        contents: ContentRepository,
        metrics: MetricsFetcher,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._contents = contents
        self._metrics = metrics
        self._clock = clock

    async def validate_conviction(self, content_id: str) -> ValidationRecord:
        """
        Compare a content item's conviction with its observed engagement.

        Short-circuits with a status-only record when the content is
        missing, has no conviction, or has not been posted.
        """
        content = await self._contents.get(content_id)
        if content is None:
            return ValidationRecord(
                content_id=content_id,
                status=ValidationStatus.NOT_FOUND,
                message="Content not found",
                calculated_at=self._clock()
            )

        conviction = content.conviction
        if conviction is None:
            return ValidationRecord(
                content_id=content_id,
                status=ValidationStatus.NO_CONVICTION,
                message="No conviction score to validate",
                calculated_at=self._clock()
            )

        report = await self._metrics.fetch_metrics(content_id)
        if report.status == "not_posted":
            return ValidationRecord(
                content_id=content_id,
                status=ValidationStatus.NOT_POSTED,
                message="Content not posted yet - cannot validate",
                calculated_at=self._clock()
            )

        engagement = report.engagement_score
        if engagement is None:
            engagement = calculate_engagement_score(report.metrics)

        record = ValidationRecord(
            content_id=content_id,
            status=ValidationStatus.VALIDATED,
            predicted=PredictedOutcome(
                conviction_score=conviction.score,
                tier=conviction.tier,
                breakdown=conviction.breakdown,
                archetype_match=conviction.archetype_match
            ),
            actual=ActualOutcome(
                engagement_score=engagement,
                metrics=dict(report.metrics),
                posted_at=report.posted_at
            ),
            was_user_override=conviction.override_active,
            calculated_at=self._clock()
        )
        record.accuracy = calculate_accuracy(conviction.score, engagement)
        record.prediction_quality = determine_prediction_quality(record.accuracy)
        record.component_analysis = analyze_components(record.predicted, record.actual)
        record.feedback = generate_feedback(record)

        content.conviction_validation = record
        await self._contents.save(content)

        logger.info(
            "Validated content %s: predicted %d, actual %.0f, accuracy %d (%s)",
            content_id,
            conviction.score,
            engagement,
            record.accuracy,
            record.prediction_quality.value
        )
        return record

    async def batch_validate(self, content_ids: list[str]) -> list[ValidationRecord]:
        """Validate each id; a failure is recorded and the batch continues."""
        results = []
        for content_id in content_ids:
            try:
                results.append(await self.validate_conviction(content_id))
            except Exception as e:
                logger.exception("Validation failed for content %s", content_id)
                results.append(ValidationRecord(
                    content_id=content_id,
                    status=ValidationStatus.ERROR,
                    message=str(e),
                    calculated_at=self._clock()
                ))
        return results

    async def get_accuracy_stats(self, subject_id: Optional[str] = None) -> dict:
        """Accuracy statistics over validated content."""

        def is_validated(content: ContentItem) -> bool:
            if subject_id is not None and content.subject_id != subject_id:
                return False
            validation = content.conviction_validation
            return validation is not None and validation.is_validated

        validated = [c.conviction_validation for c in await self._contents.find(is_validated)]
        by_quality = {q.value: 0 for q in PredictionQuality}

        if not validated:
            return {
                "total_validations": 0,
                "avg_accuracy": 0,
                "accuracy_trend": [],
                "by_quality": by_quality,
                "improvement_rate": 0,
            }

        for record in validated:
            by_quality[record.prediction_quality.value] += 1

        recent = sorted(validated, key=lambda r: r.calculated_at, reverse=True)[:TREND_WINDOW]
        trend = [{"accuracy": r.accuracy, "date": r.calculated_at} for r in recent]

        return {
            "total_validations": len(validated),
            "avg_accuracy": round_half_up(sum(r.accuracy for r in validated) / len(validated)),
            "accuracy_trend": trend,
            "by_quality": by_quality,
            "improvement_rate": _improvement_rate([r.accuracy for r in reversed(recent)]),
        }
