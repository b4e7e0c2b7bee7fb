"""Tests for outcome validation.

Covers accuracy and quality formulas, the engagement composite,
feedback generation thresholds, validator statuses and accuracy
statistics.
"""

import pytest

from tastegate.core.collaborators import MetricsReport
from tastegate.core.entities import (
    ContentItem,
    Conviction,
    ConvictionBreakdown,
    ConvictionTier,
    PredictionQuality,
    UserOverride,
    ValidationStatus,
)
from tastegate.layers.learning.validation import (
    ConvictionValidator,
    calculate_accuracy,
    calculate_engagement_score,
    determine_prediction_quality,
)

from conftest import FakeMetrics


# ── Factories ──────────────────────────────────────────────────────


def _published(content_id, score=80, performance=85, override=False, subject_id="subject-1"):
    return ContentItem(
        id=content_id,
        subject_id=subject_id,
        caption="Published piece",
        conviction=Conviction(
            score=score,
            tier=ConvictionTier.HIGH,
            breakdown=ConvictionBreakdown(performance=performance, brand=70),
            archetype_match="V-2",
            user_override=UserOverride(active=True) if override else None,
        ),
    )


def _posted(engagement=None, metrics=None) -> MetricsReport:
    return MetricsReport(status="posted", engagement_score=engagement, metrics=metrics or {})


# ── Formulas ──────────────────────────────────────────────────────


@pytest.mark.parametrize("predicted,actual,accuracy", [
    (80, 80, 100),
    (80, 60, 75),
    (80, 40, 50),
    (80, 72, 90),
    (0, 0, 100),
    (50, 0, 0),
    (0, 50, 0),
])
def test_accuracy(predicted, actual, accuracy):
    assert calculate_accuracy(predicted, actual) == accuracy


@pytest.mark.parametrize("accuracy,quality", [
    (100, PredictionQuality.EXCELLENT),
    (90, PredictionQuality.EXCELLENT),
    (89, PredictionQuality.GOOD),
    (75, PredictionQuality.GOOD),
    (60, PredictionQuality.FAIR),
    (40, PredictionQuality.POOR),
    (39, PredictionQuality.VERY_POOR),
])
def test_prediction_quality(accuracy, quality):
    assert determine_prediction_quality(accuracy) == quality


class TestEngagementScore:
    def test_instagram_with_reach(self):
        metrics = {"instagram": {"likes": 20, "comments": 2, "saved": 1, "reach": 1000}}
        assert calculate_engagement_score(metrics) == 31

    def test_instagram_without_reach(self):
        assert calculate_engagement_score({"instagram": {"likes": 100, "comments": 10}}) == 7

    def test_tiktok_without_views(self):
        metrics = {"tiktok": {"likes": 100, "comments": 10, "shares": 5}}
        assert calculate_engagement_score(metrics) == 4

    def test_capped_at_100(self):
        metrics = {"tiktok": {"likes": 500, "comments": 50, "shares": 50, "views": 1000}}
        assert calculate_engagement_score(metrics) == 100

    def test_platforms_are_averaged(self):
        metrics = {
            "instagram": {"likes": 20, "comments": 2, "saved": 1, "reach": 1000},
            "tiktok": {"likes": 100, "comments": 10, "shares": 5},
        }
        assert calculate_engagement_score(metrics) == 18

    def test_errored_platform_is_ignored(self):
        metrics = {
            "instagram": {"error": "token expired"},
            "tiktok": {"likes": 100, "comments": 10, "shares": 5},
        }
        assert calculate_engagement_score(metrics) == 4

    def test_no_metrics(self):
        assert calculate_engagement_score({}) == 0


# ── Validator ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_missing_content(contents, clock):
    validator = ConvictionValidator(contents, FakeMetrics(), clock)
    record = await validator.validate_conviction("nope")
    assert record.status == ValidationStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_content_without_conviction(contents, clock):
    await contents.save(ContentItem(id="c-1"))
    validator = ConvictionValidator(contents, FakeMetrics(), clock)

    record = await validator.validate_conviction("c-1")
    assert record.status == ValidationStatus.NO_CONVICTION


@pytest.mark.asyncio
async def test_not_posted(contents, clock):
    await contents.save(_published("c-1"))
    validator = ConvictionValidator(contents, FakeMetrics(), clock)

    record = await validator.validate_conviction("c-1")

    assert record.status == ValidationStatus.NOT_POSTED
    assert not record.is_validated
    assert (await contents.get("c-1")).conviction_validation is None


@pytest.mark.asyncio
async def test_overestimate_produces_feedback(contents, clock):
    await contents.save(_published("c-1", score=80, performance=85))
    validator = ConvictionValidator(contents, FakeMetrics({"c-1": _posted(50)}), clock)

    record = await validator.validate_conviction("c-1")

    assert record.is_validated
    assert record.accuracy == 63
    assert record.prediction_quality == PredictionQuality.FAIR
    assert record.predicted.archetype_match == "V-2"
    assert record.component_analysis["performance"]["assessment"] == "overestimated"

    feedback = record.feedback
    assert feedback.should_update_genome
    assert feedback.weight == pytest.approx(0.6)
    assert [s.type for s in feedback.signals] == ["overestimated", "performance_component"]
    assert feedback.signals[0].magnitude == 30
    assert feedback.signals[0].archetype == "V-2"
    assert feedback.signals[1].action == "reduce_performance_weight"

    stored = await contents.get("c-1")
    assert stored.conviction_validation.accuracy == 63
    assert stored.conviction_validation.calculated_at == clock.now


@pytest.mark.asyncio
async def test_successful_override(contents, clock):
    await contents.save(_published("c-1", score=50, performance=50, override=True))
    validator = ConvictionValidator(contents, FakeMetrics({"c-1": _posted(90)}), clock)

    record = await validator.validate_conviction("c-1")

    assert record.was_user_override
    assert record.accuracy == 56
    assert record.prediction_quality == PredictionQuality.POOR
    types = [s.type for s in record.feedback.signals]
    assert types == ["underestimated", "performance_component", "successful_override"]
    assert record.feedback.signals[1].action == "increase_performance_weight"
    assert record.feedback.weight == 1.0


@pytest.mark.asyncio
async def test_small_miss_has_no_feedback(contents, clock):
    await contents.save(_published("c-1", score=70))
    validator = ConvictionValidator(contents, FakeMetrics({"c-1": _posted(75)}), clock)

    record = await validator.validate_conviction("c-1")

    assert record.is_validated
    assert not record.feedback.should_update_genome
    assert record.feedback.signals == []


@pytest.mark.asyncio
async def test_engagement_computed_from_metrics(contents, clock):
    await contents.save(_published("c-1", score=31))
    metrics = {"instagram": {"likes": 20, "comments": 2, "saved": 1, "reach": 1000}}
    validator = ConvictionValidator(contents, FakeMetrics({"c-1": _posted(metrics=metrics)}), clock)

    record = await validator.validate_conviction("c-1")

    assert record.actual.engagement_score == 31
    assert record.accuracy == 100


@pytest.mark.asyncio
async def test_batch_continues_after_error(contents, clock):
    await contents.save(_published("c-1"))
    await contents.save(_published("c-2"))
    metrics = FakeMetrics({"c-1": RuntimeError("metrics api down"), "c-2": _posted(80)})
    validator = ConvictionValidator(contents, metrics, clock)

    records = await validator.batch_validate(["c-1", "c-2"])

    assert [r.status for r in records] == [ValidationStatus.ERROR, ValidationStatus.VALIDATED]
    assert records[0].message == "metrics api down"


# ── Statistics ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_accuracy_stats(contents, clock):
    engagements = [40, 60, 72, 80]  # accuracies 50, 75, 90, 100
    reports = {}
    for i, engagement in enumerate(engagements):
        await contents.save(_published(f"c-{i}", score=80))
        reports[f"c-{i}"] = _posted(engagement)
    await contents.save(_published("other", score=80, subject_id="subject-2"))
    reports["other"] = _posted(20)

    validator = ConvictionValidator(contents, FakeMetrics(reports), clock)
    for content_id in reports:
        await validator.validate_conviction(content_id)
        clock.advance(hours=1)

    stats = await validator.get_accuracy_stats("subject-1")

    assert stats["total_validations"] == 4
    assert stats["avg_accuracy"] == 79
    assert [t["accuracy"] for t in stats["accuracy_trend"]] == [100, 90, 75, 50]
    assert stats["by_quality"]["excellent"] == 2
    assert stats["by_quality"]["good"] == 1
    assert stats["by_quality"]["poor"] == 1
    assert stats["improvement_rate"] == 33

    everything = await validator.get_accuracy_stats()
    assert everything["total_validations"] == 5


@pytest.mark.asyncio
async def test_accuracy_stats_empty(contents, clock):
    validator = ConvictionValidator(contents, FakeMetrics(), clock)
    stats = await validator.get_accuracy_stats()

    assert stats["total_validations"] == 0
    assert stats["accuracy_trend"] == []
    assert stats["improvement_rate"] == 0
