"""
Genome Feedback - Closing the Conviction Loop

Writes validation outcomes back into a subject's genome:
- Archetype confidence: +/-0.05 per underestimated/overestimated
  signal, bounded to [0.5, 1.5]; feeds the classifier as a prior
- Scorer weights: performance/taste nudged by 0.02 per
  performance_component signal, then renormalized to sum to 1
- Accuracy history: capped at 100 entries, overall accuracy is a
  linearly weighted mean favouring recent entries

Learning only moves on significant errors; small misses produce no
feedback signals upstream.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ...core.entities import (
    ACCURACY_HISTORY_CAP,
    AccuracyEntry,
    ArchetypeAdjustment,
    FeedbackSignal,
    Genome,
    LearningState,
    ValidationRecord
)
from ...core.repositories import GenomeRepository
from ...core.taxonomy import ARCHETYPES
from ..intelligence.conviction import round_half_up
from .classifier import update_archetype_from_signals


logger = logging.getLogger(__name__)


ARCHETYPE_LEARNING_RATE = 0.05
MIN_ARCHETYPE_CONFIDENCE = 0.5
MAX_ARCHETYPE_CONFIDENCE = 1.5

WEIGHT_LEARNING_RATE = 0.02
PERFORMANCE_WEIGHT_BOUNDS = (0.1, 0.5)
TASTE_WEIGHT_BOUNDS = (0.3, 0.7)

PROGRESS_WINDOW = 20
MIN_PROGRESS_HISTORY = 6


@dataclass
class FeedbackResult:
    """Outcome of applying one validation to a genome."""
    content_id: str = ""
    updated: bool = False
    message: str = ""
    feedback_applied: int = 0
    new_accuracy: Optional[int] = None
    version: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ArchetypeInsight:
    archetype: str
    confidence: float
    adjustments: int
    performance_delta: float
    trend: str  # improving, declining, stable


@dataclass
class LearningProgress:
    has_learning: bool = False
    message: str = ""
    total_feedback_events: int = 0
    overall_accuracy: int = 0
    improvement_rate: Optional[dict] = None
    archetype_insights: list[ArchetypeInsight] = field(default_factory=list)
    current_weights: dict[str, float] = field(default_factory=dict)
    last_updated: Optional[datetime] = None
    version: int = 1
    accuracy_trend: list[dict] = field(default_factory=list)


def adjust_archetype_confidence(
    learning: LearningState,
    signal: FeedbackSignal,
    now: datetime
) -> None:
    # Unclassified genomes report the VOID sentinel, which has nothing to learn
    if signal.archetype not in ARCHETYPES:
        return

    adjustment = learning.archetype_adjustments.setdefault(
        signal.archetype, ArchetypeAdjustment()
    )
    if signal.type == "underestimated":
        adjustment.confidence = min(
            MAX_ARCHETYPE_CONFIDENCE, adjustment.confidence + ARCHETYPE_LEARNING_RATE
        )
        adjustment.performance_delta += signal.magnitude
    elif signal.type == "overestimated":
        adjustment.confidence = max(
            MIN_ARCHETYPE_CONFIDENCE, adjustment.confidence - ARCHETYPE_LEARNING_RATE
        )
        adjustment.performance_delta -= signal.magnitude

    adjustment.total_adjustments += 1
    adjustment.last_adjusted = now


def adjust_component_weights(learning: LearningState, signal: FeedbackSignal) -> None:
    weights = learning.weights
    performance = weights.get("performance", 0.3)
    taste = weights.get("taste", 0.5)
    brand = weights.get("brand", 0.2)

    if signal.action == "reduce_performance_weight":
        performance = max(PERFORMANCE_WEIGHT_BOUNDS[0], performance - WEIGHT_LEARNING_RATE)
        taste = min(TASTE_WEIGHT_BOUNDS[1], taste + WEIGHT_LEARNING_RATE)
    elif signal.action == "increase_performance_weight":
        performance = min(PERFORMANCE_WEIGHT_BOUNDS[1], performance + WEIGHT_LEARNING_RATE)
        taste = max(TASTE_WEIGHT_BOUNDS[0], taste - WEIGHT_LEARNING_RATE)

    total = performance + taste + brand
    learning.weights = {
        "performance": performance / total,
        "taste": taste / total,
        "brand": brand / total,
    }


def calculate_overall_accuracy(history: list[AccuracyEntry]) -> int:
    """Linearly weighted mean; the newest entry weighs the most."""
    if not history:
        return 0
    weighted = sum(entry.accuracy * (i + 1) for i, entry in enumerate(history))
    total = len(history) * (len(history) + 1) / 2
    return round_half_up(weighted / total)


def calculate_improvement_rate(history: list[AccuracyEntry]) -> Optional[dict]:
    """Change between the older and newer halves of the history."""
    if len(history) < MIN_PROGRESS_HISTORY:
        return None

    midpoint = len(history) // 2
    first = [e.accuracy for e in history[:midpoint]]
    second = [e.accuracy for e in history[midpoint:]]
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)

    if second_avg > first_avg:
        direction = "improving"
    elif second_avg < first_avg:
        direction = "declining"
    else:
        direction = "stable"
    return {"delta": round_half_up(second_avg - first_avg), "direction": direction}


def apply_feedback(
    genome: Genome,
    validation: ValidationRecord,
    now: datetime = None
) -> FeedbackResult:
    """
    Apply one validation's feedback to a genome in place.

    No I/O; the caller persists the genome.
    """
    if not validation.feedback.should_update_genome:
        return FeedbackResult(
            content_id=validation.content_id,
            updated=False,
            message="No genome update needed"
        )

    now = now or datetime.now()
    learning = genome.learning
    signals = validation.feedback.signals

    learning.total_feedback_events += 1
    learning.last_updated = now

    for signal in signals:
        if signal.type in ("underestimated", "overestimated"):
            adjust_archetype_confidence(learning, signal, now)
        elif signal.type == "performance_component":
            adjust_component_weights(learning, signal)

    learning.accuracy_history.append(AccuracyEntry(
        accuracy=validation.accuracy,
        conviction_score=validation.predicted.conviction_score if validation.predicted else 0,
        actual_score=validation.actual.engagement_score if validation.actual else 0.0,
        content_id=validation.content_id,
        timestamp=now
    ))
    if len(learning.accuracy_history) > ACCURACY_HISTORY_CAP:
        del learning.accuracy_history[:len(learning.accuracy_history) - ACCURACY_HISTORY_CAP]

    learning.overall_accuracy = calculate_overall_accuracy(learning.accuracy_history)
    learning.version += 1

    if genome.signals:
        update_archetype_from_signals(genome, now)
    genome.last_updated = now

    return FeedbackResult(
        content_id=validation.content_id,
        updated=True,
        message="Feedback applied",
        feedback_applied=len(signals),
        new_accuracy=learning.overall_accuracy,
        version=learning.version
    )


def reset_learning_state(genome: Genome, now: datetime = None) -> Genome:
    """Zero learning and restore default weights; the archetype drops its priors."""
    now = now or datetime.now()
    genome.learning = LearningState(last_updated=now)
    update_archetype_from_signals(genome, now)
    genome.last_updated = now
    return genome


def get_learning_progress_for(genome: Genome) -> LearningProgress:
    learning = genome.learning
    if learning.total_feedback_events == 0 and not learning.accuracy_history:
        return LearningProgress(
            has_learning=False,
            message="No learning data yet",
            current_weights=dict(learning.weights),
            version=learning.version
        )

    recent = learning.accuracy_history[-PROGRESS_WINDOW:]
    insights = []
    for archetype, data in learning.archetype_adjustments.items():
        if data.confidence > 1.0:
            trend = "improving"
        elif data.confidence < 1.0:
            trend = "declining"
        else:
            trend = "stable"
        insights.append(ArchetypeInsight(
            archetype=archetype,
            confidence=data.confidence,
            adjustments=data.total_adjustments,
            performance_delta=data.performance_delta,
            trend=trend
        ))
    insights.sort(key=lambda i: i.confidence, reverse=True)

    return LearningProgress(
        has_learning=True,
        total_feedback_events=learning.total_feedback_events,
        overall_accuracy=learning.overall_accuracy,
        improvement_rate=calculate_improvement_rate(recent),
        archetype_insights=insights,
        current_weights=dict(learning.weights),
        last_updated=learning.last_updated,
        version=learning.version,
        accuracy_trend=[{"accuracy": e.accuracy, "date": e.timestamp} for e in recent]
    )


class GenomeFeedbackService:
    """
    Repository-backed feedback application.

    Provides:
    - Single and batch feedback application
    - Learning progress reports
    - Learning reset
    """

    def __init__(
        self,
        genomes: GenomeRepository,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._genomes = genomes
        self._clock = clock

    async def apply_feedback_to_genome(
        self,
        validation: ValidationRecord,
        subject_id: str
    ) -> FeedbackResult:
        if not validation.feedback.should_update_genome:
            return FeedbackResult(
                content_id=validation.content_id,
                updated=False,
                message="No genome update needed"
            )

        genome = await self._genomes.get(subject_id)
        if genome is None:
            logger.warning("Genome for subject %s not found, feedback skipped", subject_id)
            return FeedbackResult(
                content_id=validation.content_id,
                updated=False,
                message="Genome not found - cannot apply feedback"
            )

        result = apply_feedback(genome, validation, self._clock())
        await self._genomes.save(genome)

        logger.info(
            "Applied %d feedback signal(s) to genome %s (accuracy %s, version %s)",
            result.feedback_applied,
            subject_id,
            result.new_accuracy,
            result.version
        )
        return result

    async def batch_process_feedback(
        self,
        validations: list[ValidationRecord],
        subject_id: str
    ) -> list[FeedbackResult]:
        """Apply each validation; one failure does not stop the batch."""
        results = []
        for validation in validations:
            try:
                results.append(await self.apply_feedback_to_genome(validation, subject_id))
            except Exception as e:
                logger.exception(
                    "Feedback failed for content %s on genome %s",
                    validation.content_id,
                    subject_id
                )
                results.append(FeedbackResult(
                    content_id=validation.content_id,
                    updated=False,
                    error=str(e)
                ))
        return results

    async def get_learning_progress(self, subject_id: str) -> LearningProgress:
        genome = await self._genomes.get(subject_id)
        if genome is None:
            return LearningProgress(has_learning=False, message="No learning data yet")
        return get_learning_progress_for(genome)

    async def reset_learning(self, subject_id: str) -> bool:
        genome = await self._genomes.get(subject_id)
        if genome is None:
            logger.warning("Reset requested for unknown subject %s", subject_id)
            return False

        reset_learning_state(genome, self._clock())
        await self._genomes.save(genome)
        logger.info("Reset learning state for subject %s", subject_id)
        return True
