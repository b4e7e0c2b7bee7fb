"""
Archetype Classifier - Online Taste Classification

Maintains a probability distribution over the archetype taxonomy from
a subject's signal log:

1. Each stored signal carries per-archetype pulls (hint, type and
   metadata affinities) already scaled by polarity.
2. Running score per archetype = sum(pull * |weight| * decay), with
   decay = 0.99 ** age_days.
3. Distribution = softmax(scores / T) reweighted by the archetype
   confidence learned from outcome feedback (1.0 is neutral).
4. Primary = arg-max (taxonomy order breaks ties); secondary only
   above a probability floor.

The log is capped at SIGNAL_CAP entries (oldest evicted first) while
`item_count` keeps the true total. Recomputing from an unchanged log
at the same instant is exact; between instants only decay moves it.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from ...core.entities import (
    SIGNAL_CAP,
    ArchetypeAssignment,
    ArchetypeProfile,
    Genome,
    Signal
)
from ...core.taxonomy import ARCHETYPES, DESIGNATIONS, VOID_ARCHETYPE, get_archetype
from .gamification import ACHIEVEMENTS, get_current_tier, update_gamification
from .keywords import get_avoid_keywords, get_top_keywords, update_keyword_scores
from .signals import normalize_signal, signed_weight, texts_for_keywords


SOFTMAX_TEMPERATURE = 8.0
DAILY_DECAY = 0.99
SECONDARY_FLOOR = 0.12

MAX_CONFIDENCE = 0.95
RECENT_WINDOW = timedelta(days=30)


def create_genome(subject_id: str, now: datetime = None) -> Genome:
    """Empty genome classified as VOID."""
    now = now or datetime.now()
    genome = Genome(subject_id=subject_id, created_at=now, last_updated=now)
    update_archetype_from_signals(genome, now)
    return genome


def _age_days(signal: Signal, now: datetime) -> float:
    return max(0.0, (now - signal.timestamp).total_seconds() / 86400.0)


def _archetype_scores(genome: Genome, now: datetime) -> dict[str, float]:
    scores = {d: 0.0 for d in DESIGNATIONS}
    for signal in genome.signals:
        decay = DAILY_DECAY ** _age_days(signal, now)
        magnitude = abs(signal.weight or 0.0)
        for designation, pull in signal.archetype_weights.items():
            if designation in scores:
                scores[designation] += pull * magnitude * decay
    return scores


def _learned_prior(genome: Genome, designation: str) -> float:
    adjustment = genome.learning.archetype_adjustments.get(designation)
    return adjustment.confidence if adjustment else 1.0


def _softmax(genome: Genome, scores: dict[str, float]) -> dict[str, float]:
    peak = max(scores.values())
    mass = {
        d: math.exp((s - peak) / SOFTMAX_TEMPERATURE) * _learned_prior(genome, d)
        for d, s in scores.items()
    }
    total = sum(mass.values())
    if total <= 0 or not math.isfinite(total):
        return {d: 1.0 / len(scores) for d in scores}
    return {d: m / total for d, m in mass.items()}


def _clarity(distribution: dict[str, float]) -> float:
    max_entropy = math.log(len(distribution))
    entropy = -sum(p * math.log(p) for p in distribution.values() if p > 0)
    return max(0.0, 1.0 - entropy / max_entropy)


def _assignment(designation: str, probability: float) -> ArchetypeAssignment:
    return ArchetypeAssignment(
        designation=designation,
        glyph=get_archetype(designation).glyph,
        confidence=probability
    )


def update_archetype_from_signals(genome: Genome, now: datetime = None) -> ArchetypeProfile:
    """Recompute the archetype profile from the full signal log."""
    now = now or datetime.now()

    if not genome.signals:
        uniform = 1.0 / len(DESIGNATIONS)
        genome.archetype = ArchetypeProfile(
            primary=ArchetypeAssignment(
                designation=VOID_ARCHETYPE.designation,
                glyph=VOID_ARCHETYPE.glyph,
                confidence=0.0
            ),
            secondary=None,
            distribution={d: uniform for d in DESIGNATIONS},
            clarity=0.0,
            classified_at=now
        )
        return genome.archetype

    distribution = _softmax(genome, _archetype_scores(genome, now))
    ranked = sorted(DESIGNATIONS, key=lambda d: distribution[d], reverse=True)
    primary, runner_up = ranked[0], ranked[1]

    genome.archetype = ArchetypeProfile(
        primary=_assignment(primary, distribution[primary]),
        secondary=(
            _assignment(runner_up, distribution[runner_up])
            if distribution[runner_up] > SECONDARY_FLOOR else None
        ),
        distribution=distribution,
        clarity=_clarity(distribution),
        classified_at=now
    )
    return genome.archetype


def calculate_confidence(genome: Genome, now: datetime = None) -> float:
    """
    Genome confidence from volume, recency and diversity.

    0.4 * volume (item_count / 50) + 0.4 * recency (signals in the
    last 30 days / 20) + 0.2 * diversity (distinct types / 5), each
    saturating at 1 and the total capped at 0.95.
    """
    if genome.item_count <= 0 and not genome.signals:
        return 0.0

    now = now or datetime.now()
    recent = sum(1 for s in genome.signals if now - s.timestamp <= RECENT_WINDOW)
    distinct_types = len({s.type for s in genome.signals})

    volume = min(genome.item_count / 50, 1.0)
    recency = min(recent / 20, 1.0)
    diversity = min(distinct_types / 5, 1.0)

    return min(MAX_CONFIDENCE, volume * 0.4 + recency * 0.4 + diversity * 0.2)


def record_signal(genome: Genome, signal: Signal, now: datetime = None) -> Genome:
    """
    Append one signal and refresh everything derived from it.

    Never raises on malformed hints or weights; those are normalized
    away. Mutates and returns `genome`.
    """
    now = now or datetime.now()
    stored = normalize_signal(signal)

    genome.signals.append(stored)
    if len(genome.signals) > SIGNAL_CAP:
        del genome.signals[:len(genome.signals) - SIGNAL_CAP]
    genome.item_count += 1

    delta = signed_weight(stored)
    matched = []
    if delta:
        for text in texts_for_keywords(stored):
            matched.extend(
                update_keyword_scores(genome, text, delta, stored.metadata.platform)
            )

    genome.confidence = calculate_confidence(genome, now)
    update_archetype_from_signals(genome, now)
    update_gamification(
        genome,
        stored.type,
        now,
        styles=[k.split(".")[-1] for k in matched if k.startswith("visual.style.")],
        hooks=[k.split(".")[-1] for k in matched if k.startswith("content.hooks.")]
    )
    genome.last_updated = now
    return genome


def _describe(assignment: Optional[ArchetypeAssignment]) -> Optional[dict]:
    if assignment is None or assignment.designation not in ARCHETYPES:
        return None
    archetype = ARCHETYPES[assignment.designation]
    return {
        "designation": archetype.designation,
        "glyph": archetype.glyph,
        "title": archetype.title,
        "essence": archetype.essence,
        "creative_mode": archetype.creative_mode,
        "color": archetype.color,
        "confidence": assignment.confidence,
    }


def get_genome_summary(genome: Genome) -> dict:
    """Display projection of a genome."""
    archetype = _describe(genome.archetype.primary)
    if archetype is not None:
        archetype["clarity"] = genome.archetype.clarity
        archetype["secondary"] = _describe(genome.archetype.secondary)

    state = genome.gamification
    return {
        "subject_id": genome.subject_id,
        "archetype": archetype,
        "tier": get_current_tier(genome),
        "top_keywords": get_top_keywords(genome, None, 8),
        "avoid_keywords": get_avoid_keywords(genome, 5),
        "confidence": genome.confidence,
        "item_count": genome.item_count,
        "gamification": {
            "xp": state.xp,
            "streak": state.streak,
            "longest_streak": state.longest_streak,
            "achievements": len(state.achievements),
            "total_achievements": len(ACHIEVEMENTS),
        },
    }
