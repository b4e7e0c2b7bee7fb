"""
Signal Normalization

Turns a raw behavioural signal into the immutable record the genome
stores:
- Weight: requested or per-type default, clamped to [0.1, 3.0]
- Polarity: +1 / 0 / -1 from explicit polarity, Likert score or type
- Archetype pulls: hint, type affinities and metadata flags

Malformed input never raises; an unusable hint simply contributes
no directional pull.
"""

import math
from dataclasses import replace
from typing import Any

from ...core.entities import Signal, SignalMetadata
from ...core.taxonomy import (
    ARCHETYPES,
    DEFAULT_SIGNAL_WEIGHT,
    MAX_SIGNAL_WEIGHT,
    METADATA_ARCHETYPE_AFFINITIES,
    MIN_SIGNAL_WEIGHT,
    NEGATIVE_SIGNAL_TYPES,
    NEUTRAL_SIGNAL_TYPES,
    SIGNAL_ARCHETYPE_AFFINITIES,
    SIGNAL_WEIGHTS
)


POSITIVE_POLARITY_LABELS = frozenset({"best", "positive", "like", "up"})
NEGATIVE_POLARITY_LABELS = frozenset({"worst", "negative", "dislike", "down"})
NEUTRAL_POLARITY_LABELS = frozenset({"neutral", "none"})

POSITIVE_SCORE_THRESHOLD = 4
NEGATIVE_SCORE_THRESHOLD = 2


def _as_number(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return None


def clamp_weight(signal_type: str, requested: Any = None) -> float:
    """Requested weight (or the type default) clamped to the allowed range."""
    weight = _as_number(requested)
    if weight is None:
        weight = SIGNAL_WEIGHTS.get(signal_type, DEFAULT_SIGNAL_WEIGHT)
    return max(MIN_SIGNAL_WEIGHT, min(MAX_SIGNAL_WEIGHT, weight))


def resolve_polarity(signal_type: str, metadata: SignalMetadata) -> float:
    """
    Direction of a signal.

    Explicit polarity wins, then the Likert score (>=4 positive,
    <=2 negative, otherwise neutral), then the signal type.
    """
    explicit = metadata.polarity
    if isinstance(explicit, str):
        label = explicit.strip().lower()
        if label in POSITIVE_POLARITY_LABELS:
            return 1.0
        if label in NEGATIVE_POLARITY_LABELS:
            return -1.0
        if label in NEUTRAL_POLARITY_LABELS:
            return 0.0
    else:
        number = _as_number(explicit)
        if number is not None:
            return float((number > 0) - (number < 0))

    score = _as_number(metadata.score)
    if score is not None:
        if score >= POSITIVE_SCORE_THRESHOLD:
            return 1.0
        if score <= NEGATIVE_SCORE_THRESHOLD:
            return -1.0
        return 0.0

    if signal_type in NEGATIVE_SIGNAL_TYPES:
        return -1.0
    if signal_type in NEUTRAL_SIGNAL_TYPES:
        return 0.0
    return 1.0


def infer_archetype_weights(
    signal_type: str,
    metadata: SignalMetadata,
    polarity: float
) -> dict[str, float]:
    """
    Per-archetype pull of one signal, before weight and decay.

    A valid hint pulls its archetype by `polarity`; type affinities
    pull by `affinity * polarity`; metadata flags add pull only for
    positive signals.
    """
    pulls: dict[str, float] = {}
    if polarity == 0:
        return pulls

    for designation, affinity in SIGNAL_ARCHETYPE_AFFINITIES.get(signal_type, {}).items():
        pulls[designation] = pulls.get(designation, 0.0) + affinity * polarity

    if polarity > 0:
        for flag, affinities in METADATA_ARCHETYPE_AFFINITIES.items():
            if getattr(metadata, flag, False):
                for designation, affinity in affinities.items():
                    pulls[designation] = pulls.get(designation, 0.0) + affinity

    hint = metadata.archetype_hint
    if isinstance(hint, str) and hint in ARCHETYPES:
        pulls[hint] = pulls.get(hint, 0.0) + polarity

    return pulls


def normalize_signal(signal: Signal) -> Signal:
    """Return the stored form of a signal."""
    metadata = signal.metadata if isinstance(signal.metadata, SignalMetadata) else SignalMetadata()
    signal_type = signal.type or "unknown"
    polarity = resolve_polarity(signal_type, metadata)

    return replace(
        signal,
        type=signal_type,
        metadata=metadata,
        weight=clamp_weight(signal_type, signal.weight),
        polarity=polarity,
        archetype_weights=infer_archetype_weights(signal_type, metadata, polarity)
    )


def signed_weight(signal: Signal) -> float:
    """Weight carrying the signal's direction."""
    return (signal.weight or 0.0) * signal.polarity


def texts_for_keywords(signal: Signal) -> list[str]:
    """Free text a signal contributes to keyword learning."""
    texts = []
    if signal.metadata.prompt:
        texts.append(signal.metadata.prompt)
    if isinstance(signal.value, str) and signal.value:
        texts.append(signal.value)

    # Preference inputs: authors, topics, books, influences
    for key in ("authors", "topics", "books", "influences"):
        values = signal.metadata.extra.get(key)
        if isinstance(values, (list, tuple)) and values:
            texts.append(" ".join(str(v) for v in values))

    return texts
