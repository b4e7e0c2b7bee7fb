"""
Conviction Scoring - Should This Content Ship?

Combines two views of a content item into one 0-100 score:
- Performance: mean of the analyzer's virality, engagement,
  aesthetic and trend sub-scores
- Brand: consistency with the subject's taste genome (volume and
  positivity of prior signals), with a floor for empty submissions

score = round(weighted(performance, brand) * temporal_factor)

The temporal factor only bites above trend 80 and discourages
content whose score rests on trend-chasing.

Tiers:
- exceptional >= 85
- high >= 70
- medium >= 50
- low otherwise
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ...config.settings import ConvictionConfig
from ...core.entities import (
    AiScores,
    ContentItem,
    Conviction,
    ConvictionBreakdown,
    ConvictionTier,
    Genome
)


EXCEPTIONAL_THRESHOLD = 85
HIGH_THRESHOLD = 70
MEDIUM_THRESHOLD = 50

DEFAULT_WEIGHTS = {"performance": 0.6, "brand": 0.4}

NEUTRAL_BRAND_SCORE = 50
EMPTY_CONTENT_BRAND_SCORE = 20
OVERRIDE_PENALTY = 5
OVERRIDE_FLOOR = 30
STRICT_BRAND_DISCOUNT = 0.9
STRICT_POSITIVE_RATIO = 0.5

GENUINE_CAPTION_LENGTH = 20
GENUINE_MIN_SIGNALS = 2

# (min signal count, brand score), first match wins
BRAND_BY_SIGNAL_VOLUME = [(50, 85), (20, 75), (10, 65), (1, 55)]

LOW_SCORE_SUGGESTIONS = [
    "Revise caption to better align with your brand voice",
    "Adjust visual style to match your top-performing content",
    "Consider A/B testing different versions",
    "Review AI suggestions for improvements",
]
BELOW_THRESHOLD_SUGGESTIONS = [
    "Minor adjustments could improve predicted performance",
    "Consider testing with a smaller audience first",
]
EXCEPTIONAL_SUGGESTIONS = [
    "Consider cross-posting to other platforms",
    "Amplify with paid promotion",
    "Save for optimal posting time",
]


class GatingStatus(Enum):
    APPROVED = "approved"
    WARNING = "warning"
    BLOCKED = "blocked"
    OVERRIDE = "override"


@dataclass
class ConvictionOptions:
    """Per-call scoring options."""
    strict_brand_consistency: bool = False
    custom_weights: Optional[dict[str, float]] = None
    use_learned_weights: bool = True
    default_weights: Optional[dict[str, float]] = None

    @classmethod
    def from_config(
        cls,
        config: ConvictionConfig,
        strict_mode: bool = False
    ) -> "ConvictionOptions":
        """Build options from settings; `strict_mode` comes from the gate config."""
        return cls(
            strict_brand_consistency=strict_mode,
            use_learned_weights=config.use_learned_weights,
            default_weights=config.default_weights()
        )


@dataclass
class ConvictionResult:
    """A freshly computed conviction plus the ai_scores to write back."""
    conviction: Conviction
    ai_scores: AiScores


@dataclass
class GatingResult:
    status: GatingStatus = GatingStatus.APPROVED
    reason: str = ""
    score: int = 0
    can_schedule: bool = True
    requires_review: bool = False
    suggestions: list[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_conviction_tier(score: float) -> ConvictionTier:
    if score >= EXCEPTIONAL_THRESHOLD:
        return ConvictionTier.EXCEPTIONAL
    if score >= HIGH_THRESHOLD:
        return ConvictionTier.HIGH
    if score >= MEDIUM_THRESHOLD:
        return ConvictionTier.MEDIUM
    return ConvictionTier.LOW


def calculate_temporal_factor(trend: float) -> float:
    """Multiplier in [0.80, 1.0]; 1.0 at or below trend 80."""
    if trend > 90:
        return max(0.80, 1.0 - (trend - 90) / 50)
    if trend > 80:
        return max(0.90, 1.0 - (trend - 80) / 100)
    return 1.0


def calculate_performance_potential(scores: AiScores) -> float:
    return (scores.virality + scores.engagement + scores.aesthetic + scores.trend) / 4


def _non_empty(value) -> bool:
    if isinstance(value, dict):
        return any(_non_empty(v) for v in value.values())
    if isinstance(value, (list, tuple, set, str)):
        return len(value) > 0
    return value is not None


def has_any_data(content: ContentItem) -> bool:
    """False only for a completely empty submission."""
    if content.caption:
        return True
    if _non_empty(content.analysis):
        return True
    return content.ai_scores is not None and content.ai_scores.has_any_score()


def has_genuine_content(content: ContentItem) -> bool:
    """At least two independent signs of real creative work."""
    aesthetic = content.analysis.get("aesthetic_dna") or {}
    indicators = [
        len(content.caption or "") > GENUINE_CAPTION_LENGTH,
        bool(aesthetic.get("tone")) if isinstance(aesthetic, dict) else False,
        content.ai_scores is not None and content.ai_scores.virality > 0,
        bool(content.media_url),
    ]
    return sum(indicators) >= GENUINE_MIN_SIGNALS


def _override_vindicated(content: ContentItem) -> bool:
    validation = content.conviction_validation
    if validation is None:
        return False
    return any(s.type == "successful_override" for s in validation.feedback.signals)


def calculate_brand_consistency(
    content: ContentItem,
    genome: Optional[Genome] = None,
    strict_mode: bool = False
) -> int:
    """
    Brand consistency score, 0-100.

    Empty content floors at 20. With a genome, the baseline grows with
    signal volume (55 / 65 / 75 / 85); strict mode discounts it by 10%
    when fewer than half the signals are positive. Without a genome,
    genuine-looking content scores 60-70. An unvindicated user
    override costs 5 points (never below 30).
    """
    brand = float(NEUTRAL_BRAND_SCORE)

    if not has_any_data(content):
        brand = float(EMPTY_CONTENT_BRAND_SCORE)
    elif genome is not None:
        total = len(genome.signals)
        for minimum, score in BRAND_BY_SIGNAL_VOLUME:
            if total >= minimum:
                brand = float(score)
                break
        else:
            if has_genuine_content(content):
                brand = 60.0

        if strict_mode and total > 0:
            positive = sum(1 for s in genome.signals if s.polarity > 0)
            if positive / total < STRICT_POSITIVE_RATIO:
                brand *= STRICT_BRAND_DISCOUNT
    elif has_genuine_content(content):
        scores = content.ai_scores or AiScores()
        baseline = (scores.virality + scores.engagement + scores.aesthetic) / 3
        brand = 70.0 if baseline >= 60 else 60.0

    if content.conviction is not None and content.conviction.override_active:
        if not _override_vindicated(content):
            brand = max(float(OVERRIDE_FLOOR), brand - OVERRIDE_PENALTY)

    return round_half_up(brand)


def resolve_weights(genome: Optional[Genome], options: ConvictionOptions) -> dict[str, float]:
    """
    Weights for this calculation.

    Custom weights win. Otherwise a genome's learned performance and
    brand weights are projected onto two factors (p / (p + b)); the
    learned defaults 0.3 / 0.2 project exactly to 0.6 / 0.4.
    """
    if options.custom_weights:
        return dict(options.custom_weights)

    if genome is not None and options.use_learned_weights:
        learned = genome.learning.weights
        performance = learned.get("performance", 0.0)
        brand = learned.get("brand", 0.0)
        if performance > 0 and brand > 0:
            total = performance + brand
            return {"performance": performance / total, "brand": brand / total}

    return dict(options.default_weights or DEFAULT_WEIGHTS)


def calculate_conviction(
    content: ContentItem,
    genome: Optional[Genome] = None,
    options: Optional[ConvictionOptions] = None,
    now: Optional[datetime] = None
) -> ConvictionResult:
    """
    Score a content item.

    Pure apart from reading `genome`; the caller decides whether to
    cache the result on the content record. An existing user override
    is carried onto the new conviction.
    """
    options = options or ConvictionOptions()
    scores = content.ai_scores or AiScores()
    weights = resolve_weights(genome, options)

    performance = calculate_performance_potential(scores)
    brand = calculate_brand_consistency(content, genome, options.strict_brand_consistency)
    factor = calculate_temporal_factor(scores.trend)

    base = performance * weights.get("performance", 0.0) + brand * weights.get("brand", 0.0)
    score = max(0, min(100, round_half_up(base * factor)))

    archetype_match = None
    if genome is not None and genome.archetype.primary is not None:
        archetype_match = genome.archetype.primary.designation

    previous = content.conviction
    conviction = Conviction(
        score=score,
        tier=get_conviction_tier(score),
        breakdown=ConvictionBreakdown(
            performance=round_half_up(performance),
            brand=brand
        ),
        weights=weights,
        calculated_at=now or datetime.now(),
        user_override=previous.user_override if previous else None,
        archetype_match=archetype_match
    )

    ai_scores = AiScores(
        virality=scores.virality,
        engagement=scores.engagement,
        aesthetic=scores.aesthetic,
        trend=scores.trend,
        conviction_score=score,
        brand_consistency=brand
    )
    return ConvictionResult(conviction=conviction, ai_scores=ai_scores)


def check_gating(
    score: int,
    threshold: int = HIGH_THRESHOLD,
    strict_mode: bool = False,
    user_override: bool = False
) -> GatingResult:
    """
    Gating status for a score.

    override > blocked (strict, below threshold) > warning
    (non-strict, below threshold) > approved.
    """
    if user_override:
        return GatingResult(
            status=GatingStatus.OVERRIDE,
            reason="User override active",
            score=score,
            can_schedule=True,
            requires_review=False
        )

    if score < threshold:
        if score < MEDIUM_THRESHOLD:
            reason = f"Low conviction score ({score}/100). Content may underperform significantly."
            suggestions = list(LOW_SCORE_SUGGESTIONS)
        else:
            reason = (
                f"Below conviction threshold ({score}/{threshold}). "
                "Review suggested improvements before scheduling."
            )
            suggestions = list(BELOW_THRESHOLD_SUGGESTIONS)

        status = GatingStatus.BLOCKED if strict_mode else GatingStatus.WARNING
        return GatingResult(
            status=status,
            reason=reason,
            score=score,
            can_schedule=status != GatingStatus.BLOCKED,
            requires_review=status == GatingStatus.WARNING,
            suggestions=suggestions
        )

    if score >= EXCEPTIONAL_THRESHOLD:
        return GatingResult(
            status=GatingStatus.APPROVED,
            reason=f"High-conviction content ({score}/100). Predicted to perform exceptionally well.",
            score=score,
            suggestions=list(EXCEPTIONAL_SUGGESTIONS)
        )

    return GatingResult(
        status=GatingStatus.APPROVED,
        reason=f"Good conviction score ({score}/100)",
        score=score
    )


def generate_recommendations(result: ConvictionResult, gating: GatingResult) -> list[dict]:
    """Actionable recommendations from a conviction and its gating."""
    recommendations = []
    breakdown = result.conviction.breakdown

    if breakdown.performance < 60:
        recommendations.append({
            "type": "performance",
            "priority": "high",
            "message": "Low predicted performance",
            "actions": [
                "Use AI to analyze top-performing content in your niche",
                "Test different content formats (carousel vs. reel)",
                "Optimize posting time based on audience activity",
            ],
        })

    if breakdown.brand < 70:
        recommendations.append({
            "type": "brand",
            "priority": "medium",
            "message": "May not match your brand voice",
            "actions": [
                "Review brand guidelines and adjust caption",
                "Ensure visual style matches your feed aesthetic",
                "Check if tone aligns with your audience expectations",
            ],
        })

    if gating.suggestions:
        recommendations.append({
            "type": "gating",
            "priority": "critical" if gating.status == GatingStatus.BLOCKED else "medium",
            "message": gating.reason,
            "actions": list(gating.suggestions),
        })

    return recommendations


def generate_conviction_report(
    content: ContentItem,
    genome: Optional[Genome] = None,
    options: Optional[ConvictionOptions] = None,
    threshold: int = HIGH_THRESHOLD,
    strict_mode: bool = False,
    now: Optional[datetime] = None
) -> dict:
    """Conviction, gating and recommendations in one read."""
    result = calculate_conviction(content, genome, options, now)
    gating = check_gating(
        result.conviction.score,
        threshold=threshold,
        strict_mode=strict_mode,
        user_override=result.conviction.override_active
    )
    return {
        "conviction": result.conviction,
        "ai_scores": result.ai_scores,
        "gating": gating,
        "recommendations": generate_recommendations(result, gating),
    }
