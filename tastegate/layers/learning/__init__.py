"""
Learning Layer - Taste Genome and the Conviction Loop

Signals in:
- Ratings, Likert answers, saves, shares, skips and other behaviour
- Normalized to a clamped weight, a polarity and archetype pulls

Derived state:
- Archetype distribution (softmax over decayed scores)
- Keyword preferences and avoid lists
- Gamification progress

Outcomes back:
- Predicted conviction validated against observed engagement
- Significant misses adjust archetype priors and scorer weights
"""

from .classifier import (
    create_genome,
    record_signal,
    update_archetype_from_signals,
    calculate_confidence,
    get_genome_summary
)
from .keywords import (
    KeywordInsight,
    extract_keywords,
    update_keyword_scores,
    get_top_keywords,
    get_avoid_keywords,
    suggest_directives,
    apply_directives
)
from .gamification import (
    ACHIEVEMENTS,
    TASTE_TIERS,
    XP_REWARDS,
    update_gamification,
    check_achievements,
    get_current_tier
)
from .genome_service import TasteGenomeService
from .validation import (
    ConvictionValidator,
    calculate_accuracy,
    calculate_engagement_score,
    determine_prediction_quality
)
from .feedback import (
    FeedbackResult,
    GenomeFeedbackService,
    LearningProgress,
    apply_feedback
)

__all__ = [
    "create_genome",
    "record_signal",
    "update_archetype_from_signals",
    "calculate_confidence",
    "get_genome_summary",
    "KeywordInsight",
    "extract_keywords",
    "update_keyword_scores",
    "get_top_keywords",
    "get_avoid_keywords",
    "suggest_directives",
    "apply_directives",
    "ACHIEVEMENTS",
    "TASTE_TIERS",
    "XP_REWARDS",
    "update_gamification",
    "check_achievements",
    "get_current_tier",
    "TasteGenomeService",
    "ConvictionValidator",
    "calculate_accuracy",
    "calculate_engagement_score",
    "determine_prediction_quality",
    "FeedbackResult",
    "GenomeFeedbackService",
    "LearningProgress",
    "apply_feedback"
]
