"""
Intelligence Layer - Conviction Scoring

Performance potential and brand consistency combined into one
0-100 score with a tier and a gating status.
"""

from .conviction import (
    ConvictionOptions,
    ConvictionResult,
    GatingResult,
    GatingStatus,
    calculate_conviction,
    calculate_temporal_factor,
    check_gating,
    generate_conviction_report,
    get_conviction_tier
)

__all__ = [
    "ConvictionOptions",
    "ConvictionResult",
    "GatingResult",
    "GatingStatus",
    "calculate_conviction",
    "calculate_temporal_factor",
    "check_gating",
    "generate_conviction_report",
    "get_conviction_tier"
]
