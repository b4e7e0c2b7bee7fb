"""
Taste Taxonomy - Fixed Vocabularies

Everything the classifier and keyword learner measure against:
- The eleven classifiable archetypes plus the VOID sentinel
- Default signal weights by signal type
- Behavioural archetype affinities by signal type
- The keyword taxonomy (category -> subcategory -> terms)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Archetype:
    """One taste designation in the taxonomy."""
    designation: str
    glyph: str
    title: str = ""
    essence: str = ""
    creative_mode: str = ""
    shadow: str = ""
    color: str = ""


ARCHETYPES: dict[str, Archetype] = {
    "S-0": Archetype(
        designation="S-0", glyph="KETH", title="The Standard-Bearer",
        essence="Sets trends others follow without knowing the source",
        creative_mode="Visionary", shadow="Paralysis by standard", color="#FFD700"
    ),
    "T-1": Archetype(
        designation="T-1", glyph="STRATA", title="The System-Seer",
        essence="Sees production logic and reverse-engineers excellence",
        creative_mode="Architectural", shadow="Over-engineering becomes the end", color="#4169E1"
    ),
    "V-2": Archetype(
        designation="V-2", glyph="OMEN", title="The Early Witness",
        essence="Found the artist at 500 plays. Temporal vision.",
        creative_mode="Prophetic", shadow="Right too soon", color="#9370DB"
    ),
    "L-3": Archetype(
        designation="L-3", glyph="SILT", title="The Patient Cultivator",
        essence="Long-term investment in potential across years",
        creative_mode="Developmental", shadow="Patience becomes enabling", color="#2E8B57"
    ),
    "C-4": Archetype(
        designation="C-4", glyph="CULL", title="The Essential Editor",
        essence="Knows what shouldn't exist. Subtractive mastery.",
        creative_mode="Editorial", shadow="Nihilistic rejection", color="#DC143C"
    ),
    "N-5": Archetype(
        designation="N-5", glyph="LIMN", title="The Border Illuminator",
        essence="Reveals connections between opposites",
        creative_mode="Integrative", shadow="Refuses to choose", color="#20B2AA"
    ),
    "H-6": Archetype(
        designation="H-6", glyph="TOLL", title="The Relentless Advocate",
        essence="Converts skeptics. Relentless enthusiasm.",
        creative_mode="Advocacy", shadow="Missionary zeal", color="#FF6347"
    ),
    "P-7": Archetype(
        designation="P-7", glyph="VAULT", title="The Living Archive",
        essence="Deep knowledge of lineage and precedent",
        creative_mode="Archival", shadow="Knowledge that never circulates", color="#8B4513"
    ),
    "D-8": Archetype(
        designation="D-8", glyph="WICK", title="The Hollow Channel",
        essence="Taste moves through them. Uncanny recommendations.",
        creative_mode="Channelling", shadow="Loses stable identity", color="#DDA0DD"
    ),
    "F-9": Archetype(
        designation="F-9", glyph="ANVIL", title="The Manifestor",
        essence="Turns vision into tangible reality. Action bias.",
        creative_mode="Manifestation", shadow="Only shipped things matter", color="#B8860B"
    ),
    "R-10": Archetype(
        designation="R-10", glyph="SCHISM", title="The Productive Fracture",
        essence="Reveals assumptions by breaking them",
        creative_mode="Contrarian", shadow="Reflexive opposition as identity", color="#FF4500"
    ),
}

# Returned for genomes with no signals; never part of the distribution
VOID_ARCHETYPE = Archetype(
    designation="Ø", glyph="VOID", title="The Receptive Presence",
    essence="Pure reception without distortion",
    creative_mode="Receptive", shadow="Intake with no output", color="#1a1a2e"
)

DESIGNATIONS: list[str] = list(ARCHETYPES)


def get_archetype(designation: str) -> Archetype:
    """Look up an archetype, falling back to the VOID sentinel."""
    return ARCHETYPES.get(designation, VOID_ARCHETYPE)


# Default weight when a signal carries no explicit weight
SIGNAL_WEIGHTS: dict[str, float] = {
    # Explicit
    "rating": 1.0,
    "likert": 1.3,
    "choice": 1.0,
    "preference": 1.0,
    "block": 1.5,
    "ranking": 1.2,
    # Intentional implicit
    "save": 0.6,
    "share": 0.7,
    "repeat": 0.5,
    # Unintentional implicit
    "skip": 0.4,
    "dwell": 0.3,
    "click": 0.2,
}
DEFAULT_SIGNAL_WEIGHT = 0.5

MIN_SIGNAL_WEIGHT = 0.1
MAX_SIGNAL_WEIGHT = 3.0

NEGATIVE_SIGNAL_TYPES = frozenset({"skip", "dislike", "block", "delete"})
NEUTRAL_SIGNAL_TYPES = frozenset({"pass", "view"})

# Signal type -> archetype pull, independent of any hint
SIGNAL_ARCHETYPE_AFFINITIES: dict[str, dict[str, float]] = {
    "save": {"P-7": 0.3, "L-3": 0.2},
    "share": {"H-6": 0.4, "F-9": 0.2},
    "repeat": {"D-8": 0.3, "L-3": 0.2},
    "skip": {"C-4": 0.2},
    "publish": {"F-9": 0.4, "H-6": 0.2},
    "schedule": {"T-1": 0.3, "L-3": 0.2},
    "edit": {"C-4": 0.3, "T-1": 0.2},
    "create_grid": {"T-1": 0.3, "S-0": 0.2},
    "curate": {"P-7": 0.3, "C-4": 0.2},
    "trend_follow": {"V-2": 0.3, "D-8": 0.2},
    "collaborate": {"N-5": 0.3, "H-6": 0.2},
    "preference": {"P-7": 0.4, "N-5": 0.24},
}

# Metadata flag -> archetype pull, applied to positive signals only
METADATA_ARCHETYPE_AFFINITIES: dict[str, dict[str, float]] = {
    "is_obscure": {"V-2": 0.3, "S-0": 0.2},
    "is_complex": {"T-1": 0.3},
    "is_trending": {"D-8": 0.2},
}


KEYWORD_CATEGORIES: dict[str, dict[str, list[str]]] = {
    "visual": {
        "style": [
            "cinematic", "photorealistic", "artistic", "abstract", "minimal", "surreal",
            "vintage", "gothic", "ethereal", "cyberpunk", "aesthetic", "polished", "raw",
            "clean", "bold", "vibrant"
        ],
        "mood": [
            "dramatic", "peaceful", "intense", "serene", "melancholic", "uplifting",
            "mysterious", "haunting", "joyful", "dark", "nostalgic", "energetic"
        ],
        "color": [
            "warm", "cool", "vibrant", "muted", "pastel", "neon", "monochrome",
            "teal-orange", "earth-tones", "high-contrast"
        ],
        "lighting": [
            "golden-hour", "blue-hour", "studio", "natural", "dramatic", "soft",
            "backlit", "moody", "bright", "neon-glow"
        ],
        "composition": [
            "rule-of-thirds", "centered", "symmetrical", "negative-space", "close-up",
            "wide-shot", "flat-lay", "overhead"
        ],
    },
    "content": {
        "hooks": [
            "question", "bold-claim", "how-to", "story", "statistic", "controversy",
            "curiosity-gap", "social-proof", "urgency", "personal", "listicle", "challenge"
        ],
        "tone": [
            "edgy", "chill", "energetic", "sincere", "playful", "confident", "sarcastic",
            "intense", "nostalgic", "provocative", "vulnerable", "authoritative"
        ],
        "format": [
            "carousel", "reel", "story", "single-post", "thread", "long-form",
            "behind-scenes", "tutorial", "review", "collab"
        ],
    },
}

KEYWORD_SCORE_BOUND = 10.0
