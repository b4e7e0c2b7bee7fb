"""
Keyword Learner - Lexical Preferences

Scans signal text against the fixed keyword taxonomy and keeps a
signed score per term:
- Global scores: genome.keyword_scores["category.subcategory.term"]
- Platform scores: genome.platform_scores[platform][key]
- Scores are clamped to [-10, 10]; counts are unbounded

Top and avoid lists are read projections. Directives derived from
them are only written to the genome through `apply_directives`.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from ...core.entities import Directives, Genome, KeywordScore
from ...core.taxonomy import KEYWORD_CATEGORIES, KEYWORD_SCORE_BOUND


AVOID_SCORE_THRESHOLD = -2.0
AVOID_MIN_COUNT = 2

DIRECTIVE_TONE_LIMIT = 3
DIRECTIVE_KEYWORD_LIMIT = 8
DIRECTIVE_AVOID_LIMIT = 5


@dataclass
class KeywordInsight:
    """A scored term as returned by the top/avoid projections."""
    keyword: str
    category: str  # "category.subcategory"
    score: float
    count: int


@lru_cache(maxsize=None)
def _term_pattern(term: str) -> re.Pattern:
    # "golden-hour" also matches "golden hour"
    body = r"[-\s]".join(re.escape(part) for part in term.split("-"))
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


def _all_keys():
    for category, subcategories in KEYWORD_CATEGORIES.items():
        for subcategory, terms in subcategories.items():
            for term in terms:
                yield f"{category}.{subcategory}.{term}", term


def extract_keywords(text: str) -> list[str]:
    """Taxonomy keys whose term appears in `text`."""
    if not text or not isinstance(text, str):
        return []
    return [key for key, term in _all_keys() if _term_pattern(term).search(text)]


def _bump(scores: dict[str, KeywordScore], key: str, delta: float) -> None:
    entry = scores.setdefault(key, KeywordScore())
    entry.score = max(-KEYWORD_SCORE_BOUND, min(KEYWORD_SCORE_BOUND, entry.score + delta))
    entry.count += 1


def update_keyword_scores(
    genome: Genome,
    text: str,
    delta: float,
    platform: Optional[str] = None
) -> list[str]:
    """
    Adjust every matched term by `delta` (the signal's signed weight).

    Returns the matched keys.
    """
    matched = extract_keywords(text)
    for key in matched:
        _bump(genome.keyword_scores, key, delta)
        if platform:
            _bump(genome.platform_scores.setdefault(platform, {}), key, delta)
    return matched


def _insight(key: str, entry: KeywordScore) -> KeywordInsight:
    parts = key.split(".")
    return KeywordInsight(
        keyword=parts[-1],
        category=".".join(parts[:2]),
        score=entry.score,
        count=entry.count
    )


def get_top_keywords(
    genome: Genome,
    category: Optional[str] = None,
    limit: int = 10
) -> list[KeywordInsight]:
    """Highest-scoring terms, optionally restricted to a key prefix."""
    entries = [
        (key, entry) for key, entry in genome.keyword_scores.items()
        if category is None or key.startswith(category)
    ]
    entries.sort(key=lambda kv: kv[1].score, reverse=True)
    return [_insight(key, entry) for key, entry in entries[:limit]]


def get_avoid_keywords(genome: Genome, limit: int = 10) -> list[KeywordInsight]:
    """Most negative terms seen at least twice."""
    entries = [
        (key, entry) for key, entry in genome.keyword_scores.items()
        if entry.score < AVOID_SCORE_THRESHOLD and entry.count >= AVOID_MIN_COUNT
    ]
    entries.sort(key=lambda kv: kv[1].score)
    return [_insight(key, entry) for key, entry in entries[:limit]]


def suggest_directives(genome: Genome) -> Directives:
    """Directives implied by the current keyword scores. Does not mutate."""
    tone = [
        k.keyword for k in get_top_keywords(genome, "content.tone", DIRECTIVE_TONE_LIMIT)
        if k.score > 0
    ]
    keywords = [
        k.keyword for k in get_top_keywords(genome, limit=DIRECTIVE_KEYWORD_LIMIT)
        if k.score > 0 and k.keyword not in tone
    ]
    avoid = [k.keyword for k in get_avoid_keywords(genome, DIRECTIVE_AVOID_LIMIT)]
    return Directives(tone=tone, keywords=keywords, avoid=avoid)


def apply_directives(genome: Genome, directives: Optional[Directives] = None) -> Directives:
    """Store directives on the genome; defaults to the suggested set."""
    genome.directives = directives if directives is not None else suggest_directives(genome)
    return genome.directives
