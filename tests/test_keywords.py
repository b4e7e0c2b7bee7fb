"""Tests for keyword extraction, scoring and directives."""

import pytest

from tastegate.core.entities import Directives, Genome
from tastegate.layers.learning.keywords import (
    apply_directives,
    extract_keywords,
    get_avoid_keywords,
    get_top_keywords,
    suggest_directives,
    update_keyword_scores,
)


def _genome() -> Genome:
    return Genome(subject_id="subject-1")


class TestExtraction:
    def test_hyphenated_terms_match_spaces(self):
        keys = extract_keywords("Shot at golden hour with teal-orange grading")
        assert "visual.lighting.golden-hour" in keys
        assert "visual.color.teal-orange" in keys

    def test_case_insensitive(self):
        assert "visual.style.cinematic" in extract_keywords("CINEMATIC")

    def test_term_in_several_subcategories(self):
        keys = extract_keywords("a dramatic story")
        assert "visual.mood.dramatic" in keys
        assert "visual.lighting.dramatic" in keys
        assert "content.hooks.story" in keys
        assert "content.format.story" in keys

    def test_word_boundaries(self):
        assert extract_keywords("rawness and boldly") == []

    @pytest.mark.parametrize("text", [None, "", 42])
    def test_empty_or_invalid_text(self, text):
        assert extract_keywords(text) == []


class TestScores:
    def test_scores_are_clamped(self):
        genome = _genome()
        for _ in range(5):
            update_keyword_scores(genome, "cinematic", 3.0)

        entry = genome.keyword_scores["visual.style.cinematic"]
        assert entry.score == 10.0
        assert entry.count == 5

    def test_negative_clamp(self):
        genome = _genome()
        for _ in range(6):
            update_keyword_scores(genome, "neon", -2.0)
        assert genome.keyword_scores["visual.color.neon"].score == -10.0

    def test_platform_scores(self):
        genome = _genome()
        matched = update_keyword_scores(genome, "playful reel", 1.5, platform="tiktok")

        assert set(matched) == {"content.tone.playful", "content.format.reel"}
        assert genome.platform_scores["tiktok"]["content.format.reel"].score == pytest.approx(1.5)
        assert "instagram" not in genome.platform_scores

    def test_no_match_changes_nothing(self):
        genome = _genome()
        assert update_keyword_scores(genome, "nothing relevant here", 1.0) == []
        assert genome.keyword_scores == {}


class TestProjections:
    def test_top_keywords_sorted_and_filtered(self):
        genome = _genome()
        update_keyword_scores(genome, "minimal", 1.0)
        update_keyword_scores(genome, "cinematic", 3.0)
        update_keyword_scores(genome, "playful", 2.0)

        top = get_top_keywords(genome)
        assert [k.keyword for k in top] == ["cinematic", "playful", "minimal"]
        assert top[0].category == "visual.style"

        tone = get_top_keywords(genome, "content.tone")
        assert [k.keyword for k in tone] == ["playful"]

        assert len(get_top_keywords(genome, limit=1)) == 1

    def test_avoid_requires_repetition(self):
        genome = _genome()
        update_keyword_scores(genome, "neon", -1.5)
        update_keyword_scores(genome, "neon", -1.5)
        update_keyword_scores(genome, "gothic", -5.0)

        avoid = get_avoid_keywords(genome)
        assert [k.keyword for k in avoid] == ["neon"]
        assert avoid[0].score == pytest.approx(-3.0)
        assert avoid[0].count == 2


class TestDirectives:
    def _scored_genome(self) -> Genome:
        genome = _genome()
        update_keyword_scores(genome, "playful", 2.0)
        update_keyword_scores(genome, "cinematic", 3.0)
        update_keyword_scores(genome, "neon", -3.0)
        update_keyword_scores(genome, "neon", -3.0)
        return genome

    def test_suggest_does_not_mutate(self):
        genome = self._scored_genome()
        directives = suggest_directives(genome)

        assert directives.tone == ["playful"]
        assert directives.keywords == ["cinematic"]
        assert directives.avoid == ["neon"]
        assert genome.directives is None

    def test_apply_stores_suggestion(self):
        genome = self._scored_genome()
        applied = apply_directives(genome)
        assert genome.directives is applied
        assert applied.avoid == ["neon"]

    def test_apply_explicit_directives(self):
        genome = self._scored_genome()
        explicit = Directives(tone=["sincere"], keywords=[], avoid=[])
        apply_directives(genome, explicit)
        assert genome.directives.tone == ["sincere"]

    def test_empty_genome_has_empty_directives(self):
        directives = suggest_directives(_genome())
        assert directives == Directives()
