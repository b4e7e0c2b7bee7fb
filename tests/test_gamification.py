"""Tests for XP, tiers, streaks and achievements."""

from datetime import datetime, timedelta

import pytest

from tastegate.core.entities import ArchetypeAssignment, Genome
from tastegate.layers.learning.gamification import (
    DEFAULT_XP_REWARD,
    XP_REWARDS,
    check_achievements,
    get_current_tier,
    update_gamification,
)

DAY_ONE = datetime(2026, 3, 2, 9, 0, 0)


def _genome() -> Genome:
    return Genome(subject_id="subject-1")


class TestXp:
    def test_known_action_reward(self):
        genome = _genome()
        update_gamification(genome, "like", DAY_ONE)
        assert genome.gamification.xp == XP_REWARDS["like"]

    def test_unknown_action_default_reward(self):
        genome = _genome()
        update_gamification(genome, "stare", DAY_ONE)
        assert genome.gamification.xp == DEFAULT_XP_REWARD

    def test_score_content_unlocks_first_score(self):
        genome = _genome()
        update_gamification(genome, "score_content", DAY_ONE)

        state = genome.gamification
        assert state.total_scores == 1
        assert [a.id for a in state.achievements] == ["first-score"]
        assert state.xp == XP_REWARDS["score_content"] + 25

    def test_publish_counter(self):
        genome = _genome()
        update_gamification(genome, "publish", DAY_ONE)
        assert genome.gamification.total_published == 1
        assert "first-publish" in {a.id for a in genome.gamification.achievements}


class TestStreaks:
    def test_consecutive_days_extend_streak(self):
        genome = _genome()
        update_gamification(genome, "like", DAY_ONE)
        update_gamification(genome, "like", DAY_ONE + timedelta(days=1))

        state = genome.gamification
        assert state.streak == 2
        assert state.longest_streak == 2
        assert state.xp == XP_REWARDS["like"] * 2 + XP_REWARDS["streak_day"]

    def test_same_day_does_not_extend(self):
        genome = _genome()
        update_gamification(genome, "like", DAY_ONE)
        update_gamification(genome, "like", DAY_ONE + timedelta(hours=3))
        assert genome.gamification.streak == 1

    def test_gap_resets_streak_but_keeps_longest(self):
        genome = _genome()
        for day in range(3):
            update_gamification(genome, "like", DAY_ONE + timedelta(days=day))
        update_gamification(genome, "like", DAY_ONE + timedelta(days=10))

        state = genome.gamification
        assert state.streak == 1
        assert state.longest_streak == 3
        assert state.last_active_date == (DAY_ONE + timedelta(days=10)).date().isoformat()

    def test_three_day_streak_achievement(self):
        genome = _genome()
        for day in range(3):
            update_gamification(genome, "like", DAY_ONE + timedelta(days=day))
        assert "streak-3" in {a.id for a in genome.gamification.achievements}


class TestAchievements:
    def test_unlocked_once(self):
        genome = _genome()
        update_gamification(genome, "score_content", DAY_ONE)
        update_gamification(genome, "score_content", DAY_ONE)

        ids = [a.id for a in genome.gamification.achievements]
        assert ids.count("first-score") == 1

    def test_archetype_reveal(self):
        genome = _genome()
        genome.archetype.primary = ArchetypeAssignment(designation="V-2", glyph="OMEN", confidence=0.7)

        unlocked = check_achievements(genome, DAY_ONE)
        assert [a.id for a in unlocked] == ["glyph-revealed"]
        assert genome.gamification.xp == 50

    def test_void_archetype_is_not_a_reveal(self):
        genome = _genome()
        genome.archetype.primary = ArchetypeAssignment(designation="Ø", glyph="VOID")
        assert check_achievements(genome, DAY_ONE) == []

    def test_style_explorer(self):
        genome = _genome()
        update_gamification(
            genome, "like", DAY_ONE,
            styles=["cinematic", "minimal", "surreal", "vintage", "gothic", "cinematic"]
        )
        state = genome.gamification
        assert len(state.unique_styles) == 5
        assert "style-explorer" in {a.id for a in state.achievements}


class TestTiers:
    def test_initial_tier(self):
        tier = get_current_tier(_genome())
        assert tier["name"] == "Nascent"
        assert tier["level"] == 1
        assert tier["next_tier_xp"] == 100
        assert tier["progress"] == 0.0

    def test_progress_toward_next_tier(self):
        genome = _genome()
        update_gamification(genome, "monthly_milestone", DAY_ONE)

        tier = get_current_tier(genome)
        assert tier["name"] == "Forming"
        assert tier["current_xp"] == 200
        assert tier["next_tier_xp"] == 300
        assert tier["progress"] == pytest.approx(0.5)
        assert "hook-generation" in tier["capabilities"]

    def test_top_tier(self):
        genome = _genome()
        genome.gamification.xp = 2500
        genome.gamification.tier = 5

        tier = get_current_tier(genome)
        assert tier["name"] == "Attuned"
        assert tier["next_tier_xp"] is None
        assert tier["progress"] == 1.0
