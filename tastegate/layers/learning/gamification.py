"""
Gamification - XP, Tiers, Streaks and Achievements

Every recorded signal is also an action in the subject's progression:
- XP per action type (unknown actions earn a small default)
- Six taste tiers unlocked by XP
- Daily streaks with longest-streak tracking
- One-shot achievements that grant bonus XP
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from ...core.entities import GamificationState, Genome, UnlockedAchievement
from ...core.taxonomy import ARCHETYPES


XP_REWARDS: dict[str, int] = {
    "like": 10,
    "dislike": 8,
    "publish": 20,
    "schedule": 12,
    "save": 15,
    "share": 15,
    "create_grid": 10,
    "edit_caption": 5,
    "use_hook": 8,
    "score_content": 3,
    "daily_login": 10,
    "discover_style": 20,
    "discover_hook": 15,
    "streak_day": 10,
    "weekly_milestone": 50,
    "monthly_milestone": 200,
}
DEFAULT_XP_REWARD = 5


@dataclass(frozen=True)
class TasteTier:
    name: str
    min_xp: int
    level: int
    description: str = ""
    capabilities: tuple = ()


TASTE_TIERS: list[TasteTier] = [
    TasteTier("Nascent", 0, 1, "Beginning your creative journey",
              ("basic-scoring",)),
    TasteTier("Forming", 100, 2, "Patterns emerging from your taste",
              ("basic-scoring", "hook-generation")),
    TasteTier("Defined", 300, 3, "Clear creative preferences",
              ("basic-scoring", "hook-generation", "keyword-avoidance")),
    TasteTier("Refined", 600, 4, "Deep personalization active",
              ("basic-scoring", "hook-generation", "keyword-avoidance", "style-matching")),
    TasteTier("Intuitive", 1000, 5, "Predictive suggestions enabled",
              ("basic-scoring", "hook-generation", "keyword-avoidance", "style-matching",
               "trend-prediction")),
    TasteTier("Attuned", 2000, 6, "Maximum creative intelligence",
              ("basic-scoring", "hook-generation", "keyword-avoidance", "style-matching",
               "trend-prediction", "cross-platform-insights")),
]


def _counter(attr: str) -> Callable[[Genome], int]:
    def read(genome: Genome) -> int:
        value = getattr(genome.gamification, attr)
        return len(value) if isinstance(value, list) else value
    return read


def _archetype_revealed(genome: Genome) -> int:
    primary = genome.archetype.primary
    return int(primary is not None and primary.designation in ARCHETYPES)


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    measure: Callable[[Genome], int] = field(compare=False)
    required: int
    xp: int


ACHIEVEMENTS: list[Achievement] = [
    # Scoring
    Achievement("first-score", "First Impression", "Score your first content",
                _counter("total_scores"), 1, 25),
    Achievement("ten-scores", "Pattern Seeker", "Score 10 pieces of content",
                _counter("total_scores"), 10, 50),
    Achievement("fifty-scores", "Taste Architect", "Score 50 pieces of content",
                _counter("total_scores"), 50, 100),
    # Publishing
    Achievement("first-publish", "First Post", "Publish your first content",
                _counter("total_published"), 1, 30),
    Achievement("ten-published", "Consistent Creator", "Publish 10 pieces",
                _counter("total_published"), 10, 75),
    # Hooks
    Achievement("first-hook", "Voice Found", "Generate your first hook",
                _counter("total_hooks_generated"), 1, 20),
    Achievement("hook-master", "Hook Master", "Generate 50 hooks",
                _counter("total_hooks_generated"), 50, 100),
    # Streaks
    Achievement("streak-3", "On Fire", "3-day content streak",
                _counter("streak"), 3, 30),
    Achievement("streak-7", "Week Warrior", "7-day content streak",
                _counter("streak"), 7, 75),
    Achievement("streak-30", "Unstoppable", "30-day content streak",
                _counter("streak"), 30, 250),
    # Discovery
    Achievement("style-explorer", "Style Explorer", "Discover 5 different styles",
                _counter("unique_styles"), 5, 40),
    Achievement("hook-explorer", "Hook Explorer", "Use 8 different hook types",
                _counter("unique_hooks"), 8, 60),
    # Archetype
    Achievement("glyph-revealed", "True Name", "Complete taste quiz to reveal your archetype",
                _archetype_revealed, 1, 50),
]


def _tier_index(xp: int) -> int:
    for index in range(len(TASTE_TIERS) - 1, -1, -1):
        if xp >= TASTE_TIERS[index].min_xp:
            return index
    return 0


def check_achievements(genome: Genome, now: datetime = None) -> list[UnlockedAchievement]:
    """Unlock any newly satisfied achievements and award their XP."""
    state = genome.gamification
    earned = {a.id for a in state.achievements}
    unlocked = []

    for achievement in ACHIEVEMENTS:
        if achievement.id in earned:
            continue
        if achievement.measure(genome) >= achievement.required:
            record = UnlockedAchievement(
                id=achievement.id,
                name=achievement.name,
                unlocked_at=now or datetime.now()
            )
            state.achievements.append(record)
            state.xp += achievement.xp
            unlocked.append(record)

    if unlocked:
        state.tier = _tier_index(state.xp)
    return unlocked


def _update_streak(state: GamificationState, today: date) -> None:
    today_iso = today.isoformat()
    if state.last_active_date == today_iso:
        return

    yesterday_iso = (today - timedelta(days=1)).isoformat()
    if state.last_active_date == yesterday_iso:
        state.streak += 1
        state.xp += XP_REWARDS["streak_day"]
    else:
        state.streak = 1
    state.longest_streak = max(state.longest_streak, state.streak)
    state.last_active_date = today_iso


def update_gamification(
    genome: Genome,
    action_type: str,
    now: datetime = None,
    styles: Iterable[str] = (),
    hooks: Iterable[str] = ()
) -> GamificationState:
    """Award XP for an action, advance the streak, then check achievements."""
    now = now or datetime.now()
    state = genome.gamification

    state.xp += XP_REWARDS.get(action_type, DEFAULT_XP_REWARD)

    if action_type == "score_content":
        state.total_scores += 1
    elif action_type == "publish":
        state.total_published += 1
    elif action_type == "use_hook":
        state.total_hooks_generated += 1

    for style in styles:
        if style not in state.unique_styles:
            state.unique_styles.append(style)
    for hook in hooks:
        if hook not in state.unique_hooks:
            state.unique_hooks.append(hook)

    _update_streak(state, now.date())
    state.tier = _tier_index(state.xp)
    check_achievements(genome, now)
    return state


def get_current_tier(genome: Genome) -> dict:
    """Current tier with progress toward the next one."""
    state = genome.gamification
    index = min(max(state.tier, 0), len(TASTE_TIERS) - 1)
    tier = TASTE_TIERS[index]
    next_tier = TASTE_TIERS[index + 1] if index + 1 < len(TASTE_TIERS) else None

    if next_tier:
        progress = (state.xp - tier.min_xp) / (next_tier.min_xp - tier.min_xp)
    else:
        progress = 1.0

    return {
        "name": tier.name,
        "level": tier.level,
        "description": tier.description,
        "capabilities": list(tier.capabilities),
        "current_xp": state.xp,
        "next_tier_xp": next_tier.min_xp if next_tier else None,
        "progress": max(0.0, min(1.0, progress)),
    }
