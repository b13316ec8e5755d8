"""Cosmetic colour themes unlocked by badges."""

import logging
from typing import Iterable, List

from models import Theme, ThemeColors, UserProgress

logger = logging.getLogger(__name__)

DEFAULT_THEME_ID = "default"

THEMES: List[Theme] = [
    Theme("default", "🌈 Rainbow", "The bright starting theme", "none",
          ThemeColors("#3b82f6", "#8b5cf6", "#f59e0b", "#f0f9ff", "#93c5fd", "#c7d2fe")),
    Theme("sunset", "🌅 Warm Sunset", "Warm colours of the evening sky", "first_quiz",
          ThemeColors("#f97316", "#ec4899", "#fbbf24", "#fff7ed", "#fdba74", "#fda4af")),
    Theme("forest", "🌲 Cool Forest", "Fresh greens of nature", "perfect_score",
          ThemeColors("#10b981", "#14b8a6", "#84cc16", "#f0fdf4", "#6ee7b7", "#5eead4")),
    Theme("ocean", "🌊 Deep Ocean", "Deep blue of the sea", "marathon_runner",
          ThemeColors("#0ea5e9", "#06b6d4", "#3b82f6", "#f0f9ff", "#7dd3fc", "#67e8f9")),
    Theme("lavender", "💜 Lavender", "Soft pastel purple", "perfectionist",
          ThemeColors("#a855f7", "#d946ef", "#ec4899", "#faf5ff", "#d8b4fe", "#f0abfc")),
    Theme("cherry", "🍒 Cherry Blossom", "Sweet pink of cherry blossoms", "quiz_pro_25",
          ThemeColors("#f43f5e", "#ec4899", "#fb7185", "#fff1f2", "#fda4af", "#f9a8d4")),
    Theme("golden", "✨ Royal Gold", "Shiny royal gold", "quiz_master_50",
          ThemeColors("#eab308", "#f59e0b", "#fbbf24", "#fefce8", "#fde047", "#fcd34d")),
    Theme("midnight", "🌙 Night Sky", "Mysterious colours of the night", "all_rounder",
          ThemeColors("#6366f1", "#8b5cf6", "#a855f7", "#eef2ff", "#a5b4fc", "#c4b5fd")),
    Theme("fire", "🔥 Blazing Fire", "Bright red of a roaring fire", "perfect_streak_3",
          ThemeColors("#dc2626", "#ea580c", "#f97316", "#fef2f2", "#fca5a5", "#fdba74")),
    Theme("diamond", "💎 Sparkling Diamond", "Precious turquoise", "grand_master_20",
          ThemeColors("#06b6d4", "#14b8a6", "#22d3ee", "#ecfeff", "#67e8f9", "#5eead4")),
]

THEMES_BY_ID = {t.id: t for t in THEMES}


def get_theme_by_id(theme_id: str) -> Theme:
    return THEMES_BY_ID.get(theme_id, THEMES[0])


def is_theme_unlocked(theme_id: str, earned_badges: Iterable[str]) -> bool:
    theme = THEMES_BY_ID.get(theme_id)
    if theme is None:
        return False
    if theme.unlock_requirement == "none":
        return True
    return theme.unlock_requirement in set(earned_badges)


def newly_unlocked_themes(earned_badges: Iterable[str], unlocked: Iterable[str]) -> List[Theme]:
    """Themes whose badge is earned but which are not yet in ``unlocked``."""
    earned = set(earned_badges)
    already = set(unlocked)
    return [
        t for t in THEMES
        if t.id not in already and is_theme_unlocked(t.id, earned)
    ]


def unlock_themes(progress: UserProgress) -> List[Theme]:
    """Unlock every theme the earned badges allow; returns the new ones."""
    new_themes = newly_unlocked_themes(progress.earned_badges, progress.unlocked_themes)
    for theme in new_themes:
        progress.unlocked_themes.append(theme.id)
        logger.info("Theme unlocked: %s", theme.id)
    return new_themes


def change_theme(progress: UserProgress, theme_id: str) -> bool:
    """Switch to an unlocked theme. Locked or unknown themes are refused."""
    if theme_id not in progress.unlocked_themes or theme_id not in THEMES_BY_ID:
        return False
    progress.current_theme_id = theme_id
    return True
