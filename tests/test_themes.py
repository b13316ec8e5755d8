import themes
from badges import BADGES_BY_ID
from models import UserProgress


def test_every_theme_requirement_is_a_real_badge():
    for theme in themes.THEMES:
        if theme.unlock_requirement != "none":
            assert theme.unlock_requirement in BADGES_BY_ID, theme.id


def test_default_theme_always_unlocked():
    assert themes.is_theme_unlocked("default", [])
    assert not themes.is_theme_unlocked("sunset", [])
    assert themes.is_theme_unlocked("sunset", ["first_quiz"])
    assert not themes.is_theme_unlocked("no_such_theme", ["first_quiz"])


def test_unknown_theme_falls_back_to_default():
    assert themes.get_theme_by_id("nope").id == themes.DEFAULT_THEME_ID
    assert themes.get_theme_by_id("ocean").id == "ocean"


def test_unlock_themes_adds_only_new_ones():
    p = UserProgress(earned_badges=["first_quiz", "perfect_score"])
    new = themes.unlock_themes(p)
    assert [t.id for t in new] == ["sunset", "forest"]
    assert p.unlocked_themes == ["default", "sunset", "forest"]
    assert themes.unlock_themes(p) == []


def test_change_theme_refuses_locked_and_unknown():
    p = UserProgress(unlocked_themes=["default", "sunset"])
    assert not themes.change_theme(p, "diamond")
    assert not themes.change_theme(p, "made_up")
    assert p.current_theme_id == "default"
    assert themes.change_theme(p, "sunset")
    assert p.current_theme_id == "sunset"
