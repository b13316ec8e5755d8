from datetime import date, timedelta

import pytest

import config
from models import DailyHistory, MistakeRecord, TopicStat, UserProgress
from quiz_stats import (
    QuizResultError, apply_quiz_result, overall_accuracy, record_mistakes,
    subject_accuracy, subjects_played, topic_accuracy, total_correct, total_perfect_scores,
    total_questions, total_quizzes, weakest_topic,
)

TODAY = date(2024, 3, 13)


def test_first_quiz_creates_topic_stat(empty_progress):
    after = apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 10, 10, today=TODAY)
    stat = after.topic_stat("toan_hoc", "so_sanh")
    assert stat.times_completed == 1
    assert stat.total_correct == 10
    assert stat.total_questions == 10
    assert stat.best_score == 10
    assert stat.perfect_score_count == 1


def test_input_snapshot_is_not_mutated(empty_progress):
    apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 3, 5, today=TODAY)
    assert empty_progress.stats == {}
    assert empty_progress.last_play_date == ""
    assert empty_progress.daily_history.quizzes_completed == 0


def test_counters_accumulate_and_best_score_is_running_max(empty_progress):
    p = apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 4, 5, today=TODAY)
    p = apply_quiz_result(p, "toan_hoc", "so_sanh", 2, 5, today=TODAY)
    stat = p.topic_stat("toan_hoc", "so_sanh")
    assert stat.times_completed == 2
    assert stat.total_correct == 6
    assert stat.total_questions == 10
    assert stat.best_score == 4
    assert stat.perfect_score_count == 0


@pytest.mark.parametrize("score,total", [(0, 0), (1, -5), (6, 5), (-1, 5)])
def test_invalid_results_are_rejected(empty_progress, score, total):
    with pytest.raises(QuizResultError):
        apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", score, total, today=TODAY)


def test_missing_ids_are_rejected(empty_progress):
    with pytest.raises(QuizResultError):
        apply_quiz_result(empty_progress, "", "so_sanh", 1, 5, today=TODAY)
    with pytest.raises(ValueError):
        apply_quiz_result(empty_progress, "toan_hoc", "", 1, 5, today=TODAY)


def test_zero_score_is_valid(empty_progress):
    after = apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 0, 5, today=TODAY)
    assert after.topic_stat("toan_hoc", "so_sanh").total_correct == 0


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def test_first_play_starts_day_streak(empty_progress):
    after = apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 1, 5, today=TODAY)
    assert after.consecutive_play_days == 1
    assert after.last_play_date == "2024-03-13"


def test_playing_yesterday_continues_streak():
    p = UserProgress(consecutive_play_days=4, last_play_date=(TODAY - timedelta(days=1)).isoformat())
    after = apply_quiz_result(p, "toan_hoc", "so_sanh", 1, 5, today=TODAY)
    assert after.consecutive_play_days == 5


def test_same_day_play_keeps_streak():
    p = UserProgress(consecutive_play_days=4, last_play_date=TODAY.isoformat())
    after = apply_quiz_result(p, "toan_hoc", "so_sanh", 1, 5, today=TODAY)
    assert after.consecutive_play_days == 4


@pytest.mark.parametrize("gap", [2, 3, 30])
def test_gap_of_two_or_more_days_resets_streak(gap):
    p = UserProgress(consecutive_play_days=12, last_play_date=(TODAY - timedelta(days=gap)).isoformat())
    after = apply_quiz_result(p, "toan_hoc", "so_sanh", 1, 5, today=TODAY)
    assert after.consecutive_play_days == 1
    assert after.last_play_date == TODAY.isoformat()


def test_perfect_streak_increments_and_resets(empty_progress):
    p = apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 5, 5, today=TODAY)
    p = apply_quiz_result(p, "toan_hoc", "xem_dong_ho", 5, 5, today=TODAY)
    assert p.perfect_score_streak == 2
    p = apply_quiz_result(p, "toan_hoc", "so_sanh", 4, 5, today=TODAY)
    assert p.perfect_score_streak == 0


# ---------------------------------------------------------------------------
# Daily history
# ---------------------------------------------------------------------------

def test_daily_history_accumulates_within_a_day(empty_progress):
    p = apply_quiz_result(empty_progress, "toan_hoc", "so_sanh", 1, 5, today=TODAY)
    p = apply_quiz_result(p, "tieng_viet", "tu_chi_su_vat", 1, 5, today=TODAY)
    p = apply_quiz_result(p, "toan_hoc", "so_sanh", 1, 5, today=TODAY)
    assert p.daily_history.date == "2024-03-13"
    assert p.daily_history.quizzes_completed == 3
    assert p.daily_history.subjects_played == {"toan_hoc", "tieng_viet"}
    assert p.daily_history.topics_played == {"so_sanh", "tu_chi_su_vat"}


def test_daily_history_resets_on_new_day():
    p = UserProgress(daily_history=DailyHistory(
        date="2024-03-12", quizzes_completed=8,
        subjects_played={"toan_hoc", "tieng_viet"}, topics_played={"so_sanh", "cay_xanh"},
    ))
    after = apply_quiz_result(p, "tu_nhien_xa_hoi", "dong_vat", 1, 5, today=TODAY)
    assert after.daily_history.date == "2024-03-13"
    assert after.daily_history.quizzes_completed == 1
    assert after.daily_history.subjects_played == {"tu_nhien_xa_hoi"}
    assert after.daily_history.topics_played == {"dong_vat"}


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def _progress_with(stats):
    return UserProgress(stats=stats)


def test_aggregates_sum_over_all_topics():
    p = _progress_with({
        "toan_hoc": {
            "so_sanh": TopicStat(5, 2, 9, 10, 1),
            "xem_dong_ho": TopicStat(3, 1, 3, 5, 0),
        },
        "tieng_viet": {"tu_chi_su_vat": TopicStat(5, 3, 14, 15, 2)},
    })
    assert total_quizzes(p) == 6
    assert total_correct(p) == 26
    assert total_questions(p) == 30
    assert total_perfect_scores(p) == 3
    assert subject_accuracy(p, "toan_hoc") == pytest.approx(12 / 15)
    assert subject_accuracy(p, "tu_nhien_xa_hoi") is None
    assert overall_accuracy(p) == pytest.approx(26 / 30)
    assert subjects_played(p) == ["toan_hoc", "tieng_viet"]
    assert topic_accuracy(p, "toan_hoc", "xem_dong_ho") == pytest.approx(0.6)
    assert topic_accuracy(p, "toan_hoc", "so_sanh_moi") is None


# ---------------------------------------------------------------------------
# Weakest topic
# ---------------------------------------------------------------------------

def test_weakest_topic_needs_two_played_topics():
    p = _progress_with({"toan_hoc": {"so_sanh": TopicStat(1, 3, 2, 15, 0)}})
    assert weakest_topic(p, "toan_hoc") is None


def test_weakest_topic_picks_topic_below_cutoff():
    p = _progress_with({"toan_hoc": {
        "so_sanh": TopicStat(10, 1, 10, 10, 1),
        "xem_dong_ho": TopicStat(9, 10, 79, 100, 0),
    }})
    assert weakest_topic(p, "toan_hoc") == "xem_dong_ho"


def test_weakest_topic_none_when_all_strong():
    p = _progress_with({"toan_hoc": {
        "so_sanh": TopicStat(9, 4, 17, 20, 0),
        "xem_dong_ho": TopicStat(10, 2, 18, 20, 0),
    }})
    assert weakest_topic(p, "toan_hoc") is None


def test_weakest_topic_exactly_at_cutoff_is_not_weak():
    p = _progress_with({"toan_hoc": {
        "so_sanh": TopicStat(4, 1, 4, 5, 0),
        "xem_dong_ho": TopicStat(8, 1, 8, 10, 0),
    }})
    assert weakest_topic(p, "toan_hoc") is None


def test_weakest_topic_tie_keeps_first_encountered():
    p = _progress_with({"toan_hoc": {
        "so_sanh": TopicStat(2, 1, 2, 5, 0),
        "xem_dong_ho": TopicStat(2, 1, 2, 5, 0),
        "hinh_hoc_co_ban": TopicStat(5, 1, 5, 5, 1),
    }})
    assert weakest_topic(p, "toan_hoc") == "so_sanh"


def test_weakest_topic_ignores_unplayed_entries():
    p = _progress_with({"toan_hoc": {
        "so_sanh": TopicStat(1, 1, 1, 5, 0),
        "xem_dong_ho": TopicStat(),
    }})
    assert weakest_topic(p, "toan_hoc") is None
    assert weakest_topic(p, "tieng_viet") is None


# ---------------------------------------------------------------------------
# Mistake log
# ---------------------------------------------------------------------------

def test_record_mistakes_fills_ids_and_trims(empty_progress, monkeypatch):
    monkeypatch.setattr(config, "MAX_MISTAKES", 3)
    mistakes = [MistakeRecord(question=f"q{i}", user_answer="a", correct_answer="b") for i in range(5)]
    record_mistakes(empty_progress, "toan_hoc", "so_sanh", mistakes)
    assert [m.question for m in empty_progress.mistakes] == ["q2", "q3", "q4"]
    assert all(m.subject_id == "toan_hoc" and m.topic_id == "so_sanh" for m in empty_progress.mistakes)
    assert all(m.timestamp for m in empty_progress.mistakes)


def test_earned_badges_stay_unique(empty_progress):
    assert empty_progress.add_badge("first_quiz")
    assert not empty_progress.add_badge("first_quiz")
    assert empty_progress.has_badge("first_quiz")
    assert empty_progress.earned_badges == ["first_quiz"]


def test_record_mistakes_leaves_callers_records_alone(empty_progress):
    mistake = MistakeRecord(question="3 ? 5", user_answer=">", correct_answer="<")
    record_mistakes(empty_progress, "toan_hoc", "so_sanh", [mistake])
    assert mistake.subject_id == ""
    assert mistake.timestamp is None
    [logged] = empty_progress.mistakes
    assert logged is not mistake
    assert logged.subject_id == "toan_hoc"
    assert logged.question == "3 ? 5"
