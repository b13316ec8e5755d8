"""Cumulative quiz statistics: per-topic counters, streaks and daily history."""

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import config
from models import DailyHistory, MistakeRecord, TopicStat, UserProgress


class QuizResultError(ValueError):
    """Raised when a quiz completion carries impossible numbers."""


def validate_result(subject_id: str, topic_id: str, score: int, total_questions: int) -> None:
    if not subject_id or not topic_id:
        raise QuizResultError("subject_id and topic_id are required")
    if total_questions <= 0:
        raise QuizResultError(f"total_questions must be positive, got {total_questions}")
    if score < 0 or score > total_questions:
        raise QuizResultError(
            f"score must be between 0 and {total_questions}, got {score}"
        )


def apply_quiz_result(
    progress: UserProgress,
    subject_id: str,
    topic_id: str,
    score: int,
    total_questions: int,
    today: Optional[date] = None,
) -> UserProgress:
    """Return a copy of ``progress`` with one finished quiz applied.

    The input snapshot is left untouched so the caller can compare the
    state before and after this quiz.
    """
    validate_result(subject_id, topic_id, score, total_questions)
    today = today or date.today()
    today_str = today.isoformat()
    is_perfect = score == total_questions

    updated = progress.copy()

    topic = updated.stats.setdefault(subject_id, {}).setdefault(topic_id, TopicStat())
    topic.best_score = max(topic.best_score, score)
    topic.times_completed += 1
    topic.total_correct += score
    topic.total_questions += total_questions
    if is_perfect:
        topic.perfect_score_count += 1

    updated.perfect_score_streak = updated.perfect_score_streak + 1 if is_perfect else 0

    if updated.last_play_date != today_str:
        yesterday = (today - timedelta(days=1)).isoformat()
        if updated.last_play_date == yesterday:
            updated.consecutive_play_days += 1
        else:
            updated.consecutive_play_days = 1
        updated.last_play_date = today_str

    if updated.daily_history.date != today_str:
        updated.daily_history = DailyHistory(date=today_str)
    updated.daily_history.quizzes_completed += 1
    updated.daily_history.subjects_played.add(subject_id)
    updated.daily_history.topics_played.add(topic_id)

    return updated


def record_mistakes(
    progress: UserProgress,
    subject_id: str,
    topic_id: str,
    mistakes: Iterable[MistakeRecord],
) -> None:
    """Append wrong answers to the review log, keeping the newest entries."""
    now = datetime.now().isoformat()
    for m in mistakes:
        progress.mistakes.append(replace(
            m,
            subject_id=m.subject_id or subject_id,
            topic_id=m.topic_id or topic_id,
            timestamp=m.timestamp or now,
        ))
    if len(progress.mistakes) > config.MAX_MISTAKES:
        del progress.mistakes[: len(progress.mistakes) - config.MAX_MISTAKES]


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def _sum_topics(progress: UserProgress, getter: Callable[[TopicStat], int]) -> int:
    return sum(
        getter(topic)
        for subject in progress.stats.values()
        for topic in subject.values()
    )


def total_quizzes(progress: UserProgress) -> int:
    return _sum_topics(progress, lambda t: t.times_completed)


def total_correct(progress: UserProgress) -> int:
    return _sum_topics(progress, lambda t: t.total_correct)


def total_questions(progress: UserProgress) -> int:
    return _sum_topics(progress, lambda t: t.total_questions)


def total_perfect_scores(progress: UserProgress) -> int:
    return _sum_topics(progress, lambda t: t.perfect_score_count)


def subject_totals(progress: UserProgress, subject_id: str) -> Tuple[int, int]:
    """(correct, questions) summed over one subject."""
    topics = progress.stats.get(subject_id, {}).values()
    return (
        sum(t.total_correct for t in topics),
        sum(t.total_questions for t in topics),
    )


def subject_accuracy(progress: UserProgress, subject_id: str) -> Optional[float]:
    correct, questions = subject_totals(progress, subject_id)
    if questions == 0:
        return None
    return correct / questions


def topic_accuracy(progress: UserProgress, subject_id: str, topic_id: str) -> Optional[float]:
    stat = progress.topic_stat(subject_id, topic_id)
    return stat.accuracy if stat else None


def overall_accuracy(progress: UserProgress) -> Optional[float]:
    questions = total_questions(progress)
    if questions == 0:
        return None
    return total_correct(progress) / questions


def subjects_played(progress: UserProgress) -> List[str]:
    return [s for s, topics in progress.stats.items() if topics]


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def weakest_topic(progress: UserProgress, subject_id: str) -> Optional[str]:
    """Topic with the lowest accuracy below the weak-topic cutoff.

    Returns None unless at least two topics of the subject have been played.
    Ties keep the first topic encountered.
    """
    subject_stats: Dict[str, TopicStat] = progress.stats.get(subject_id, {})
    played = [
        (topic_id, stat) for topic_id, stat in subject_stats.items()
        if stat.times_completed > 0 and stat.total_questions > 0
    ]
    if len(played) < config.WEAK_TOPIC_MIN_PLAYED:
        return None

    weakest = None
    lowest = float("inf")
    for topic_id, stat in played:
        accuracy = stat.total_correct / stat.total_questions
        if accuracy < lowest and accuracy < config.WEAK_TOPIC_ACCURACY:
            lowest = accuracy
            weakest = topic_id
    return weakest
