"""Quiz completion flow: update stats, award badges, unlock themes, persist."""

import logging
from datetime import datetime
from typing import Iterable, Optional

import config
import themes
from badges import award_badges, evaluate_badges
from models import ExamDuration, MistakeRecord, QuizEvent, QuizOutcome, UserProgress
from quiz_stats import QuizResultError, apply_quiz_result, record_mistakes
from storage import ProgressStore, ProgressStoreError

logger = logging.getLogger(__name__)


class GameSession:
    """Owns one profile's progress and the store it is persisted to."""

    def __init__(self, store: ProgressStore, profile: str):
        self.store = store
        self.profile = profile
        self.progress = UserProgress()

    def load(self) -> UserProgress:
        """Load saved progress; unreadable records start the profile fresh."""
        try:
            self.progress = self.store.load(self.profile)
        except ProgressStoreError:
            logger.exception("Could not load progress for %s, starting fresh", self.profile)
            self.progress = UserProgress()
        themes.unlock_themes(self.progress)
        return self.progress

    def save(self) -> bool:
        """Persist current progress. Failures are logged, never raised."""
        try:
            self.store.save(self.profile, self.progress)
        except ProgressStoreError as e:
            logger.warning("Progress for %s was not saved: %s", self.profile, e)
            return False
        return True

    def complete_quiz(
        self,
        subject_id: str,
        topic_id: str,
        score: int,
        total_questions: int,
        mistakes: Optional[Iterable[MistakeRecord]] = None,
        now: Optional[datetime] = None,
    ) -> QuizOutcome:
        event = QuizEvent(subject_id, topic_id, score, total_questions)
        return self._complete(event, mistakes, now)

    def complete_exam(
        self,
        subject_id: str,
        duration: str,
        score: int,
        total_questions: int,
        now: Optional[datetime] = None,
    ) -> QuizOutcome:
        try:
            exam_duration = ExamDuration(duration)
        except ValueError:
            raise QuizResultError(f"Unknown exam duration: {duration}") from None
        event = QuizEvent(subject_id, config.EXAM_TOPIC_ID, score, total_questions, exam_duration)
        return self._complete(event, None, now)

    def _complete(
        self,
        event: QuizEvent,
        mistakes: Optional[Iterable[MistakeRecord]],
        now: Optional[datetime],
    ) -> QuizOutcome:
        now = now or datetime.now()
        before = self.progress
        after = apply_quiz_result(
            before, event.subject_id, event.topic_id,
            event.score, event.total_questions, today=now.date(),
        )
        if mistakes:
            record_mistakes(after, event.subject_id, event.topic_id, mistakes)

        new_badges = evaluate_badges(before, after, event, now=now)
        award_badges(after, new_badges)
        new_themes = themes.unlock_themes(after)

        self.progress = after
        saved = self.save()
        logger.debug(
            "%s finished %s/%s with %d/%d, %d new badges",
            self.profile, event.subject_id, event.topic_id,
            event.score, event.total_questions, len(new_badges),
        )
        return QuizOutcome(before, after, new_badges, new_themes, saved)

    def change_theme(self, theme_id: str) -> bool:
        if not themes.change_theme(self.progress, theme_id):
            return False
        self.save()
        return True

    def reset(self) -> None:
        """Explicit reset: wipe stored progress and start over."""
        try:
            self.store.delete(self.profile)
        except ProgressStoreError as e:
            logger.warning("Could not delete stored progress for %s: %s", self.profile, e)
        self.progress = UserProgress()
