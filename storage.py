"""Serialization of UserProgress and the local JSON progress store."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List
from urllib.parse import quote, unquote

import config
from models import DailyHistory, MistakeRecord, TopicStat, UserProgress

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class ProgressStoreError(Exception):
    """Raised when progress cannot be read from or written to storage."""


# ---------------------------------------------------------------------------
# Serialization boundary: sets <-> lists, dataclasses <-> dicts
# ---------------------------------------------------------------------------

def progress_to_dict(progress: UserProgress) -> Dict:
    return {
        "version": SCHEMA_VERSION,
        "stats": {
            subject_id: {
                topic_id: {
                    "best_score": t.best_score,
                    "times_completed": t.times_completed,
                    "total_correct": t.total_correct,
                    "total_questions": t.total_questions,
                    "perfect_score_count": t.perfect_score_count,
                }
                for topic_id, t in topics.items()
            }
            for subject_id, topics in progress.stats.items()
        },
        "daily_history": {
            "date": progress.daily_history.date,
            "quizzes_completed": progress.daily_history.quizzes_completed,
            "subjects_played": sorted(progress.daily_history.subjects_played),
            "topics_played": sorted(progress.daily_history.topics_played),
        },
        "earned_badges": list(progress.earned_badges),
        "consecutive_play_days": progress.consecutive_play_days,
        "perfect_score_streak": progress.perfect_score_streak,
        "last_play_date": progress.last_play_date,
        "current_theme_id": progress.current_theme_id,
        "unlocked_themes": list(progress.unlocked_themes),
        "mistakes": [
            {
                "subject_id": m.subject_id,
                "topic_id": m.topic_id,
                "question": m.question,
                "user_answer": m.user_answer,
                "correct_answer": m.correct_answer,
                "timestamp": m.timestamp,
            }
            for m in progress.mistakes
        ],
    }


def _row_to_topic_stat(row: Dict) -> TopicStat:
    # Older records predate the accuracy counters
    return TopicStat(
        best_score=int(row.get("best_score", 0)),
        times_completed=int(row.get("times_completed", 0)),
        total_correct=int(row.get("total_correct", 0)),
        total_questions=int(row.get("total_questions", 0)),
        perfect_score_count=int(row.get("perfect_score_count", 0)),
    )


def progress_from_dict(data: Dict) -> UserProgress:
    stats = {
        subject_id: {topic_id: _row_to_topic_stat(row) for topic_id, row in topics.items()}
        for subject_id, topics in (data.get("stats") or {}).items()
    }
    daily = data.get("daily_history") or {}
    earned: List[str] = []
    for badge_id in data.get("earned_badges") or []:
        if badge_id not in earned:
            earned.append(badge_id)
    unlocked = list(data.get("unlocked_themes") or ["default"])
    if "default" not in unlocked:
        unlocked.insert(0, "default")

    return UserProgress(
        stats=stats,
        daily_history=DailyHistory(
            date=daily.get("date", ""),
            quizzes_completed=int(daily.get("quizzes_completed", 0)),
            subjects_played=set(daily.get("subjects_played") or []),
            topics_played=set(daily.get("topics_played") or []),
        ),
        earned_badges=earned,
        consecutive_play_days=int(data.get("consecutive_play_days", 0)),
        perfect_score_streak=int(data.get("perfect_score_streak", 0)),
        last_play_date=data.get("last_play_date") or "",
        current_theme_id=data.get("current_theme_id") or "default",
        unlocked_themes=unlocked,
        mistakes=[MistakeRecord(**m) for m in data.get("mistakes") or []],
    )


def dumps(progress: UserProgress) -> str:
    return json.dumps(progress_to_dict(progress), ensure_ascii=False, indent=2)


def loads(text: str) -> UserProgress:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProgressStoreError(f"Invalid progress record: {e}") from e
    if not isinstance(data, dict):
        raise ProgressStoreError("Progress record is not a JSON object")
    try:
        return progress_from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        raise ProgressStoreError(f"Malformed progress record: {e}") from e


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

class ProgressStore:
    """One serialized UserProgress record per profile."""

    def load(self, profile: str) -> UserProgress:
        raise NotImplementedError

    def save(self, profile: str, progress: UserProgress) -> None:
        raise NotImplementedError

    def delete(self, profile: str) -> None:
        raise NotImplementedError

    def list_profiles(self) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        pass


def _profile_filename(profile: str) -> str:
    # Reversible, so distinct names never share a file
    return quote(profile.strip() or "default", safe="")


class JsonFileStore(ProgressStore):
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, profile: str) -> Path:
        return self.data_dir / f"{_profile_filename(profile)}.json"

    def load(self, profile: str) -> UserProgress:
        path = self._path(profile)
        if not path.exists():
            return UserProgress()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ProgressStoreError(f"Cannot read {path}: {e}") from e
        return loads(text)

    def save(self, profile: str, progress: UserProgress) -> None:
        path = self._path(profile)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
        except OSError as e:
            raise ProgressStoreError(f"Cannot write {path}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(dumps(progress))
            os.replace(tmp, path)
        except OSError as e:
            Path(tmp).unlink(missing_ok=True)
            raise ProgressStoreError(f"Cannot write {path}: {e}") from e

    def delete(self, profile: str) -> None:
        try:
            self._path(profile).unlink(missing_ok=True)
        except OSError as e:
            raise ProgressStoreError(f"Cannot delete progress for {profile}: {e}") from e

    def list_profiles(self) -> List[str]:
        if not self.data_dir.exists():
            return []
        return sorted(unquote(p.stem) for p in self.data_dir.glob("*.json"))


def open_store() -> ProgressStore:
    """Build the store selected by QUIZ_PROGRESS_BACKEND."""
    if config.PROGRESS_BACKEND == "postgres":
        from database import ProgressDatabase

        if not config.DB_URL:
            raise ProgressStoreError("QUIZ_DB_URL is not configured")
        db = ProgressDatabase(config.DB_URL)
        db.initialize()
        return db
    logger.debug("Using JSON progress store in %s", config.DATA_DIR)
    return JsonFileStore(config.DATA_DIR)
