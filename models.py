import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

import config


class ExamDuration(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class RuleKind(str, Enum):
    CUMULATIVE = "cumulative"
    INSTANTANEOUS = "instantaneous"
    META = "meta"


@dataclass
class TopicStat:
    best_score: int = 0
    times_completed: int = 0
    total_correct: int = 0
    total_questions: int = 0
    perfect_score_count: int = 0

    @property
    def accuracy(self) -> Optional[float]:
        if self.total_questions <= 0:
            return None
        return self.total_correct / self.total_questions


# subject id -> topic id -> stat
QuizStats = Dict[str, Dict[str, TopicStat]]


@dataclass
class DailyHistory:
    date: str = ""  # YYYY-MM-DD
    quizzes_completed: int = 0
    subjects_played: Set[str] = field(default_factory=set)
    topics_played: Set[str] = field(default_factory=set)


@dataclass
class MistakeRecord:
    subject_id: str = ""
    topic_id: str = ""
    question: str = ""
    user_answer: str = ""
    correct_answer: str = ""
    timestamp: Optional[str] = None


@dataclass
class UserProgress:
    stats: QuizStats = field(default_factory=dict)
    daily_history: DailyHistory = field(default_factory=DailyHistory)
    earned_badges: List[str] = field(default_factory=list)  # unique, unlock order
    consecutive_play_days: int = 0
    perfect_score_streak: int = 0
    last_play_date: str = ""  # YYYY-MM-DD
    current_theme_id: str = "default"
    unlocked_themes: List[str] = field(default_factory=lambda: ["default"])
    mistakes: List[MistakeRecord] = field(default_factory=list)

    def topic_stat(self, subject_id: str, topic_id: str) -> Optional[TopicStat]:
        return self.stats.get(subject_id, {}).get(topic_id)

    def has_badge(self, badge_id: str) -> bool:
        return badge_id in self.earned_badges

    def add_badge(self, badge_id: str) -> bool:
        """Record a badge; returns False if it was already earned."""
        if badge_id in self.earned_badges:
            return False
        self.earned_badges.append(badge_id)
        return True

    def copy(self) -> "UserProgress":
        return copy.deepcopy(self)


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str


@dataclass(frozen=True)
class ThemeColors:
    primary: str
    secondary: str
    accent: str
    background: str
    gradient_from: str
    gradient_to: str


@dataclass(frozen=True)
class Theme:
    id: str
    name: str
    description: str
    unlock_requirement: str  # badge id, or "none"
    colors: ThemeColors


@dataclass
class QuizEvent:
    """A finished quiz or exam, as reported by the quiz screen."""
    subject_id: str
    topic_id: str
    score: int
    total_questions: int
    exam_duration: Optional[ExamDuration] = None

    @property
    def is_exam(self) -> bool:
        return self.exam_duration is not None or self.topic_id == config.EXAM_TOPIC_ID

    @property
    def is_perfect(self) -> bool:
        return self.score == self.total_questions

    @property
    def percentage(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.score / self.total_questions * 100


@dataclass
class QuizOutcome:
    before: UserProgress
    after: UserProgress
    new_badges: List[Badge] = field(default_factory=list)
    new_themes: List[Theme] = field(default_factory=list)
    saved: bool = True
