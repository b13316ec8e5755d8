"""Badge catalog, unlock rules and the evaluation pass run after each quiz."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import config
import quiz_stats
from models import Badge, QuizEvent, RuleKind, UserProgress

logger = logging.getLogger(__name__)


class BadgeCatalogError(Exception):
    """Raised when unlock rules and the badge catalog disagree."""


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

BADGES: List[Badge] = []
BADGE_CATEGORIES: Dict[str, List[str]] = {}

CATEGORY_TITLES = {
    "milestones": "Milestones",
    "perfection": "Perfection",
    "diligence": "Diligence",
    "subjects": "Subjects",
    "topics": "Topics",
    "exams": "Exams",
    "collection": "Collection",
}


def _add(category: str, badge_id: str, name: str, description: str, icon: str) -> None:
    BADGES.append(Badge(badge_id, name, description, icon))
    BADGE_CATEGORIES.setdefault(category, []).append(badge_id)


# Milestones
_add("milestones", "first_quiz", "Strong Start", "Finish your first quiz.", "🏆")
_add("milestones", "marathon_runner", "Marathon Runner", "Finish 10 quizzes.", "🏅")
_add("milestones", "quiz_pro_25", "Quiz Pro", "Finish 25 quizzes.", "🎖️")
_add("milestones", "quiz_master_50", "Quiz Master", "Finish 50 quizzes.", "🥇")
_add("milestones", "quiz_pro_75", "Quiz Expert", "Finish 75 quizzes.", "🎗️")
_add("milestones", "quiz_legend_100", "Quiz Legend", "Finish 100 quizzes.", "👑")
_add("milestones", "quiz_master_150", "Grand Quiz Master", "Finish 150 quizzes.", "🏰")
_add("milestones", "quiz_legend_200", "Living Legend", "Finish 200 quizzes.", "🌋")
_add("milestones", "quiz_titan_300", "Quiz Titan", "Finish 300 quizzes.", "🗿")
_add("milestones", "quiz_demigod_500", "Quiz Demigod", "Finish 500 quizzes.", "⚡")
_add("milestones", "correct_100", "Hundred Right", "Answer 100 questions correctly.", "💯")
_add("milestones", "correct_500", "Sharp Mind", "Answer 500 questions correctly.", "🧠")
_add("milestones", "correct_1000", "Thousand Right", "Answer 1000 questions correctly.", "📘")
_add("milestones", "correct_2500", "Knowledge Keeper", "Answer 2500 questions correctly.", "📚")
_add("milestones", "correct_5000", "Walking Encyclopedia", "Answer 5000 questions correctly.", "🏛️")

# Perfection
_add("perfection", "perfect_score", "Perfect Expert", "Get a perfect score on a quiz.", "✅")
_add("perfection", "perfectionist", "Perfectionist", "Get a perfect score 3 times.", "✨")
_add("perfection", "perfect_score_5", "Flawless Five", "Get a perfect score 5 times.", "🌟")
_add("perfection", "perfect_score_10", "Perfect Ten", "Get a perfect score 10 times.", "💫")
_add("perfection", "perfect_score_15", "Shining Star", "Get a perfect score 15 times.", "⭐")
_add("perfection", "perfect_score_25", "Superstar", "Get a perfect score 25 times.", "🌠")
_add("perfection", "perfect_score_50", "Galaxy of Perfection", "Get a perfect score 50 times.", "🌌")
_add("perfection", "perfect_streak_3", "Hot Streak", "Get 3 perfect scores in a row.", "🔥")
_add("perfection", "perfect_streak_5", "On Fire", "Get 5 perfect scores in a row.", "☄️")

# Diligence
_add("diligence", "daily_streak_3", "Three-Day Streak", "Play 3 days in a row.", "📅")
_add("diligence", "daily_streak_7", "Week Warrior", "Play 7 days in a row.", "🗓️")
_add("diligence", "daily_streak_14", "Two-Week Titan", "Play 14 days in a row.", "💪")
_add("diligence", "daily_streak_30", "Month of Learning", "Play 30 days in a row.", "🌙")
_add("diligence", "early_bird", "Early Bird", "Finish a quiz before 7 in the morning.", "🐦")
_add("diligence", "night_owl", "Night Owl", "Finish a quiz after 9 in the evening.", "🦉")
_add("diligence", "weekday_warrior", "Weekday Warrior", "Finish 5 quizzes on a school day.", "🎒")
_add("diligence", "weekend_wonder", "Weekend Wonder", "Finish 5 quizzes on a weekend day.", "🎡")
_add("diligence", "unstoppable_force", "Unstoppable", "Finish 10 quizzes in one day.", "🚀")
_add("diligence", "subject_cycler", "Subject Cycler", "Play every subject in one day.", "🔄")
_add("diligence", "topic_hopper", "Topic Hopper", "Play 5 different topics in one day.", "🐸")
_add("diligence", "persistent_player_5", "Persistent Player", "Finish the same topic 5 times.", "🔁")

# Subjects
_add("subjects", "math_whiz", "Math Whiz", "Get a perfect score in Math.", "🔢")
_add("subjects", "language_lover", "Language Lover", "Get a perfect score in Vietnamese.", "📝")
_add("subjects", "science_sleuth", "Little Scientist", "Get a perfect score in Nature & Society.", "🔬")
_add("subjects", "subject_master", "Subject Master", "Finish every topic in a subject.", "🎓")
_add("subjects", "toan_hoc_mastery", "Math Explorer", "Finish every Math topic.", "🧮")
_add("subjects", "tieng_viet_mastery", "Vietnamese Explorer", "Finish every Vietnamese topic.", "📖")
_add("subjects", "tu_nhien_xa_hoi_mastery", "Nature Explorer", "Finish every Nature & Society topic.", "🌍")
_add("subjects", "toan_hoc_prodigy", "Math Prodigy", "Reach 90% accuracy in Math over 20+ questions.", "📐")
_add("subjects", "tieng_viet_prodigy", "Vietnamese Prodigy", "Reach 90% accuracy in Vietnamese over 20+ questions.", "🖋️")
_add("subjects", "tu_nhien_xa_hoi_prodigy", "Nature Prodigy", "Reach 90% accuracy in Nature & Society over 20+ questions.", "🌿")
_add("subjects", "curious_mind", "Curious Mind", "Play a quiz in every subject.", "🧐")
_add("subjects", "all_rounder", "All-Rounder", "Get a perfect score in every subject.", "🌈")

# Topics: perfect score on a specific topic
_add("topics", "addition_ace", "Addition Ace", "Perfect score on addition and subtraction.", "➕")
_add("topics", "multiplication_master", "Multiplication Master", "Perfect score on times tables.", "✖️")
_add("topics", "geometry_genius", "Geometry Genius", "Perfect score on basic shapes.", "🔷")
_add("topics", "time_teller", "Time Teller", "Perfect score on telling the time.", "⏰")
_add("topics", "word_problem_whiz", "Word Problem Whiz", "Perfect score on word problems.", "🧩")
_add("topics", "measurement_maven", "Measurement Maven", "Perfect score on measurement.", "📏")
_add("topics", "comparison_champ", "Comparison Champ", "Perfect score on comparing numbers.", "⚖️")
_add("topics", "word_wizard", "Word Wizard", "Perfect score on naming words.", "🪄")
_add("topics", "sentence_superstar", "Sentence Superstar", "Perfect score on sentence patterns.", "💬")
_add("topics", "reading_champion", "Reading Champion", "Perfect score on reading comprehension.", "📕")
_add("topics", "botanist_buddy", "Botanist Buddy", "Perfect score on plants.", "🌱")
_add("topics", "animal_expert", "Animal Expert", "Perfect score on animals.", "🐘")
_add("topics", "safety_squad", "Safety Squad", "Perfect score on road safety.", "🚦")

# Topics: repetition tiers, one set per graded topic
TOPIC_TIERS: Dict[str, Tuple[str, str, int, str]] = {
    # tier -> (stat field, threshold, name prefix, icon)
    "veteran": ("times_completed", 10, "Veteran", "🛡️"),
    "superstar": ("perfect_score_count", 5, "Superstar", "🌟"),
    "legend": ("perfect_score_count", 10, "Legend", "🐉"),
}

# topic id -> tiers that have a catalog badge
TOPIC_BADGE_TIERS: Dict[str, Tuple[str, ...]] = {
    topic_id: ("veteran", "superstar", "legend")
    for subject_id in config.SUBJECTS
    for topic_id in config.graded_topics(subject_id)
}


def topic_badge_id(tier: str, topic_id: str) -> str:
    return f"topic_{tier}_{topic_id}"


for _subject_id in config.SUBJECTS:
    for _topic_id in config.graded_topics(_subject_id):
        _name = config.topic_name(_subject_id, _topic_id)
        for _tier, (_field, _threshold, _prefix, _icon) in TOPIC_TIERS.items():
            if _field == "times_completed":
                _desc = f"Finish \"{_name}\" {_threshold} times."
            else:
                _desc = f"Get {_threshold} perfect scores on \"{_name}\"."
            _add("topics", topic_badge_id(_tier, _topic_id), f"{_prefix}: {_name}", _desc, _icon)

# Exams
_add("exams", "brave_challenger", "Brave Challenger", "Take a long practice exam.", "⏱️")
for _duration in config.EXAM_DURATIONS:
    _label = _duration.title()
    _add("exams", f"exam_ace_{_duration}", f"{_label} Exam Ace",
         f"Score 80% or more on a {_duration} practice exam.", "🎯")
    _add("exams", f"exam_perfect_{_duration}", f"{_label} Exam Perfect",
         f"Get every question right on a {_duration} practice exam.", "🏹")

# Collection: only counts the catalog can actually reach
COLLECTION_MILESTONES: Tuple[Tuple[int, str], ...] = tuple(
    (count, badge_id) for count, badge_id in config.BADGE_COUNT_MILESTONES
    if count <= len(BADGES)
)
for _count, _badge_id in COLLECTION_MILESTONES:
    _add("collection", _badge_id, f"Collector {_count}", f"Earn {_count} badges.", "💎")
_add("collection", config.ULTIMATE_BADGE_ID, "Ultimate Achiever", "Earn every other badge.", "🏵️")

BADGES_BY_ID: Dict[str, Badge] = {b.id: b for b in BADGES}


def get_badge(badge_id: str) -> Optional[Badge]:
    return BADGES_BY_ID.get(badge_id)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

Counter = Callable[[UserProgress, QuizEvent], float]
Check = Callable[[QuizEvent, UserProgress, datetime], bool]


@dataclass(frozen=True)
class BadgeRule:
    badge_id: str
    kind: RuleKind
    counter: Optional[Counter] = None
    threshold: float = 1
    check: Optional[Check] = None
    scope: str = "global"  # "global" | "topic"
    tier: Optional[str] = None

    def target_id(self, event: QuizEvent) -> str:
        if "{topic_id}" in self.badge_id:
            return self.badge_id.format(topic_id=event.topic_id)
        return self.badge_id


def _global(fn: Callable[[UserProgress], float]) -> Counter:
    return lambda progress, event: fn(progress)


def _topic_field(field_name: str) -> Counter:
    def counter(progress: UserProgress, event: QuizEvent) -> float:
        stat = progress.topic_stat(event.subject_id, event.topic_id)
        return getattr(stat, field_name) if stat else 0
    return counter


def _subject_completed(subject_id: str) -> Callable[[UserProgress], int]:
    def completed(progress: UserProgress) -> int:
        subject_stats = progress.stats.get(subject_id, {})
        topics = config.graded_topics(subject_id)
        return int(bool(topics) and all(
            t in subject_stats and subject_stats[t].times_completed > 0 for t in topics
        ))
    return completed


def _subject_prodigy(subject_id: str) -> Callable[[UserProgress], int]:
    def prodigy(progress: UserProgress) -> int:
        correct, questions = quiz_stats.subject_totals(progress, subject_id)
        return int(
            questions > config.PRODIGY_MIN_QUESTIONS
            and correct / questions >= config.PRODIGY_ACCURACY
        )
    return prodigy


def _subjects_mastered(progress: UserProgress) -> int:
    return sum(_subject_completed(s)(progress) for s in config.SUBJECTS)


def _subjects_with_quiz(progress: UserProgress) -> int:
    return sum(1 for s in config.SUBJECTS if progress.stats.get(s))


def _subjects_with_perfect(progress: UserProgress) -> int:
    return sum(
        1 for s in config.SUBJECTS
        if any(t.perfect_score_count > 0 for t in progress.stats.get(s, {}).values())
    )


def _exam_ace(duration: str) -> Check:
    def check(event: QuizEvent, after: UserProgress, now: datetime) -> bool:
        return (
            event.exam_duration == duration
            and event.percentage >= config.EXAM_ACE_PERCENT
        )
    return check


def _exam_perfect(duration: str) -> Check:
    def check(event: QuizEvent, after: UserProgress, now: datetime) -> bool:
        return event.exam_duration == duration and event.is_perfect
    return check


def _perfect_in_subject(subject_id: str) -> Check:
    def check(event: QuizEvent, after: UserProgress, now: datetime) -> bool:
        return event.is_perfect and not event.is_exam and event.subject_id == subject_id
    return check


def _perfect_in_topic(topic_id: str) -> Check:
    def check(event: QuizEvent, after: UserProgress, now: datetime) -> bool:
        return event.is_perfect and not event.is_exam and event.topic_id == topic_id
    return check


def _busy_day(weekend: bool) -> Check:
    def check(event: QuizEvent, after: UserProgress, now: datetime) -> bool:
        is_weekend = now.weekday() >= 5
        return (
            is_weekend == weekend
            and after.daily_history.quizzes_completed >= config.BUSY_DAY_QUIZZES
        )
    return check


def _milestones(pairs, counter: Counter) -> List[BadgeRule]:
    return [
        BadgeRule(badge_id, RuleKind.CUMULATIVE, counter=counter, threshold=threshold)
        for threshold, badge_id in pairs
    ]


def _build_rules() -> List[BadgeRule]:
    rules: List[BadgeRule] = []

    # Cumulative totals
    rules += _milestones(config.QUIZ_MILESTONES, _global(quiz_stats.total_quizzes))
    rules += _milestones(config.CORRECT_MILESTONES, _global(quiz_stats.total_correct))
    rules += _milestones(config.PERFECT_MILESTONES, _global(quiz_stats.total_perfect_scores))
    rules += _milestones(
        config.PERFECT_STREAK_MILESTONES, _global(lambda p: p.perfect_score_streak)
    )

    # Exams
    rules.append(BadgeRule(
        "brave_challenger", RuleKind.INSTANTANEOUS,
        check=lambda e, a, n: e.exam_duration == "long",
    ))
    for duration in config.EXAM_DURATIONS:
        rules.append(BadgeRule(f"exam_ace_{duration}", RuleKind.INSTANTANEOUS, check=_exam_ace(duration)))
    for duration in config.EXAM_DURATIONS:
        rules.append(BadgeRule(f"exam_perfect_{duration}", RuleKind.INSTANTANEOUS, check=_exam_perfect(duration)))

    # Diligence
    rules += _milestones(
        config.DAILY_STREAK_MILESTONES, _global(lambda p: p.consecutive_play_days)
    )
    rules.append(BadgeRule(
        "early_bird", RuleKind.INSTANTANEOUS,
        check=lambda e, a, n: n.hour < config.EARLY_BIRD_HOUR,
    ))
    rules.append(BadgeRule(
        "night_owl", RuleKind.INSTANTANEOUS,
        check=lambda e, a, n: n.hour >= config.NIGHT_OWL_HOUR,
    ))
    rules.append(BadgeRule("weekday_warrior", RuleKind.INSTANTANEOUS, check=_busy_day(weekend=False)))
    rules.append(BadgeRule("weekend_wonder", RuleKind.INSTANTANEOUS, check=_busy_day(weekend=True)))
    rules.append(BadgeRule(
        "unstoppable_force", RuleKind.CUMULATIVE,
        counter=_global(lambda p: p.daily_history.quizzes_completed),
        threshold=config.UNSTOPPABLE_QUIZZES,
    ))
    rules.append(BadgeRule(
        "subject_cycler", RuleKind.CUMULATIVE,
        counter=_global(lambda p: len(p.daily_history.subjects_played)),
        threshold=len(config.SUBJECTS),
    ))
    rules.append(BadgeRule(
        "topic_hopper", RuleKind.CUMULATIVE,
        counter=_global(lambda p: len(p.daily_history.topics_played)),
        threshold=config.TOPIC_HOPPER_TOPICS,
    ))

    # Subjects
    for subject_id, badge_id in config.SUBJECT_PERFECT_BADGES.items():
        rules.append(BadgeRule(badge_id, RuleKind.INSTANTANEOUS, check=_perfect_in_subject(subject_id)))
    for topic_id, badge_id in config.TOPIC_PERFECT_BADGES.items():
        rules.append(BadgeRule(badge_id, RuleKind.INSTANTANEOUS, check=_perfect_in_topic(topic_id)))
    for subject_id in config.SUBJECTS:
        rules.append(BadgeRule(
            f"{subject_id}_mastery", RuleKind.CUMULATIVE,
            counter=_global(_subject_completed(subject_id)),
        ))
        rules.append(BadgeRule(
            f"{subject_id}_prodigy", RuleKind.CUMULATIVE,
            counter=_global(_subject_prodigy(subject_id)),
        ))
    rules.append(BadgeRule("subject_master", RuleKind.CUMULATIVE, counter=_global(_subjects_mastered)))
    rules.append(BadgeRule(
        "curious_mind", RuleKind.CUMULATIVE,
        counter=_global(_subjects_with_quiz), threshold=len(config.SUBJECTS),
    ))
    rules.append(BadgeRule(
        "all_rounder", RuleKind.CUMULATIVE,
        counter=_global(_subjects_with_perfect), threshold=len(config.SUBJECTS),
    ))

    # Per topic
    rules.append(BadgeRule(
        "persistent_player_5", RuleKind.CUMULATIVE,
        counter=_topic_field("times_completed"),
        threshold=config.PERSISTENT_PLAYER_TIMES, scope="topic",
    ))
    for tier, (field_name, threshold, _, _) in TOPIC_TIERS.items():
        rules.append(BadgeRule(
            topic_badge_id(tier, "{topic_id}"), RuleKind.CUMULATIVE,
            counter=_topic_field(field_name), threshold=threshold,
            scope="topic", tier=tier,
        ))

    # Collection, evaluated last
    for threshold, badge_id in COLLECTION_MILESTONES:
        rules.append(BadgeRule(badge_id, RuleKind.META, threshold=threshold))
    rules.append(BadgeRule(config.ULTIMATE_BADGE_ID, RuleKind.META, threshold=len(BADGES) - 1))

    return rules


BADGE_RULES: List[BadgeRule] = _build_rules()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _fires(rule: BadgeRule, before: UserProgress, after: UserProgress,
           event: QuizEvent, now: datetime) -> bool:
    if rule.kind == RuleKind.INSTANTANEOUS:
        return rule.check(event, after, now)
    return rule.counter(before, event) < rule.threshold <= rule.counter(after, event)


def evaluate_badges(
    before: UserProgress,
    after: UserProgress,
    event: QuizEvent,
    now: Optional[datetime] = None,
) -> List[Badge]:
    """Return the badges newly earned by the quiz that turned ``before`` into ``after``."""
    now = now or datetime.now()
    new_badges: List[Badge] = []
    seen = set(before.earned_badges)

    def award(badge_id: str) -> None:
        if badge_id in seen:
            return
        badge = BADGES_BY_ID.get(badge_id)
        if badge is None:
            logger.debug("Rule produced unknown badge id %s, skipping", badge_id)
            return
        seen.add(badge_id)
        new_badges.append(badge)

    for rule in BADGE_RULES:
        if rule.kind == RuleKind.META:
            continue
        if rule.scope == "topic" and event.is_exam:
            continue
        if rule.tier and rule.tier not in TOPIC_BADGE_TIERS.get(event.topic_id, ()):
            continue
        if _fires(rule, before, after, event, now):
            award(rule.target_id(event))

    count_before = len(before.earned_badges)
    # "every other badge" only counts ids the catalog knows
    catalog_before = sum(1 for badge_id in before.earned_badges if badge_id in BADGES_BY_ID)
    for rule in BADGE_RULES:
        if rule.kind != RuleKind.META:
            continue
        start = catalog_before if rule.badge_id == config.ULTIMATE_BADGE_ID else count_before
        if start < rule.threshold <= start + len(new_badges):
            award(rule.badge_id)

    return new_badges


def award_badges(progress: UserProgress, badges: List[Badge]) -> List[str]:
    """Add badge ids to the earned set; returns the ids actually added."""
    added = []
    for badge in badges:
        if progress.add_badge(badge.id):
            added.append(badge.id)
            logger.info("Badge earned: %s (%s)", badge.name, badge.id)
    return added


def validate_catalog() -> None:
    """Fail fast when a rule points at a badge the catalog does not have."""
    if len(BADGES_BY_ID) != len(BADGES):
        ids = [b.id for b in BADGES]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise BadgeCatalogError(f"Duplicate badge ids in catalog: {', '.join(dupes)}")

    missing = []
    for rule in BADGE_RULES:
        if rule.tier:
            continue
        if rule.badge_id not in BADGES_BY_ID:
            missing.append(rule.badge_id)
    for topic_id, tiers in TOPIC_BADGE_TIERS.items():
        for tier in tiers:
            badge_id = topic_badge_id(tier, topic_id)
            if badge_id not in BADGES_BY_ID:
                missing.append(badge_id)
    if missing:
        raise BadgeCatalogError(f"Rules reference unknown badges: {', '.join(missing)}")


def badges_by_category(earned: List[str]) -> List[Tuple[str, List[Tuple[Badge, bool]]]]:
    """Catalog grouped for the collection screen, with an earned flag per badge."""
    earned_set = set(earned)
    return [
        (
            CATEGORY_TITLES.get(category, category.title()),
            [(BADGES_BY_ID[i], i in earned_set) for i in ids],
        )
        for category, ids in BADGE_CATEGORIES.items()
    ]
