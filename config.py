import os
from pathlib import Path
from typing import Dict, List, Tuple

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).parent / ".env")


# ---------------------------------------------------------------------------
# Helper: read a setting from the environment
# ---------------------------------------------------------------------------
def _get_secret(key: str, default: str = "") -> str:
    """Read an environment variable, treating empty values as unset."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


# ---------------------------------------------------------------------------
# Environment-driven settings
# ---------------------------------------------------------------------------
PROGRESS_BACKEND: str = _get_secret("QUIZ_PROGRESS_BACKEND", "json").lower()
DATA_DIR: Path = Path(_get_secret("QUIZ_DATA_DIR", str(Path.home() / ".brainy_playground")))
DB_URL: str = _get_secret("QUIZ_DB_URL", _get_secret("SUPABASE_DB_URL", ""))
LOG_LEVEL: str = _get_secret("QUIZ_LOG_LEVEL", "INFO")
LOG_FILE: str = _get_secret("QUIZ_LOG_FILE", "")

# ---------------------------------------------------------------------------
# Subjects and topics
# ---------------------------------------------------------------------------
SUBJECTS: Dict[str, str] = {
    "toan_hoc": "Math",
    "tieng_viet": "Vietnamese",
    "tu_nhien_xa_hoi": "Nature & Society",
}

TOPICS: Dict[str, List[Tuple[str, str]]] = {
    "toan_hoc": [
        ("phep_cong_tru_1000", "Addition and subtraction up to 1000"),
        ("phep_nhan_chia_bang_2_5", "Multiplication and division tables 2-5"),
        ("hinh_hoc_co_ban", "Basic shapes"),
        ("xem_dong_ho", "Telling the time"),
        ("giai_toan_loi_van", "Word problems"),
        ("do_dai_do_luong", "Measurement (metres, grams)"),
        ("so_sanh", "Comparing (bigger, smaller, equal)"),
    ],
    "tieng_viet": [
        ("tu_chi_su_vat", "Naming words"),
        ("cau_ai_la_gi", "\"Who is what?\" sentences"),
        ("doc_hieu_doan_van", "Short reading comprehension"),
        ("doc_doan_van", "Read aloud with AI"),
    ],
    "tu_nhien_xa_hoi": [
        ("cay_xanh", "Plants around us"),
        ("dong_vat", "Animals"),
        ("an_toan_giao_thong", "Road safety"),
    ],
}

# Reading/writing activities are not graded quizzes
ACTIVITY_TOPICS = frozenset({"doc_doan_van", "luyen_viet"})

EXAM_TOPIC_ID = "exam"
EXAM_DURATIONS = ("short", "medium", "long")
QUIZ_LENGTH = 5


def topic_name(subject_id: str, topic_id: str) -> str:
    """Display name for a topic, falling back to the id."""
    if topic_id == EXAM_TOPIC_ID:
        return "Practice exam"
    for tid, name in TOPICS.get(subject_id, []):
        if tid == topic_id:
            return name
    return topic_id


def graded_topics(subject_id: str) -> List[str]:
    """Topic ids of a subject that count as quizzes."""
    return [tid for tid, _ in TOPICS.get(subject_id, []) if tid not in ACTIVITY_TOPICS]


# ---------------------------------------------------------------------------
# Badge milestones
# ---------------------------------------------------------------------------
QUIZ_MILESTONES = (
    (1, "first_quiz"),
    (10, "marathon_runner"),
    (25, "quiz_pro_25"),
    (50, "quiz_master_50"),
    (75, "quiz_pro_75"),
    (100, "quiz_legend_100"),
    (150, "quiz_master_150"),
    (200, "quiz_legend_200"),
    (300, "quiz_titan_300"),
    (500, "quiz_demigod_500"),
)
CORRECT_MILESTONES = (
    (100, "correct_100"),
    (500, "correct_500"),
    (1000, "correct_1000"),
    (2500, "correct_2500"),
    (5000, "correct_5000"),
)
PERFECT_MILESTONES = (
    (1, "perfect_score"),
    (3, "perfectionist"),
    (5, "perfect_score_5"),
    (10, "perfect_score_10"),
    (15, "perfect_score_15"),
    (25, "perfect_score_25"),
    (50, "perfect_score_50"),
)
PERFECT_STREAK_MILESTONES = ((3, "perfect_streak_3"), (5, "perfect_streak_5"))
DAILY_STREAK_MILESTONES = (
    (3, "daily_streak_3"),
    (7, "daily_streak_7"),
    (14, "daily_streak_14"),
    (30, "daily_streak_30"),
)
BADGE_COUNT_MILESTONES = (
    (20, "grand_master_20"),
    (40, "collector_40"),
    (60, "collector_60"),
    (80, "collector_80"),
    (100, "collector_100"),
    (120, "collector_120"),
)
ULTIMATE_BADGE_ID = "ultimate_achiever"

SUBJECT_PERFECT_BADGES: Dict[str, str] = {
    "toan_hoc": "math_whiz",
    "tieng_viet": "language_lover",
    "tu_nhien_xa_hoi": "science_sleuth",
}

TOPIC_PERFECT_BADGES: Dict[str, str] = {
    "phep_cong_tru_1000": "addition_ace",
    "phep_nhan_chia_bang_2_5": "multiplication_master",
    "hinh_hoc_co_ban": "geometry_genius",
    "xem_dong_ho": "time_teller",
    "giai_toan_loi_van": "word_problem_whiz",
    "do_dai_do_luong": "measurement_maven",
    "so_sanh": "comparison_champ",
    "tu_chi_su_vat": "word_wizard",
    "cau_ai_la_gi": "sentence_superstar",
    "doc_hieu_doan_van": "reading_champion",
    "cay_xanh": "botanist_buddy",
    "dong_vat": "animal_expert",
    "an_toan_giao_thong": "safety_squad",
}

# ---------------------------------------------------------------------------
# Policy thresholds
# ---------------------------------------------------------------------------
WEAK_TOPIC_ACCURACY = 0.8      # recommend topics below 80%
WEAK_TOPIC_MIN_PLAYED = 2      # need two played topics to compare
PRODIGY_ACCURACY = 0.9
PRODIGY_MIN_QUESTIONS = 20     # strictly more than this many questions
EXAM_ACE_PERCENT = 80
EARLY_BIRD_HOUR = 7
NIGHT_OWL_HOUR = 21
BUSY_DAY_QUIZZES = 5           # weekday warrior / weekend wonder
UNSTOPPABLE_QUIZZES = 10
TOPIC_HOPPER_TOPICS = 5
PERSISTENT_PLAYER_TIMES = 5
MAX_MISTAKES = 200

# Accuracy bands for the parents' corner
STRONG_ACCURACY = 0.85
NEEDS_WORK_ACCURACY = 0.60
