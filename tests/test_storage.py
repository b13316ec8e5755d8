import errno
import json
import os

import pytest

import config
import storage
from models import DailyHistory, MistakeRecord, TopicStat, UserProgress
from storage import JsonFileStore, ProgressStoreError, dumps, loads, open_store


def _sample_progress():
    return UserProgress(
        stats={"toan_hoc": {"so_sanh": TopicStat(5, 3, 12, 15, 1)}},
        daily_history=DailyHistory(
            date="2024-03-13", quizzes_completed=3,
            subjects_played={"toan_hoc", "tieng_viet"}, topics_played={"so_sanh", "cau_ai_la_gi"},
        ),
        earned_badges=["first_quiz", "perfect_score"],
        consecutive_play_days=2,
        perfect_score_streak=1,
        last_play_date="2024-03-13",
        current_theme_id="sunset",
        unlocked_themes=["default", "sunset", "forest"],
        mistakes=[MistakeRecord("toan_hoc", "so_sanh", "3 ? 5", ">", "<", "2024-03-13T12:00:00")],
    )


def test_round_trip_preserves_progress():
    original = _sample_progress()
    assert loads(dumps(original)) == original


def test_sets_are_written_as_sorted_lists():
    data = json.loads(dumps(_sample_progress()))
    assert data["daily_history"]["subjects_played"] == ["tieng_viet", "toan_hoc"]
    assert data["daily_history"]["topics_played"] == ["cau_ai_la_gi", "so_sanh"]
    assert data["version"] == storage.SCHEMA_VERSION


def test_legacy_record_gets_defaults():
    legacy = {
        "stats": {"toan_hoc": {"so_sanh": {"best_score": 4, "times_completed": 2}}},
        "earned_badges": ["first_quiz", "first_quiz"],
        "unlocked_themes": ["sunset"],
    }
    p = loads(json.dumps(legacy))
    stat = p.topic_stat("toan_hoc", "so_sanh")
    assert stat.total_correct == 0
    assert stat.perfect_score_count == 0
    assert p.daily_history == DailyHistory()
    assert p.earned_badges == ["first_quiz"]
    assert p.unlocked_themes == ["default", "sunset"]
    assert p.current_theme_id == "default"
    assert p.mistakes == []


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", '{"stats": {"toan_hoc": {"so_sanh": {"best_score": "x"}}}}'])
def test_corrupt_records_raise(text):
    with pytest.raises(ProgressStoreError):
        loads(text)


def test_json_store_missing_profile_is_empty(data_dir):
    store = JsonFileStore(data_dir)
    assert store.load("nobody") == UserProgress()
    assert store.list_profiles() == []


def test_json_store_save_list_delete(data_dir):
    store = JsonFileStore(data_dir)
    store.save("Minh Anh", _sample_progress())
    store.save("Bao", UserProgress())

    assert store.list_profiles() == ["Bao", "Minh Anh"]
    assert store.load("Minh Anh") == _sample_progress()
    assert not list(data_dir.glob("*.tmp"))

    store.delete("Minh Anh")
    store.delete("Minh Anh")
    assert store.list_profiles() == ["Bao"]


def test_similar_profile_names_keep_separate_records(data_dir):
    store = JsonFileStore(data_dir)
    store.save("Bao!", UserProgress(earned_badges=["first_quiz"]))
    store.save("Bao?", UserProgress())
    store.save("Minh Anh", UserProgress())

    assert store.list_profiles() == ["Bao!", "Bao?", "Minh Anh"]
    assert store.load("Bao!").earned_badges == ["first_quiz"]
    assert store.load("Bao?").earned_badges == []


def test_failed_write_leaves_no_temp_files(monkeypatch, data_dir):
    real_fdopen = os.fdopen

    class FullDisk:
        def __init__(self, fd, *args, **kwargs):
            self._file = real_fdopen(fd, *args, **kwargs)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            self._file.close()

        def write(self, text):
            raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(storage.os, "fdopen", FullDisk)
    store = JsonFileStore(data_dir)
    for _ in range(3):
        with pytest.raises(ProgressStoreError):
            store.save("Bao", UserProgress())

    assert list(data_dir.iterdir()) == []
    assert store.list_profiles() == []


def test_json_store_corrupt_file_raises(data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "Bao.json").write_text("{broken", encoding="utf-8")
    with pytest.raises(ProgressStoreError):
        JsonFileStore(data_dir).load("Bao")


def test_open_store_defaults_to_json(monkeypatch, data_dir):
    monkeypatch.setattr(config, "PROGRESS_BACKEND", "json")
    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    store = open_store()
    assert isinstance(store, JsonFileStore)
    assert store.data_dir == data_dir


def test_open_store_postgres_requires_url(monkeypatch):
    monkeypatch.setattr(config, "PROGRESS_BACKEND", "postgres")
    monkeypatch.setattr(config, "DB_URL", "")
    with pytest.raises(ProgressStoreError):
        open_store()
