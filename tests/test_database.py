from unittest.mock import MagicMock

import psycopg2
import pytest

import database
from database import ProgressDatabase
from models import UserProgress
from storage import ProgressStoreError, dumps


@pytest.fixture
def conn(monkeypatch):
    """Replace psycopg2.connect with a mocked connection."""
    connection = MagicMock()
    monkeypatch.setattr(database.psycopg2, "connect", MagicMock(return_value=connection))
    return connection


def test_initialize_creates_table(conn):
    db = ProgressDatabase("postgresql://example")
    db.initialize()
    sql = conn.cursor.return_value.execute.call_args[0][0]
    assert "CREATE TABLE IF NOT EXISTS user_progress" in sql
    conn.commit.assert_called_once()


def test_load_missing_profile_returns_empty(conn):
    conn.cursor.return_value.fetchone.return_value = None
    assert ProgressDatabase("postgresql://example").load("Bao") == UserProgress()


def test_load_parses_stored_record(conn):
    stored = UserProgress(earned_badges=["first_quiz"], consecutive_play_days=3)
    conn.cursor.return_value.fetchone.return_value = {"data": dumps(stored)}
    assert ProgressDatabase("postgresql://example").load("Bao") == stored


def test_save_upserts_and_commits(conn):
    ProgressDatabase("postgresql://example").save("Bao", UserProgress())
    sql, params = conn.cursor.return_value.execute.call_args[0]
    assert "ON CONFLICT(profile)" in sql
    assert params[0] == "Bao"
    conn.commit.assert_called_once()


def test_driver_errors_are_wrapped_and_rolled_back(conn):
    conn.cursor.return_value.execute.side_effect = psycopg2.OperationalError("gone")
    db = ProgressDatabase("postgresql://example")
    with pytest.raises(ProgressStoreError):
        db.save("Bao", UserProgress())
    conn.rollback.assert_called_once()


def test_connect_failure_is_wrapped(monkeypatch):
    monkeypatch.setattr(
        database.psycopg2, "connect",
        MagicMock(side_effect=psycopg2.OperationalError("refused")),
    )
    with pytest.raises(ProgressStoreError):
        ProgressDatabase("postgresql://example")


def test_list_profiles(conn):
    conn.cursor.return_value.fetchall.return_value = [{"profile": "An"}, {"profile": "Bao"}]
    assert ProgressDatabase("postgresql://example").list_profiles() == ["An", "Bao"]
