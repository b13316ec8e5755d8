import logging
from datetime import datetime
from typing import List

import psycopg2
import psycopg2.extras

from models import UserProgress
from storage import ProgressStore, ProgressStoreError, dumps, loads

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS user_progress (
        profile TEXT PRIMARY KEY,
        data TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
]


class ProgressDatabase(ProgressStore):
    def __init__(self, db_url: str):
        self.db_url = db_url
        try:
            self.conn = psycopg2.connect(db_url)
        except psycopg2.Error as e:
            raise ProgressStoreError(f"Cannot connect to progress database: {e}") from e
        self.conn.autocommit = False

    def initialize(self) -> None:
        cur = self.conn.cursor()
        try:
            for stmt in SCHEMA_STATEMENTS:
                cur.execute(stmt)
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise ProgressStoreError(f"Cannot create schema: {e}") from e
        finally:
            cur.close()

    def close(self) -> None:
        self.conn.close()

    def _cursor(self):
        """Return a RealDictCursor for dict-like row access."""
        return self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)

    # ------------------------------------------------------------------
    # Progress records
    # ------------------------------------------------------------------
    def load(self, profile: str) -> UserProgress:
        cur = self._cursor()
        try:
            cur.execute("SELECT data FROM user_progress WHERE profile = %s", (profile,))
            row = cur.fetchone()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise ProgressStoreError(f"Cannot load progress for {profile}: {e}") from e
        finally:
            cur.close()
        if not row:
            return UserProgress()
        return loads(row["data"])

    def save(self, profile: str, progress: UserProgress) -> None:
        cur = self.conn.cursor()
        try:
            cur.execute(
                """INSERT INTO user_progress (profile, data, updated_at)
                   VALUES (%s, %s, %s)
                   ON CONFLICT(profile) DO UPDATE SET
                     data = EXCLUDED.data,
                     updated_at = EXCLUDED.updated_at""",
                (profile, dumps(progress), datetime.now().isoformat()),
            )
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise ProgressStoreError(f"Cannot save progress for {profile}: {e}") from e
        finally:
            cur.close()

    def delete(self, profile: str) -> None:
        """Delete all progress data for a profile."""
        cur = self.conn.cursor()
        try:
            cur.execute("DELETE FROM user_progress WHERE profile = %s", (profile,))
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise ProgressStoreError(f"Cannot delete progress for {profile}: {e}") from e
        finally:
            cur.close()

    def list_profiles(self) -> List[str]:
        cur = self._cursor()
        try:
            cur.execute("SELECT profile FROM user_progress ORDER BY profile")
            rows = cur.fetchall()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise ProgressStoreError(f"Cannot list profiles: {e}") from e
        finally:
            cur.close()
        return [r["profile"] for r in rows]
