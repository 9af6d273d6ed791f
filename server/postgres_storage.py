"""PostgreSQL storage implementation."""

import json
import logging
import os
import psycopg2
from psycopg2.extras import RealDictCursor

from lexadapt.config import RECENT_WORDS_LIMIT, HISTORY_SESSION_LIMIT
from lexadapt.interfaces import Storage
from lexadapt.models import WordPerformanceRecord, SessionSummary

logger = logging.getLogger(__name__)


class PostgresStorage(Storage):
    """PostgreSQL-based storage implementation."""

    def __init__(self, config_file: str = None, db_url: str = None):
        self.config_file = config_file or os.path.expanduser('~/.config/lexadapt/config.json')
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/lexadapt'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS word_records (
                    user_id VARCHAR(255) NOT NULL,
                    language VARCHAR(50) NOT NULL,
                    word_key VARCHAR(255) NOT NULL,
                    word VARCHAR(255) NOT NULL,
                    mastery_level INTEGER NOT NULL DEFAULT 0,
                    review_count INTEGER NOT NULL DEFAULT 0,
                    correct_count INTEGER NOT NULL DEFAULT 0,
                    next_review_due_at DATE,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (user_id, language, word_key),
                    CHECK (correct_count <= review_count)
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS practice_sessions (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(255) NOT NULL,
                    language VARCHAR(50) NOT NULL,
                    difficulty_level VARCHAR(20) NOT NULL,
                    total_exercises INTEGER NOT NULL,
                    correct_exercises INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_user_language
                ON practice_sessions(user_id, language, created_at)
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS recent_words (
                    user_id VARCHAR(255) NOT NULL,
                    language VARCHAR(50) NOT NULL,
                    word_key VARCHAR(255) NOT NULL,
                    word VARCHAR(255) NOT NULL,
                    used_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (user_id, language, word_key)
                )
            """)
        self._conn.commit()

    def _rollback(self):
        """Roll back the open transaction, if there is a live connection."""
        if self._conn is not None and not self._conn.closed:
            self._conn.rollback()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Create it with e.g.: {{"default_language": "german", "answer_threshold": 0.7}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def get_word_records(self, user_id: str, language: str) -> list[WordPerformanceRecord]:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT word, mastery_level, review_count, correct_count, next_review_due_at
                    FROM word_records WHERE user_id = %s AND language = %s
                    ORDER BY word_key
                """, (user_id, language))
                return [WordPerformanceRecord.from_dict(row) for row in cur.fetchall()]
        except Exception as e:
            logger.error(f"Error loading word records: {e}")
            self._rollback()
            return []

    def save_word_record(self, user_id: str, language: str, record: WordPerformanceRecord) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO word_records (user_id, language, word_key, word, mastery_level,
                                              review_count, correct_count, next_review_due_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (user_id, language, word_key) DO UPDATE SET
                        word = EXCLUDED.word,
                        mastery_level = EXCLUDED.mastery_level,
                        review_count = EXCLUDED.review_count,
                        correct_count = EXCLUDED.correct_count,
                        next_review_due_at = EXCLUDED.next_review_due_at,
                        updated_at = CURRENT_TIMESTAMP
                """, (user_id, language, record.key, record.word, record.mastery_level,
                      record.review_count, record.correct_count, record.next_review_due_at))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving word record: {e}")
            self._rollback()
            raise

    def get_recent_sessions(self, user_id: str, language: str,
                            limit: int = HISTORY_SESSION_LIMIT) -> list[SessionSummary]:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT difficulty_level, total_exercises, correct_exercises, created_at
                    FROM practice_sessions WHERE user_id = %s AND language = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s
                """, (user_id, language, limit))
                return [SessionSummary.from_dict(row) for row in cur.fetchall()]
        except Exception as e:
            logger.error(f"Error loading sessions: {e}")
            self._rollback()
            return []

    def save_session(self, user_id: str, language: str, summary: SessionSummary) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO practice_sessions (user_id, language, difficulty_level,
                                                   total_exercises, correct_exercises, created_at)
                    VALUES (%s, %s, %s, %s, %s, COALESCE(%s, CURRENT_TIMESTAMP))
                """, (user_id, language, summary.difficulty_level.value, summary.total_exercises,
                      summary.correct_exercises, summary.created_at))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving session: {e}")
            self._rollback()
            raise

    def get_recent_words(self, user_id: str, language: str, limit: int = RECENT_WORDS_LIMIT) -> list[str]:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    SELECT word FROM recent_words WHERE user_id = %s AND language = %s
                    ORDER BY used_at DESC LIMIT %s
                """, (user_id, language, limit))
                return [row[0] for row in cur.fetchall()]
        except Exception as e:
            logger.error(f"Error loading recent words: {e}")
            self._rollback()
            return []

    def add_recent_word(self, user_id: str, language: str, word: str) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO recent_words (user_id, language, word_key, word)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (user_id, language, word_key)
                    DO UPDATE SET word = EXCLUDED.word, used_at = CURRENT_TIMESTAMP
                """, (user_id, language, word.lower(), word))
                # Keep only the short-term window
                cur.execute("""
                    DELETE FROM recent_words
                    WHERE user_id = %s AND language = %s AND word_key NOT IN (
                        SELECT word_key FROM recent_words
                        WHERE user_id = %s AND language = %s
                        ORDER BY used_at DESC LIMIT %s
                    )
                """, (user_id, language, user_id, language, RECENT_WORDS_LIMIT))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving recent word: {e}")
            self._rollback()
            raise
