"""
Key-value storage for per-user usage counters.

Counters are stored as opaque JSON documents keyed by user id.
"""
import json
import sqlite3
from pathlib import Path
from typing import Dict

from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pdf_chat.config.settings import DB_MAX_RETRIES, RETRY_DELAY, USAGE_DB_PATH

UsageCounters = Dict[str, int]


class UsageStore:
    """Interface for usage counter persistence."""

    def load(self, user_id: str) -> UsageCounters:
        """Return the stored counters for a user, empty if none were saved."""
        raise NotImplementedError

    def save(self, user_id: str, counters: UsageCounters) -> None:
        """Replace the stored counters for a user."""
        raise NotImplementedError

    def increment(self, user_id: str, key: str, delta: int = 1) -> int:
        """Add delta to one counter and return the new total."""
        counters = self.load(user_id)
        counters[key] = counters.get(key, 0) + delta
        self.save(user_id, counters)
        return counters[key]

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryUsageStore(UsageStore):
    """Process-local store holding serialized counters, used for tests and demos."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, user_id: str) -> UsageCounters:
        raw = self._data.get(user_id)
        return json.loads(raw) if raw else {}

    def save(self, user_id: str, counters: UsageCounters) -> None:
        self._data[user_id] = json.dumps(counters)

    def clear(self) -> None:
        self._data.clear()


class SqliteUsageStore(UsageStore):
    """Service for persisting usage counters in SQLite."""

    def __init__(self, db_path: str = USAGE_DB_PATH):
        """Initialize the store and create the usage table if needed."""
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_database()

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly
        return sqlite3.connect(self.db_path, isolation_level=None)

    def _ensure_database(self):
        """Ensure the database and tables exist."""
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS usage (
                    user_id TEXT PRIMARY KEY,
                    counters TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        finally:
            conn.close()

    @staticmethod
    def _read(conn: sqlite3.Connection, user_id: str) -> UsageCounters:
        row = conn.execute("SELECT counters FROM usage WHERE user_id = ?", (user_id,)).fetchone()
        return json.loads(row[0]) if row else {}

    @staticmethod
    def _write(conn: sqlite3.Connection, user_id: str, counters: UsageCounters):
        conn.execute(
            """
            INSERT INTO usage (user_id, counters, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(user_id) DO UPDATE SET counters = excluded.counters, updated_at = CURRENT_TIMESTAMP
            """,
            (user_id, json.dumps(counters))
        )

    def load(self, user_id: str) -> UsageCounters:
        conn = self._connect()
        try:
            return self._read(conn, user_id)
        finally:
            conn.close()

    @retry(
        stop=stop_after_attempt(DB_MAX_RETRIES),
        wait=wait_exponential(multiplier=RETRY_DELAY),
        retry=retry_if_exception_type(sqlite3.OperationalError),
        reraise=True
    )
    def save(self, user_id: str, counters: UsageCounters) -> None:
        conn = self._connect()
        try:
            self._write(conn, user_id, counters)
        finally:
            conn.close()

    @retry(
        stop=stop_after_attempt(DB_MAX_RETRIES),
        wait=wait_exponential(multiplier=RETRY_DELAY),
        retry=retry_if_exception_type(sqlite3.OperationalError),
        reraise=True
    )
    def increment(self, user_id: str, key: str, delta: int = 1) -> int:
        """Atomically add delta to one counter inside a write transaction."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                counters = self._read(conn, user_id)
                counters[key] = counters.get(key, 0) + delta
                self._write(conn, user_id, counters)
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
            return counters[key]
        except sqlite3.OperationalError as e:
            logger.warning(f"Usage update for {user_id} failed: {e}")
            raise
        finally:
            conn.close()

    def clear(self) -> None:
        """Clear all stored usage."""
        conn = self._connect()
        try:
            conn.execute("DELETE FROM usage")
            logger.info("Cleared all usage counters")
        finally:
            conn.close()
