"""
Storage for each user's saved answering settings.
"""
import json
import sqlite3
from pathlib import Path
from typing import Any, Dict

from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pdf_chat.config.settings import DB_MAX_RETRIES, RETRY_DELAY, SETTINGS_DB_PATH

StoredSettings = Dict[str, Any]


class SettingsStore:
    """Interface for settings persistence."""

    def load(self, user_id: str) -> StoredSettings:
        """Return the saved settings for a user, empty if none were saved."""
        raise NotImplementedError

    def save(self, user_id: str, settings: StoredSettings) -> None:
        raise NotImplementedError


class InMemorySettingsStore(SettingsStore):

    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, user_id: str) -> StoredSettings:
        raw = self._data.get(user_id)
        return json.loads(raw) if raw else {}

    def save(self, user_id: str, settings: StoredSettings) -> None:
        self._data[user_id] = json.dumps(settings)


class SqliteSettingsStore(SettingsStore):
    """Service for persisting user settings in SQLite."""

    def __init__(self, db_path: str = SETTINGS_DB_PATH):
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, isolation_level=None)

    def _ensure_database(self):
        """Ensure the database and tables exist."""
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_settings (
                    user_id TEXT PRIMARY KEY,
                    settings TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        finally:
            conn.close()

    def load(self, user_id: str) -> StoredSettings:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT settings FROM user_settings WHERE user_id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()

        if not row:
            return {}
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            # Unreadable settings fall back to defaults
            logger.error(f"Error loading settings for {user_id}: {e}")
            return {}

    @retry(
        stop=stop_after_attempt(DB_MAX_RETRIES),
        wait=wait_exponential(multiplier=RETRY_DELAY),
        retry=retry_if_exception_type(sqlite3.OperationalError),
        reraise=True
    )
    def save(self, user_id: str, settings: StoredSettings) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO user_settings (user_id, settings, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id) DO UPDATE SET settings = excluded.settings, updated_at = CURRENT_TIMESTAMP
                """,
                (user_id, json.dumps(settings))
            )
        finally:
            conn.close()
        logger.debug(f"Saved settings for {user_id}")
