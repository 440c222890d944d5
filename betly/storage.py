"""
Durable device-local key-value store.

This module provides a small string key-value interface over SQLite. It is
used to persist the in-progress ticket, the last known credit balance and
the auth token across restarts. Each key is owned by exactly one component.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from contextlib import contextmanager

from betly.config import Config

# Configure module logger
logger = logging.getLogger(__name__)


class StorageKeys:
    """Keys used in the key-value store."""

    AUTH_TOKEN = "betly_auth_token"
    USER_DATA = "betly_user_data"
    CURRENT_TICKET = "current_ticket"
    CREDIT_BALANCE = "betly_credit_balance"


class KeyValueStore:
    """
    SQLite-backed string key-value store.

    Write failures are logged and reported through the return value rather
    than raised, so a failed write never interrupts the caller's flow.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file. If None, uses Config.STORE_PATH
        """
        self.db_path = Path(db_path) if db_path else Config.STORE_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_database()

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections with commit/rollback."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _initialize_database(self) -> None:
        """Create the key-value table if it doesn't exist."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
        logger.debug(f"Key-value store initialized at {self.db_path}")

    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent or the read fails
        """
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                return row["value"] if row else None

        except sqlite3.Error as e:
            logger.error(f"Error reading key {key}: {e}", exc_info=True)
            return None

    def set_item(self, key: str, value: str) -> bool:
        """
        Write a value, replacing any existing one.

        Returns:
            True if successful, False otherwise
        """
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                """, (key, value, datetime.utcnow().isoformat()))

            logger.debug(f"Stored key: {key}")
            return True

        except sqlite3.Error as e:
            logger.error(f"Error writing key {key}: {e}", exc_info=True)
            return False

    def delete_item(self, key: str) -> bool:
        """Delete a key. Deleting an absent key succeeds."""
        try:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

            logger.debug(f"Deleted key: {key}")
            return True

        except sqlite3.Error as e:
            logger.error(f"Error deleting key {key}: {e}", exc_info=True)
            return False

    def keys(self) -> list[str]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
                return [row["key"] for row in rows]

        except sqlite3.Error as e:
            logger.error(f"Error listing keys: {e}", exc_info=True)
            return []

    # JSON helpers

    def get_json(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """
        Read and decode a JSON value.

        Returns:
            Decoded value, or default if the key is absent or holds invalid JSON
        """
        raw = self.get_item(key)
        if raw is None:
            return default

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt JSON under key {key}: {e}")
            return default

    def set_json(self, key: str, value: Any) -> bool:
        """Encode a value as JSON and store it."""
        return self.set_item(key, json.dumps(value))
