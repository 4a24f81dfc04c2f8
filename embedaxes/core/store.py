"""
Durable string-keyed store used by the embedding caches and the label workflow.
Values are opaque strings (JSON in practice); the store never interprets them.
"""

import sqlite3
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .db import get_db, init_db
from ..util.logging import logger


class KeyValueStore(ABC):
    """Abstract interface for a synchronous, process-local key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent. Read failures raise."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any previous one."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store; the default for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class SqliteKeyValueStore(KeyValueStore):
    """
    SQLite-backed store. One row per key, last write wins.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        init_db(db_path)

    def get(self, key: str) -> Optional[str]:
        if not key or not key.strip():
            return None

        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT value FROM kv WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            # A failed read must not look like an absent key
            logger.error(f"Failed to get key '{key}': {e}")
            raise

    def set(self, key: str, value: str) -> None:
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
                (key, value)
            )
            conn.commit()

        logger.log_store_operation("set", key, size=len(value))

    def remove(self, key: str) -> None:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()

        logger.log_store_operation("remove", key)

    def keys(self) -> List[str]:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT key FROM kv ORDER BY key")
            return [row[0] for row in cursor.fetchall()]
