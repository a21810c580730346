from __future__ import annotations

import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Generator, Optional

from .settings import Settings

SESSION_USER_KEY = "user"


# PUBLIC_INTERFACE
class SessionStorage(ABC):
    """Durable key/value storage for the current session (string values)."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value for key, or None if absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key. Removing a missing key is a no-op."""


class InMemorySessionStorage(SessionStorage):
    """
    Thread-safe in-memory storage suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


@dataclass(frozen=True)
class _Cols:
    table: str = "session_items"
    key: str = "item_key"
    value: str = "item_value"


_COLS = _Cols()


class SQLiteSessionStorage(SessionStorage):
    """
    Lightweight SQLite storage that survives process restarts.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.key} TEXT PRIMARY KEY,
                    {_COLS.value} TEXT NOT NULL
                )
                """
            )

    def get_item(self, key: str) -> Optional[str]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {_COLS.value} FROM {_COLS.table} WHERE {_COLS.key} = ?", (key,)
            ).fetchone()
            return str(row[_COLS.value]) if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.key}, {_COLS.value}) VALUES (?, ?)
                ON CONFLICT({_COLS.key}) DO UPDATE SET {_COLS.value} = excluded.{_COLS.value}
                """,
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        with self._conn() as conn:
            conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.key} = ?", (key,))


# PUBLIC_INTERFACE
def build_session_storage(settings: Settings) -> SessionStorage:
    """
    Return the configured session storage.
    - memory: InMemorySessionStorage
    - sqlite: SQLiteSessionStorage at settings.session_db_path
    """
    if settings.session_backend == "sqlite":
        return SQLiteSessionStorage(settings.session_db_path)
    return InMemorySessionStorage()
