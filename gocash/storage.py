"""
Storage Backend Module

Key/value snapshot storage. Each key holds one JSON document (a whole
collection) that is read at startup and overwritten in full on every
change. Backends: in-memory (testing) and SQLite (persistence).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import sqlite3
import json
import threading
from pathlib import Path


class StorageInterface(ABC):
    """Abstract interface for snapshot storage backends"""

    @abstractmethod
    def read(self, key: str) -> Optional[Any]:
        """Load the document stored under key, or None when missing"""
        pass

    @abstractmethod
    def write(self, key: str, document: Any) -> None:
        """Replace the document stored under key"""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key; returns whether it existed"""
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def exists(self, key: str) -> bool:
        return key in self.keys()

    def write_many(self, documents: Dict[str, Any]) -> None:
        """Write several documents; backends may batch them"""
        for key, document in documents.items():
            self.write(key, document)


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            payload = self._data.get(key)
            # Stored as text so callers never share mutable state
            return json.loads(payload) if payload is not None else None

    def write(self, key: str, document: Any) -> None:
        with self._lock:
            self._data[key] = json.dumps(document, default=str)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._lock = threading.RLock()

        with self._lock:
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    key TEXT PRIMARY KEY,
                    document TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
            """)
            self._connection.commit()

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            row = self._connection.execute(
                "SELECT document FROM snapshots WHERE key = ?", (key,)
            ).fetchone()
            return json.loads(row[0]) if row else None

    def write(self, key: str, document: Any) -> None:
        with self._lock:
            self._upsert(key, document)
            self._connection.commit()

    def write_many(self, documents: Dict[str, Any]) -> None:
        """Write all documents in a single SQLite transaction"""
        with self._lock:
            try:
                for key, document in documents.items():
                    self._upsert(key, document)
                self._connection.commit()
            except Exception:
                self._connection.rollback()
                raise

    def _upsert(self, key: str, document: Any) -> None:
        self._connection.execute("""
            INSERT INTO snapshots (key, document, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                document = excluded.document,
                updated_at = excluded.updated_at
        """, (key, json.dumps(document, default=str)))

    def delete(self, key: str) -> bool:
        with self._lock:
            cursor = self._connection.execute("DELETE FROM snapshots WHERE key = ?", (key,))
            self._connection.commit()
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        with self._lock:
            rows = self._connection.execute("SELECT key FROM snapshots ORDER BY key").fetchall()
            return [row[0] for row in rows]

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def storage_from_url(url: str) -> StorageInterface:
    """
    Build a backend from a storage URL.

    ``memory://`` gives InMemoryStorage; ``sqlite:///path/to.db`` (or
    ``sqlite://`` for an in-memory database) gives SQLiteStorage.
    """
    if url.startswith("memory://"):
        return InMemoryStorage()
    if url.startswith("sqlite://"):
        path = url[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:]
        return SQLiteStorage(path or ":memory:")
    raise ValueError(f"Unsupported storage URL: {url}")
