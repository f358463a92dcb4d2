"""
Key/value persistence backends for the job registry.

The registry is handed one backend at construction time:
- SqliteStore: SQLAlchemy-backed table, used when a database path is configured
- JsonFileStore: a single JSON object file
- MemoryStore: process-local, for tests and embedding
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import KeyValue, get_session, init_database
from .env import Settings
from .errors import StorageError


class KeyValueStore(ABC):
    """Get/set JSON-serializable values by key."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources. No-op unless the backend holds connections."""

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for k, v in (initial or {}).items():
            self.set(k, v)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so stored values behave like persisted ones
        try:
            self._data[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON-serializable: {e}") from e


def load_store(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
    except OSError as e:
        raise StorageError(f"Failed to read store {path}: {e}") from e
    if not content:
        return {}
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageError(f"Store {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"Store {path} must contain a JSON object")
    return data


def save_store(path: Path, store: Dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(store, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise StorageError(f"Failed to write store {path}: {e}") from e


class JsonFileStore(KeyValueStore):
    """All keys live in one UTF-8 JSON object file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get(self, key: str) -> Optional[Any]:
        return load_store(self.path).get(key)

    def set(self, key: str, value: Any) -> None:
        store = load_store(self.path)
        store[key] = value
        save_store(self.path, store)


class SqliteStore(KeyValueStore):
    """
    Values stored as JSON text in the key_values table.

    One engine is opened per store and reused for every call; close() releases it.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        try:
            self.engine = init_database(self.db_path)
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Failed to initialize database {self.db_path}: {e}") from e

    def close(self) -> None:
        self.engine.dispose()

    def get(self, key: str) -> Optional[Any]:
        session = get_session(self.engine)
        try:
            row = session.query(KeyValue).filter_by(key=key).first()
            return json.loads(row.value) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}' from {self.db_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored value for '{key}' is not valid JSON: {e}") from e
        finally:
            session.close()

    def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON-serializable: {e}") from e

        session = get_session(self.engine)
        try:
            session.merge(KeyValue(key=key, value=encoded))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Failed to write '{key}' to {self.db_path}: {e}") from e
        finally:
            session.close()


def open_store(settings: Settings) -> KeyValueStore:
    """Pick the backend: SQLite when a database path is configured, else the JSON file."""
    if settings.db_path is not None:
        return SqliteStore(settings.db_path)
    return JsonFileStore(settings.store_path)
