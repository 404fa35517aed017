"""
Local Persisted Storage

A small key/value store for client-side state that must survive restarts:
- the selected budget year
- cached free-text income source suggestions
- the auth token and user id sent with every API call

DESIGN DECISION: A single JSON file is enough for a handful of keys.
Writes go to a temp file that replaces the original, so a crash mid-write
never leaves a truncated store behind.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import structlog

from home_budget.config import get_settings


SELECTED_BUDGET_YEAR_KEY = "selected_budget_year_id"
INCOME_SOURCES_KEY = "income_sources"
AUTH_TOKEN_KEY = "auth_token"
USER_ID_KEY = "user_id"

MAX_INCOME_SOURCES = 100


class LocalStoreError(Exception):
    """The local store could not be read or written."""
    pass


class KeyValueStore(ABC):
    """
    Abstract key/value store with typed accessors for the known keys.

    Implementations only provide the raw get/set/delete primitives.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    # Selected budget year

    def get_selected_budget_year_id(self) -> Optional[str]:
        return self.get(SELECTED_BUDGET_YEAR_KEY)

    def set_selected_budget_year_id(self, budget_year_id: Optional[str]) -> None:
        if budget_year_id is None:
            self.delete(SELECTED_BUDGET_YEAR_KEY)
        else:
            self.set(SELECTED_BUDGET_YEAR_KEY, budget_year_id)

    # Income source suggestions

    def get_income_sources(self) -> list[str]:
        return list(self.get(INCOME_SOURCES_KEY, []))

    def add_income_sources(self, *sources: Optional[str]) -> list[str]:
        """
        Merge sources into the suggestion cache.

        Case-insensitive duplicates are dropped; the newest source goes
        first and the list is capped.
        """
        current = self.get_income_sources()
        for source in sources:
            if not source or not source.strip():
                continue
            source = source.strip()
            current = [s for s in current if s.lower() != source.lower()]
            current.insert(0, source)
        current = current[:MAX_INCOME_SOURCES]
        self.set(INCOME_SOURCES_KEY, current)
        return current

    # Credentials

    def get_auth_token(self) -> Optional[str]:
        return self.get(AUTH_TOKEN_KEY)

    def set_auth_token(self, token: Optional[str]) -> None:
        if token is None:
            self.delete(AUTH_TOKEN_KEY)
        else:
            self.set(AUTH_TOKEN_KEY, token)

    def get_user_id(self) -> Optional[str]:
        return self.get(USER_ID_KEY)

    def set_user_id(self, user_id: str) -> None:
        self.set(USER_ID_KEY, user_id)


class MemoryStore(KeyValueStore):
    """Non-persistent store, for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class LocalStore(KeyValueStore):
    """
    JSON-file backed store.

    The file is read once on first access and rewritten on every change.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_settings().storage.path
        self._data: Optional[dict[str, Any]] = None
        self._logger = structlog.get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            if not self._path.exists():
                self._data = {}
            else:
                try:
                    with self._path.open("r", encoding="utf-8") as fh:
                        data = json.load(fh)
                except json.JSONDecodeError as e:
                    # A corrupt store is reset, not fatal
                    self._logger.warning(
                        "local_store_corrupt",
                        path=str(self._path),
                        error=str(e),
                    )
                    data = {}
                except OSError as e:
                    raise LocalStoreError(f"Failed to read {self._path}: {e}")
                if not isinstance(data, dict):
                    data = {}
                self._data = data
        return self._data

    def _flush(self) -> None:
        data = self._load()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self._path.parent),
                prefix=".store-",
                suffix=".json",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError as e:
            raise LocalStoreError(f"Failed to write {self._path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._load()[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()
