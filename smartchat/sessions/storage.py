"""Durable key/value surfaces the session store writes through.

Two keys are in use: the legacy flat history and the sessions
collection. Values are JSON strings. Any implementation may fail on
read or write; the session store treats both as best-effort.
"""

import json
import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

LEGACY_HISTORY_KEY = "chat.history"
SESSIONS_KEY = "chat.sessions"


class KeyValueStore(Protocol):
    """Scoped key -> string storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MappingKeyValueStore:
    """Key/value surface over any mutable mapping.

    A plain dict gives an in-process store for tests. NiceGUI's
    ``app.storage.user`` gives a per-browser store in the UI.
    """

    def __init__(self, mapping: MutableMapping[str, Any] | None = None) -> None:
        self._mapping: MutableMapping[str, Any] = {} if mapping is None else mapping

    def get(self, key: str) -> str | None:
        value = self._mapping.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._mapping[key] = value


class JsonFileKeyValueStore:
    """Key/value surface persisted as a single JSON object on disk.

    Every ``set`` rewrites the whole file. A missing or unreadable file
    reads as empty.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable store file {self._path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self._path)
