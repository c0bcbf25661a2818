# ABOUTME: Key-value preference stores backing the recommendation cache.
# ABOUTME: The JSON store rewrites its file atomically so multi-key updates are all-or-nothing.

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


class PreferencesStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def update(self, values: Mapping[str, Any]) -> None:
        """Write every key in ``values`` in a single step."""

    @abstractmethod
    def remove(self, keys: Iterable[str]) -> None:
        ...


class MemoryPreferencesStore(PreferencesStore):
    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)

    def update(self, values: Mapping[str, Any]) -> None:
        self._values.update(values)

    def remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._values.pop(key, None)

    def keys(self):
        return self._values.keys()


class JsonPreferencesStore(PreferencesStore):
    """Preferences persisted as one JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring preferences file %s: expected a JSON object", self.path)
            return {}
        return payload

    def _write(self, values: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".json.tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def update(self, values: Mapping[str, Any]) -> None:
        current = self._load()
        current.update(values)
        self._write(current)

    def remove(self, keys: Iterable[str]) -> None:
        current = self._load()
        changed = False
        for key in keys:
            if key in current:
                del current[key]
                changed = True
        if changed:
            self._write(current)
