from __future__ import annotations

import json
import logging
import os
import tempfile
import threading

from .base import Storage

logger = logging.getLogger(__name__)


class JsonStorage(Storage):
    """Whole-state JSON file, replaced atomically on every write."""

    _path_locks: dict[str, threading.RLock] = {}
    _path_locks_guard = threading.Lock()

    def __init__(self, file_path: str = "data.json") -> None:
        self._file_path = file_path
        abs_path = os.path.abspath(file_path)
        with self._path_locks_guard:
            if abs_path not in self._path_locks:
                self._path_locks[abs_path] = threading.RLock()
            self._lock = self._path_locks[abs_path]

    @property
    def file_path(self) -> str:
        return self._file_path

    def load_state(self) -> dict | None:
        with self._lock:
            try:
                with open(self._file_path, encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError:
                return None
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.warning("Failed to load JSON state from %s, ignoring it", self._file_path)
                return None
        if not isinstance(data, dict):
            logger.warning("Invalid JSON state root in %s, ignoring it", self._file_path)
            return None
        return data

    def save_state(self, data: dict) -> None:
        with self._lock:
            directory = os.path.dirname(self._file_path) or "."
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".state_", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self._file_path)
            finally:
                try:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
                except OSError:
                    logger.exception("Failed to cleanup temporary file during save: %s", tmp_path)

    def close(self) -> None:
        pass
