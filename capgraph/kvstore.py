"""Persistent string-keyed store (the local-storage side of the app).

Values are strings; JSON helpers sit on top. Reads of corrupt JSON fall
back to the caller's default, the same way the browser-side helpers do.
Last write wins per key.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from .util.console import obs, warn


class KeyValueStore:
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> Iterator[str]:
        raise NotImplementedError

    def get_json(self, key: str, fallback: Any = None) -> Any:
        raw = self.get_item(key)
        if not raw:
            return fallback
        try:
            obj = json.loads(raw)
        except ValueError:
            return fallback
        return fallback if obj is None else obj

    def set_json(self, key: str, obj: Any) -> None:
        self.set_item(key, json.dumps(obj, ensure_ascii=False, separators=(",", ":")))


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class JsonFileStore(KeyValueStore):
    """A single JSON object on disk, rewritten atomically on every change."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as ex:
            warn(f"state file unreadable, starting empty: {self.path} ({ex})")
            return {}
        if not isinstance(raw, dict):
            warn(f"state file is not a JSON object, starting empty: {self.path}")
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
        obs("kvstore", "flush.ok", path=self.path, keys=len(self._data))

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


def default_state_path() -> Path:
    env = (os.getenv("CAPGRAPH_STATE", "") or "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / ".capgraph" / "state.json"


__all__ = [
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "default_state_path",
]
