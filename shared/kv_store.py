"""String-keyed value storage used as the persistence medium for office tools.

Two backends share one small interface (get / set / delete):

- ``JsonFileStore`` keeps one UTF-8 file per key under a data directory
  (data/<tool>/<key>.json), the same layout the per-tool JSON stores use.
- ``MemoryStore`` keeps values in a dict, for tests and throwaway sessions.

Values are plain text; callers decide how to serialize. I/O failures are
raised as ``PersistenceError`` so callers can catch a single type at the
boundary.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol


class PersistenceError(Exception):
    """A value could not be read from or written to the storage medium."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ── File-backed store ────────────────────────────────────────────────────────

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _key_to_filename(key: str) -> str:
    """Map an arbitrary key to a safe file name.

    Characters outside ``[A-Za-z0-9._-]`` are replaced by ``%XX`` escapes so
    two different keys never share a file.
    """
    escaped = _UNSAFE_CHARS.sub(lambda m: "".join(f"%{b:02X}" for b in m.group().encode("utf-8")), key)
    return f"{escaped}.json"


class JsonFileStore:
    """One file per key under *data_dir*."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / _key_to_filename(key)

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Could not read {key!r}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Could not write {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Could not delete {key!r}: {exc}") from exc


# ── In-memory store ──────────────────────────────────────────────────────────


class MemoryStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)
