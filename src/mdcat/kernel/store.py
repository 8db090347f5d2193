"""
Key-value storage for cross-process coordination state.

Two shapes of value live in a store:
- records: small JSON objects replaced as a whole (last write wins)
- logs: append-only lists of JSON objects, consumed by `drain`

Keys are slash-separated, e.g. "roots/r_1a2b3c" or "queues/4242". Callers treat
any exception from a store as a persistence failure and degrade.
"""

from __future__ import annotations

import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..util.fs import append_jsonl, atomic_write_json, read_json, take_jsonl


class StoreError(RuntimeError):
    """Raised by a store that cannot complete an operation."""


_KEY_PART = re.compile(r"^[A-Za-z0-9_.-]+$")


def _split_key(key: str) -> List[str]:
    parts = [p for p in str(key or "").split("/")]
    if not parts or any((not _KEY_PART.match(p)) or p in (".", "..") for p in parts):
        raise ValueError(f"invalid store key: {key!r}")
    return parts


class KeyValueStore(ABC):
    @abstractmethod
    def read(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the record at `key`, or None if there is none."""

    @abstractmethod
    def write(self, key: str, doc: Dict[str, Any]) -> None:
        """Replace the record at `key`."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete the record at `key`. Returns whether something was removed."""

    def compare_and_delete(self, key: str, *, field: str, expected: Any) -> bool:
        """Delete the record only if `doc[field] == expected`.

        Not atomic across processes: a write landing between the read and the
        delete can be lost. Registry semantics tolerate that.
        """
        doc = self.read(key)
        if not doc or doc.get(field) != expected:
            return False
        return self.delete(key)

    @abstractmethod
    def append(self, key: str, entry: Dict[str, Any]) -> None:
        """Append one entry to the log at `key`, creating it if needed."""

    @abstractmethod
    def drain(self, key: str) -> List[Dict[str, Any]]:
        """Return every entry of the log at `key` in append order and clear it."""

    @abstractmethod
    def discard(self, key: str) -> None:
        """Drop the log at `key` without reading it."""

    @abstractmethod
    def size(self, key: str) -> int:
        """Number of entries currently in the log at `key`."""

    @abstractmethod
    def keys(self, namespace: str) -> List[str]:
        """Record keys under `namespace`, sorted."""


class FileStore(KeyValueStore):
    """Store backed by a directory shared by all cooperating processes.

    Records are `<key>.json` written via temp file + rename; logs are
    `<key>.jsonl` appended with O_APPEND and drained by renaming them aside.
    """

    def __init__(self, home: Path):
        self.home = Path(home)

    def _record_path(self, key: str) -> Path:
        parts = _split_key(key)
        return self.home.joinpath(*parts[:-1]) / f"{parts[-1]}.json"

    def _log_path(self, key: str) -> Path:
        parts = _split_key(key)
        return self.home.joinpath(*parts[:-1]) / f"{parts[-1]}.jsonl"

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        doc = read_json(self._record_path(key))
        return doc or None

    def write(self, key: str, doc: Dict[str, Any]) -> None:
        atomic_write_json(self._record_path(key), doc)

    def delete(self, key: str) -> bool:
        try:
            self._record_path(key).unlink()
            return True
        except FileNotFoundError:
            return False

    def append(self, key: str, entry: Dict[str, Any]) -> None:
        append_jsonl(self._log_path(key), entry)

    def drain(self, key: str) -> List[Dict[str, Any]]:
        return take_jsonl(self._log_path(key))

    def discard(self, key: str) -> None:
        try:
            self._log_path(key).unlink()
        except FileNotFoundError:
            pass

    def size(self, key: str) -> int:
        p = self._log_path(key)
        if not p.exists():
            return 0
        with p.open("r", encoding="utf-8", errors="replace") as f:
            return sum(1 for line in f if line.strip())

    def keys(self, namespace: str) -> List[str]:
        parts = _split_key(namespace)
        d = self.home.joinpath(*parts)
        if not d.is_dir():
            return []
        out: List[str] = []
        for name in os.listdir(d):
            if name.endswith(".json"):
                out.append(f"{namespace}/{name[: -len('.json')]}")
        return sorted(out)


class MemoryStore(KeyValueStore):
    """In-process store for tests and single-process embedding.

    Set `fail = True` to make every operation raise StoreError.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, Dict[str, Any]] = {}
        self._logs: Dict[str, List[Dict[str, Any]]] = {}
        self.fail = False

    def _check(self, key: str) -> None:
        _split_key(key)
        if self.fail:
            raise StoreError("store unavailable")

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        self._check(key)
        with self._lock:
            doc = self._records.get(key)
            return dict(doc) if doc is not None else None

    def write(self, key: str, doc: Dict[str, Any]) -> None:
        self._check(key)
        with self._lock:
            self._records[key] = dict(doc)

    def delete(self, key: str) -> bool:
        self._check(key)
        with self._lock:
            return self._records.pop(key, None) is not None

    def compare_and_delete(self, key: str, *, field: str, expected: Any) -> bool:
        self._check(key)
        with self._lock:
            doc = self._records.get(key)
            if not doc or doc.get(field) != expected:
                return False
            del self._records[key]
            return True

    def append(self, key: str, entry: Dict[str, Any]) -> None:
        self._check(key)
        with self._lock:
            self._logs.setdefault(key, []).append(dict(entry))

    def drain(self, key: str) -> List[Dict[str, Any]]:
        self._check(key)
        with self._lock:
            return self._logs.pop(key, [])

    def discard(self, key: str) -> None:
        self._check(key)
        with self._lock:
            self._logs.pop(key, None)

    def size(self, key: str) -> int:
        self._check(key)
        with self._lock:
            return len(self._logs.get(key, []))

    def keys(self, namespace: str) -> List[str]:
        self._check(namespace)
        prefix = namespace.rstrip("/") + "/"
        with self._lock:
            return sorted(k for k in self._records if k.startswith(prefix) and "/" not in k[len(prefix):])
