from __future__ import annotations

import json
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, List


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp, path)
    finally:
        try:
            if os.path.exists(tmp):
                os.unlink(tmp)
        except Exception:
            pass


def atomic_write_json(path: Path, obj: Dict[str, Any], *, indent: int = 2) -> None:
    atomic_write_text(path, json.dumps(obj, ensure_ascii=False, indent=indent) + "\n")


def read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON object; missing or corrupt files read as empty.

    A record torn by a crashed writer is indistinguishable from no record.
    """
    if not path.exists():
        return {}
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return obj if isinstance(obj, dict) else {}


def append_jsonl(path: Path, obj: Dict[str, Any]) -> None:
    """Append one JSON line with a single write so concurrent appenders don't interleave."""
    path.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(obj, ensure_ascii=False) + "\n"
    fd = os.open(str(path), os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
    try:
        os.write(fd, line.encode("utf-8"))
    finally:
        os.close(fd)


def take_jsonl(path: Path) -> List[Dict[str, Any]]:
    """Move a JSONL file aside, read it, and delete it.

    The rename is atomic, so appenders that open the path afterwards create a
    fresh file instead of writing into the one being read.
    """
    claimed = path.with_name(f"{path.name}.{uuid.uuid4().hex[:8]}.draining")
    try:
        os.replace(path, claimed)
    except FileNotFoundError:
        return []
    out: List[Dict[str, Any]] = []
    try:
        with claimed.open("r", encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except Exception:
                    continue
                if isinstance(obj, dict):
                    out.append(obj)
    finally:
        try:
            claimed.unlink()
        except FileNotFoundError:
            pass
    return out
