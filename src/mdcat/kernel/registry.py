from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from pydantic import ValidationError

from ..contracts.v1 import OwnershipRecord
from ..util.conv import coerce_pid
from .liveness import LivenessOracle, pid_alive
from .store import KeyValueStore

logger = logging.getLogger("mdcat.registry")

ROOTS_NAMESPACE = "roots"


def normalize_root(root: str) -> str:
    """Lexical normalization only; symlinked spellings of a root stay distinct."""
    return os.path.normpath(os.path.abspath(os.path.expanduser(str(root))))


def root_key(root: str) -> str:
    h = hashlib.sha256(normalize_root(root).encode("utf-8")).hexdigest()
    return f"{ROOTS_NAMESPACE}/r_{h[:16]}"


@dataclass
class RecordStatus:
    record: OwnershipRecord
    alive: bool


class OwnershipRegistry:
    """Project root -> owning pid, one record per root.

    Records of dead owners are treated as absent and deleted by whoever reads
    them first, so a crashed process needs no shutdown hook.
    """

    def __init__(self, store: KeyValueStore, *, pid: Optional[int] = None, is_alive: LivenessOracle = pid_alive):
        self.store = store
        self.pid = int(pid if pid is not None else os.getpid())
        self.is_alive = is_alive

    def _load(self, key: str) -> Optional[OwnershipRecord]:
        doc = self.store.read(key)
        if not doc:
            return None
        try:
            rec = OwnershipRecord.model_validate(doc)
        except ValidationError:
            return None
        return rec if coerce_pid(rec.owner_pid) else None

    def register(self, root: str, pid: Optional[int] = None) -> None:
        owner = int(pid if pid is not None else self.pid)
        norm = normalize_root(root)
        rec = OwnershipRecord(owner_pid=owner, root=norm)
        try:
            self.store.write(root_key(norm), rec.model_dump())
        except Exception:
            # No record only degrades routing to "spawn", which is always safe.
            logger.warning("register failed", exc_info=True, extra={"op": "register", "root": norm, "pid": owner})
            return
        logger.info("registered root", extra={"op": "register", "root": norm, "pid": owner})

    def unregister(self, root: str, pid: Optional[int] = None) -> bool:
        owner = int(pid if pid is not None else self.pid)
        norm = normalize_root(root)
        try:
            removed = self.store.compare_and_delete(root_key(norm), field="owner_pid", expected=owner)
        except Exception:
            logger.warning("unregister failed", exc_info=True, extra={"op": "unregister", "root": norm, "pid": owner})
            return False
        if removed:
            logger.info("unregistered root", extra={"op": "unregister", "root": norm, "pid": owner})
        return removed

    def record_for(self, root: str) -> Optional[OwnershipRecord]:
        """Raw record, without liveness checks."""
        try:
            return self._load(root_key(root))
        except Exception:
            logger.warning("registry read failed", exc_info=True, extra={"op": "read", "root": root})
            return None

    def find_owner(self, root: str) -> Optional[int]:
        norm = normalize_root(root)
        key = root_key(norm)
        try:
            rec = self._load(key)
        except Exception:
            logger.warning("registry read failed", exc_info=True, extra={"op": "find_owner", "root": norm})
            return None
        if rec is None or normalize_root(rec.root) != norm:
            return None
        if rec.owner_pid == self.pid:
            return None
        if self.is_alive(rec.owner_pid):
            return rec.owner_pid
        self._reclaim(key, rec)
        return None

    def _reclaim(self, key: str, rec: OwnershipRecord) -> None:
        try:
            # Only the dead owner's record; a fresh registration may have landed.
            self.store.compare_and_delete(key, field="owner_pid", expected=rec.owner_pid)
        except Exception:
            logger.warning("stale record cleanup failed", exc_info=True, extra={"op": "reclaim", "root": rec.root})
            return
        logger.info("reclaimed stale record", extra={"op": "reclaim", "root": rec.root, "owner_pid": rec.owner_pid})

    def list_records(self) -> List[RecordStatus]:
        out: List[RecordStatus] = []
        try:
            keys = self.store.keys(ROOTS_NAMESPACE)
        except Exception:
            logger.warning("registry listing failed", exc_info=True, extra={"op": "list"})
            return out
        for key in keys:
            try:
                rec = self._load(key)
            except Exception:
                continue
            if rec is not None:
                out.append(RecordStatus(record=rec, alive=bool(self.is_alive(rec.owner_pid))))
        return out

    def reap_stale(self) -> int:
        n = 0
        for st in self.list_records():
            if st.alive:
                continue
            self._reclaim(root_key(st.record.root), st.record)
            n += 1
        return n
