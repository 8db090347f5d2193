from __future__ import annotations

import logging
import os
from typing import List, Optional

from ..contracts.v1 import QueueEntry
from .store import KeyValueStore

logger = logging.getLogger("mdcat.inbox")

QUEUES_NAMESPACE = "queues"


def queue_key(pid: int) -> str:
    return f"{QUEUES_NAMESPACE}/{int(pid)}"


class InboundQueue:
    """Per-process list of paths waiting to be opened by that process."""

    def __init__(self, store: KeyValueStore, *, sender_pid: Optional[int] = None):
        self.store = store
        self.sender_pid = int(sender_pid if sender_pid is not None else os.getpid())

    def enqueue(self, pid: int, path: str) -> bool:
        entry = QueueEntry(path=str(path), sender_pid=self.sender_pid)
        try:
            self.store.append(queue_key(pid), entry.model_dump())
        except Exception:
            logger.warning("enqueue failed", exc_info=True, extra={"op": "enqueue", "pid": pid, "path": path})
            return False
        logger.info("queued file", extra={"op": "enqueue", "pid": pid, "path": path})
        return True

    def drain(self, pid: int) -> List[str]:
        try:
            raw = self.store.drain(queue_key(pid))
        except Exception:
            logger.warning("drain failed", exc_info=True, extra={"op": "drain", "pid": pid})
            return []
        out: List[str] = []
        for item in raw:
            path = str(item.get("path") or "").strip() if isinstance(item, dict) else ""
            if path:
                out.append(path)
        if out:
            logger.info(f"drained {len(out)} queued file(s)", extra={"op": "drain", "pid": pid})
        return out

    def pending(self, pid: int) -> int:
        try:
            return self.store.size(queue_key(pid))
        except Exception:
            return 0

    def discard(self, pid: int) -> None:
        try:
            self.store.discard(queue_key(pid))
        except Exception:
            logger.debug("queue discard failed", exc_info=True, extra={"op": "discard", "pid": pid})
