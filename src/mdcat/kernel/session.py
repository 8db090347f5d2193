"""Per-process coordination state.

A Session holds the root this process owns and the document it should open
next. Open events may arrive on a background thread, so both are guarded by
one lock. Listener callbacks always run outside it.
"""
from __future__ import annotations

import logging
import os
import threading
from collections import deque
from typing import Callable, Deque, Optional

from .inbox import InboundQueue
from .registry import OwnershipRegistry, normalize_root
from .scope import RootResolver, root_of

logger = logging.getLogger("mdcat.session")

OpenListener = Callable[[str], None]


class Session:
    def __init__(
        self,
        registry: OwnershipRegistry,
        queue: InboundQueue,
        *,
        pid: Optional[int] = None,
        resolver: RootResolver = root_of,
    ):
        self.registry = registry
        self.queue = queue
        self.pid = int(pid if pid is not None else os.getpid())
        self.resolver = resolver
        self._lock = threading.Lock()
        self._current_root: Optional[str] = None
        self._pending: Optional[str] = None
        # Drained queue entries not yet handed to the UI.
        self._backlog: Deque[str] = deque()
        self._listener: Optional[OpenListener] = None

    @property
    def current_root(self) -> Optional[str]:
        with self._lock:
            return self._current_root

    def on_startup(self, path: Optional[str]) -> Optional[str]:
        """Claim the root of the launch document and remember the document."""
        if not path:
            return None
        root = self.resolver(path)
        with self._lock:
            self._pending = str(path)
        self.set_current_root(root)
        logger.info("startup", extra={"op": "startup", "path": path, "root": root or "", "pid": self.pid})
        return root

    def set_current_root(self, new_root: Optional[str]) -> None:
        """Move ownership: unregister the old root, then register the new one.

        The two steps are not atomic; in between the old root has no owner.
        """
        norm = normalize_root(new_root) if new_root else None
        with self._lock:
            old = self._current_root
            self._current_root = norm
        if old and old != norm:
            self.registry.unregister(old, self.pid)
        if norm:
            self.registry.register(norm, self.pid)

    def attach_listener(self, listener: OpenListener) -> None:
        with self._lock:
            self._listener = listener

    def detach_listener(self) -> None:
        with self._lock:
            self._listener = None

    def deliver(self, path: str) -> bool:
        """Hand a document to the local UI, or park it for the next pull.

        Returns True when a listener received it directly.
        """
        with self._lock:
            listener = self._listener
            if listener is None:
                self._pending = str(path)
        if listener is None:
            return False
        listener(str(path))
        return True

    def take_pending_open(self) -> Optional[str]:
        with self._lock:
            if self._pending is not None:
                path, self._pending = self._pending, None
                return path
            if self._backlog:
                return self._backlog.popleft()
        drained = self.queue.drain(self.pid)
        if not drained:
            return None
        with self._lock:
            self._backlog.extend(drained[1:])
        return drained[0]

    def shutdown(self) -> None:
        with self._lock:
            root = self._current_root
            self._current_root = None
            self._listener = None
        if root:
            self.registry.unregister(root, self.pid)
        self.queue.discard(self.pid)
        logger.info("shutdown", extra={"op": "shutdown", "root": root or "", "pid": self.pid})
