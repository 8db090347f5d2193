"""
Headless instance host.

Stands in for the window layer: it owns a session, prints one JSON line per
document it opens, picks up queued files, and treats each stdin line as an
"open this" request from the platform.
"""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from typing import Any, Dict, Optional, TextIO

from .kernel.routing import Router
from .kernel.scope import resolve_context
from .kernel.session import Session

logger = logging.getLogger("mdcat.host")


class Host:
    def __init__(
        self,
        session: Session,
        router: Router,
        *,
        poll_interval: float = 0.5,
        stdout: Optional[TextIO] = None,
    ):
        self.session = session
        self.router = router
        self.poll_interval = poll_interval
        self.stdout = stdout or sys.stdout
        self.stop_event = threading.Event()
        self._out_lock = threading.Lock()

    def emit(self, obj: Dict[str, Any]) -> None:
        line = json.dumps(obj, ensure_ascii=False)
        with self._out_lock:
            self.stdout.write(line + "\n")
            self.stdout.flush()

    def open_document(self, path: str) -> None:
        """Listener for documents this instance should show."""
        ctx = resolve_context(path, resolver=self.session.resolver)
        self.emit({"event": "open", "path": path, "root": ctx.root, "is_git": ctx.is_git})
        root = self.session.resolver(path)
        if root is not None and root != self.session.current_root:
            self.session.set_current_root(root)

    def handle_request(self, path: str) -> None:
        path = path.strip()
        if not path:
            return
        try:
            result = self.router.handle_open(path)
        except Exception:
            logger.error("routing failed", exc_info=True, extra={"op": "route", "path": path})
            return
        self.emit({"event": "route", **result.model_dump()})

    def pump(self) -> int:
        """Open everything pending right now. Returns how many documents were opened."""
        n = 0
        while True:
            path = self.session.take_pending_open()
            if path is None:
                return n
            self.open_document(path)
            n += 1

    def read_requests(self, stream: TextIO) -> None:
        for line in stream:
            if self.stop_event.is_set():
                return
            self.handle_request(line)

    def stop(self, *_: Any) -> None:
        self.stop_event.set()

    def serve(self, startup_path: Optional[str] = None, *, stdin: Optional[TextIO] = None) -> int:
        self.session.on_startup(startup_path)
        self.session.attach_listener(self.open_document)
        if stdin is not None:
            t = threading.Thread(target=self.read_requests, args=(stdin,), name="mdcat-requests", daemon=True)
            t.start()
        try:
            while not self.stop_event.is_set():
                self.pump()
                self.stop_event.wait(self.poll_interval)
        finally:
            self.session.shutdown()
        return 0


def install_signal_handlers(host: Host) -> None:
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            signal.signal(sig, host.stop)
        except (ValueError, OSError):
            # Not the main thread, or unsupported on this platform.
            pass
