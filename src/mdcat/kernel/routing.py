"""Open-request routing.

Every request ends in exactly one of:
- deliver_local: this process shows the document
- queue_to_owner: another live process owns the document's root; append the
  path to its inbound queue and bring it forward
- spawn: nobody suitable is running; start a new instance for the path
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..contracts.v1 import RouteDecision, RouteResult
from ..desktop import Desktop
from .inbox import InboundQueue
from .registry import OwnershipRegistry, normalize_root
from .session import Session

logger = logging.getLogger("mdcat.routing")

OwnerLookup = Callable[[str], Optional[int]]


def same_root(a: Optional[str], b: Optional[str]) -> bool:
    # Two free-standing documents are always considered reusable by one window.
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    return normalize_root(a) == normalize_root(b)


def decide_route(
    path: str,
    new_root: Optional[str],
    current_root: Optional[str],
    find_owner: OwnerLookup,
) -> RouteDecision:
    """Pure decision; `find_owner` is only consulted when another root is involved."""
    base = {"path": str(path), "new_root": new_root, "current_root": current_root}
    if same_root(new_root, current_root):
        return RouteDecision(action="deliver_local", reason="same_root", **base)
    if current_root is None:
        return RouteDecision(action="deliver_local", reason="no_current_root", **base)
    if new_root is not None:
        owner = find_owner(new_root)
        if owner is not None:
            return RouteDecision(action="queue_to_owner", owner_pid=owner, reason="live_owner", **base)
        return RouteDecision(action="spawn", reason="no_owner", **base)
    return RouteDecision(action="spawn", reason="non_project", **base)


class Router:
    def __init__(
        self,
        session: Session,
        registry: OwnershipRegistry,
        queue: InboundQueue,
        desktop: Desktop,
        *,
        activate: bool = True,
        spawn_on_enqueue_failure: bool = True,
    ):
        self.session = session
        self.registry = registry
        self.queue = queue
        self.desktop = desktop
        self.activate = activate
        self.spawn_on_enqueue_failure = spawn_on_enqueue_failure

    def handle_open(self, path: str) -> RouteResult:
        """Route an open request raised while this process is running."""
        new_root = self.session.resolver(path)
        decision = decide_route(path, new_root, self.session.current_root, self.registry.find_owner)
        logger.info(
            f"route: {decision.reason}",
            extra={"op": "route", "action": decision.action, "path": path, "root": new_root or ""},
        )
        return self.execute(decision)

    def handle_launch(self, path: str) -> RouteResult:
        """Route a path given to a process that has no window yet.

        Without a live owner the launcher itself should host the document.
        """
        new_root = self.session.resolver(path)
        owner = self.registry.find_owner(new_root) if new_root is not None else None
        base = {"path": str(path), "new_root": new_root, "current_root": None}
        if owner is not None:
            decision = RouteDecision(action="queue_to_owner", owner_pid=owner, reason="live_owner", **base)
        else:
            decision = RouteDecision(action="deliver_local", reason="launcher_hosts", **base)
        if decision.action == "deliver_local":
            return RouteResult(decision=decision, action="deliver_local")
        return self.execute(decision)

    def execute(self, decision: RouteDecision) -> RouteResult:
        if decision.action == "deliver_local":
            return self._deliver_local(decision)
        if decision.action == "queue_to_owner":
            return self._queue_to_owner(decision)
        return self._spawn(decision)

    def _activate(self, pid: int) -> bool:
        if not self.activate:
            return False
        try:
            ok = bool(self.desktop.activate(pid))
        except Exception:
            logger.warning("activation raised", exc_info=True, extra={"op": "activate", "pid": pid})
            return False
        if not ok:
            logger.info("activation did not succeed", extra={"op": "activate", "pid": pid})
        return ok

    def _deliver_local(self, decision: RouteDecision) -> RouteResult:
        self.session.deliver(decision.path)
        activated = self._activate(self.session.pid)
        return RouteResult(decision=decision, action="deliver_local", activated=activated)

    def _queue_to_owner(self, decision: RouteDecision) -> RouteResult:
        owner = int(decision.owner_pid or 0)
        if self.queue.enqueue(owner, decision.path):
            # The entry stays queued even if the owner cannot be brought forward.
            activated = self._activate(owner)
            return RouteResult(decision=decision, action="queue_to_owner", activated=activated)
        if not self.spawn_on_enqueue_failure:
            logger.warning(
                "enqueue failed; request dropped",
                extra={"op": "route", "action": "queue_to_owner", "path": decision.path, "owner_pid": owner},
            )
            return RouteResult(decision=decision, action="queue_to_owner", ok=False)
        logger.warning(
            "enqueue failed; spawning instead",
            extra={"op": "route", "action": "spawn", "path": decision.path, "owner_pid": owner},
        )
        result = self._spawn(decision)
        return result.model_copy(update={"fallback": True})

    def _spawn(self, decision: RouteDecision) -> RouteResult:
        try:
            pid = self.desktop.spawn(decision.path)
        except Exception:
            logger.error("spawn raised", exc_info=True, extra={"op": "spawn", "path": decision.path})
            pid = None
        return RouteResult(decision=decision, action="spawn", ok=pid is not None, spawned_pid=pid)
