from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

RouteAction = Literal["deliver_local", "queue_to_owner", "spawn"]


class RouteDecision(BaseModel):
    action: RouteAction
    path: str
    new_root: Optional[str] = None
    current_root: Optional[str] = None
    owner_pid: Optional[int] = None
    reason: str = ""

    model_config = ConfigDict(extra="forbid")


class RouteResult(BaseModel):
    """What the router did about a decision.

    `action` can differ from `decision.action` when a failed enqueue fell back
    to spawning (`fallback=True`).
    """

    decision: RouteDecision
    action: RouteAction
    ok: bool = True
    activated: bool = False
    spawned_pid: Optional[int] = None
    fallback: bool = False

    model_config = ConfigDict(extra="forbid")
