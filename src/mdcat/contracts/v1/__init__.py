from __future__ import annotations

from .instance import OwnershipRecord, ProjectContext, QueueEntry
from .route import RouteAction, RouteDecision, RouteResult

__all__ = [
    "OwnershipRecord",
    "ProjectContext",
    "QueueEntry",
    "RouteAction",
    "RouteDecision",
    "RouteResult",
]
