from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ...util.time import utc_now_iso


class OwnershipRecord(BaseModel):
    """Which process owns a project root. Overwritten, never merged."""

    v: int = 1
    owner_pid: int
    root: str
    registered_at: str = Field(default_factory=utc_now_iso)

    model_config = ConfigDict(extra="ignore")


class QueueEntry(BaseModel):
    v: int = 1
    path: str
    queued_at: str = Field(default_factory=utc_now_iso)
    sender_pid: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class ProjectContext(BaseModel):
    root: str
    is_git: bool = False

    model_config = ConfigDict(extra="forbid")
