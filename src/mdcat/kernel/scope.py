from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

from ..contracts.v1 import ProjectContext
from .git import git_root
from .registry import normalize_root

# path -> version-control root, or None for a free-standing document
RootResolver = Callable[[str], Optional[str]]


def root_of(path: str) -> Optional[str]:
    root = git_root(Path(normalize_root(path)))
    return normalize_root(str(root)) if root is not None else None


def resolve_context(path: str, *, resolver: RootResolver = root_of) -> ProjectContext:
    """Root used to present a document: its git root, else its directory."""
    p = normalize_root(path)
    root = resolver(p)
    if root is not None:
        return ProjectContext(root=root, is_git=True)
    if os.path.isdir(p):
        return ProjectContext(root=p, is_git=False)
    return ProjectContext(root=os.path.dirname(p) or p, is_git=False)
