from __future__ import annotations

import os
from typing import Optional

MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd")

# Preferred entry documents when a directory is opened.
PRIORITY_NAMES = ("readme.md", "agents.md", "claude.md", "skill.md")


class TargetError(ValueError):
    """A launch argument that cannot be turned into a document path."""


def is_markdown(name: str) -> bool:
    return name.lower().endswith(MARKDOWN_EXTENSIONS)


def find_markdown_file(directory: str) -> Optional[str]:
    try:
        names = sorted(os.listdir(directory))
    except OSError:
        return None
    files = [n for n in names if os.path.isfile(os.path.join(directory, n))]
    by_lower = {}
    for n in files:
        by_lower.setdefault(n.lower(), n)
    for wanted in PRIORITY_NAMES:
        if wanted in by_lower:
            return os.path.join(directory, by_lower[wanted])
    for n in files:
        if is_markdown(n):
            return os.path.join(directory, n)
    return None


def resolve_target(arg: str) -> str:
    """Absolute document path for a launch argument; directories pick a markdown file."""
    resolved = os.path.abspath(os.path.expanduser(str(arg or "").strip() or "."))
    if not os.path.exists(resolved):
        raise TargetError(f"Not found: {resolved}")
    if os.path.isdir(resolved):
        found = find_markdown_file(resolved)
        if not found:
            raise TargetError(f"No markdown files found in {resolved}")
        return found
    return resolved
