from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional


def _run_git(args: list[str], *, cwd: Path) -> tuple[int, str]:
    try:
        p = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
        return int(p.returncode), (p.stdout or "").strip()
    except Exception:
        return 1, ""


def git_root(path: Path) -> Optional[Path]:
    """Top-level of the work tree containing `path` (a file or a directory)."""
    p = Path(path)
    cwd = p if p.is_dir() else p.parent
    if not cwd.is_dir():
        return None
    code, out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    if code != 0 or not out:
        return None
    return Path(os.path.normpath(out))
