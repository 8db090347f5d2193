from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional


def settings_path() -> Path:
    env = os.environ.get("MDCAT_SETTINGS", "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / ".mdcat" / "settings.yaml"


def mdcat_home(state_dir: Optional[str] = None) -> Path:
    """Shared coordination area visible to every cooperating process."""
    env = os.environ.get("MDCAT_HOME", "").strip()
    if env:
        return Path(env).expanduser().resolve()
    if state_dir and state_dir.strip():
        return Path(state_dir.strip()).expanduser().resolve()
    return (Path(tempfile.gettempdir()) / "mdcat-instances").resolve()


def ensure_home(state_dir: Optional[str] = None) -> Path:
    home = mdcat_home(state_dir)
    home.mkdir(parents=True, exist_ok=True)
    return home
