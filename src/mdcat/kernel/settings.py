"""Settings for mdcat instance coordination.

Settings are stored in ~/.mdcat/settings.yaml (or $MDCAT_SETTINGS):
- state_dir: shared coordination directory (default: <tmp>/mdcat-instances)
- activate: bring target windows forward after routing
- spawn_on_enqueue_failure: start a new instance when queuing to an owner fails
- poll_interval_seconds: how often a host checks its inbound queue
- log_level
- spawn_command: argv prefix used to start a new instance (path is appended)

Environment variables MDCAT_ACTIVATE, MDCAT_SPAWN_ON_ENQUEUE_FAILURE,
MDCAT_POLL_INTERVAL and MDCAT_LOG_LEVEL override the file.
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml  # type: ignore

from ..paths import settings_path
from ..util.conv import coerce_bool, coerce_float
from ..util.fs import atomic_write_text

DEFAULT_POLL_INTERVAL_SECONDS = 0.5
MIN_POLL_INTERVAL_SECONDS = 0.05


def default_spawn_command() -> List[str]:
    return [sys.executable, "-m", "mdcat", "run"]


@dataclass
class Settings:
    state_dir: str = ""
    activate: bool = True
    spawn_on_enqueue_failure: bool = True
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    log_level: str = "INFO"
    spawn_command: List[str] = field(default_factory=default_spawn_command)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state_dir": self.state_dir,
            "activate": self.activate,
            "spawn_on_enqueue_failure": self.spawn_on_enqueue_failure,
            "poll_interval_seconds": self.poll_interval_seconds,
            "log_level": self.log_level,
            "spawn_command": list(self.spawn_command),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Settings":
        cmd_raw = d.get("spawn_command")
        cmd = [str(x) for x in cmd_raw if str(x).strip()] if isinstance(cmd_raw, list) else []
        return cls(
            state_dir=str(d.get("state_dir") or ""),
            activate=coerce_bool(d.get("activate"), default=True),
            spawn_on_enqueue_failure=coerce_bool(d.get("spawn_on_enqueue_failure"), default=True),
            poll_interval_seconds=coerce_float(
                d.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS),
                default=DEFAULT_POLL_INTERVAL_SECONDS,
                minimum=MIN_POLL_INTERVAL_SECONDS,
            ),
            log_level=str(d.get("log_level") or "INFO").strip().upper() or "INFO",
            spawn_command=cmd or default_spawn_command(),
        )


def load_settings_doc() -> Dict[str, Any]:
    p = settings_path()
    if not p.exists():
        return {}
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        return doc if isinstance(doc, dict) else {}
    except Exception:
        return {}


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for var, key in (
        ("MDCAT_ACTIVATE", "activate"),
        ("MDCAT_SPAWN_ON_ENQUEUE_FAILURE", "spawn_on_enqueue_failure"),
        ("MDCAT_POLL_INTERVAL", "poll_interval_seconds"),
        ("MDCAT_LOG_LEVEL", "log_level"),
    ):
        v = str(env.get(var, "")).strip()
        if v:
            out[key] = v
    return out


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    doc = load_settings_doc()
    doc.update(_env_overrides(os.environ if env is None else env))
    return Settings.from_dict(doc)


def save_settings(settings: Settings) -> None:
    p = settings_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_text(p, yaml.safe_dump(settings.to_dict(), allow_unicode=True, sort_keys=False))
