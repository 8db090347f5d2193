"""
Platform actions the router invokes: window activation and instance spawning.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from .kernel.settings import default_spawn_command

logger = logging.getLogger("mdcat.desktop")


class Desktop(ABC):
    @abstractmethod
    def activate(self, pid: int) -> bool:
        """Bring the window of `pid` to the foreground. Best-effort."""

    @abstractmethod
    def spawn(self, path: str) -> Optional[int]:
        """Start a new instance that opens `path`. Returns its pid, or None."""


def _activation_argv(pid: int, platform: str) -> Optional[List[str]]:
    if platform == "darwin":
        script = f'tell application "System Events" to set frontmost of (first process whose unix id is {int(pid)}) to true'
        return ["osascript", "-e", script]
    if platform.startswith("linux"):
        exe = shutil.which("xdotool")
        if exe:
            return [exe, "search", "--onlyvisible", "--pid", str(int(pid)), "windowactivate"]
    return None


class SystemDesktop(Desktop):
    """Activation through osascript (macOS) or xdotool (X11); spawning via subprocess."""

    def __init__(
        self,
        *,
        spawn_command: Optional[Sequence[str]] = None,
        log_path: Optional[Path] = None,
        platform: Optional[str] = None,
        timeout: float = 3.0,
    ):
        self.spawn_command = list(spawn_command or default_spawn_command())
        self.log_path = log_path
        self.platform = platform or sys.platform
        self.timeout = timeout

    def activate(self, pid: int) -> bool:
        argv = _activation_argv(pid, self.platform)
        if argv is None:
            logger.debug("no activation method on this platform", extra={"op": "activate", "pid": pid})
            return False
        try:
            p = subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"activation failed: {e}", extra={"op": "activate", "pid": pid})
            return False
        if p.returncode != 0:
            logger.warning(f"activation exited {p.returncode}", extra={"op": "activate", "pid": pid})
            return False
        return True

    def spawn(self, path: str) -> Optional[int]:
        argv = [*self.spawn_command, str(path)]
        log_f = None
        try:
            if self.log_path is not None:
                self.log_path.parent.mkdir(parents=True, exist_ok=True)
                log_f = self.log_path.open("a", encoding="utf-8")
            p = subprocess.Popen(
                argv,
                stdout=log_f if log_f is not None else subprocess.DEVNULL,
                stderr=log_f if log_f is not None else subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                env=os.environ.copy(),
                start_new_session=True,
            )
        except OSError:
            logger.error("spawn failed", exc_info=True, extra={"op": "spawn", "path": path})
            return None
        finally:
            if log_f is not None:
                log_f.close()
        logger.info(f"spawned instance pid={p.pid}", extra={"op": "spawn", "path": path, "pid": p.pid})
        return int(p.pid)
