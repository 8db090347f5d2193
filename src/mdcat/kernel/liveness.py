from __future__ import annotations

import os
from typing import Callable

# pid -> is that process running?
LivenessOracle = Callable[[int], bool]


def pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else.
        return True
    except (OSError, OverflowError):
        # OverflowError: outside the pid_t range, so not a process.
        return False
