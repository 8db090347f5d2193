from __future__ import annotations

import math
from typing import Any, Optional

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def coerce_bool(value: Any, *, default: bool = False) -> bool:
    """Coerce a loosely-typed value into a boolean.

    Settings arrive from YAML and environment variables, so "false"/"0" must
    not turn into True. Unknown strings fall back to `default`.
    """
    if value is None:
        return bool(default)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, float):
        if math.isnan(value):
            return bool(default)
        return value != 0.0
    if isinstance(value, str):
        s = value.strip().lower()
        if not s:
            return bool(default)
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        try:
            return int(s) != 0
        except Exception:
            return bool(default)
    return bool(value)


def coerce_float(value: Any, *, default: float, minimum: Optional[float] = None) -> float:
    try:
        f = float(value)
    except (TypeError, ValueError):
        f = float(default)
    if math.isnan(f) or math.isinf(f):
        f = float(default)
    if minimum is not None and f < minimum:
        f = float(minimum)
    return f


def coerce_pid(value: Any) -> Optional[int]:
    """Parse a process id; anything that is not a positive integer is None."""
    if isinstance(value, bool):
        return None
    try:
        pid = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return pid if pid > 0 else None
