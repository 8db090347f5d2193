from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with a trailing Z, e.g. 2026-01-02T03:04:05.123456Z."""
    dt = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_utc_iso(ts: str) -> Optional[datetime]:
    """Parse timestamps written by `utc_now_iso`; naive values are taken as UTC."""
    s = str(ts or "").strip()
    if s[-1:] in ("Z", "z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def age_seconds(ts: str, *, now: Optional[datetime] = None) -> Optional[float]:
    """Seconds elapsed since `ts`, never negative; None when `ts` is unreadable."""
    dt = parse_utc_iso(ts)
    if dt is None:
        return None
    return max(0.0, ((now or datetime.now(timezone.utc)) - dt).total_seconds())
