from __future__ import annotations
from datetime import datetime, timezone


def ms_to_dt_utc(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def ms_to_utc_iso(ms: int) -> str:
    """Return ISO-8601 string of the given epoch ms in UTC."""
    return ms_to_dt_utc(ms).isoformat()


def ms_to_seconds(ms: int | float) -> float:
    """Convert a millisecond duration to the seconds ``time.sleep`` expects.

    Negative durations clamp to zero.
    """
    return max(0.0, float(ms) / 1000.0)
