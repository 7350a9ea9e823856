# app/utils/timezone.py
"""
Timestamps are stored as naive UTC (datetime.utcnow() everywhere).
Request datetimes may arrive with an offset; they are normalised here first.
"""

from datetime import datetime, timezone


def to_naive_utc(dt: datetime) -> datetime:
    """Aware inputs are converted to UTC and stripped; naive ones are kept."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
