"""
Time and segment helpers shared by the HOS tests.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

from apps.eld.hos import Segment

BASE_TIME = datetime(2024, 3, 4, 0, 0, tzinfo=dt_timezone.utc)


def at(hours=0, minutes=0, seconds=0, days=0):
    """Offset from a fixed Monday-midnight UTC reference."""
    return BASE_TIME + timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)


def seg(log_type, start, end=None, **kwargs):
    return Segment(log_type, start, end, **kwargs)
