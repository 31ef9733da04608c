"""
Leaderboard period window.

The weekly period starts at the most recent reset instant (Sunday 18:00 at
a fixed UTC offset without DST) and ends now.
"""

from datetime import UTC, datetime, timedelta, timezone

from app.utils.datetime_utils import ensure_utc

SUNDAY = 6


def resolve_weekly_window(
    now: datetime,
    utc_offset_hours: int = 5,
    reset_weekday: int = SUNDAY,
    reset_hour: int = 18,
) -> tuple[datetime, datetime]:
    """
    Compute the current weekly window.

    Args:
        now: Current time
        utc_offset_hours: Fixed offset of the reset's civil time
        reset_weekday: Weekday of the reset, 0=Monday ... 6=Sunday
        reset_hour: Hour of the reset in civil time

    Returns:
        Tuple (start, end) in UTC with end == now

    Example:
        Wednesday 2024-01-10 12:00 UTC -> start Sunday 2024-01-07 13:00 UTC
    """
    now_utc = ensure_utc(now)
    local_tz = timezone(timedelta(hours=utc_offset_hours))
    local_now = now_utc.astimezone(local_tz)

    days_back = (local_now.weekday() - reset_weekday) % 7
    candidate = (local_now - timedelta(days=days_back)).replace(
        hour=reset_hour, minute=0, second=0, microsecond=0
    )
    # Reset day but before the reset hour belongs to last week
    if local_now < candidate:
        candidate -= timedelta(days=7)

    return candidate.astimezone(UTC), now_utc
