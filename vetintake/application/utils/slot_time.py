from __future__ import annotations

from datetime import datetime, timedelta


def round_to_nearest_5_minutes(instant: datetime) -> datetime:
    """Nearest 5-minute boundary, halves rounding up; seconds are dropped."""
    floored = instant.replace(minute=0, second=0, microsecond=0)
    # minutes are whole numbers, so +2 before flooring is round-half-up
    rounded_minutes = (instant.minute + 2) // 5 * 5
    return floored + timedelta(minutes=rounded_minutes)


def format_slot_display(instant: datetime) -> str:
    """e.g. "Sat, Jun 1 at 9:05 AM"."""
    hour = instant.hour % 12 or 12
    return f"{instant:%a, %b} {instant.day} at {hour}:{instant:%M %p}"
