"""
Temporal Classifier - Map timestamps to calendar attributes and periods.

Pure stdlib implementation. Every function here is a pure function of its
arguments; nothing reads the wall clock.
"""

from collections import Counter
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from taste_timeline.errors import UnknownGranularityError


class Granularity(str, Enum):
    """Calendar unit used to bucket events on a timeline."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


SEASONS = ["spring", "summer", "fall", "winter"]

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                       "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

MONTH_NAMES = ["January", "February", "March", "April", "May", "June", "July",
               "August", "September", "October", "November", "December"]

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
             "Saturday", "Sunday"]

# Weekday/weekend averages within this ratio of each other count as balanced
_BALANCED_TOLERANCE = 0.2


def get_season(month: int) -> str:
    """
    Map a calendar month (1-12) to a meteorological season.

    Raises:
        ValueError: If month is outside 1-12
    """
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    if month in (9, 10, 11):
        return "fall"
    if month in (12, 1, 2):
        return "winter"
    raise ValueError(f"Month must be between 1 and 12, got {month!r}")


def get_month_name(month: int) -> str:
    """Full English month name, or "Unknown" for an invalid month."""
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Unknown"


def extract_temporal_metadata(timestamp: datetime) -> dict:
    """
    Derive the calendar attributes stored alongside a feedback event.

    Args:
        timestamp: When the event happened

    Returns:
        Dictionary with month (1-12), season, day_of_week (Monday=1 ...
        Sunday=7) and hour_of_day (0-23)
    """
    return {
        "month": timestamp.month,
        "season": get_season(timestamp.month),
        "day_of_week": timestamp.isoweekday(),
        "hour_of_day": timestamp.hour,
    }


def parse_granularity(value) -> Granularity:
    """Coerce a string or Granularity, rejecting anything else."""
    if isinstance(value, Granularity):
        return value
    if isinstance(value, str):
        try:
            return Granularity(value.strip().lower())
        except ValueError:
            pass
    raise UnknownGranularityError(
        f"Unknown granularity {value!r}; expected one of "
        f"{', '.join(g.value for g in Granularity)}"
    )


def period_bounds(timestamp: datetime, granularity: Granularity) -> tuple[datetime, datetime]:
    """
    Calendar bucket containing a timestamp.

    Weeks run Sunday to Saturday. The end bound is exclusive: it is the
    start of the following bucket. The timestamp's tzinfo is kept as is.

    Args:
        timestamp: Any datetime, naive or aware
        granularity: Bucket size

    Returns:
        (start, end) tuple
    """
    midnight = timestamp.replace(hour=0, minute=0, second=0, microsecond=0)

    if granularity == Granularity.DAY:
        return midnight, midnight + timedelta(days=1)

    if granularity == Granularity.WEEK:
        # isoweekday: Monday=1 ... Sunday=7, so Sunday maps to offset 0
        start = midnight - timedelta(days=timestamp.isoweekday() % 7)
        return start, start + timedelta(days=7)

    if granularity == Granularity.MONTH:
        start = midnight.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end

    if granularity == Granularity.YEAR:
        start = midnight.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1)

    raise UnknownGranularityError(f"Unknown granularity {granularity!r}")


def period_label(start: datetime, granularity: Granularity) -> str:
    """Human-readable label for a bucket, derived only from its start."""
    month = MONTH_ABBREVIATIONS[start.month - 1]

    if granularity == Granularity.DAY:
        return f"{month} {start.day}, {start.year}"
    if granularity == Granularity.WEEK:
        return f"Week of {month} {start.day}, {start.year}"
    if granularity == Granularity.MONTH:
        return f"{month} {start.year}"
    return f"{start.year}"


def analyze_listening_patterns(timestamps: Iterable[datetime]) -> Optional[dict]:
    """
    Summarize when a listener plays music.

    Args:
        timestamps: Playback timestamps

    Returns:
        Dictionary with hour_distribution (24 counts), peak_hour_of_day,
        peak_day_of_week (day name) and weekday_vs_weekend ("weekday",
        "weekend" or "balanced"), or None when there are no timestamps
    """
    hour_distribution = [0] * 24
    day_counts = Counter()
    weekday_dates = set()
    weekend_dates = set()
    weekday_listens = 0
    weekend_listens = 0

    for ts in timestamps:
        hour_distribution[ts.hour] += 1
        iso_day = ts.isoweekday()
        day_counts[iso_day] += 1

        if iso_day >= 6:
            weekend_listens += 1
            weekend_dates.add(ts.date())
        else:
            weekday_listens += 1
            weekday_dates.add(ts.date())

    if not day_counts:
        return None

    peak_hour = hour_distribution.index(max(hour_distribution))
    # Ties resolve to the earliest day of the week
    peak_day = min(day_counts, key=lambda d: (-day_counts[d], d))

    # Compare listens per active day so a 5:2 day split does not bias the result
    weekday_avg = weekday_listens / len(weekday_dates) if weekday_dates else 0.0
    weekend_avg = weekend_listens / len(weekend_dates) if weekend_dates else 0.0
    larger = max(weekday_avg, weekend_avg)

    if larger == 0 or abs(weekday_avg - weekend_avg) <= _BALANCED_TOLERANCE * larger:
        split = "balanced"
    elif weekday_avg > weekend_avg:
        split = "weekday"
    else:
        split = "weekend"

    return {
        "hour_distribution": hour_distribution,
        "peak_hour_of_day": peak_hour,
        "peak_day_of_week": DAY_NAMES[peak_day - 1],
        "weekday_vs_weekend": split,
    }


def format_hour_timeline(hour_distribution: list[int], width: int = 30) -> str:
    """
    Generate ASCII 24-hour timeline visualization.

    Args:
        hour_distribution: List of 24 integers (counts per hour)
        width: Maximum bar width in characters

    Returns:
        Multi-line string with timeline visualization
    """
    if not hour_distribution or len(hour_distribution) != 24:
        return ""

    max_count = max(hour_distribution) or 1
    peak_hour = hour_distribution.index(max(hour_distribution)) if any(hour_distribution) else None

    lines = []
    for hour, count in enumerate(hour_distribution):
        bar = "=" * int((count / max_count) * width)
        peak_marker = "  << peak" if hour == peak_hour and count > 0 else ""
        lines.append(f"{hour:02d}:00 |{bar}{peak_marker}")

    return "\n".join(lines)
