"""
Period Aggregator - Bucket feedback and listening events into a timeline.

Counting rules:

========================  =====================================
Event                     Contribution
========================  =====================================
Listen with a genre       +1 mood (inferred), +1 genre
Listen                    +1 artist, +1 track
Thumbs up                 +2 artist, +2 track
Thumbs down               -1 artist, -1 track
========================  =====================================

Mood and genre counts come from listening events only. Feedback has no
genre, and folding it into moods would silently change historical output.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Mapping, Optional

from taste_timeline.analyzers.diversity import diversity_score
from taste_timeline.analyzers.mood import (
    dominant_mood,
    empty_mood_distribution,
    infer_mood,
    normalize_moods,
)
from taste_timeline.analyzers.temporal import (
    Granularity,
    get_season,
    period_bounds,
    period_label,
)
from taste_timeline.change_detector import detect_change
from taste_timeline.models import (
    FeedbackEvent,
    ListeningEvent,
    TimelineDataPoint,
    TimelineFilters,
    TopItem,
)

logger = logging.getLogger(__name__)

TOP_ITEMS_PER_PERIOD = 5

_WEIGHT_LISTEN = 1
_WEIGHT_THUMBS_UP = 2
_WEIGHT_THUMBS_DOWN = -1


class _Bucket:
    """Running counts for one calendar period."""

    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        self.mood_counts = empty_mood_distribution()
        self.genre_counts: dict[str, int] = {}
        self.artist_counts: dict[str, int] = {}
        self.track_counts: dict[str, int] = {}
        self.listens = 0
        self.thumbs_up = 0
        self.thumbs_down = 0

    def add_listen(self, event: ListeningEvent) -> None:
        self.listens += 1
        if event.genre:
            self.genre_counts[event.genre] = self.genre_counts.get(event.genre, 0) + 1
            self.mood_counts[infer_mood(event.genre)] += 1
        _bump(self.artist_counts, event.artist, _WEIGHT_LISTEN)
        _bump(self.track_counts, str(event.song), _WEIGHT_LISTEN)

    def add_feedback(self, event: FeedbackEvent) -> None:
        if event.is_thumbs_up:
            self.thumbs_up += 1
            weight = _WEIGHT_THUMBS_UP
        else:
            self.thumbs_down += 1
            weight = _WEIGHT_THUMBS_DOWN
        _bump(self.artist_counts, event.song.artist, weight)
        _bump(self.track_counts, str(event.song), weight)


def _bump(counts: dict, key: str, delta: int) -> None:
    counts[key] = counts.get(key, 0) + delta


def top_items(counts: Mapping[str, float], limit: int = TOP_ITEMS_PER_PERIOD) -> list[TopItem]:
    """
    Rank a count map.

    Entries with a count of zero or less are dropped, and percentages are
    relative to the sum of the remaining positive counts. Ties keep the
    map's insertion order.

    Args:
        counts: Map of name to count
        limit: Maximum number of entries returned

    Returns:
        Up to ``limit`` TopItem entries, highest count first
    """
    positive = [(name, count) for name, count in counts.items() if count > 0]
    total = sum(count for _, count in positive)
    ranked = sorted(positive, key=lambda item: item[1], reverse=True)[:limit]

    return [
        TopItem(
            name=name,
            count=count,
            percentage=round(count / total * 100, 1) if total > 0 else 0.0,
        )
        for name, count in ranked
    ]


def build_timeline(
    feedback: Iterable[FeedbackEvent],
    listening: Iterable[ListeningEvent],
    granularity: Granularity,
    filters: Optional[TimelineFilters] = None,
) -> list[TimelineDataPoint]:
    """
    Aggregate events into chronologically ordered timeline points.

    Each event lands in the bucket containing its own timestamp, so edge
    buckets can extend past the queried range. Change detection compares
    every bucket with the bucket computed just before it, whether or not
    that bucket survives the filters.

    Args:
        feedback: Feedback events for the queried range
        listening: Listening events for the queried range
        granularity: Bucket size
        filters: Optional period inclusion predicates

    Returns:
        List of TimelineDataPoint, oldest first
    """
    buckets: dict[datetime, _Bucket] = {}

    def bucket_for(ts: datetime) -> _Bucket:
        start, end = period_bounds(ts, granularity)
        if start not in buckets:
            buckets[start] = _Bucket(start, end)
        return buckets[start]

    feedback_count = 0
    for event in feedback:
        bucket_for(event.timestamp).add_feedback(event)
        feedback_count += 1

    listen_count = 0
    for event in listening:
        bucket_for(event.played_at).add_listen(event)
        listen_count += 1

    data_points = []
    previous = None

    for start in sorted(buckets):
        point = _reduce_bucket(buckets[start], granularity)

        change = detect_change(point, previous)
        if change.is_significant:
            point.is_significant_change = True
            point.change_description = change.description
        previous = point

        if filters is None or matches_filters(point, filters):
            data_points.append(point)

    logger.debug(
        "Aggregated %d feedback and %d listening events into %d %s periods (%d kept).",
        feedback_count, listen_count, len(buckets), granularity.value, len(data_points),
    )
    return data_points


def _reduce_bucket(bucket: _Bucket, granularity: Granularity) -> TimelineDataPoint:
    total_feedback = bucket.thumbs_up + bucket.thumbs_down
    acceptance_rate = bucket.thumbs_up / total_feedback if total_feedback > 0 else 0.0

    return TimelineDataPoint(
        period_start=bucket.start,
        period_end=bucket.end,
        period_label=period_label(bucket.start, granularity),
        mood_distribution=normalize_moods(bucket.mood_counts),
        top_genres=top_items(bucket.genre_counts),
        top_artists=top_items(bucket.artist_counts),
        top_tracks=top_items(bucket.track_counts),
        total_listens=bucket.listens,
        total_feedback=total_feedback,
        thumbs_up_count=bucket.thumbs_up,
        thumbs_down_count=bucket.thumbs_down,
        acceptance_rate=round(acceptance_rate, 3),
        diversity_score=round(diversity_score(bucket.artist_counts), 3),
        season=get_season(bucket.start.month),
    )


def matches_filters(point: TimelineDataPoint, filters: TimelineFilters) -> bool:
    """Whether a period passes every filter that is set."""
    if filters.moods and dominant_mood(point.mood_distribution) not in filters.moods:
        return False

    if filters.genres and not _any_name_matches(point.top_genres, filters.genres):
        return False

    if filters.artists and not _any_name_matches(point.top_artists, filters.artists):
        return False

    if filters.min_acceptance_rate is not None:
        # Compare the exact rate; the stored one is rounded to 3 decimals
        rate = point.thumbs_up_count / point.total_feedback if point.total_feedback else 0.0
        if rate < filters.min_acceptance_rate:
            return False

    return True


def _any_name_matches(items: list[TopItem], needles: Iterable[str]) -> bool:
    lowered = [needle.lower() for needle in needles]
    return any(needle in item.name.lower() for item in items for needle in lowered)


def sum_top_items(points: Iterable[TimelineDataPoint], attribute: str) -> dict[str, int]:
    """Add up one top-item list (e.g. ``"top_artists"``) across periods."""
    totals: dict[str, int] = defaultdict(int)
    for point in points:
        for item in getattr(point, attribute):
            totals[item.name] += item.count
    return dict(totals)


def sum_mood_distributions(points: Iterable[TimelineDataPoint]) -> dict[str, float]:
    """Add mood weights across periods and renormalize."""
    totals = empty_mood_distribution()
    for point in points:
        for mood in totals:
            totals[mood] += point.mood_distribution.get(mood, 0.0)
    return normalize_moods(totals)
