"""
Seasonal Pattern Detector - Find seasons and months with a clear taste.

Confidence blends sample size and how one-sided the ratings are:

    confidence = 0.6 * min(total / 50, 1) + 0.4 * |average_rating - 0.5| * 2

A season needs at least MIN_FEEDBACK_THRESHOLD ratings to be scored at all,
and MIN_CONFIDENCE_THRESHOLD confidence to be reported. Confidence is
recomputed on every query.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from taste_timeline.analyzers.temporal import SEASONS, get_season
from taste_timeline.models import FeedbackEvent, SeasonalPattern, SeasonalPreferences
from taste_timeline.store import EventQuery, FeedbackReader

logger = logging.getLogger(__name__)

MIN_FEEDBACK_THRESHOLD = 10
MIN_CONFIDENCE_THRESHOLD = 0.7

# Sample size at which the size component of confidence saturates
_SATURATION_SAMPLE_SIZE = 50
_SAMPLE_WEIGHT = 0.6
_CLARITY_WEIGHT = 0.4

MAX_PREFERRED_ARTISTS = 10


def calculate_confidence(total_feedback: int, average_rating: float) -> float:
    """
    Score how trustworthy a pattern is.

    Args:
        total_feedback: Number of ratings behind the pattern
        average_rating: Thumbs-up share, 0-1

    Returns:
        Confidence clamped to [0, 1]
    """
    sample_score = min(total_feedback / _SATURATION_SAMPLE_SIZE, 1.0)
    clarity_score = abs(average_rating - 0.5) * 2
    confidence = _SAMPLE_WEIGHT * sample_score + _CLARITY_WEIGHT * clarity_score
    return min(max(confidence, 0.0), 1.0)


def summarize_feedback(
    events: Iterable[FeedbackEvent], season: str, month: Optional[int] = None
) -> Optional[SeasonalPattern]:
    """
    Build a pattern from one season's (or month's) feedback.

    Args:
        events: All feedback tagged with the season or month
        season: Season the pattern describes
        month: Calendar month, for month-level patterns

    Returns:
        SeasonalPattern, or None with fewer than MIN_FEEDBACK_THRESHOLD events
    """
    events = list(events)
    total = len(events)
    if total < MIN_FEEDBACK_THRESHOLD:
        return None

    liked_artists = Counter(
        event.song.artist for event in events if event.is_thumbs_up and event.song.artist
    )
    thumbs_up = sum(1 for event in events if event.is_thumbs_up)
    thumbs_down = total - thumbs_up
    average_rating = thumbs_up / total

    return SeasonalPattern(
        season=season,
        month=month,
        preferred_artists=[artist for artist, _ in liked_artists.most_common(MAX_PREFERRED_ARTISTS)],
        thumbs_up_count=thumbs_up,
        thumbs_down_count=thumbs_down,
        total_feedback=total,
        confidence=calculate_confidence(total, average_rating),
        average_rating=average_rating,
    )


class SeasonalPatternDetector:
    """Detects seasonal and monthly preferences from all-time feedback.

    Args:
        feedback_reader: Source of feedback events. Every query is for
            one user and one season or month, with no date bounds.
    """

    def __init__(self, feedback_reader: FeedbackReader) -> None:
        self._reader = feedback_reader

    def analyze_seasonal_feedback(self, user_id: str, season: str) -> Optional[SeasonalPattern]:
        """Pattern for one season, ungated by confidence."""
        if season not in SEASONS:
            raise ValueError(f"Unknown season {season!r}")
        events = self._reader.list_feedback(user_id, EventQuery(season=season))
        return summarize_feedback(events, season)

    def analyze_monthly_feedback(self, user_id: str, month: int) -> Optional[SeasonalPattern]:
        """Pattern for one calendar month, ungated by confidence."""
        season = get_season(month)
        events = self._reader.list_feedback(user_id, EventQuery(month=month))
        return summarize_feedback(events, season, month=month)

    def detect_seasonal_preferences(self, user_id: str, now: datetime) -> SeasonalPreferences:
        """Confident patterns for each of the four seasons."""
        patterns = []
        for season in SEASONS:
            pattern = self.analyze_seasonal_feedback(user_id, season)
            if pattern and pattern.confidence >= MIN_CONFIDENCE_THRESHOLD:
                patterns.append(pattern)

        logger.info("Detected %d seasonal patterns for user %s.", len(patterns), user_id)
        return SeasonalPreferences(user_id=user_id, patterns=patterns, last_updated=now)

    def detect_monthly_patterns(self, user_id: str, now: datetime) -> SeasonalPreferences:
        """Confident patterns for each calendar month."""
        patterns = []
        for month in range(1, 13):
            pattern = self.analyze_monthly_feedback(user_id, month)
            if pattern and pattern.confidence >= MIN_CONFIDENCE_THRESHOLD:
                patterns.append(pattern)

        logger.info("Detected %d monthly patterns for user %s.", len(patterns), user_id)
        return SeasonalPreferences(user_id=user_id, patterns=patterns, last_updated=now)

    def current_seasonal_pattern(self, user_id: str, now: datetime) -> Optional[SeasonalPattern]:
        return self.analyze_seasonal_feedback(user_id, get_season(now.month))

    def has_seasonal_patterns(self, user_id: str, now: datetime) -> bool:
        return bool(self.detect_seasonal_preferences(user_id, now).patterns)
