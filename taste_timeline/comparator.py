"""Taste Comparator - Describe how taste moved between two windows."""

from __future__ import annotations

from typing import Sequence

from taste_timeline.aggregator import sum_mood_distributions, sum_top_items
from taste_timeline.analyzers.mood import dominant_mood
from taste_timeline.models import (
    PeriodProfile,
    TasteChanges,
    TasteComparison,
    TimelineDataPoint,
)

COMPARISON_TOP_ARTISTS = 10
COMPARISON_TOP_GENRES = 5


def _ranked_names(counts: dict[str, int], limit: int) -> list[str]:
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:limit]]


def consolidate_window(points: Sequence[TimelineDataPoint], default_label: str) -> PeriodProfile:
    """
    Fold a window's monthly timeline into one profile.

    Args:
        points: Timeline points for the window, oldest first
        default_label: Label used when the window has no activity

    Returns:
        PeriodProfile with top-10 artists, top-5 genres, renormalized moods
        and the window's overall acceptance rate
    """
    total_feedback = sum(p.total_feedback for p in points)
    thumbs_up = sum(p.thumbs_up_count for p in points)
    acceptance_rate = thumbs_up / total_feedback if total_feedback > 0 else 0.0

    return PeriodProfile(
        period_label=points[0].period_label if points else default_label,
        top_artists=_ranked_names(sum_top_items(points, "top_artists"), COMPARISON_TOP_ARTISTS),
        top_genres=_ranked_names(sum_top_items(points, "top_genres"), COMPARISON_TOP_GENRES),
        mood_distribution=sum_mood_distributions(points),
        acceptance_rate=round(acceptance_rate, 3),
    )


def compare_timelines(
    past_points: Sequence[TimelineDataPoint],
    current_points: Sequence[TimelineDataPoint],
) -> TasteComparison:
    """
    Compare two windows of monthly timeline points.

    New/dropped artists and genres are set differences between the two top
    lists, in ranking order. The acceptance delta is computed from unrounded
    window rates.
    """
    past = consolidate_window(past_points, "Past Period")
    current = consolidate_window(current_points, "Current Period")

    past_mood = dominant_mood(past.mood_distribution)
    current_mood = dominant_mood(current.mood_distribution)
    mood_shift = f"{past_mood} → {current_mood}" if past_mood != current_mood else "Stable"

    changes = TasteChanges(
        new_artists=[a for a in current.top_artists if a not in past.top_artists],
        dropped_artists=[a for a in past.top_artists if a not in current.top_artists],
        new_genres=[g for g in current.top_genres if g not in past.top_genres],
        dropped_genres=[g for g in past.top_genres if g not in current.top_genres],
        mood_shift=mood_shift,
        acceptance_rate_change=round(
            _window_rate(current_points) - _window_rate(past_points), 3
        ),
    )
    return TasteComparison(past=past, current=current, changes=changes)


def _window_rate(points: Sequence[TimelineDataPoint]) -> float:
    total = sum(p.total_feedback for p in points)
    return sum(p.thumbs_up_count for p in points) / total if total > 0 else 0.0
