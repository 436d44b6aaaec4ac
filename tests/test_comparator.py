"""Tests for the taste comparator."""

from datetime import datetime, timezone

from taste_timeline.aggregator import build_timeline
from taste_timeline.analyzers.temporal import Granularity
from taste_timeline.comparator import compare_timelines, consolidate_window
from taste_timeline.models import ListeningEvent, new_feedback_event


def _utc(year, month, day):
    return datetime(year, month, day, 12, tzinfo=timezone.utc)


def _make_window(year, artist, genre, listens=3, ups=0, downs=0):
    listening = [
        ListeningEvent("u1", artist, f"Track {i}", _utc(year, 1, 1 + i), genre)
        for i in range(listens)
    ]
    feedback = [
        new_feedback_event("u1", f"{artist} - Liked {i}", "up", _utc(year, 1, 10 + i))
        for i in range(ups)
    ] + [
        new_feedback_event("u1", f"{artist} - Skipped {i}", "down", _utc(year, 1, 20 + i))
        for i in range(downs)
    ]
    return build_timeline(feedback, listening, Granularity.MONTH)


class TestConsolidateWindow:
    def test_empty_window(self):
        profile = consolidate_window([], "Past Period")
        assert profile.period_label == "Past Period"
        assert profile.top_artists == []
        assert profile.acceptance_rate == 0.0
        assert sum(profile.mood_distribution.values()) == 0.0

    def test_label_from_first_point(self):
        profile = consolidate_window(_make_window(2023, "Low", "slowcore"), "Past Period")
        assert profile.period_label == "Jan 2023"
        assert profile.top_artists == ["Low"]


class TestCompareTimelines:
    def test_taste_moved(self):
        past = _make_window(2023, "Old", "jazz", ups=1, downs=1)
        current = _make_window(2024, "New", "techno", ups=3)

        comparison = compare_timelines(past, current)
        changes = comparison.changes

        assert changes.new_artists == ["New"]
        assert changes.dropped_artists == ["Old"]
        assert changes.new_genres == ["techno"]
        assert changes.dropped_genres == ["jazz"]
        assert changes.mood_shift == "focused → energetic"
        assert changes.acceptance_rate_change == 0.5
        assert comparison.past.acceptance_rate == 0.5
        assert comparison.current.acceptance_rate == 1.0

    def test_same_window_is_stable(self):
        window = _make_window(2024, "Low", "jazz", ups=2, downs=1)
        changes = compare_timelines(window, window).changes

        assert changes.new_artists == []
        assert changes.dropped_artists == []
        assert changes.new_genres == []
        assert changes.dropped_genres == []
        assert changes.mood_shift == "Stable"
        assert changes.acceptance_rate_change == 0.0

    def test_both_windows_empty(self):
        comparison = compare_timelines([], [])
        assert comparison.past.period_label == "Past Period"
        assert comparison.current.period_label == "Current Period"
        assert comparison.changes.mood_shift == "Stable"
        assert comparison.changes.acceptance_rate_change == 0.0

    def test_acceptance_change_uses_unrounded_rates(self):
        past = _make_window(2023, "A", "jazz", listens=0, ups=1, downs=2)
        current = _make_window(2024, "A", "jazz", listens=0, ups=2, downs=1)

        comparison = compare_timelines(past, current)
        assert comparison.past.acceptance_rate == 0.333
        assert comparison.current.acceptance_rate == 0.667
        assert comparison.changes.acceptance_rate_change == 0.333
