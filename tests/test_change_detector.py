"""Tests for the change detector."""

from datetime import datetime, timezone

from taste_timeline.analyzers.mood import empty_mood_distribution
from taste_timeline.change_detector import detect_change
from taste_timeline.models import TimelineDataPoint, TopItem


def _make_point(acceptance=0.5, mood="chill", artists=("A",), diversity=0.5):
    moods = empty_mood_distribution()
    if mood:
        moods[mood] = 1.0
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return TimelineDataPoint(
        period_start=start,
        period_end=datetime(2024, 2, 1, tzinfo=timezone.utc),
        period_label="Jan 2024",
        mood_distribution=moods,
        top_genres=[],
        top_artists=[TopItem(name, 10 - i, 0.0) for i, name in enumerate(artists)],
        top_tracks=[],
        total_listens=10,
        total_feedback=10,
        thumbs_up_count=5,
        thumbs_down_count=5,
        acceptance_rate=acceptance,
        diversity_score=diversity,
        season="winter",
    )


class TestDetectChange:
    def test_no_previous_period(self):
        result = detect_change(_make_point(), None)
        assert result.is_significant is False
        assert result.description == ""

    def test_identical_periods(self):
        point = _make_point()
        assert detect_change(point, point).is_significant is False

    def test_acceptance_improved(self):
        result = detect_change(_make_point(acceptance=0.9), _make_point(acceptance=0.5))
        assert result.is_significant is True
        assert result.description == "Recommendation quality improved significantly"

    def test_acceptance_decreased(self):
        result = detect_change(_make_point(acceptance=0.5), _make_point(acceptance=0.9))
        assert result.description == "Recommendation quality decreased"

    def test_acceptance_below_threshold(self):
        result = detect_change(_make_point(acceptance=0.7), _make_point(acceptance=0.5))
        assert result.is_significant is False

    def test_mood_shift(self):
        result = detect_change(_make_point(mood="focused"), _make_point(mood="chill"))
        assert result.description == "Mood shifted from chill to focused"

    def test_all_zero_mood_counts_as_neutral(self):
        result = detect_change(_make_point(mood=None), _make_point(mood="chill"))
        assert result.description == "Mood shifted from chill to neutral"

    def test_new_favorite_artist(self):
        result = detect_change(_make_point(artists=("B", "A")), _make_point(artists=("A", "B")))
        assert result.description == "New favorite artist: B"

    def test_losing_all_artists_is_not_a_new_favorite(self):
        result = detect_change(_make_point(artists=()), _make_point(artists=("A",)))
        assert result.is_significant is False

    def test_diversity_expanding(self):
        result = detect_change(_make_point(diversity=0.8), _make_point(diversity=0.5))
        assert result.description == "Music taste expanding"

    def test_diversity_focusing(self):
        result = detect_change(_make_point(diversity=0.2), _make_point(diversity=0.5))
        assert result.description == "Focusing on specific artists/genres"

    def test_sentences_joined_in_rule_order(self):
        result = detect_change(
            _make_point(acceptance=0.5, mood="focused", diversity=0.2),
            _make_point(acceptance=0.9, mood="chill", diversity=0.5),
        )
        assert result.description == (
            "Recommendation quality decreased. "
            "Mood shifted from chill to focused. "
            "Focusing on specific artists/genres"
        )

    def test_significance_is_symmetric(self):
        pairs = [
            (_make_point(acceptance=0.9), _make_point(acceptance=0.5)),
            (_make_point(mood="happy"), _make_point(mood="chill")),
            (_make_point(diversity=0.9), _make_point(diversity=0.1)),
            (_make_point(acceptance=0.6), _make_point(acceptance=0.5)),
        ]
        for a, b in pairs:
            assert detect_change(a, b).is_significant == detect_change(b, a).is_significant
