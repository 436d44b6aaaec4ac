"""Tests for mood inference."""

import pytest
from taste_timeline.analyzers.mood import (
    MOOD_KEYS,
    dominant_mood,
    empty_mood_distribution,
    infer_mood,
    normalize_moods,
)


class TestInferMood:
    @pytest.mark.parametrize("genre,mood", [
        ("Deep House", "energetic"),
        ("lo-fi hip hop", "chill"),
        ("Ambient", "chill"),
        ("Delta Blues", "melancholic"),
        ("Synth-Pop", "happy"),
        ("Classical", "focused"),
        ("Smooth R&B", "romantic"),
        ("Death Metal", "aggressive"),
        ("Polka", "neutral"),
    ])
    def test_genre_mapping(self, genre, mood):
        assert infer_mood(genre) == mood

    def test_empty_genre_is_neutral(self):
        assert infer_mood("") == "neutral"
        assert infer_mood(None) == "neutral"

    def test_first_matching_group_wins(self):
        # Matches both chill and energetic; chill is checked first
        assert infer_mood("chill dance") == "chill"
        # Matches both melancholic and happy; melancholic is checked first
        assert infer_mood("sad pop") == "melancholic"

    def test_every_result_is_a_known_key(self):
        for genre in ["techno", "jazz", "punk", "soul", "unknown thing"]:
            assert infer_mood(genre) in MOOD_KEYS


class TestNormalizeMoods:
    def test_sums_to_one(self):
        result = normalize_moods({"chill": 3, "happy": 1})
        assert result["chill"] == 0.75
        assert result["happy"] == 0.25
        assert sum(result.values()) == pytest.approx(1.0)
        assert list(result) == MOOD_KEYS

    def test_all_zero_stays_zero(self):
        assert normalize_moods(empty_mood_distribution()) == empty_mood_distribution()
        assert normalize_moods({}) == empty_mood_distribution()

    def test_unknown_keys_ignored(self):
        result = normalize_moods({"chill": 1, "spooky": 5})
        assert result["chill"] == 1.0
        assert "spooky" not in result


class TestDominantMood:
    def test_highest_weight(self):
        assert dominant_mood({"focused": 0.6, "chill": 0.4}) == "focused"

    def test_tie_goes_to_earlier_key(self):
        assert dominant_mood({"energetic": 0.5, "chill": 0.5}) == "chill"

    def test_all_zero_is_neutral(self):
        assert dominant_mood(empty_mood_distribution()) == "neutral"
        assert dominant_mood({}) == "neutral"
