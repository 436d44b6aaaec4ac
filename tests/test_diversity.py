"""Tests for the diversity scorer."""

import pytest
from taste_timeline.analyzers.diversity import diversity_score


class TestDiversityScore:
    def test_empty(self):
        assert diversity_score({}) == 0.0

    def test_single_artist(self):
        assert diversity_score({"Radiohead": 40}) == 0.0

    def test_even_spread_is_one(self):
        assert diversity_score({"a": 5, "b": 5, "c": 5, "d": 5}) == pytest.approx(1.0)

    def test_skewed_spread_in_between(self):
        score = diversity_score({"a": 9, "b": 1})
        assert 0.0 < score < 1.0
        assert score == pytest.approx(0.469, abs=0.001)

    def test_non_positive_counts_ignored(self):
        assert diversity_score({"a": 5, "b": -2}) == 0.0
        assert diversity_score({"a": 1, "b": 1, "c": -3, "d": 0}) == pytest.approx(1.0)

    def test_bounded(self):
        for counts in [{"a": 1, "b": 100}, {"a": 3, "b": 2, "c": 1}, {"x": 7, "y": 7}]:
            assert 0.0 <= diversity_score(counts) <= 1.0
