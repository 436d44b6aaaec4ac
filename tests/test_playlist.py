"""Tests for the historical playlist regenerator."""

from datetime import datetime, timezone

from taste_timeline.models import PlaylistRegenerationRequest, new_feedback_event
from taste_timeline.playlist import playlist_period_label, regenerate_playlist


def _utc(month, day):
    return datetime(2024, month, day, 12, tzinfo=timezone.utc)


def _make_request(blend_ratio=100, max_tracks=25, start=(6, 1), end=(6, 30)):
    return PlaylistRegenerationRequest(
        period_start=_utc(*start),
        period_end=_utc(*end),
        blend_ratio=blend_ratio,
        max_tracks=max_tracks,
    )


def _make_likes():
    return [
        new_feedback_event("u1", "A - One", "up", _utc(6, 3)),
        new_feedback_event("u1", "A - Two", "up", _utc(6, 5)),
        new_feedback_event("u1", "B - Three", "up", _utc(6, 10)),
        new_feedback_event("u1", "A - One", "up", _utc(6, 12)),
    ]


class TestRegeneratePlaylist:
    def test_full_historical_mix(self):
        playlist = regenerate_playlist(_make_likes(), _make_request())

        assert playlist.name == "Jun 2024 Nostalgia Mix"
        assert playlist.description == "Revisit your favorites from Jun 2024"
        assert playlist.period_label == "Jun 2024"
        assert [(t.artist, t.title) for t in playlist.tracks] == [
            ("A", "One"), ("B", "Three"), ("A", "Two"),
        ]
        assert playlist.historical_slots == 25
        assert playlist.discovery_slots == 22

    def test_match_scores(self):
        tracks = regenerate_playlist(_make_likes(), _make_request()).tracks
        assert tracks[0].match_score == 0.6
        assert tracks[1].match_score == 0.2
        assert all(t.match_reason == "Liked during Jun 2024" for t in tracks)

    def test_match_score_capped(self):
        likes = [new_feedback_event("u1", f"A - Song {i}", "up", _utc(6, 1 + i)) for i in range(7)]
        tracks = regenerate_playlist(likes, _make_request()).tracks
        assert all(t.match_score == 1.0 for t in tracks)

    def test_blend_ratio_limits_history(self):
        playlist = regenerate_playlist(_make_likes(), _make_request(blend_ratio=50, max_tracks=4))
        assert playlist.historical_slots == 2
        assert [t.title for t in playlist.tracks] == ["One", "Three"]
        assert playlist.discovery_slots == 2

    def test_historical_slots_round_down(self):
        playlist = regenerate_playlist(_make_likes(), _make_request(blend_ratio=30, max_tracks=5))
        assert playlist.historical_slots == 1
        assert len(playlist.tracks) == 1

    def test_zero_blend(self):
        playlist = regenerate_playlist(_make_likes(), _make_request(blend_ratio=0, max_tracks=10))
        assert playlist.tracks == []
        assert playlist.discovery_slots == 10

    def test_no_likes(self):
        playlist = regenerate_playlist([], _make_request())
        assert playlist.tracks == []
        assert playlist.discovery_slots == 25


class TestPlaylistPeriodLabel:
    def test_single_month(self):
        assert playlist_period_label(_make_request()) == "Jun 2024"

    def test_month_range(self):
        assert playlist_period_label(_make_request(start=(6, 1), end=(8, 31))) == "Jun 2024 - Aug 2024"
