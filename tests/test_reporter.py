"""Tests for the Markdown reporter."""

from datetime import datetime, timezone

from taste_timeline.analyzers.temporal import Granularity
from taste_timeline.models import (
    ListeningPatterns,
    PeriodProfile,
    RegeneratedPlaylist,
    RegeneratedTrack,
    SeasonalPattern,
    SeasonalPreferences,
    TasteChanges,
    TasteComparison,
    TimelineDataPoint,
    TimelineResponse,
    TopItem,
)
from taste_timeline.analyzers.mood import empty_mood_distribution
from taste_timeline.reporter import (
    NO_DATA_MESSAGE,
    ascii_bar,
    format_comparison,
    format_listening_patterns,
    format_mood_distribution,
    format_period,
    format_playlist,
    format_seasonal,
    format_timeline,
    generate_report,
)

NOW = datetime(2024, 11, 15, 12, tzinfo=timezone.utc)


def _make_point(**overrides):
    moods = empty_mood_distribution()
    moods.update({"energetic": 0.75, "chill": 0.25})
    defaults = dict(
        period_start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        period_end=datetime(2024, 2, 1, tzinfo=timezone.utc),
        period_label="Jan 2024",
        mood_distribution=moods,
        top_genres=[TopItem("house", 3, 75.0), TopItem("ambient", 1, 25.0)],
        top_artists=[TopItem("Daft Punk", 3, 75.0)],
        top_tracks=[TopItem("Daft Punk - One More Time", 2, 50.0)],
        total_listens=4,
        total_feedback=2,
        thumbs_up_count=1,
        thumbs_down_count=1,
        acceptance_rate=0.5,
        diversity_score=0.81,
        season="winter",
    )
    defaults.update(overrides)
    return TimelineDataPoint(**defaults)


def _make_response(points):
    return TimelineResponse(
        data_points=points,
        granularity=Granularity.MONTH,
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 3, 31, tzinfo=timezone.utc),
        total_periods=len(points),
    )


class TestAsciiBar:
    def test_full(self):
        assert ascii_bar(1.0, width=10) == "[##########]"

    def test_empty(self):
        assert ascii_bar(0.0, width=10) == "[..........]"

    def test_clamped(self):
        assert ascii_bar(2.0, width=4) == "[####]"

    def test_zero_max(self):
        assert ascii_bar(0.5, max_value=0, width=4) == "[....]"

    def test_label(self):
        assert ascii_bar(0.5, width=4, label="Chill") == f"{'Chill':<14} [##..] 50%"


class TestFormatPeriod:
    def test_contents(self):
        text = format_period(_make_point())
        assert text.startswith("### Jan 2024")
        assert "4 listens, 2 ratings (1 up / 1 down)" in text
        assert "- Acceptance: 50%" in text
        assert "- Dominant mood: energetic" in text
        assert "**Top artists**: Daft Punk (3)" in text
        assert "Milestone" not in text

    def test_milestone(self):
        text = format_period(_make_point(
            is_significant_change=True,
            change_description="Mood shifted from chill to energetic",
        ))
        assert "> **Milestone**: Mood shifted from chill to energetic" in text

    def test_mood_bars_largest_first_skip_zero(self):
        text = format_mood_distribution(_make_point().mood_distribution)
        lines = text.splitlines()
        assert lines[1].startswith("Energetic")
        assert lines[2].startswith("Chill")
        assert "Happy" not in text

    def test_all_zero_moods(self):
        assert format_mood_distribution(empty_mood_distribution()) == ""


class TestFormatTimeline:
    def test_empty(self):
        text = format_timeline(_make_response([]))
        assert text.startswith("## Timeline")
        assert NO_DATA_MESSAGE in text

    def test_milestone_count(self):
        points = [
            _make_point(),
            _make_point(period_label="Feb 2024", is_significant_change=True,
                        change_description="Recommendation quality decreased"),
        ]
        text = format_timeline(_make_response(points))
        assert "1 milestone(s) in this range." in text
        assert "### Feb 2024" in text
        assert "by month (2 periods)" in text


class TestFormatSeasonal:
    def test_no_patterns(self):
        text = format_seasonal(SeasonalPreferences("u1", [], NOW))
        assert "Not enough confident feedback yet" in text

    def test_season_and_month(self):
        patterns = [
            SeasonalPattern("fall", ["Nick Drake"], 45, 5, 50, 0.88, 0.9),
            SeasonalPattern("spring", [], 12, 0, 12, 0.74, 1.0, month=3),
        ]
        text = format_seasonal(SeasonalPreferences("u1", patterns, NOW))
        assert "### Fall" in text
        assert "- Liked: 90%" in text
        assert "- Confidence: 88%" in text
        assert "- Preferred artists: Nick Drake" in text
        assert "### March (Spring)" in text


class TestFormatComparison:
    def test_changes(self):
        comparison = TasteComparison(
            past=PeriodProfile("Jan 2023", ["Bill Evans"], ["jazz"], {}, 0.25),
            current=PeriodProfile("Jan 2024", ["Daft Punk"], ["house"], {}, 0.75),
            changes=TasteChanges(
                new_artists=["Daft Punk"],
                dropped_artists=["Bill Evans"],
                new_genres=["house"],
                dropped_genres=[],
                mood_shift="focused → energetic",
                acceptance_rate_change=0.5,
            ),
        )
        text = format_comparison(comparison)
        assert text.startswith("## Then vs Now")
        assert "- Mood: focused → energetic" in text
        assert "- Acceptance: 25% -> 75% (+50%)" in text
        assert "- New artists: Daft Punk" in text
        assert "- Dropped genres: none" in text


class TestFormatPlaylist:
    def _make_playlist(self, tracks):
        return RegeneratedPlaylist(
            name="Jan 2024 Nostalgia Mix",
            description="Revisit your favorites from Jan 2024",
            tracks=tracks,
            period_label="Jan 2024",
            blend_ratio=50,
            historical_slots=2,
            discovery_slots=4 - len(tracks),
        )

    def test_empty(self):
        assert "No liked songs in this period." in format_playlist(self._make_playlist([]))

    def test_tracks(self):
        text = format_playlist(self._make_playlist([
            RegeneratedTrack("Daft Punk", "Digital Love", 0.4, "Liked during Jan 2024"),
        ]))
        assert " 1. Daft Punk - Digital Love (40%, Liked during Jan 2024)" in text
        assert "3 slot(s) left for new discoveries." in text


class TestListeningPatterns:
    def test_none(self):
        assert format_listening_patterns(None) == ""

    def test_weekend(self):
        hours = [0] * 24
        hours[22] = 3
        text = format_listening_patterns(ListeningPatterns("Saturday", 22, "weekend", hours))
        assert "Most active on Saturdays around 22:00, mostly at weekends." in text


class TestGenerateReport:
    def test_writes_file(self, tmp_path, capsys):
        out = tmp_path / "reports" / "timeline.md"
        text = generate_report(_make_response([_make_point()]), output_path=str(out))

        assert out.read_text(encoding="utf-8") == text
        assert "# Taste Timeline Report" in text
        assert "### Jan 2024" in text
        assert f"Report written to {out}" in capsys.readouterr().out

    def test_no_output_path(self, tmp_path, capsys):
        text = generate_report(
            _make_response([]),
            seasonal=SeasonalPreferences("u1", [], NOW),
        )
        assert NO_DATA_MESSAGE in text
        assert "## Seasonal Patterns" in text
        assert capsys.readouterr().out == ""
        assert list(tmp_path.iterdir()) == []
