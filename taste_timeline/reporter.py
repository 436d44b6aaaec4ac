"""Markdown report generator with ASCII visualizations."""

from datetime import datetime
from pathlib import Path

from taste_timeline.analyzers.mood import MOOD_KEYS, dominant_mood
from taste_timeline.analyzers.temporal import format_hour_timeline, get_month_name


HEADER = """# Taste Timeline Report

> How your listening moved through time: moods, favourite artists and how
> often the suggestions landed. Moods are guessed from genre names, so read
> them as a rough sketch rather than a measurement.

---
"""

NO_DATA_MESSAGE = "No listening or feedback activity in this period."


def ascii_bar(value, max_value=1.0, width=30, label=""):
    """Render a single ASCII bar."""
    if max_value == 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    bar = "[" + "#" * filled + "." * (width - filled) + "]"
    if label:
        return f"{label:<14} {bar} {value:.0%}"
    return bar


def format_mood_distribution(mood_distribution, width=30):
    """Mood shares as bars, largest first; all-zero distributions render nothing."""
    if not any(mood_distribution.get(mood, 0) for mood in MOOD_KEYS):
        return ""

    ranked = sorted(MOOD_KEYS, key=lambda m: -mood_distribution.get(m, 0))
    lines = ["```"]
    for mood in ranked:
        value = mood_distribution.get(mood, 0)
        if value > 0:
            lines.append(ascii_bar(value, 1.0, width, mood.capitalize()))
    lines.append("```")
    return "\n".join(lines)


def format_top_items(title, items, limit=5):
    if not items:
        return ""
    lines = [f"**{title}**: " + ", ".join(f"{item.name} ({item.count})" for item in items[:limit])]
    return "\n".join(lines)


def format_period(point):
    """Format one timeline bucket."""
    lines = [f"### {point.period_label}", ""]

    if point.is_significant_change:
        lines.append(f"> **Milestone**: {point.change_description}")
        lines.append("")

    lines.append(
        f"- {point.total_listens} listens, {point.total_feedback} ratings "
        f"({point.thumbs_up_count} up / {point.thumbs_down_count} down)"
    )
    lines.append(f"- Acceptance: {point.acceptance_rate:.0%}")
    lines.append(f"- Diversity: {point.diversity_score:.2f}")
    lines.append(f"- Dominant mood: {dominant_mood(point.mood_distribution)}")
    lines.append("")

    moods = format_mood_distribution(point.mood_distribution)
    if moods:
        lines.append(moods)
        lines.append("")

    for title, items in (
        ("Top artists", point.top_artists),
        ("Top genres", point.top_genres),
        ("Top tracks", point.top_tracks),
    ):
        text = format_top_items(title, items)
        if text:
            lines.append(text)
            lines.append("")

    return "\n".join(lines).rstrip()


def format_timeline(response):
    """Format a whole timeline response as Markdown."""
    lines = [
        "## Timeline",
        "",
        f"*{response.start_date.date().isoformat()} to {response.end_date.date().isoformat()}, "
        f"by {response.granularity.value} ({response.total_periods} periods)*",
        "",
    ]

    if not response.data_points:
        lines.append(NO_DATA_MESSAGE)
        return "\n".join(lines)

    milestones = [p for p in response.data_points if p.is_significant_change]
    if milestones:
        lines.append(f"{len(milestones)} milestone(s) in this range.")
        lines.append("")

    for point in response.data_points:
        lines.append(format_period(point))
        lines.append("")

    return "\n".join(lines).rstrip()


def format_seasonal(preferences):
    """Format seasonal (or monthly) patterns."""
    lines = ["## Seasonal Patterns", ""]
    if not preferences.patterns:
        lines.append(
            "Not enough confident feedback yet. Patterns appear once a season "
            "has at least 10 ratings with a clear lean."
        )
        return "\n".join(lines)

    for pattern in preferences.patterns:
        title = pattern.season.capitalize()
        if pattern.month is not None:
            title = f"{get_month_name(pattern.month)} ({title})"
        lines.append(f"### {title}")
        lines.append("")
        lines.append(
            f"- {pattern.total_feedback} ratings, {pattern.thumbs_up_count} up / "
            f"{pattern.thumbs_down_count} down"
        )
        lines.append(f"- Liked: {pattern.average_rating:.0%}")
        lines.append(f"- Confidence: {pattern.confidence:.0%}")
        if pattern.preferred_artists:
            lines.append(f"- Preferred artists: {', '.join(pattern.preferred_artists)}")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_comparison(comparison):
    """Format a taste comparison between two windows."""
    changes = comparison.changes
    sign = "+" if changes.acceptance_rate_change >= 0 else ""

    lines = [
        "## Then vs Now",
        "",
        f"**{comparison.past.period_label}** vs **{comparison.current.period_label}**",
        "",
        f"- Mood: {changes.mood_shift}",
        f"- Acceptance: {comparison.past.acceptance_rate:.0%} -> "
        f"{comparison.current.acceptance_rate:.0%} ({sign}{changes.acceptance_rate_change:.0%})",
    ]

    for label, names in (
        ("New artists", changes.new_artists),
        ("Dropped artists", changes.dropped_artists),
        ("New genres", changes.new_genres),
        ("Dropped genres", changes.dropped_genres),
    ):
        lines.append(f"- {label}: {', '.join(names) if names else 'none'}")

    return "\n".join(lines)


def format_playlist(playlist):
    lines = [f"## {playlist.name}", "", f"*{playlist.description}*", ""]
    if not playlist.tracks:
        lines.append("No liked songs in this period.")
        return "\n".join(lines)

    for i, track in enumerate(playlist.tracks, 1):
        lines.append(f"{i:2d}. {track.artist} - {track.title} ({track.match_score:.0%}, {track.match_reason})")
    if playlist.discovery_slots:
        lines.append("")
        lines.append(f"{playlist.discovery_slots} slot(s) left for new discoveries.")
    return "\n".join(lines)


def format_listening_patterns(patterns):
    """Format hour-of-day listening, as stored on a snapshot profile."""
    if not patterns:
        return ""

    split = {
        "weekday": "mostly on weekdays",
        "weekend": "mostly at weekends",
    }.get(patterns.weekday_vs_weekend, "evenly across the week")

    lines = [
        "## When You Listen",
        "",
        f"Most active on {patterns.peak_day_of_week}s around {patterns.peak_hour_of_day:02d}:00, "
        f"{split}.",
        "",
        "```",
        format_hour_timeline(patterns.hour_distribution, width=25),
        "```",
    ]
    return "\n".join(lines)


def generate_report(response, seasonal=None, comparison=None, listening_patterns=None,
                    output_path=None):
    """
    Generate the Taste Timeline markdown report.

    Args:
        response: TimelineResponse from the engine
        seasonal: SeasonalPreferences (optional)
        comparison: TasteComparison (optional)
        listening_patterns: ListeningPatterns (optional)
        output_path: Where to write the report; nothing is written when None

    Returns:
        The report text
    """
    sections = [HEADER, f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*", ""]

    sections.append(format_timeline(response))
    sections.append("")

    for extra in (
        format_seasonal(seasonal) if seasonal is not None else "",
        format_comparison(comparison) if comparison is not None else "",
        format_listening_patterns(listening_patterns),
    ):
        if extra:
            sections.append("---")
            sections.append("")
            sections.append(extra)
            sections.append("")

    sections.append("---")
    sections.append("")
    sections.append("*Generated by Taste Timeline v0.1*")

    report_text = "\n".join(sections)
    if output_path:
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report_text, encoding="utf-8")
        print(f"Report written to {output_path}")
    return report_text
