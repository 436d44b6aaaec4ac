"""
Snapshot Exporter - Capture, persist and export taste profiles.

A snapshot consolidates a month-granularity timeline into one
TasteProfileExport. Export is a pure serializer: JSON ("structured") that
parses back into the same profile, or CSV ("delimited") with fixed sections.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
import uuid
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from taste_timeline.aggregator import sum_mood_distributions, sum_top_items, top_items
from taste_timeline.analyzers.diversity import diversity_score
from taste_timeline.analyzers.temporal import analyze_listening_patterns
from taste_timeline.errors import (
    EmptyPeriodError,
    InvalidInputError,
    SnapshotPersistenceError,
)
from taste_timeline.models import (
    ListeningPatterns,
    ProfileSummary,
    TasteProfileExport,
    TasteSnapshot,
    TimelineDataPoint,
)
from taste_timeline.store import SnapshotStore

logger = logging.getLogger(__name__)

PROFILE_TOP_GENRES = 10
PROFILE_TOP_ARTISTS = 20
PROFILE_TOP_TRACKS = 50

_FORMAT_ALIASES = {
    "structured": "json",
    "json": "json",
    "delimited": "csv",
    "csv": "csv",
}


def normalize_export_format(fmt: str) -> str:
    """Map "structured"/"delimited" (or "json"/"csv") to a file extension."""
    try:
        return _FORMAT_ALIASES[fmt.strip().lower()]
    except (KeyError, AttributeError):
        raise InvalidInputError(
            f"Unknown export format {fmt!r}; expected structured or delimited"
        ) from None


def build_profile_export(
    points: Sequence[TimelineDataPoint],
    listening_timestamps: Iterable[datetime] = (),
) -> TasteProfileExport:
    """
    Consolidate timeline points into a single taste profile.

    Args:
        points: Month-granularity timeline for the snapshot period
        listening_timestamps: Playback times in the period, for listening patterns

    Returns:
        TasteProfileExport
    """
    total_listens = sum(p.total_listens for p in points)
    thumbs_up = sum(p.thumbs_up_count for p in points)
    thumbs_down = sum(p.thumbs_down_count for p in points)
    total_feedback = thumbs_up + thumbs_down
    acceptance_rate = thumbs_up / total_feedback if total_feedback > 0 else 0.0

    artists = sum_top_items(points, "top_artists")
    patterns = analyze_listening_patterns(listening_timestamps)

    return TasteProfileExport(
        summary=ProfileSummary(
            total_listens=total_listens,
            total_feedback=total_feedback,
            thumbs_up_count=thumbs_up,
            thumbs_down_count=thumbs_down,
            acceptance_rate=round(acceptance_rate, 3),
            diversity_score=round(diversity_score(artists), 3),
        ),
        mood_distribution=sum_mood_distributions(points),
        top_genres=top_items(sum_top_items(points, "top_genres"), PROFILE_TOP_GENRES),
        top_artists=top_items(artists, PROFILE_TOP_ARTISTS),
        top_tracks=top_items(sum_top_items(points, "top_tracks"), PROFILE_TOP_TRACKS),
        listening_patterns=ListeningPatterns(**patterns) if patterns else None,
    )


class SnapshotExporter:
    """Creates snapshots and writes them to a :class:`SnapshotStore`.

    Args:
        store: Persistence collaborator.
        clock: Returns the capture time of new snapshots.
        id_factory: Returns a fresh snapshot id. Defaults to UUID4 strings.
    """

    def __init__(
        self,
        store: SnapshotStore,
        clock: Callable[[], datetime],
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def create_snapshot(
        self,
        user_id: str,
        name: str,
        period_start: datetime,
        period_end: datetime,
        points: Sequence[TimelineDataPoint],
        listening_timestamps: Iterable[datetime] = (),
        description: Optional[str] = None,
    ) -> TasteSnapshot:
        """
        Persist a snapshot of the given timeline.

        Raises:
            EmptyPeriodError: If the timeline has no periods; nothing is stored
            SnapshotPersistenceError: If the store fails or returns nothing
        """
        if not points:
            raise EmptyPeriodError(
                f"No listening or feedback activity between {period_start.isoformat()} "
                f"and {period_end.isoformat()}; choose a period with listening history."
            )

        snapshot = TasteSnapshot(
            id=self._id_factory(),
            user_id=user_id,
            name=name,
            captured_at=self._clock(),
            period_start=period_start,
            period_end=period_end,
            profile_data=build_profile_export(points, listening_timestamps),
            description=description,
        )

        context = (
            f"snapshot {name!r} ({period_start.date().isoformat()} to "
            f"{period_end.date().isoformat()})"
        )
        try:
            stored = self._store.insert_snapshot(snapshot)
        except Exception as exc:
            logger.exception("Failed to save %s.", context)
            raise SnapshotPersistenceError(f"Failed to save {context}: {exc}") from exc

        if stored is None:
            raise SnapshotPersistenceError(f"Failed to save {context}: store returned no record")

        logger.info("Saved %s for user %s as %s.", context, user_id, stored.id)
        return stored


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_snapshot(snapshot: TasteSnapshot, fmt: str) -> str:
    """
    Serialize a snapshot without modifying it.

    Args:
        snapshot: Snapshot to export
        fmt: "structured" / "json" or "delimited" / "csv"

    Returns:
        The exported document as a string
    """
    if normalize_export_format(fmt) == "json":
        return _export_json(snapshot)
    return _export_csv(snapshot)


def _export_json(snapshot: TasteSnapshot) -> str:
    document = {
        "name": snapshot.name,
        "description": snapshot.description,
        "period_start": snapshot.period_start.isoformat(),
        "period_end": snapshot.period_end.isoformat(),
        "captured_at": snapshot.captured_at.isoformat(),
    }
    document.update(snapshot.profile_data.to_dict())
    return json.dumps(document, indent=2)


def parse_structured_export(text: str) -> TasteProfileExport:
    """Read the profile back out of a structured export."""
    return TasteProfileExport.from_dict(json.loads(text))


def _percent(value: float) -> str:
    return f"{value:.1f}%"


def _export_csv(snapshot: TasteSnapshot) -> str:
    profile = snapshot.profile_data
    summary = profile.summary

    buffer = io.StringIO()
    # Header lines are free text and may contain anything, so they bypass csv
    buffer.write("# Taste Profile Snapshot\n")
    buffer.write(f"# Name: {_single_line(snapshot.name)}\n")
    buffer.write(
        f"# Period: {snapshot.period_start.isoformat()} to {snapshot.period_end.isoformat()}\n"
    )
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([])
    writer.writerow(["## Summary"])
    writer.writerow(["Metric", "Value"])
    writer.writerow(["Total Listens", summary.total_listens])
    writer.writerow(["Total Feedback", summary.total_feedback])
    writer.writerow(["Thumbs Up", summary.thumbs_up_count])
    writer.writerow(["Thumbs Down", summary.thumbs_down_count])
    writer.writerow(["Acceptance Rate", _percent(summary.acceptance_rate * 100)])
    writer.writerow(["Diversity Score", _percent(summary.diversity_score * 100)])

    writer.writerow([])
    writer.writerow(["## Mood Distribution"])
    writer.writerow(["Mood", "Percentage"])
    for mood, value in profile.mood_distribution.items():
        writer.writerow([mood, _percent(value * 100)])

    sections = [
        ("## Top Artists", "Artist", profile.top_artists),
        ("## Top Genres", "Genre", profile.top_genres),
        ("## Top Tracks", "Track", profile.top_tracks),
    ]
    for title, column, items in sections:
        writer.writerow([])
        writer.writerow([title])
        writer.writerow(["Rank", column, "Count", "Percentage"])
        for rank, item in enumerate(items, 1):
            writer.writerow([rank, item.name, item.count, _percent(item.percentage)])

    return buffer.getvalue().rstrip("\n")


def _single_line(text: str) -> str:
    return " ".join(text.splitlines())


def snapshot_file_name(snapshot: TasteSnapshot, fmt: str) -> str:
    """File name for an export, e.g. ``summer-2024.csv``."""
    slug = re.sub(r"[^a-z0-9]+", "-", snapshot.name.lower()).strip("-") or snapshot.id
    return f"{slug}.{normalize_export_format(fmt)}"
