"""Core domain dataclasses shared across all taste timeline modules."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from taste_timeline.analyzers.temporal import Granularity, extract_temporal_metadata

# Separator of the legacy "Artist - Title" composite song key
SONG_KEY_SEPARATOR = " - "


class FeedbackType(str, Enum):
    """Thumbs rating a listener gave a song."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class SongRef:
    """Two-field song identifier.

    Attributes:
        artist: Performing artist as shown to the listener.
        title: Track title. Empty when only an artist is known.
    """

    artist: str
    title: str = ""

    @classmethod
    def parse(cls, composite: str) -> SongRef:
        """Split an ``"Artist - Title"`` string on its first separator.

        Artists that themselves contain ``" - "`` cannot be told apart from
        the separator; such keys should be fixed where they are written.
        """
        artist, sep, title = composite.partition(SONG_KEY_SEPARATOR)
        if not sep:
            return cls(artist=composite.strip())
        return cls(artist=artist.strip() or composite.strip(), title=title.strip())

    def __str__(self) -> str:
        if not self.title:
            return self.artist
        return f"{self.artist}{SONG_KEY_SEPARATOR}{self.title}"


@dataclass(frozen=True)
class FeedbackEvent:
    """A single thumbs-up/down rating.

    The temporal attributes are derived once, when the event is written,
    and are never recomputed by the engine.
    """

    user_id: str
    song: SongRef
    feedback_type: FeedbackType
    timestamp: datetime
    month: int
    season: str
    day_of_week: int
    hour_of_day: int

    @property
    def is_thumbs_up(self) -> bool:
        return self.feedback_type == FeedbackType.UP

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "song_artist_title": str(self.song),
            "feedback_type": self.feedback_type.value,
            "timestamp": self.timestamp.isoformat(),
            "month": self.month,
            "season": self.season,
            "day_of_week": self.day_of_week,
            "hour_of_day": self.hour_of_day,
        }

    @classmethod
    def from_dict(cls, data: dict) -> FeedbackEvent:
        timestamp = parse_timestamp(data["timestamp"])
        derived = extract_temporal_metadata(timestamp)
        return cls(
            user_id=data["user_id"],
            song=SongRef.parse(data["song_artist_title"]),
            feedback_type=FeedbackType(data["feedback_type"]),
            timestamp=timestamp,
            month=data.get("month", derived["month"]),
            season=data.get("season", derived["season"]),
            day_of_week=data.get("day_of_week", derived["day_of_week"]),
            hour_of_day=data.get("hour_of_day", derived["hour_of_day"]),
        )


def new_feedback_event(
    user_id: str,
    song: SongRef | str,
    feedback_type: FeedbackType | str,
    timestamp: datetime,
) -> FeedbackEvent:
    """Build a feedback event, stamping its calendar attributes."""
    if isinstance(song, str):
        song = SongRef.parse(song)
    timestamp = ensure_utc(timestamp)
    return FeedbackEvent(
        user_id=user_id,
        song=song,
        feedback_type=FeedbackType(feedback_type),
        timestamp=timestamp,
        **extract_temporal_metadata(timestamp),
    )


@dataclass(frozen=True)
class ListeningEvent:
    """One playback of a track."""

    user_id: str
    artist: str
    title: str
    played_at: datetime
    genre: str | None = None

    @property
    def song(self) -> SongRef:
        return SongRef(self.artist, self.title)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "artist": self.artist,
            "title": self.title,
            "played_at": self.played_at.isoformat(),
            "genre": self.genre,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ListeningEvent:
        return cls(
            user_id=data["user_id"],
            artist=data["artist"],
            title=data["title"],
            played_at=parse_timestamp(data["played_at"]),
            genre=data.get("genre") or None,
        )


@dataclass
class TopItem:
    """A ranked entry of a count map; percentage is 0-100, one decimal."""

    name: str
    count: int
    percentage: float


@dataclass
class TimelineDataPoint:
    """Aggregated statistics for one calendar bucket.

    Attributes:
        period_start: Inclusive bucket start.
        period_end: Exclusive bucket end (start of the next bucket).
        period_label: Display label, a pure function of ``period_start``.
        mood_distribution: Eight mood weights summing to 1, or all zero.
        top_genres: Up to five genres by listen count.
        top_artists: Up to five artists by weighted count.
        top_tracks: Up to five tracks by weighted count.
        total_listens: Listening events in the bucket.
        total_feedback: Thumbs up plus thumbs down in the bucket.
        thumbs_up_count: Thumbs-up ratings in the bucket.
        thumbs_down_count: Thumbs-down ratings in the bucket.
        acceptance_rate: Thumbs-up share of feedback, 0 without feedback.
        diversity_score: Normalized artist entropy in [0, 1].
        season: Season of ``period_start``.
        is_significant_change: Set when the bucket is a milestone.
        change_description: Sentences describing the milestone.
    """

    period_start: datetime
    period_end: datetime
    period_label: str
    mood_distribution: dict[str, float]
    top_genres: list[TopItem]
    top_artists: list[TopItem]
    top_tracks: list[TopItem]
    total_listens: int
    total_feedback: int
    thumbs_up_count: int
    thumbs_down_count: int
    acceptance_rate: float
    diversity_score: float
    season: str
    is_significant_change: bool = False
    change_description: str | None = None


@dataclass(frozen=True)
class TimelineFilters:
    """Period inclusion predicates applied after aggregation."""

    moods: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()
    artists: tuple[str, ...] = ()
    min_acceptance_rate: float | None = None

    def is_empty(self) -> bool:
        return not (self.moods or self.genres or self.artists
                    or self.min_acceptance_rate is not None)


@dataclass
class TimelineResponse:
    data_points: list[TimelineDataPoint]
    granularity: Granularity
    start_date: datetime
    end_date: datetime
    total_periods: int
    has_more_data: bool = False


@dataclass
class SeasonalPattern:
    """Feedback summary for one season (or one calendar month)."""

    season: str
    preferred_artists: list[str]
    thumbs_up_count: int
    thumbs_down_count: int
    total_feedback: int
    confidence: float
    average_rating: float
    month: int | None = None
    # Feedback carries no genre, so this stays empty until metadata is joined in
    preferred_genres: list[str] = field(default_factory=list)


@dataclass
class SeasonalPreferences:
    user_id: str
    patterns: list[SeasonalPattern]
    last_updated: datetime


@dataclass(frozen=True)
class DateWindow:
    start: datetime
    end: datetime


@dataclass
class PeriodProfile:
    period_label: str
    top_artists: list[str]
    top_genres: list[str]
    mood_distribution: dict[str, float]
    acceptance_rate: float


@dataclass
class TasteChanges:
    new_artists: list[str]
    dropped_artists: list[str]
    new_genres: list[str]
    dropped_genres: list[str]
    mood_shift: str
    acceptance_rate_change: float


@dataclass
class TasteComparison:
    past: PeriodProfile
    current: PeriodProfile
    changes: TasteChanges


@dataclass(frozen=True)
class PlaylistRegenerationRequest:
    period_start: datetime
    period_end: datetime
    blend_ratio: int = 100
    max_tracks: int = 25


@dataclass
class RegeneratedTrack:
    artist: str
    title: str
    match_score: float
    match_reason: str
    song_id: str | None = None


@dataclass
class RegeneratedPlaylist:
    """A nostalgia mix.

    Only the historical slice is filled in; ``discovery_slots`` tells the
    caller how many current-taste tracks it may add.
    """

    name: str
    description: str
    tracks: list[RegeneratedTrack]
    period_label: str
    blend_ratio: int
    historical_slots: int
    discovery_slots: int


@dataclass
class ProfileSummary:
    total_listens: int
    total_feedback: int
    thumbs_up_count: int
    thumbs_down_count: int
    acceptance_rate: float
    diversity_score: float


@dataclass
class ListeningPatterns:
    peak_day_of_week: str
    peak_hour_of_day: int
    weekday_vs_weekend: str
    hour_distribution: list[int]


@dataclass
class TasteProfileExport:
    """Consolidated taste profile stored inside a snapshot."""

    summary: ProfileSummary
    mood_distribution: dict[str, float]
    top_genres: list[TopItem]
    top_artists: list[TopItem]
    top_tracks: list[TopItem]
    listening_patterns: ListeningPatterns | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> TasteProfileExport:
        patterns = data.get("listening_patterns")
        return cls(
            summary=ProfileSummary(**data["summary"]),
            mood_distribution=dict(data["mood_distribution"]),
            top_genres=[TopItem(**item) for item in data["top_genres"]],
            top_artists=[TopItem(**item) for item in data["top_artists"]],
            top_tracks=[TopItem(**item) for item in data["top_tracks"]],
            listening_patterns=ListeningPatterns(**patterns) if patterns else None,
        )


@dataclass
class ExportRecord:
    format: str
    exported_at: datetime
    file_name: str | None = None


@dataclass
class TasteSnapshot:
    """A persisted, point-in-time export of a taste profile.

    ``profile_data`` is captured once and never recomputed.
    """

    id: str
    user_id: str
    name: str
    captured_at: datetime
    period_start: datetime
    period_end: datetime
    profile_data: TasteProfileExport
    export_formats: list[ExportRecord] = field(default_factory=list)
    description: str | None = None
    is_auto_generated: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "captured_at": self.captured_at.isoformat(),
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "profile_data": self.profile_data.to_dict(),
            "export_formats": [
                {
                    "format": r.format,
                    "exported_at": r.exported_at.isoformat(),
                    "file_name": r.file_name,
                }
                for r in self.export_formats
            ],
            "description": self.description,
            "is_auto_generated": self.is_auto_generated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TasteSnapshot:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            name=data["name"],
            captured_at=parse_timestamp(data["captured_at"]),
            period_start=parse_timestamp(data["period_start"]),
            period_end=parse_timestamp(data["period_end"]),
            profile_data=TasteProfileExport.from_dict(data["profile_data"]),
            export_formats=[
                ExportRecord(
                    format=r["format"],
                    exported_at=parse_timestamp(r["exported_at"]),
                    file_name=r.get("file_name"),
                )
                for r in data.get("export_formats", [])
            ],
            description=data.get("description"),
            is_auto_generated=bool(data.get("is_auto_generated", False)),
        )


@dataclass
class RecommendedSong:
    artist: str
    title: str
    status: str  # "accepted", "skipped", "saved" or "pending"
    song_id: str | None = None


@dataclass
class RecommendationBatch:
    """A batch of suggestions produced elsewhere, read back for replay."""

    id: str
    user_id: str
    generated_at: datetime
    songs: list[RecommendedSong]
    source: str
    mood_context: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["generated_at"] = self.generated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> RecommendationBatch:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            generated_at=parse_timestamp(data["generated_at"]),
            songs=[RecommendedSong(**song) for song in data.get("songs", [])],
            source=data["source"],
            mood_context=data.get("mood_context"),
        )


@dataclass
class HistoricalRecommendation:
    id: str
    generated_at: datetime
    songs: list[RecommendedSong]
    source: str
    mood_context: str | None
    accepted_count: int
    skipped_count: int


def ensure_utc(ts: datetime) -> datetime:
    """Read naive datetimes as UTC; aware ones are returned unchanged."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    A trailing ``Z`` means UTC, and so does a missing offset
    (``"2024-01-01"`` is midnight UTC).

    Raises:
        ValueError: If *value* is not a datetime or an ISO-8601 string.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 timestamp, got {value!r}")
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
