"""Engine facade: the entry points exposed to transports and the CLI."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from taste_timeline import aggregator, comparator, playlist, snapshots
from taste_timeline.analyzers.temporal import Granularity, parse_granularity
from taste_timeline.cache import ResultCache
from taste_timeline.errors import (
    InvalidDateRangeError,
    InvalidInputError,
    InvalidWindowError,
)
from taste_timeline.models import (
    DateWindow,
    ExportRecord,
    FeedbackType,
    HistoricalRecommendation,
    PlaylistRegenerationRequest,
    RegeneratedPlaylist,
    SeasonalPreferences,
    TasteComparison,
    TasteSnapshot,
    TimelineDataPoint,
    TimelineFilters,
    TimelineResponse,
    parse_timestamp,
)
from taste_timeline.notifications import FeedbackChangeNotifier
from taste_timeline.seasonal import SeasonalPatternDetector
from taste_timeline.store import (
    EventQuery,
    FeedbackReader,
    ListeningReader,
    RecommendationHistoryReader,
    SnapshotStore,
)

logger = logging.getLogger(__name__)

MAX_SNAPSHOT_NAME_LENGTH = 100
MAX_SNAPSHOT_DESCRIPTION_LENGTH = 500
MAX_PLAYLIST_TRACKS = 100


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TasteTimelineEngine:
    """Temporal preference analytics for one listener at a time.

    Every call is scoped to a pre-validated ``user_id``. Inputs are checked
    before anything is read; reader and store failures propagate unchanged
    and are never cached.

    Args:
        feedback_reader: Source of feedback events.
        listening_reader: Source of listening events.
        snapshot_store: Where taste snapshots are persisted.
        history_reader: Source of past recommendation batches. Optional;
            :meth:`get_historical_recommendations` needs it.
        cache: Result cache for timelines and seasonal patterns. A private
            30-minute cache is created when omitted.
        notifier: Feedback change hub. The cache is subscribed to it so a
            published change clears that user's entries.
        clock: Wall-clock source for snapshot capture times and
            ``last_updated`` stamps.
    """

    def __init__(
        self,
        feedback_reader: FeedbackReader,
        listening_reader: ListeningReader,
        snapshot_store: SnapshotStore,
        history_reader: Optional[RecommendationHistoryReader] = None,
        cache: Optional[ResultCache] = None,
        notifier: Optional[FeedbackChangeNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._feedback = feedback_reader
        self._listening = listening_reader
        self._snapshot_store = snapshot_store
        self._history = history_reader
        self.cache = cache if cache is not None else ResultCache()
        self._clock = clock or _utc_now
        self._seasonal = SeasonalPatternDetector(feedback_reader)
        self._exporter = snapshots.SnapshotExporter(snapshot_store, self._clock)
        self._unsubscribe = None
        if notifier is not None:
            self._unsubscribe = notifier.subscribe(self.invalidate)

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def get_timeline(
        self,
        user_id: str,
        start_date: datetime | str,
        end_date: datetime | str,
        granularity: Granularity | str = Granularity.WEEK,
        filters: Optional[TimelineFilters] = None,
    ) -> TimelineResponse:
        """Bucketed mood/taste timeline between two dates (inclusive).

        An inactive range gives an empty ``data_points`` list, not an error.

        Raises:
            InvalidDateRangeError: Unparsable dates or start after end.
            UnknownGranularityError: Granularity not day/week/month/year.
        """
        start, end = _coerce_range(start_date, end_date)
        granularity = parse_granularity(granularity)
        filters = _coerce_filters(filters)

        params = (start.isoformat(), end.isoformat(), granularity.value, filters)

        def compute() -> TimelineResponse:
            points = self._build_points(user_id, start, end, granularity, filters)
            return TimelineResponse(
                data_points=points,
                granularity=granularity,
                start_date=start,
                end_date=end,
                total_periods=len(points),
                has_more_data=False,
            )

        return self.cache.get_or_compute(user_id, "timeline", params, compute)

    def _build_points(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        granularity: Granularity,
        filters: Optional[TimelineFilters] = None,
    ) -> list[TimelineDataPoint]:
        query = EventQuery(start=start, end=end)
        feedback = self._feedback.list_feedback(user_id, query)
        listening = self._listening.list_listening(user_id, query)
        return aggregator.build_timeline(feedback, listening, granularity, filters)

    # ------------------------------------------------------------------
    # Seasonal patterns
    # ------------------------------------------------------------------

    def get_seasonal_patterns(self, user_id: str) -> SeasonalPreferences:
        """Confident seasonal patterns; ``patterns`` is empty for sparse history."""
        return self.cache.get_or_compute(
            user_id, "seasonal", (),
            lambda: self._seasonal.detect_seasonal_preferences(user_id, self._clock()),
        )

    def get_monthly_patterns(self, user_id: str) -> SeasonalPreferences:
        """Confident patterns per calendar month."""
        return self.cache.get_or_compute(
            user_id, "monthly", (),
            lambda: self._seasonal.detect_monthly_patterns(user_id, self._clock()),
        )

    def analyze_monthly_feedback(self, user_id: str, month: int):
        if not isinstance(month, int) or not 1 <= month <= 12:
            raise InvalidInputError(f"Month must be between 1 and 12, got {month!r}")
        return self._seasonal.analyze_monthly_feedback(user_id, month)

    # ------------------------------------------------------------------
    # Comparison and playlists
    # ------------------------------------------------------------------

    def compare_taste(self, user_id: str, past_window: Any, current_window: Any) -> TasteComparison:
        """Compare taste between two windows using monthly timelines.

        Windows may be :class:`DateWindow` objects or ``(start, end)`` pairs.

        Raises:
            InvalidWindowError: A window is malformed or runs backwards.
        """
        past = _coerce_window(past_window, "past")
        current = _coerce_window(current_window, "current")

        past_points = self.get_timeline(user_id, past.start, past.end, Granularity.MONTH).data_points
        current_points = self.get_timeline(
            user_id, current.start, current.end, Granularity.MONTH
        ).data_points
        return comparator.compare_timelines(past_points, current_points)

    def regenerate_playlist(self, user_id: str, request: Any) -> RegeneratedPlaylist:
        """Nostalgia playlist from songs liked in a period.

        *request* is a :class:`PlaylistRegenerationRequest` or a dict with
        ``period_start``, ``period_end`` and optional ``blend_ratio`` /
        ``max_tracks``.
        """
        request = _coerce_playlist_request(request)
        liked = self._feedback.list_feedback(
            user_id,
            EventQuery(
                start=request.period_start,
                end=request.period_end,
                feedback_type=FeedbackType.UP,
            ),
        )
        return playlist.regenerate_playlist(liked, request)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(
        self,
        user_id: str,
        name: str,
        period_start: datetime | str,
        period_end: datetime | str,
        description: Optional[str] = None,
    ) -> TasteSnapshot:
        """Capture and persist the taste profile of a period.

        Raises:
            InvalidInputError: Blank or overlong name, overlong description.
            InvalidDateRangeError: Bad period bounds.
            EmptyPeriodError: No activity in the period; nothing is stored.
            SnapshotPersistenceError: The store failed.
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Snapshot name must not be empty")
        if len(name) > MAX_SNAPSHOT_NAME_LENGTH:
            raise InvalidInputError(
                f"Snapshot name must be at most {MAX_SNAPSHOT_NAME_LENGTH} characters"
            )
        if description is not None and len(description) > MAX_SNAPSHOT_DESCRIPTION_LENGTH:
            raise InvalidInputError(
                f"Snapshot description must be at most {MAX_SNAPSHOT_DESCRIPTION_LENGTH} characters"
            )
        start, end = _coerce_range(period_start, period_end)

        query = EventQuery(start=start, end=end)
        feedback = self._feedback.list_feedback(user_id, query)
        listening = self._listening.list_listening(user_id, query)
        points = aggregator.build_timeline(feedback, listening, Granularity.MONTH)

        return self._exporter.create_snapshot(
            user_id,
            name,
            start,
            end,
            points,
            listening_timestamps=[event.played_at for event in listening],
            description=description,
        )

    def list_snapshots(self, user_id: str) -> list[TasteSnapshot]:
        return self._snapshot_store.list_snapshots(user_id)

    def get_snapshot(self, user_id: str, snapshot_id: str) -> Optional[TasteSnapshot]:
        return self._snapshot_store.get_snapshot(user_id, snapshot_id)

    @staticmethod
    def export_snapshot(snapshot: TasteSnapshot, fmt: str) -> str:
        """Serialize a snapshot as "structured" (JSON) or "delimited" (CSV)."""
        return snapshots.export_snapshot(snapshot, fmt)

    def record_export(self, user_id: str, snapshot: TasteSnapshot, fmt: str) -> Optional[TasteSnapshot]:
        """Note that *snapshot* was exported; the profile itself is untouched."""
        record = ExportRecord(
            format=snapshots.normalize_export_format(fmt),
            exported_at=self._clock(),
            file_name=snapshots.snapshot_file_name(snapshot, fmt),
        )
        return self._snapshot_store.add_export_record(user_id, snapshot.id, record)

    # ------------------------------------------------------------------
    # Recommendation history
    # ------------------------------------------------------------------

    def get_historical_recommendations(
        self,
        user_id: str,
        start_date: datetime | str,
        end_date: datetime | str,
        limit: int = 50,
    ) -> list[HistoricalRecommendation]:
        """Past recommendation batches in a range, newest first."""
        if self._history is None:
            raise InvalidInputError("No recommendation history reader configured")
        if not isinstance(limit, int) or limit < 1:
            raise InvalidInputError(f"Limit must be a positive integer, got {limit!r}")
        start, end = _coerce_range(start_date, end_date)

        def compute() -> list[HistoricalRecommendation]:
            batches = self._history.list_recommendations(
                user_id, EventQuery(start=start, end=end, limit=limit)
            )
            return [
                HistoricalRecommendation(
                    id=batch.id,
                    generated_at=batch.generated_at,
                    songs=list(batch.songs),
                    source=batch.source,
                    mood_context=batch.mood_context,
                    accepted_count=sum(1 for s in batch.songs if s.status == "accepted"),
                    skipped_count=sum(1 for s in batch.songs if s.status == "skipped"),
                )
                for batch in batches[:limit]
            ]

        params = (start.isoformat(), end.isoformat(), limit)
        return self.cache.get_or_compute(user_id, "historical-recs", params, compute)

    # ------------------------------------------------------------------
    # Cache control
    # ------------------------------------------------------------------

    def invalidate(self, user_id: Optional[str] = None) -> None:
        """Clear one user's cached results, or all results."""
        removed = self.cache.invalidate(user_id)
        logger.info("Cleared %d cached results (user=%s).", removed, user_id or "*")

    def close(self) -> None:
        """Stop listening for feedback changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------


def _coerce_date(value: Any, label: str) -> datetime:
    # Naive values, including date-only strings, are read as UTC
    try:
        return parse_timestamp(value)
    except (ValueError, TypeError):
        raise InvalidDateRangeError(f"Invalid {label}: {value!r}") from None


def _coerce_range(start: Any, end: Any) -> tuple[datetime, datetime]:
    start_dt = _coerce_date(start, "start date")
    end_dt = _coerce_date(end, "end date")
    if start_dt > end_dt:
        raise InvalidDateRangeError(
            f"Start date {start_dt.isoformat()} is after end date {end_dt.isoformat()}"
        )
    return start_dt, end_dt


def _coerce_filters(filters: Optional[TimelineFilters]) -> Optional[TimelineFilters]:
    if filters is None:
        return None
    if not isinstance(filters, TimelineFilters):
        raise InvalidInputError(f"Expected TimelineFilters, got {type(filters).__name__}")

    rate = filters.min_acceptance_rate
    if rate is not None and not 0 <= rate <= 1:
        raise InvalidInputError(f"min_acceptance_rate must be between 0 and 1, got {rate!r}")

    # Lists are accepted for convenience but the cache key needs tuples
    normalized = TimelineFilters(
        moods=tuple(filters.moods),
        genres=tuple(filters.genres),
        artists=tuple(filters.artists),
        min_acceptance_rate=rate,
    )
    return None if normalized.is_empty() else normalized


def _coerce_window(window: Any, label: str) -> DateWindow:
    if isinstance(window, DateWindow):
        start, end = window.start, window.end
    elif isinstance(window, (tuple, list)) and len(window) == 2:
        start, end = window
    else:
        raise InvalidWindowError(f"The {label} window must be a (start, end) pair")

    try:
        start, end = _coerce_range(start, end)
    except InvalidDateRangeError as exc:
        raise InvalidWindowError(f"The {label} window is invalid: {exc}") from None
    return DateWindow(start, end)


def _coerce_playlist_request(request: Any) -> PlaylistRegenerationRequest:
    if isinstance(request, dict):
        try:
            request = PlaylistRegenerationRequest(**request)
        except TypeError as exc:
            raise InvalidInputError(f"Malformed playlist request: {exc}") from None
    if not isinstance(request, PlaylistRegenerationRequest):
        raise InvalidInputError(
            f"Expected PlaylistRegenerationRequest, got {type(request).__name__}"
        )

    start, end = _coerce_range(request.period_start, request.period_end)
    if not isinstance(request.blend_ratio, int) or not 0 <= request.blend_ratio <= 100:
        raise InvalidInputError(f"blend_ratio must be 0-100, got {request.blend_ratio!r}")
    if not isinstance(request.max_tracks, int) or not 1 <= request.max_tracks <= MAX_PLAYLIST_TRACKS:
        raise InvalidInputError(
            f"max_tracks must be 1-{MAX_PLAYLIST_TRACKS}, got {request.max_tracks!r}"
        )
    return PlaylistRegenerationRequest(
        period_start=start,
        period_end=end,
        blend_ratio=request.blend_ratio,
        max_tracks=request.max_tracks,
    )
