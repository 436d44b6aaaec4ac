"""Collaborator interfaces for event readers and the snapshot store.

The engine only talks to these protocols. Two local implementations live
here: :class:`InMemoryStore` for tests and embedding, and
:class:`JsonFileStore`, which keeps everything in one JSON document under a
data directory.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from taste_timeline.models import (
    ExportRecord,
    FeedbackEvent,
    FeedbackType,
    ListeningEvent,
    RecommendationBatch,
    TasteSnapshot,
    ensure_utc,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventQuery:
    """Selection criteria for reader calls. Date bounds are inclusive."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    season: Optional[str] = None
    month: Optional[int] = None
    feedback_type: Optional[FeedbackType] = None
    limit: Optional[int] = None

    def includes(self, ts: datetime) -> bool:
        ts = ensure_utc(ts)
        if self.start is not None and ts < ensure_utc(self.start):
            return False
        if self.end is not None and ts > ensure_utc(self.end):
            return False
        return True


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class FeedbackReader(Protocol):
    def list_feedback(self, user_id: str, query: EventQuery) -> list[FeedbackEvent]:
        """Feedback for one user, oldest first."""


class ListeningReader(Protocol):
    def list_listening(self, user_id: str, query: EventQuery) -> list[ListeningEvent]:
        """Listening events for one user, oldest first."""


class RecommendationHistoryReader(Protocol):
    def list_recommendations(self, user_id: str, query: EventQuery) -> list[RecommendationBatch]:
        """Recommendation batches for one user, newest first."""


class SnapshotStore(Protocol):
    def insert_snapshot(self, snapshot: TasteSnapshot) -> TasteSnapshot:
        """Persist a snapshot and return the stored record."""

    def list_snapshots(self, user_id: str) -> list[TasteSnapshot]:
        """Snapshots for one user, newest capture first."""

    def get_snapshot(self, user_id: str, snapshot_id: str) -> Optional[TasteSnapshot]:
        """A single snapshot, or None."""

    def add_export_record(
        self, user_id: str, snapshot_id: str, record: ExportRecord
    ) -> Optional[TasteSnapshot]:
        """Append to a snapshot's export history without touching its profile."""


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryStore:
    """Thread-safe store implementing every reader and the snapshot store.

    Snapshots are deep-copied on the way in and out so a caller mutating a
    returned object cannot alter the stored record.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._feedback: list[FeedbackEvent] = []
        self._listening: list[ListeningEvent] = []
        self._recommendations: list[RecommendationBatch] = []
        self._snapshots: dict[str, TasteSnapshot] = {}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_feedback(self, *events: FeedbackEvent) -> None:
        with self._lock:
            self._feedback.extend(events)

    def add_listening(self, *events: ListeningEvent) -> None:
        with self._lock:
            self._listening.extend(events)

    def add_recommendations(self, *batches: RecommendationBatch) -> None:
        with self._lock:
            self._recommendations.extend(batches)

    def insert_snapshot(self, snapshot: TasteSnapshot) -> TasteSnapshot:
        with self._lock:
            self._snapshots[snapshot.id] = copy.deepcopy(snapshot)
            return copy.deepcopy(snapshot)

    def add_export_record(
        self, user_id: str, snapshot_id: str, record: ExportRecord
    ) -> Optional[TasteSnapshot]:
        with self._lock:
            stored = self._snapshots.get(snapshot_id)
            if stored is None or stored.user_id != user_id:
                return None
            stored.export_formats.append(copy.deepcopy(record))
            return copy.deepcopy(stored)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_feedback(self, user_id: str, query: EventQuery) -> list[FeedbackEvent]:
        with self._lock:
            events = [
                e for e in self._feedback
                if e.user_id == user_id
                and query.includes(e.timestamp)
                and (query.season is None or e.season == query.season)
                and (query.month is None or e.month == query.month)
                and (query.feedback_type is None or e.feedback_type == query.feedback_type)
            ]
        events.sort(key=lambda e: e.timestamp)
        return events[:query.limit] if query.limit is not None else events

    def list_listening(self, user_id: str, query: EventQuery) -> list[ListeningEvent]:
        with self._lock:
            events = [
                e for e in self._listening
                if e.user_id == user_id and query.includes(e.played_at)
            ]
        events.sort(key=lambda e: e.played_at)
        return events[:query.limit] if query.limit is not None else events

    def list_recommendations(self, user_id: str, query: EventQuery) -> list[RecommendationBatch]:
        with self._lock:
            batches = [
                b for b in self._recommendations
                if b.user_id == user_id and query.includes(b.generated_at)
            ]
        batches.sort(key=lambda b: b.generated_at, reverse=True)
        return batches[:query.limit] if query.limit is not None else batches

    def list_snapshots(self, user_id: str) -> list[TasteSnapshot]:
        with self._lock:
            snapshots = [copy.deepcopy(s) for s in self._snapshots.values() if s.user_id == user_id]
        snapshots.sort(key=lambda s: s.captured_at, reverse=True)
        return snapshots

    def get_snapshot(self, user_id: str, snapshot_id: str) -> Optional[TasteSnapshot]:
        with self._lock:
            stored = self._snapshots.get(snapshot_id)
            if stored is None or stored.user_id != user_id:
                return None
            return copy.deepcopy(stored)


# ---------------------------------------------------------------------------
# JSON file implementation
# ---------------------------------------------------------------------------


class JsonFileStore(InMemoryStore):
    """An :class:`InMemoryStore` backed by ``<data_dir>/taste_timeline.json``.

    The document is loaded once on construction and rewritten after every
    mutation. Missing files start an empty store.

    Args:
        data_dir: Directory holding the JSON document.
    """

    FILE_NAME = "taste_timeline.json"

    def __init__(self, data_dir: str | Path) -> None:
        super().__init__()
        self.path = Path(data_dir) / self.FILE_NAME
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.info("No data file at %s; starting empty.", self.path)
            return

        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        self._feedback = [FeedbackEvent.from_dict(d) for d in data.get("feedback", [])]
        self._listening = [ListeningEvent.from_dict(d) for d in data.get("listening", [])]
        self._recommendations = [
            RecommendationBatch.from_dict(d) for d in data.get("recommendations", [])
        ]
        self._snapshots = {
            d["id"]: TasteSnapshot.from_dict(d) for d in data.get("snapshots", [])
        }
        logger.info(
            "Loaded %d feedback, %d listening events and %d snapshots from %s.",
            len(self._feedback), len(self._listening), len(self._snapshots), self.path,
        )

    def _save(self) -> None:
        with self._lock:
            data = {
                "feedback": [e.to_dict() for e in self._feedback],
                "listening": [e.to_dict() for e in self._listening],
                "recommendations": [b.to_dict() for b in self._recommendations],
                "snapshots": [s.to_dict() for s in self._snapshots.values()],
            }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def add_feedback(self, *events: FeedbackEvent) -> None:
        super().add_feedback(*events)
        self._save()

    def add_listening(self, *events: ListeningEvent) -> None:
        super().add_listening(*events)
        self._save()

    def add_recommendations(self, *batches: RecommendationBatch) -> None:
        super().add_recommendations(*batches)
        self._save()

    def insert_snapshot(self, snapshot: TasteSnapshot) -> TasteSnapshot:
        stored = super().insert_snapshot(snapshot)
        self._save()
        return stored

    def add_export_record(
        self, user_id: str, snapshot_id: str, record: ExportRecord
    ) -> Optional[TasteSnapshot]:
        updated = super().add_export_record(user_id, snapshot_id, record)
        if updated is not None:
            self._save()
        return updated
