"""Tests for the in-memory and JSON file stores."""

import json
from datetime import datetime, timezone

from taste_timeline.models import (
    ExportRecord,
    FeedbackType,
    ListeningEvent,
    ProfileSummary,
    RecommendationBatch,
    RecommendedSong,
    TasteProfileExport,
    TasteSnapshot,
    TopItem,
    new_feedback_event,
)
from taste_timeline.store import EventQuery, InMemoryStore, JsonFileStore


def _utc(month, day, hour=12):
    return datetime(2024, month, day, hour, tzinfo=timezone.utc)


def _make_snapshot(snapshot_id="s1", user_id="u1", captured=(9, 1)):
    return TasteSnapshot(
        id=snapshot_id,
        user_id=user_id,
        name="Summer",
        captured_at=_utc(*captured),
        period_start=_utc(6, 1),
        period_end=_utc(8, 31),
        profile_data=TasteProfileExport(
            summary=ProfileSummary(3, 2, 1, 1, 0.5, 0.0),
            mood_distribution={"chill": 1.0},
            top_genres=[TopItem("downtempo", 1, 100.0)],
            top_artists=[TopItem("Bonobo", 3, 100.0)],
            top_tracks=[],
        ),
    )


def _make_batch(batch_id, when, statuses=("accepted", "skipped")):
    return RecommendationBatch(
        id=batch_id,
        user_id="u1",
        generated_at=when,
        songs=[RecommendedSong("Artist", f"Song {i}", status) for i, status in enumerate(statuses)],
        source="daily-mix",
        mood_context="chill",
    )


class TestEventQuery:
    def test_bounds_are_inclusive(self):
        query = EventQuery(start=_utc(6, 1), end=_utc(6, 30))
        assert query.includes(_utc(6, 1))
        assert query.includes(_utc(6, 30))
        assert not query.includes(_utc(7, 1))

    def test_open_bounds(self):
        assert EventQuery().includes(_utc(1, 1))

    def test_naive_times_compare_as_utc(self):
        aware = EventQuery(start=_utc(6, 1), end=_utc(6, 30))
        assert aware.includes(datetime(2024, 6, 1, 12))
        assert not aware.includes(datetime(2024, 6, 1, 11))

        naive = EventQuery(start=datetime(2024, 6, 1), end=datetime(2024, 6, 30))
        assert naive.includes(_utc(6, 15))
        assert not naive.includes(_utc(7, 1))


class TestInMemoryStore:
    def test_feedback_filters(self):
        store = InMemoryStore()
        store.add_feedback(
            new_feedback_event("u1", "A - One", "up", _utc(10, 2)),
            new_feedback_event("u1", "A - Two", "down", _utc(7, 2)),
            new_feedback_event("u2", "B - One", "up", _utc(10, 3)),
        )

        assert len(store.list_feedback("u1", EventQuery())) == 2
        assert [e.song.title for e in store.list_feedback("u1", EventQuery(season="fall"))] == ["One"]
        assert [e.song.title for e in store.list_feedback("u1", EventQuery(month=7))] == ["Two"]
        ups = store.list_feedback("u1", EventQuery(feedback_type=FeedbackType.UP))
        assert [e.song.title for e in ups] == ["One"]

    def test_feedback_sorted_oldest_first(self):
        store = InMemoryStore()
        store.add_feedback(
            new_feedback_event("u1", "A - Late", "up", _utc(10, 2)),
            new_feedback_event("u1", "A - Early", "up", _utc(3, 2)),
        )
        assert [e.song.title for e in store.list_feedback("u1", EventQuery())] == ["Early", "Late"]

    def test_listening_range(self):
        store = InMemoryStore()
        store.add_listening(
            ListeningEvent("u1", "A", "One", _utc(5, 31)),
            ListeningEvent("u1", "A", "Two", _utc(6, 15)),
        )
        events = store.list_listening("u1", EventQuery(start=_utc(6, 1), end=_utc(6, 30)))
        assert [e.title for e in events] == ["Two"]

    def test_recommendations_newest_first_with_limit(self):
        store = InMemoryStore()
        store.add_recommendations(
            _make_batch("old", _utc(1, 1)),
            _make_batch("new", _utc(3, 1)),
            _make_batch("mid", _utc(2, 1)),
        )
        batches = store.list_recommendations("u1", EventQuery(limit=2))
        assert [b.id for b in batches] == ["new", "mid"]

    def test_snapshots_are_copied(self):
        store = InMemoryStore()
        snapshot = _make_snapshot()
        stored = store.insert_snapshot(snapshot)

        stored.profile_data.top_artists.clear()
        snapshot.name = "Changed"
        assert store.get_snapshot("u1", "s1").profile_data.top_artists[0].name == "Bonobo"
        assert store.get_snapshot("u1", "s1").name == "Summer"

    def test_snapshots_scoped_to_user(self):
        store = InMemoryStore()
        store.insert_snapshot(_make_snapshot())
        assert store.get_snapshot("u2", "s1") is None
        assert store.list_snapshots("u2") == []

    def test_snapshots_newest_first(self):
        store = InMemoryStore()
        store.insert_snapshot(_make_snapshot("older", captured=(9, 1)))
        store.insert_snapshot(_make_snapshot("newer", captured=(10, 1)))
        assert [s.id for s in store.list_snapshots("u1")] == ["newer", "older"]

    def test_export_record_keeps_profile(self):
        store = InMemoryStore()
        store.insert_snapshot(_make_snapshot())
        updated = store.add_export_record("u1", "s1", ExportRecord("csv", _utc(9, 2), "summer.csv"))

        assert [r.format for r in updated.export_formats] == ["csv"]
        assert updated.profile_data == _make_snapshot().profile_data

    def test_export_record_unknown_snapshot(self):
        store = InMemoryStore()
        assert store.add_export_record("u1", "missing", ExportRecord("csv", _utc(9, 2))) is None


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.add_feedback(new_feedback_event("u1", "A - One", "up", _utc(10, 2)))
        store.add_listening(ListeningEvent("u1", "A", "One", _utc(10, 2), "jazz"))
        store.add_recommendations(_make_batch("b1", _utc(10, 3)))
        store.insert_snapshot(_make_snapshot())

        reloaded = JsonFileStore(tmp_path)
        feedback = reloaded.list_feedback("u1", EventQuery())
        assert feedback[0].song.artist == "A"
        assert feedback[0].season == "fall"
        assert reloaded.list_listening("u1", EventQuery())[0].genre == "jazz"
        assert reloaded.list_recommendations("u1", EventQuery())[0].songs[1].status == "skipped"
        assert reloaded.get_snapshot("u1", "s1") == _make_snapshot()

    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested")
        assert store.list_feedback("u1", EventQuery()) == []
        assert not store.path.exists()

    def test_document_layout(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.add_feedback(new_feedback_event("u1", "A - One", "up", _utc(10, 2)))

        data = json.loads((tmp_path / JsonFileStore.FILE_NAME).read_text(encoding="utf-8"))
        assert set(data) == {"feedback", "listening", "recommendations", "snapshots"}
        assert data["feedback"][0]["song_artist_title"] == "A - One"
        assert data["feedback"][0]["feedback_type"] == "up"
