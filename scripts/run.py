"""Taste Timeline -- CLI entry point."""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

import requests

from taste_timeline import config
from taste_timeline.cache import ResultCache
from taste_timeline.collectors import HistoryApiClient
from taste_timeline.engine import TasteTimelineEngine
from taste_timeline.errors import EmptyPeriodError, TasteTimelineError
from taste_timeline.models import (
    ListeningEvent,
    RecommendationBatch,
    TimelineFilters,
    new_feedback_event,
    parse_timestamp,
)
from taste_timeline.notifications import FeedbackChangeNotifier
from taste_timeline.reporter import (
    NO_DATA_MESSAGE,
    format_comparison,
    format_listening_patterns,
    format_playlist,
    format_seasonal,
    generate_report,
)
from taste_timeline.snapshots import snapshot_file_name
from taste_timeline.store import JsonFileStore

notifier = FeedbackChangeNotifier()


def open_store(args):
    return JsonFileStore(args.data_dir)


def build_engine(store):
    """Wire the engine to the local store, or to the history service when configured."""
    cache = ResultCache(ttl_seconds=config.CACHE_TTL_SECONDS)

    if config.HISTORY_API_URL:
        client = HistoryApiClient(
            config.HISTORY_API_URL,
            config.HISTORY_API_TOKEN,
            timeout=config.HISTORY_API_TIMEOUT_SECONDS,
        )
        print(f"Reading history from {config.HISTORY_API_URL}")
        return TasteTimelineEngine(client, client, store, history_reader=client,
                                   cache=cache, notifier=notifier)

    return TasteTimelineEngine(store, store, store, history_reader=store,
                               cache=cache, notifier=notifier)


def _split(value):
    return tuple(v.strip() for v in value.split(",") if v.strip()) if value else ()


def cmd_load(args):
    """Import feedback, listening and recommendation events from a JSON file."""
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: {path} not found.")
        sys.exit(1)

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    store = open_store(args)
    feedback = [
        new_feedback_event(
            d["user_id"], d["song_artist_title"], d["feedback_type"],
            parse_timestamp(d["timestamp"]),
        )
        for d in data.get("feedback", [])
    ]
    listening = [ListeningEvent.from_dict(d) for d in data.get("listening", [])]
    batches = [RecommendationBatch.from_dict(d) for d in data.get("recommendations", [])]

    store.add_feedback(*feedback)
    store.add_listening(*listening)
    store.add_recommendations(*batches)
    for user_id in sorted({e.user_id for e in feedback}):
        notifier.publish(user_id)

    print(f"Loaded {len(feedback)} ratings, {len(listening)} listens and "
          f"{len(batches)} recommendation batches into {store.path}")


def cmd_rate(args):
    """Record a single thumbs up/down."""
    store = open_store(args)
    event = new_feedback_event(args.user, args.song, args.feedback, datetime.now(timezone.utc))
    store.add_feedback(event)
    notifier.publish(args.user)
    print(f"Recorded thumbs {event.feedback_type.value} for {event.song} ({event.season})")


def cmd_timeline(args):
    """Print (or write) the timeline report."""
    engine = build_engine(open_store(args))
    filters = TimelineFilters(
        moods=_split(args.moods),
        genres=_split(args.genres),
        artists=_split(args.artists),
        min_acceptance_rate=args.min_acceptance,
    )
    response = engine.get_timeline(args.user, args.start, args.end, args.granularity, filters)

    if not response.data_points:
        print(NO_DATA_MESSAGE)
        return

    print(f"{response.total_periods} {response.granularity.value} period(s) found.")
    report = generate_report(response, output_path=args.out)
    if not args.out:
        print()
        print(report)


def cmd_seasonal(args):
    engine = build_engine(open_store(args))
    print(format_seasonal(engine.get_seasonal_patterns(args.user)))


def cmd_monthly(args):
    engine = build_engine(open_store(args))
    print(format_seasonal(engine.get_monthly_patterns(args.user)))


def cmd_compare(args):
    """Compare two windows, e.g. last year vs this year."""
    engine = build_engine(open_store(args))
    comparison = engine.compare_taste(
        args.user,
        (args.past_start, args.past_end),
        (args.current_start, args.current_end),
    )
    print(format_comparison(comparison))


def cmd_playlist(args):
    engine = build_engine(open_store(args))
    playlist = engine.regenerate_playlist(
        args.user,
        {
            "period_start": args.start,
            "period_end": args.end,
            "blend_ratio": args.blend,
            "max_tracks": args.max_tracks,
        },
    )
    print(format_playlist(playlist))


def cmd_snapshot(args):
    """Capture a named snapshot of a period."""
    engine = build_engine(open_store(args))
    try:
        snapshot = engine.create_snapshot(
            args.user, args.name, args.start, args.end, description=args.description
        )
    except EmptyPeriodError as exc:
        print(f"No data: {exc}")
        return

    summary = snapshot.profile_data.summary
    print(f"Saved snapshot '{snapshot.name}' ({snapshot.id})")
    print(f"  Listens: {summary.total_listens}, ratings: {summary.total_feedback}")
    print(f"  Acceptance: {summary.acceptance_rate:.0%}, diversity: {summary.diversity_score:.2f}")
    patterns = format_listening_patterns(snapshot.profile_data.listening_patterns)
    if patterns:
        print()
        print(patterns)


def cmd_snapshots(args):
    engine = build_engine(open_store(args))
    snapshots = engine.list_snapshots(args.user)
    if not snapshots:
        print("No snapshots yet. Create one with 'snapshot'.")
        return

    for snapshot in snapshots:
        print(
            f"{snapshot.id}  {snapshot.captured_at:%Y-%m-%d}  {snapshot.name}  "
            f"({snapshot.period_start:%Y-%m-%d} to {snapshot.period_end:%Y-%m-%d})"
        )


def cmd_export(args):
    """Write a snapshot to disk as JSON or CSV."""
    engine = build_engine(open_store(args))
    snapshot = engine.get_snapshot(args.user, args.snapshot_id)
    if snapshot is None:
        print(f"ERROR: Snapshot {args.snapshot_id} not found.")
        sys.exit(1)

    text = engine.export_snapshot(snapshot, args.format)
    output = Path(args.out_dir) / snapshot_file_name(snapshot, args.format)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    engine.record_export(args.user, snapshot, args.format)
    print(f"Snapshot exported to {output}")


def cmd_history(args):
    engine = build_engine(open_store(args))
    batches = engine.get_historical_recommendations(args.user, args.start, args.end, args.limit)
    if not batches:
        print("No recommendations in this period.")
        return

    for batch in batches:
        mood = f", mood {batch.mood_context}" if batch.mood_context else ""
        print(
            f"{batch.generated_at:%Y-%m-%d %H:%M}  {batch.source}{mood}: "
            f"{len(batch.songs)} songs, {batch.accepted_count} accepted, "
            f"{batch.skipped_count} skipped"
        )


COMMANDS = {
    "load": cmd_load,
    "rate": cmd_rate,
    "timeline": cmd_timeline,
    "seasonal": cmd_seasonal,
    "monthly": cmd_monthly,
    "compare": cmd_compare,
    "playlist": cmd_playlist,
    "snapshot": cmd_snapshot,
    "snapshots": cmd_snapshots,
    "export": cmd_export,
    "history": cmd_history,
}


def main():
    parser = argparse.ArgumentParser(
        description="Taste Timeline -- See how your music taste moves through time"
    )
    parser.add_argument("--data-dir", default=config.DATA_DIR, help="Local data directory")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def user_command(name, help_text):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--user", required=True, help="Listener id")
        return sub

    def add_range(sub):
        sub.add_argument("--start", required=True, help="Start date (ISO-8601)")
        sub.add_argument("--end", required=True, help="End date (ISO-8601)")

    # load
    load_p = subparsers.add_parser("load", help="Import events from a JSON file")
    load_p.add_argument("file", help="JSON with feedback/listening/recommendations lists")

    # rate
    rate_p = user_command("rate", help_text="Record a thumbs up or down")
    rate_p.add_argument("song", help='"Artist - Title"')
    rate_p.add_argument("feedback", choices=["up", "down"])

    # timeline
    timeline_p = user_command("timeline", "Mood and taste timeline")
    add_range(timeline_p)
    timeline_p.add_argument("--granularity", default="week",
                            help="day, week, month or year")
    timeline_p.add_argument("--moods", help="Comma-separated moods to keep")
    timeline_p.add_argument("--genres", help="Comma-separated genres to keep")
    timeline_p.add_argument("--artists", help="Comma-separated artists to keep")
    timeline_p.add_argument("--min-acceptance", type=float, help="Minimum acceptance rate (0-1)")
    timeline_p.add_argument("--out", help="Write the Markdown report here")

    # seasonal / monthly
    user_command("seasonal", "Confident seasonal preferences")
    user_command("monthly", "Confident monthly preferences")

    # compare
    compare_p = user_command("compare", "Compare two date windows")
    compare_p.add_argument("--past-start", required=True)
    compare_p.add_argument("--past-end", required=True)
    compare_p.add_argument("--current-start", required=True)
    compare_p.add_argument("--current-end", required=True)

    # playlist
    playlist_p = user_command("playlist", "Rebuild a playlist from a past period")
    add_range(playlist_p)
    playlist_p.add_argument("--blend", type=int, default=100, help="Historical share, 0-100")
    playlist_p.add_argument("--max-tracks", type=int, default=25)

    # snapshot
    snapshot_p = user_command("snapshot", "Save a snapshot of a period")
    add_range(snapshot_p)
    snapshot_p.add_argument("--name", required=True)
    snapshot_p.add_argument("--description")

    # snapshots
    user_command("snapshots", "List saved snapshots")

    # export
    export_p = user_command("export", "Export a snapshot")
    export_p.add_argument("snapshot_id")
    export_p.add_argument("--format", default="structured",
                          help="structured (JSON) or delimited (CSV)")
    export_p.add_argument("--out-dir", default=config.EXPORT_DIR)

    # history
    history_p = user_command("history", "Past recommendation batches")
    add_range(history_p)
    history_p.add_argument("--limit", type=int, default=50)

    args = parser.parse_args()

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except TasteTimelineError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    except requests.RequestException as exc:
        print(f"ERROR: History service request failed: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
