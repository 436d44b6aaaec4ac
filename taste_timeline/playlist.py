"""Historical Playlist Regenerator - Rebuild a nostalgia mix from past likes."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from taste_timeline.analyzers.temporal import Granularity, period_label
from taste_timeline.models import (
    FeedbackEvent,
    PlaylistRegenerationRequest,
    RegeneratedPlaylist,
    RegeneratedTrack,
)

logger = logging.getLogger(__name__)

# Likes for one artist at which match_score reaches 1.0
_FULL_MATCH_LIKES = 5


def playlist_period_label(request: PlaylistRegenerationRequest) -> str:
    start_label = period_label(request.period_start, Granularity.MONTH)
    end_label = period_label(request.period_end, Granularity.MONTH)
    if start_label == end_label:
        return start_label
    return f"{start_label} - {end_label}"


def regenerate_playlist(
    liked: Iterable[FeedbackEvent], request: PlaylistRegenerationRequest
) -> RegeneratedPlaylist:
    """
    Fill the historical share of a playlist with songs liked in a period.

    Only library songs the listener already liked are used; the
    ``discovery_slots`` left over are for the caller to fill.

    Args:
        liked: Thumbs-up feedback inside the period, in any order
        request: Period, blend ratio (0-100) and playlist length

    Returns:
        RegeneratedPlaylist with at most floor(max_tracks * blend_ratio / 100)
        historical tracks, most recently liked first
    """
    liked = sorted(liked, key=lambda e: e.timestamp, reverse=True)
    likes_per_artist = Counter(event.song.artist for event in liked)

    unique_songs = []
    seen = set()
    for event in liked:
        if event.song not in seen:
            seen.add(event.song)
            unique_songs.append(event.song)

    historical_slots = request.max_tracks * request.blend_ratio // 100
    reason = f"Liked during {period_label(request.period_start, Granularity.MONTH)}"

    tracks = [
        RegeneratedTrack(
            artist=song.artist,
            title=song.title,
            match_score=min(1.0, likes_per_artist[song.artist] / _FULL_MATCH_LIKES),
            match_reason=reason,
        )
        for song in unique_songs[:historical_slots]
    ]

    label = playlist_period_label(request)
    logger.info(
        "Regenerated %s playlist with %d/%d historical tracks.",
        label, len(tracks), historical_slots,
    )
    return RegeneratedPlaylist(
        name=f"{label} Nostalgia Mix",
        description=f"Revisit your favorites from {label}",
        tracks=tracks,
        period_label=label,
        blend_ratio=request.blend_ratio,
        historical_slots=historical_slots,
        discovery_slots=request.max_tracks - len(tracks),
    )
