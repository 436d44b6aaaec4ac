"""Taste Timeline -- Streamlit Web App.

Watch your moods, favourite artists and recommendation hit rate move
through time.
"""

from datetime import date, datetime, time, timedelta, timezone

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
import requests

from taste_timeline import config
from taste_timeline.analyzers.mood import MOOD_KEYS
from taste_timeline.analyzers.temporal import get_month_name
from taste_timeline.cache import ResultCache
from taste_timeline.collectors import HistoryApiClient
from taste_timeline.engine import TasteTimelineEngine
from taste_timeline.errors import EmptyPeriodError, TasteTimelineError
from taste_timeline.models import DateWindow, PlaylistRegenerationRequest, TimelineFilters
from taste_timeline.snapshots import snapshot_file_name
from taste_timeline.store import JsonFileStore

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Taste Timeline",
    page_icon="::musical_note::",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Secrets / config
# ---------------------------------------------------------------------------
DATA_DIR = st.secrets.get("TASTE_TIMELINE_DATA_DIR", config.DATA_DIR)
HISTORY_API_URL = st.secrets.get("HISTORY_API_URL", config.HISTORY_API_URL)
HISTORY_API_TOKEN = st.secrets.get("HISTORY_API_TOKEN", config.HISTORY_API_TOKEN)

MOOD_COLORS = {
    "energetic": "#E4572E",
    "chill": "#76B041",
    "melancholic": "#4F6D7A",
    "happy": "#FFC914",
    "romantic": "#D7263D",
    "aggressive": "#1B1B1E",
    "focused": "#2E86AB",
    "neutral": "#B8B8B8",
}


@st.cache_resource
def get_engine():
    """One engine per server process so the result cache is shared."""
    store = JsonFileStore(DATA_DIR)
    cache = ResultCache(ttl_seconds=config.CACHE_TTL_SECONDS)
    if HISTORY_API_URL:
        client = HistoryApiClient(HISTORY_API_URL, HISTORY_API_TOKEN,
                                  timeout=config.HISTORY_API_TIMEOUT_SECONDS)
        return TasteTimelineEngine(client, client, store, history_reader=client, cache=cache)
    return TasteTimelineEngine(store, store, store, history_reader=store, cache=cache)


def day_start(d):
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def day_end(d):
    return datetime.combine(d, time.max, tzinfo=timezone.utc)


engine = get_engine()

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("Taste Timeline")
    st.caption("How your music taste moves through time")

    st.divider()

    user_id = st.text_input("Listener id", value=st.session_state.get("user_id", ""))
    st.session_state.user_id = user_id

    today = date.today()
    start_day = st.date_input("From", value=today - timedelta(days=365))
    end_day = st.date_input("To", value=today)
    granularity = st.selectbox("Group by", ["week", "month", "day", "year"], index=1)

    st.subheader("Filters")
    mood_filter = st.multiselect("Moods", MOOD_KEYS)
    artist_filter = st.text_input("Artist contains")
    min_acceptance = st.slider("Minimum acceptance", 0.0, 1.0, 0.0, 0.05)

    st.divider()
    if st.button("Refresh data"):
        engine.invalidate(user_id or None)
        st.rerun()

    st.caption(
        "Moods are guessed from genre names. "
        "Treat them as a sketch, not a measurement."
    )

# ---------------------------------------------------------------------------
# Main content
# ---------------------------------------------------------------------------

if not user_id:
    st.header("Welcome to Taste Timeline")
    st.write(
        "Enter a listener id in the sidebar to see how their **moods**, "
        "**favourite artists** and **recommendation hit rate** changed over time."
    )
    col1, col2, col3 = st.columns(3)
    with col1:
        st.subheader("Timeline")
        st.write("Mood mix and top artists for every week, month or year.")
    with col2:
        st.subheader("Seasons")
        st.write("Artists you reliably love in summer, or only in winter.")
    with col3:
        st.subheader("Snapshots")
        st.write("Freeze a period of your taste and download it as JSON or CSV.")
    st.stop()

filters = TimelineFilters(
    moods=tuple(mood_filter),
    artists=(artist_filter,) if artist_filter else (),
    min_acceptance_rate=min_acceptance or None,
)

try:
    response = engine.get_timeline(user_id, day_start(start_day), day_end(end_day),
                                   granularity, filters)
except TasteTimelineError as e:
    st.error(str(e))
    st.stop()
except requests.RequestException as e:
    st.error(f"Could not reach the history service: {e}")
    st.stop()

points = response.data_points

st.header(f"Taste Timeline for {user_id}")

col1, col2, col3, col4 = st.columns(4)
col1.metric("Periods", response.total_periods)
col2.metric("Listens", sum(p.total_listens for p in points))
col3.metric("Ratings", sum(p.total_feedback for p in points))
col4.metric("Milestones", sum(1 for p in points if p.is_significant_change))

st.divider()

tab_timeline, tab_seasonal, tab_compare, tab_playlist, tab_snapshots = st.tabs([
    "Timeline",
    "Seasons",
    "Then vs Now",
    "Nostalgia Mix",
    "Snapshots",
])

with tab_timeline:
    if not points:
        st.info("No data for this period. Try a wider date range or fewer filters.")
    else:
        labels = [p.period_label for p in points]

        # Stacked mood area
        fig_moods = go.Figure()
        for mood in MOOD_KEYS:
            fig_moods.add_trace(go.Scatter(
                x=labels,
                y=[p.mood_distribution.get(mood, 0) for p in points],
                name=mood.capitalize(),
                stackgroup="moods",
                line=dict(width=0.5, color=MOOD_COLORS[mood]),
            ))
        fig_moods.update_layout(
            title="Mood Mix",
            yaxis=dict(range=[0, 1], tickformat=".0%"),
            height=400,
        )
        st.plotly_chart(fig_moods, use_container_width=True)

        # Acceptance and diversity with milestone markers
        fig_quality = go.Figure()
        fig_quality.add_trace(go.Scatter(
            x=labels, y=[p.acceptance_rate for p in points],
            name="Acceptance", mode="lines+markers", line=dict(color="#1DB954"),
        ))
        fig_quality.add_trace(go.Scatter(
            x=labels, y=[p.diversity_score for p in points],
            name="Diversity", mode="lines+markers", line=dict(color="#535353"),
        ))
        milestones = [p for p in points if p.is_significant_change]
        if milestones:
            fig_quality.add_trace(go.Scatter(
                x=[p.period_label for p in milestones],
                y=[p.acceptance_rate for p in milestones],
                name="Milestone",
                mode="markers",
                marker=dict(symbol="star", size=14, color="#E4572E"),
                text=[p.change_description for p in milestones],
                hoverinfo="text",
            ))
        fig_quality.update_layout(
            title="Acceptance and Diversity",
            yaxis=dict(range=[0, 1]),
            height=350,
        )
        st.plotly_chart(fig_quality, use_container_width=True)

        for point in milestones:
            st.info(f"**{point.period_label}**: {point.change_description}")

        # Top artists across the range
        artist_counts = {}
        for point in points:
            for item in point.top_artists:
                artist_counts[item.name] = artist_counts.get(item.name, 0) + item.count
        if artist_counts:
            top = sorted(artist_counts.items(), key=lambda kv: -kv[1])[:10]
            fig_artists = px.bar(
                x=[count for _, count in top],
                y=[name for name, _ in top],
                orientation="h",
                labels={"x": "Weighted plays", "y": "Artist"},
                title="Top Artists",
                color_discrete_sequence=["#1DB954"],
            )
            fig_artists.update_layout(yaxis=dict(autorange="reversed"), height=400)
            st.plotly_chart(fig_artists, use_container_width=True)

with tab_seasonal:
    mode = st.radio("Group by", ["Season", "Month"], horizontal=True)
    preferences = (engine.get_seasonal_patterns(user_id) if mode == "Season"
                   else engine.get_monthly_patterns(user_id))

    if not preferences.patterns:
        st.info(
            "No confident patterns yet. A season needs at least 10 ratings "
            "with a clear lean before it shows up here."
        )
    else:
        cols = st.columns(min(4, len(preferences.patterns)))
        for i, pattern in enumerate(preferences.patterns):
            title = pattern.season.capitalize()
            if pattern.month is not None:
                title = get_month_name(pattern.month)
            with cols[i % len(cols)]:
                st.metric(title, f"{pattern.confidence:.0%} confident",
                          f"{pattern.average_rating:.0%} liked")
                st.caption(f"{pattern.thumbs_up_count} up / {pattern.thumbs_down_count} down")
                for artist in pattern.preferred_artists[:5]:
                    st.write(f"- {artist}")

with tab_compare:
    st.subheader("Compare two periods")
    c1, c2 = st.columns(2)
    with c1:
        past_start = st.date_input("Past from", value=today - timedelta(days=730), key="past_start")
        past_end = st.date_input("Past to", value=today - timedelta(days=366), key="past_end")
    with c2:
        current_start = st.date_input("Current from", value=today - timedelta(days=365),
                                      key="current_start")
        current_end = st.date_input("Current to", value=today, key="current_end")

    try:
        comparison = engine.compare_taste(
            user_id,
            DateWindow(day_start(past_start), day_end(past_end)),
            DateWindow(day_start(current_start), day_end(current_end)),
        )
    except TasteTimelineError as e:
        st.error(str(e))
    else:
        changes = comparison.changes
        m1, m2 = st.columns(2)
        m1.metric("Mood", changes.mood_shift)
        m2.metric("Acceptance", f"{comparison.current.acceptance_rate:.0%}",
                  f"{changes.acceptance_rate_change:+.0%}")

        g1, g2 = st.columns(2)
        with g1:
            st.write("**New artists**")
            st.write(", ".join(changes.new_artists) or "none")
            st.write("**New genres**")
            st.write(", ".join(changes.new_genres) or "none")
        with g2:
            st.write("**Dropped artists**")
            st.write(", ".join(changes.dropped_artists) or "none")
            st.write("**Dropped genres**")
            st.write(", ".join(changes.dropped_genres) or "none")

with tab_playlist:
    st.subheader("Nostalgia Mix")
    blend = st.slider("Historical share", 0, 100, 100, 5)
    max_tracks = st.number_input("Tracks", 1, 100, 25)

    try:
        playlist = engine.regenerate_playlist(user_id, PlaylistRegenerationRequest(
            period_start=day_start(start_day),
            period_end=day_end(end_day),
            blend_ratio=blend,
            max_tracks=int(max_tracks),
        ))
    except TasteTimelineError as e:
        st.error(str(e))
    else:
        st.write(f"**{playlist.name}**: {playlist.description}")
        if not playlist.tracks:
            st.info("No liked songs in this period.")
        for i, track in enumerate(playlist.tracks, 1):
            st.write(f"{i}. {track.artist} - {track.title}  ({track.match_reason})")
        if playlist.discovery_slots:
            st.caption(f"{playlist.discovery_slots} slots left for new discoveries.")

with tab_snapshots:
    with st.form("new_snapshot"):
        name = st.text_input("Snapshot name", max_chars=100)
        description = st.text_area("Description", max_chars=500)
        submitted = st.form_submit_button("Save snapshot of the selected range")

    if submitted:
        try:
            snapshot = engine.create_snapshot(user_id, name, day_start(start_day),
                                              day_end(end_day), description or None)
            st.success(f"Saved snapshot '{snapshot.name}'")
        except EmptyPeriodError as e:
            st.info(str(e))
        except TasteTimelineError as e:
            st.error(str(e))

    snapshots = engine.list_snapshots(user_id)
    if not snapshots:
        st.caption("No snapshots yet.")

    for snapshot in snapshots:
        summary = snapshot.profile_data.summary
        with st.expander(
            f"{snapshot.name} -- {snapshot.period_start:%Y-%m-%d} to {snapshot.period_end:%Y-%m-%d}"
        ):
            s1, s2, s3 = st.columns(3)
            s1.metric("Listens", summary.total_listens)
            s2.metric("Acceptance", f"{summary.acceptance_rate:.0%}")
            s3.metric("Diversity", f"{summary.diversity_score:.2f}")

            d1, d2 = st.columns(2)
            for column, fmt, mime in (
                (d1, "structured", "application/json"),
                (d2, "delimited", "text/csv"),
            ):
                with column:
                    st.download_button(
                        f"Download {snapshot_file_name(snapshot, fmt)}",
                        engine.export_snapshot(snapshot, fmt),
                        snapshot_file_name(snapshot, fmt),
                        mime,
                        key=f"{snapshot.id}-{fmt}",
                    )
