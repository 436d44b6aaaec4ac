"""Pure primitives for calendar bucketing, mood inference and diversity."""

from .diversity import diversity_score
from .mood import (
    MOOD_KEYS,
    dominant_mood,
    empty_mood_distribution,
    infer_mood,
    normalize_moods,
)
from .temporal import (
    SEASONS,
    Granularity,
    analyze_listening_patterns,
    extract_temporal_metadata,
    format_hour_timeline,
    get_month_name,
    get_season,
    parse_granularity,
    period_bounds,
    period_label,
)

__all__ = [
    "diversity_score",
    "MOOD_KEYS",
    "dominant_mood",
    "empty_mood_distribution",
    "infer_mood",
    "normalize_moods",
    "SEASONS",
    "Granularity",
    "analyze_listening_patterns",
    "extract_temporal_metadata",
    "format_hour_timeline",
    "get_month_name",
    "get_season",
    "parse_granularity",
    "period_bounds",
    "period_label",
]
