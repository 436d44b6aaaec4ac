"""
Change Detector - Flag periods whose taste differs from the previous period.

Each rule is independent; every rule that fires adds one sentence to the
description.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from taste_timeline.analyzers.mood import dominant_mood
from taste_timeline.models import TimelineDataPoint

ACCEPTANCE_RATE_THRESHOLD = 0.20
DIVERSITY_THRESHOLD = 0.15


@dataclass(frozen=True)
class ChangeResult:
    is_significant: bool
    description: str


def detect_change(
    current: TimelineDataPoint, previous: Optional[TimelineDataPoint]
) -> ChangeResult:
    """
    Compare a period with its predecessor.

    Args:
        current: The period being evaluated
        previous: The preceding period, or None for the first period

    Returns:
        ChangeResult; never significant without a previous period
    """
    if previous is None:
        return ChangeResult(False, "")

    changes = []

    acceptance_delta = current.acceptance_rate - previous.acceptance_rate
    if abs(acceptance_delta) > ACCEPTANCE_RATE_THRESHOLD:
        if acceptance_delta > 0:
            changes.append("Recommendation quality improved significantly")
        else:
            changes.append("Recommendation quality decreased")

    current_mood = dominant_mood(current.mood_distribution)
    previous_mood = dominant_mood(previous.mood_distribution)
    if current_mood != previous_mood:
        changes.append(f"Mood shifted from {previous_mood} to {current_mood}")

    current_top = current.top_artists[0].name if current.top_artists else ""
    previous_top = previous.top_artists[0].name if previous.top_artists else ""
    if current_top and current_top != previous_top:
        changes.append(f"New favorite artist: {current_top}")

    diversity_delta = current.diversity_score - previous.diversity_score
    if abs(diversity_delta) > DIVERSITY_THRESHOLD:
        if diversity_delta > 0:
            changes.append("Music taste expanding")
        else:
            changes.append("Focusing on specific artists/genres")

    return ChangeResult(bool(changes), ". ".join(changes))
