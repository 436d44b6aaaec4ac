"""Diversity Scorer - normalized Shannon entropy over artist counts."""

import math
from typing import Mapping


def diversity_score(counts: Mapping[str, float]) -> float:
    """
    Calculate how evenly listening is spread across artists.

    Entropy is normalized by log2 of the number of distinct keys, so a
    perfectly even spread scores 1.0 regardless of how many artists there
    are. Keys with non-positive counts (net-negative feedback) carry no
    probability mass and are ignored.

    Args:
        counts: Map of artist name to play/feedback weight

    Returns:
        Score in [0, 1]; 0 for an empty or single-artist map
    """
    positive = [count for count in counts.values() if count > 0]
    if len(positive) < 2:
        return 0.0

    total = sum(positive)
    entropy = 0.0
    for count in positive:
        p = count / total
        entropy -= p * math.log2(p)

    max_entropy = math.log2(len(positive))
    return max(0.0, min(1.0, entropy / max_entropy))
