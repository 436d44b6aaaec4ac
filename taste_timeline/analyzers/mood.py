"""
Mood Inference Heuristic - Map free-text genres to one of eight moods.

Classification is a fixed, ordered list of keyword patterns; the first
matching group wins. Reordering the groups changes historical output.
"""

import re


MOOD_KEYS = [
    "chill",
    "energetic",
    "melancholic",
    "happy",
    "focused",
    "romantic",
    "aggressive",
    "neutral",
]

_MOOD_PATTERNS = [
    ("chill", re.compile(
        r"ambient|chill|lofi|lo-fi|downtempo|trip-hop|new age|meditation|spa",
        re.IGNORECASE)),
    ("energetic", re.compile(
        r"dance|edm|electronic|house|techno|trance|drum and bass|dnb|dubstep|party|club|rave",
        re.IGNORECASE)),
    ("melancholic", re.compile(
        r"blues|sad|melanchol|emo|gothic|darkwave|doom",
        re.IGNORECASE)),
    ("happy", re.compile(
        r"pop|disco|funk|soul|motown|ska|reggae|happy|sunshine|summer",
        re.IGNORECASE)),
    ("focused", re.compile(
        r"classical|instrumental|piano|acoustic|study|concentration|jazz|bossa",
        re.IGNORECASE)),
    ("romantic", re.compile(
        r"r&b|rnb|slow jam|love|ballad|romantic|smooth",
        re.IGNORECASE)),
    ("aggressive", re.compile(
        r"metal|hardcore|punk|thrash|death|black metal|grindcore|industrial|hard rock",
        re.IGNORECASE)),
]


def infer_mood(genre: str) -> str:
    """
    Classify a genre string into a mood key.

    Args:
        genre: Free-text genre, e.g. "Deep House" or "lo-fi hip hop"

    Returns:
        One of MOOD_KEYS; "neutral" when nothing matches
    """
    if not genre:
        return "neutral"

    for mood, pattern in _MOOD_PATTERNS:
        if pattern.search(genre):
            return mood

    return "neutral"


def empty_mood_distribution() -> dict[str, float]:
    """All eight moods at zero, in canonical order."""
    return {mood: 0.0 for mood in MOOD_KEYS}


def normalize_moods(counts: dict) -> dict[str, float]:
    """
    Scale mood counts so they sum to 1.

    Unknown keys are ignored. A distribution with no weight stays all-zero.
    """
    distribution = empty_mood_distribution()
    total = sum(counts.get(mood, 0) for mood in MOOD_KEYS)
    if total <= 0:
        return distribution

    for mood in MOOD_KEYS:
        distribution[mood] = counts.get(mood, 0) / total
    return distribution


def dominant_mood(distribution: dict) -> str:
    """Mood with the highest weight; ties go to the earlier key, all-zero is neutral."""
    best = "neutral"
    best_value = 0.0
    for mood in MOOD_KEYS:
        value = distribution.get(mood, 0.0)
        if value > best_value:
            best, best_value = mood, value
    return best
