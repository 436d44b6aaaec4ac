"""Taste Timeline - How a listener's music taste moves through time."""

from .engine import TasteTimelineEngine
from .errors import (
    EmptyPeriodError,
    InvalidDateRangeError,
    InvalidInputError,
    InvalidWindowError,
    SnapshotPersistenceError,
    TasteTimelineError,
    UnknownGranularityError,
)
from .notifications import FeedbackChangeNotifier
from .store import EventQuery, InMemoryStore, JsonFileStore

__version__ = "0.1.0"

__all__ = [
    "TasteTimelineEngine",
    "FeedbackChangeNotifier",
    "EventQuery",
    "InMemoryStore",
    "JsonFileStore",
    "TasteTimelineError",
    "InvalidInputError",
    "InvalidDateRangeError",
    "UnknownGranularityError",
    "InvalidWindowError",
    "EmptyPeriodError",
    "SnapshotPersistenceError",
]
