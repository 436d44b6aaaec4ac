"""Readers that fetch listening history from outside the local data file."""

from .history_client import HistoryApiClient

__all__ = ["HistoryApiClient"]
