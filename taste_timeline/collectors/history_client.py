"""Read feedback, listening and recommendation history from a REST service."""

import logging
from typing import Optional

import requests

from taste_timeline.models import FeedbackEvent, ListeningEvent, RecommendationBatch
from taste_timeline.store import EventQuery

logger = logging.getLogger(__name__)


class HistoryApiClient:
    """HTTP implementation of the feedback, listening and history readers.

    The service exposes one collection per event kind under
    ``/users/{user_id}/``; each responds with ``{"items": [...]}`` where every
    item is the ``to_dict()`` form of the matching model. Requests are not
    retried: an HTTP error surfaces as :class:`requests.HTTPError` and the
    engine lets it propagate.
    """

    def __init__(self, base_url: str, token: str = "", timeout: float = 10.0):
        """
        Initialize the client.

        Args:
            base_url: Service root, e.g. "https://history.example.com/api"
            token: Bearer token; omitted from requests when empty
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """
        Make a GET request against the history service.

        Args:
            endpoint: Path below the base URL (e.g., "/users/u1/feedback")
            params: Query parameters

        Returns:
            JSON response data

        Raises:
            requests.HTTPError: If the service answers with an error status
        """
        url = f"{self.base_url}{endpoint}"
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug("GET %s %s", url, params)
        response = requests.get(url, headers=headers, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _query_params(query: EventQuery) -> dict:
        params = {}
        if query.start is not None:
            params["start"] = query.start.isoformat()
        if query.end is not None:
            params["end"] = query.end.isoformat()
        if query.season is not None:
            params["season"] = query.season
        if query.month is not None:
            params["month"] = query.month
        if query.feedback_type is not None:
            params["feedback_type"] = query.feedback_type.value
        if query.limit is not None:
            params["limit"] = query.limit
        return params

    def _items(self, user_id: str, collection: str, query: EventQuery) -> list[dict]:
        data = self._request(f"/users/{user_id}/{collection}", self._query_params(query))
        items = data.get("items", [])
        logger.info("Fetched %d %s records for user %s.", len(items), collection, user_id)
        return items

    def list_feedback(self, user_id: str, query: EventQuery) -> list[FeedbackEvent]:
        events = [FeedbackEvent.from_dict(item) for item in self._items(user_id, "feedback", query)]
        events.sort(key=lambda e: e.timestamp)
        return events

    def list_listening(self, user_id: str, query: EventQuery) -> list[ListeningEvent]:
        events = [ListeningEvent.from_dict(item) for item in self._items(user_id, "listening", query)]
        events.sort(key=lambda e: e.played_at)
        return events

    def list_recommendations(self, user_id: str, query: EventQuery) -> list[RecommendationBatch]:
        batches = [
            RecommendationBatch.from_dict(item)
            for item in self._items(user_id, "recommendations", query)
        ]
        batches.sort(key=lambda b: b.generated_at, reverse=True)
        return batches
