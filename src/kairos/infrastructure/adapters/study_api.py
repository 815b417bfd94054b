"""
HTTP Session Summary Feed: Infrastructure adapter for the study-tracking API.

Implements SessionSummaryFeed with one batch call per scope.
"""

import logging
from typing import Any

import httpx

from kairos.domain.constants import REQUEST_TIMEOUT, STUDY_API_URL
from kairos.domain.exceptions import SummaryFeedError
from kairos.domain.models import SessionSummary
from kairos.domain.ports import SessionSummaryFeed

logger = logging.getLogger(__name__)


class HttpSessionSummaryFeed(SessionSummaryFeed):
    """Reads per-card session summaries from `GET /flashcard-sessions/summary`."""

    def __init__(self, base_url: str = STUDY_API_URL, client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        try:
            resp = await self._client.get(f"{self.base_url}{path}", params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Session summary request failed: {e}")
            raise SummaryFeedError(f"Session summary request failed: {e}") from e
        except ValueError as e:
            raise SummaryFeedError(f"Session summary response is not JSON: {e}") from e

    async def fetch_session_summaries(
        self, group_id: str | None = None
    ) -> list[SessionSummary]:
        params = {"groupId": group_id} if group_id else {}
        data = await self._get("/flashcard-sessions/summary", params)

        if not isinstance(data, list):
            raise SummaryFeedError(f"Expected a list of summaries, got {type(data).__name__}")

        summaries = []
        for row in data:
            summary = SessionSummary.from_record(row) if isinstance(row, dict) else None
            if summary is None:
                logger.debug(f"Skipping summary row without card id: {row!r}")
                continue
            summaries.append(summary)
        return summaries

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
