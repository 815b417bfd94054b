"""
Ports (interfaces) for fetching cards and study history.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Flashcard, SessionSummary


class CardSource(ABC):
    """
    Port for fetching card records from the document database.

    Implementations:
        - NotionCardSource: Queries Notion databases over the REST API.
    """

    @abstractmethod
    async def fetch_cards_for_collection(self, collection_id: str) -> list[Flashcard]:
        """
        Fetch every card of one source collection.

        Raises:
            CardSourceError: On a transient fetch failure.
        """
        pass


class SessionSummaryFeed(ABC):
    """
    Port for the read-only per-card study-session aggregate.

    Implementations:
        - HttpSessionSummaryFeed: Study-tracking API summary endpoint.
        - SqliteSessionSummaryFeed: Aggregates a local StudySessions table.
    """

    @abstractmethod
    async def fetch_session_summaries(
        self, group_id: str | None = None
    ) -> list[SessionSummary]:
        """
        Fetch summaries for every studied card in scope.

        A card with no entry has never been studied; that is not an error.

        Raises:
            SummaryFeedError: When the feed cannot be read.
        """
        pass
