"""
Spaced Repetition Service: Application layer orchestrator.

Fans out one fetch per source collection plus one session-summary fetch,
joins them, and hands the merged inputs to the due-set aggregator.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from kairos.application.review_order import least_viewed_first
from kairos.domain.exceptions import GroupNotFoundError
from kairos.domain.models import CollectionGroup, Flashcard, SessionSummary
from kairos.domain.ports import CardSource, SessionSummaryFeed

from .due_sets import DueSetAggregator, DueSets, index_summaries
from .notifications import DueNotification, due_today_notifications

logger = logging.getLogger(__name__)


class SpacedRepetitionService:
    """
    Application service computing review buckets for a group scope.

    Depends on the CardSource and SessionSummaryFeed ports, not on
    concrete adapters.
    """

    def __init__(
        self,
        card_source: CardSource,
        summary_feed: SessionSummaryFeed,
        groups: Sequence[CollectionGroup],
        aggregator: DueSetAggregator | None = None,
    ):
        """
        Args:
            card_source: Port fetching cards per collection.
            summary_feed: Port fetching the session-summary aggregate.
            groups: Configured groups and their collections.
            aggregator: Optional custom aggregator; uses default if not provided.
        """
        self._cards = card_source
        self._feed = summary_feed
        self._groups = list(groups)
        self._agg = aggregator or DueSetAggregator()

    @property
    def groups(self) -> list[CollectionGroup]:
        return list(self._groups)

    def groups_in_scope(self, group_id: str | None = None) -> list[CollectionGroup]:
        if group_id is None:
            return list(self._groups)
        selected = [g for g in self._groups if g.id == group_id]
        if not selected:
            raise GroupNotFoundError(group_id)
        return selected

    def collection_ids_for_scope(self, group_id: str | None = None) -> list[str]:
        """Ordered, de-duplicated collection ids for one group or all groups."""
        ids: dict[str, None] = {}
        for group in self.groups_in_scope(group_id):
            for cid in group.collection_ids:
                ids.setdefault(cid, None)
        return list(ids)

    def group_names_by_collection(self, group_id: str | None = None) -> dict[str, str]:
        names: dict[str, str] = {}
        for group in self.groups_in_scope(group_id):
            for cid in group.collection_ids:
                names.setdefault(cid, group.name)
        return names

    async def _fetch_collection(self, collection_id: str) -> list[Flashcard]:
        cards = await self._cards.fetch_cards_for_collection(collection_id)
        for card in cards:
            if card.collection_id is None:
                card.collection_id = collection_id
        return cards

    async def gather_inputs(
        self, group_id: str | None = None
    ) -> tuple[list[Flashcard], list[SessionSummary]]:
        """
        Fetch every collection in scope and the summary feed concurrently.

        A failed collection contributes no cards and a failed feed contributes
        no summaries; both are logged and the rest of the data is kept.
        """
        collection_ids = self.collection_ids_for_scope(group_id)

        results = await asyncio.gather(
            self._feed.fetch_session_summaries(group_id),
            *(self._fetch_collection(cid) for cid in collection_ids),
            return_exceptions=True,
        )
        summaries_result, card_results = results[0], results[1:]

        if isinstance(summaries_result, BaseException):
            logger.warning(f"Session summary fetch failed, treating as empty: {summaries_result}")
            summaries: list[SessionSummary] = []
        else:
            summaries = list(summaries_result)

        batches: list[list[Flashcard]] = []
        for cid, result in zip(collection_ids, card_results):
            if isinstance(result, BaseException):
                logger.warning(f"Collection {cid} fetch failed, skipping: {result}")
                continue
            batches.append(result)

        return merge_collections(batches), summaries

    async def compute(
        self, group_id: str | None = None, now: datetime | None = None
    ) -> DueSets:
        """Fetch the inputs for the scope and aggregate them as of `now`."""
        cards, summaries = await self.gather_inputs(group_id)
        now = now or datetime.now().astimezone()
        due = self._agg.compute(cards, summaries, now)
        logger.debug(f"Due sets for group={group_id}: {due.counts()}")
        return due

    async def due_today_notifications(
        self, group_id: str | None = None, now: datetime | None = None
    ) -> list[DueNotification]:
        due = await self.compute(group_id, now)
        return due_today_notifications(due, self.group_names_by_collection(group_id))

    async def review_queue(
        self, group_id: str | None = None, states: Iterable[str] | None = None
    ) -> list[Flashcard]:
        """Cards in scope for a review session, least viewed first."""
        cards, summaries = await self.gather_inputs(group_id)
        return least_viewed_first(cards, states, index_summaries(summaries))

    async def aclose(self) -> None:
        """Release adapter resources (HTTP clients) when the adapters hold any."""
        for adapter in (self._cards, self._feed):
            close = getattr(adapter, "aclose", None)
            if close is not None:
                await close()


def merge_collections(batches: Sequence[Sequence[Flashcard]]) -> list[Flashcard]:
    """
    Flatten per-collection card lists into one list.

    When the same card id shows up in several collections the last one wins
    but keeps the position of its first appearance.
    """
    merged: dict[str, Flashcard] = {}
    collisions = 0
    for batch in batches:
        for card in batch:
            if card.id in merged:
                collisions += 1
            merged[card.id] = card

    if collisions:
        logger.warning(f"{collisions} duplicate card id(s) across collections; last source wins")
    return list(merged.values())
