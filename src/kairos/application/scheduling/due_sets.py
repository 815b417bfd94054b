"""
Due-set aggregation for spaced-repetition review.

This is a pure computation module with no I/O. The caller gathers cards and
session summaries and passes the current time explicitly.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from kairos.domain.constants import (
    PROBLEMATIC_SESSION_THRESHOLD,
    RISK_MULTIPLIER,
    SECONDS_PER_DAY,
    UPCOMING_MIN_LEAD_DAYS,
    WEEK_WINDOW_DAYS,
)
from kairos.domain.knowledge import KnowledgeState, interval_days_for, is_mastered
from kairos.domain.models import Flashcard, SessionSummary


@dataclass
class DueSets:
    """
    Cards partitioned into overlapping review buckets.

    A card may sit in several buckets at once (a never-reviewed card is
    always due today too). Each bucket keeps the input order.
    """

    due_today: list[Flashcard] = field(default_factory=list)
    due_this_week: list[Flashcard] = field(default_factory=list)
    never_reviewed: list[Flashcard] = field(default_factory=list)
    at_risk: list[Flashcard] = field(default_factory=list)
    problematic: list[Flashcard] = field(default_factory=list)
    total_flashcards: int = 0

    def counts(self) -> dict[str, int]:
        return {
            "due_today": len(self.due_today),
            "due_this_week": len(self.due_this_week),
            "never_reviewed": len(self.never_reviewed),
            "at_risk": len(self.at_risk),
            "problematic": len(self.problematic),
            "total_flashcards": self.total_flashcards,
        }


def index_summaries(
    summaries: Iterable[SessionSummary] | Mapping[str, SessionSummary] | None,
) -> dict[str, SessionSummary]:
    """
    Index summaries by card id for O(1) lookup.

    Rows without a card id are dropped; on duplicates the last row wins.
    """
    if summaries is None:
        return {}
    if isinstance(summaries, Mapping):
        return dict(summaries)
    return {s.card_id: s for s in summaries if s is not None and s.card_id}


def _align(ts: datetime, now: datetime) -> datetime:
    """Bring ts into now's timezone flavour so the two can be compared."""
    if now.tzinfo is None and ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    if now.tzinfo is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=now.tzinfo)
    return ts


class DueSetAggregator:
    """
    Classifies cards into due/at-risk/problematic buckets.

    Stateless and side-effect free.
    """

    def compute(
        self,
        cards: Iterable[Flashcard],
        summaries: Iterable[SessionSummary] | Mapping[str, SessionSummary] | None,
        now: datetime,
    ) -> DueSets:
        """
        Build the summary index, then classify each card in a single pass.

        Args:
            cards: Cards from every collection in scope.
            summaries: Session summaries as a list or a mapping by card id.
            now: Reference time for every due-date comparison.
        """
        index = index_summaries(summaries)

        start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end_of_week = start_of_today + timedelta(days=WEEK_WINDOW_DAYS)

        result = DueSets()
        total = 0

        for card in cards:
            total += 1
            self._classify(card, index.get(card.id), now, start_of_today, end_of_week, result)

        result.total_flashcards = total
        return result

    def _classify(
        self,
        card: Flashcard,
        session: SessionSummary | None,
        now: datetime,
        start_of_today: datetime,
        end_of_week: datetime,
        result: DueSets,
    ) -> None:
        state = getattr(card, "state", None)
        interval = interval_days_for(state)

        # Never studied
        if session is None:
            result.never_reviewed.append(card)
            result.due_today.append(card)
            return

        session_count = session.session_count or 0
        if session_count > PROBLEMATIC_SESSION_THRESHOLD and state == KnowledgeState.TOUCHED:
            result.problematic.append(card)

        last_studied = session.last_studied_at
        if not isinstance(last_studied, datetime):
            result.never_reviewed.append(card)
            result.due_today.append(card)
            return

        last_studied = _align(last_studied, now)
        days_since_last = (now - last_studied).total_seconds() / SECONDS_PER_DAY
        next_review_at = last_studied + timedelta(days=interval)

        # Both overdue checks are kept so rounding at either boundary still counts.
        if next_review_at <= start_of_today or days_since_last >= interval:
            result.due_today.append(card)
        elif (
            next_review_at <= end_of_week
            and interval - days_since_last >= UPCOMING_MIN_LEAD_DAYS
        ):
            result.due_this_week.append(card)

        if is_mastered(state) and days_since_last > interval * RISK_MULTIPLIER:
            result.at_risk.append(card)


def compute_due_sets(
    cards: Iterable[Flashcard],
    summaries: Iterable[SessionSummary] | Mapping[str, SessionSummary] | None,
    now: datetime,
) -> DueSets:
    """Partition cards into review buckets as of `now`."""
    return DueSetAggregator().compute(cards, summaries, now)
