"""Ordering of cards for a review session: least seen first."""

from collections.abc import Iterable, Mapping
from datetime import datetime

from kairos.domain.models import Flashcard, SessionSummary


def _last_reviewed(
    card: Flashcard, summaries: Mapping[str, SessionSummary] | None
) -> datetime | None:
    if summaries is not None:
        session = summaries.get(card.id)
        return session.last_studied_at if session else None
    return card.last_reviewed


def _value(state: object) -> object:
    # KnowledgeState members compare by their string value
    return getattr(state, "value", state)


def _timestamp(value: datetime) -> float:
    # Naive values are taken as local time, like datetime.timestamp() does.
    return value.timestamp()


def least_viewed_first(
    cards: Iterable[Flashcard],
    states: Iterable[str] | None = None,
    summaries: Mapping[str, SessionSummary] | None = None,
) -> list[Flashcard]:
    """
    Filter cards by state and order them for review.

    Ascending view count; ties go to the card reviewed longest ago, with
    never-reviewed cards first.

    Args:
        cards: Candidate cards.
        states: Keep only cards in these states; all cards when None.
        summaries: Session summaries by card id. When given, the last-review
            time comes from here instead of the card itself.
    """
    wanted = {_value(s) for s in states} if states is not None else None
    selected = [c for c in cards if wanted is None or _value(c.state) in wanted]

    def key(card: Flashcard) -> tuple[int, int, float]:
        last = _last_reviewed(card, summaries)
        if last is None:
            return (card.view_count, 0, 0.0)
        return (card.view_count, 1, _timestamp(last))

    return sorted(selected, key=key)
