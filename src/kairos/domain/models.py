"""
Domain models for flashcards and their study history.

These are pure data structures with no I/O or external dependencies.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .knowledge import KnowledgeState

logger = logging.getLogger(__name__)


@dataclass
class Flashcard:
    """
    A card fetched from one source collection (a Notion database).

    Attributes:
        id: Opaque id, unique within its source collection.
        state: Usually a KnowledgeState value, but kept as a plain string
            because source data is externally supplied.
        view_count: How many times the card was opened, 0 when unknown.
        last_reviewed: Last-review date recorded on the source page, if any.
    """

    id: str
    title: str
    content: str = ""
    state: str = KnowledgeState.TOUCHED.value
    collection_id: str | None = None
    created_at: datetime | None = None
    view_count: int = 0
    last_reviewed: datetime | None = None
    notes: str = ""
    related_concepts: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSummary:
    """
    Per-card aggregate of recorded study sessions.

    A card with no summary at all is equivalent to session_count=0 and
    last_studied_at=None.
    """

    card_id: str
    session_count: int = 0
    last_studied_at: datetime | None = None
    latest_state: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "SessionSummary | None":
        """
        Build a summary from a feed row, tolerating camelCase, PascalCase
        and snake_case keys. Returns None when the row has no card id.
        """
        card_id = _first(record, "flashcardId", "FlashcardId", "card_id", "cardId")
        if card_id is None or card_id == "":
            return None

        return cls(
            card_id=str(card_id),
            session_count=_to_count(
                _first(record, "sessionCount", "SessionCount", "session_count")
            ),
            last_studied_at=parse_timestamp(
                _first(record, "lastStudiedAt", "LastStudiedAt", "last_studied_at")
            ),
            latest_state=_first(record, "latestState", "LatestState", "latest_state"),
        )


@dataclass(frozen=True)
class CollectionGroup:
    """A named group of source collections studied together."""

    id: str
    name: str
    collection_ids: tuple[str, ...] = ()


def _first(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _to_count(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a timestamp from a datetime, an ISO-8601 string or epoch seconds.

    Garbled values yield None instead of raising.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    return None
