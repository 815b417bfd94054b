"""Due-today notification items and badge rendering."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from kairos.domain.constants import BADGE_CAP
from kairos.domain.models import Flashcard

from .due_sets import DueSets


@dataclass(frozen=True)
class DueNotification:
    session_id: str
    session_name: str
    group_name: str | None = None


def due_today_notifications(
    due: DueSets | Iterable[Flashcard],
    group_names: Mapping[str, str] | None = None,
) -> list[DueNotification]:
    """
    Project due-today cards into notification items.

    Args:
        due: An aggregation result or an already-extracted due-today list.
        group_names: Collection id -> owning group name, when known.
    """
    cards = due.due_today if isinstance(due, DueSets) else due
    group_names = group_names or {}
    return [
        DueNotification(
            session_id=card.id,
            session_name=card.title,
            group_name=group_names.get(card.collection_id) if card.collection_id else None,
        )
        for card in cards
    ]


def badge_label(count: int) -> str:
    """Badge text for a due count: the number itself, capped at '9+'."""
    if count > BADGE_CAP:
        return f"{BADGE_CAP}+"
    return str(max(0, count))
