"""Pydantic views of scheduling results, shared by the CLI and the server."""

from datetime import datetime

from pydantic import BaseModel

from kairos.application.scheduling import DueNotification, DueSets, badge_label
from kairos.domain.models import Flashcard


class FlashcardOut(BaseModel):
    id: str
    title: str
    state: str
    collection_id: str | None = None
    view_count: int = 0
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, card: Flashcard) -> "FlashcardOut":
        return cls(
            id=card.id,
            title=card.title,
            state=str(getattr(card.state, "value", card.state)),
            collection_id=card.collection_id,
            view_count=card.view_count,
            created_at=card.created_at,
        )


class DueSetsOut(BaseModel):
    due_today: list[FlashcardOut]
    due_this_week: list[FlashcardOut]
    never_reviewed: list[FlashcardOut]
    at_risk: list[FlashcardOut]
    problematic: list[FlashcardOut]
    total_flashcards: int

    @classmethod
    def from_domain(cls, due: DueSets) -> "DueSetsOut":
        def cards(bucket: list[Flashcard]) -> list[FlashcardOut]:
            return [FlashcardOut.from_domain(c) for c in bucket]

        return cls(
            due_today=cards(due.due_today),
            due_this_week=cards(due.due_this_week),
            never_reviewed=cards(due.never_reviewed),
            at_risk=cards(due.at_risk),
            problematic=cards(due.problematic),
            total_flashcards=due.total_flashcards,
        )


class NotificationOut(BaseModel):
    session_id: str
    session_name: str
    group_name: str | None = None


class NotificationsOut(BaseModel):
    count: int
    badge: str
    items: list[NotificationOut]

    @classmethod
    def from_domain(cls, items: list[DueNotification]) -> "NotificationsOut":
        return cls(
            count=len(items),
            badge=badge_label(len(items)),
            items=[
                NotificationOut(
                    session_id=n.session_id,
                    session_name=n.session_name,
                    group_name=n.group_name,
                )
                for n in items
            ],
        )


class ReviewQueueOut(BaseModel):
    count: int
    items: list[FlashcardOut]

    @classmethod
    def from_domain(cls, cards: list[Flashcard]) -> "ReviewQueueOut":
        return cls(count=len(cards), items=[FlashcardOut.from_domain(c) for c in cards])
