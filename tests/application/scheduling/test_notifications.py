import pytest

from kairos.application.scheduling.due_sets import DueSets
from kairos.application.scheduling.notifications import (
    DueNotification,
    badge_label,
    due_today_notifications,
)


def test_notifications_from_due_sets(make_card):
    due = DueSets(
        due_today=[
            make_card("1", title="Mitosis", collection_id="db-a"),
            make_card("2", title="Meiosis", collection_id="db-x"),
            make_card("3", title="Loose"),
        ],
        due_this_week=[make_card("4")],
        total_flashcards=4,
    )

    items = due_today_notifications(due, {"db-a": "Biology"})

    assert items == [
        DueNotification("1", "Mitosis", "Biology"),
        DueNotification("2", "Meiosis", None),
        DueNotification("3", "Loose", None),
    ]


def test_notifications_from_plain_card_list(make_card):
    items = due_today_notifications([make_card("1", title="A")])
    assert items == [DueNotification("1", "A")]


@pytest.mark.parametrize(
    "count, label",
    [(0, "0"), (1, "1"), (9, "9"), (10, "9+"), (250, "9+")],
)
def test_badge_label(count, label):
    assert badge_label(count) == label
