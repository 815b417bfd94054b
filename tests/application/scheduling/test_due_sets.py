from datetime import datetime, timedelta, timezone

import pytest

from kairos.application.scheduling.due_sets import (
    DueSetAggregator,
    DueSets,
    compute_due_sets,
    index_summaries,
)
from kairos.domain.models import SessionSummary

BUCKETS = ("due_today", "due_this_week", "never_reviewed", "at_risk", "problematic")


def ids(bucket):
    return [c.id for c in bucket]


def buckets_of(result: DueSets, card_id: str) -> set[str]:
    return {name for name in BUCKETS if card_id in ids(getattr(result, name))}


# --- Literal scenarios ---


def test_never_reviewed_touched_card(make_card, now):
    result = compute_due_sets([make_card("A", "touched")], [], now)
    assert buckets_of(result, "A") == {"never_reviewed", "due_today"}


def test_long_silent_solid_card_is_at_risk_and_due(make_card, studied, now):
    result = compute_due_sets([make_card("B", "solid")], [studied("B", 50)], now)
    assert buckets_of(result, "B") == {"at_risk", "due_today"}


def test_stuck_touched_card_not_yet_due(make_card, studied, now):
    result = compute_due_sets(
        [make_card("C", "touched")], [studied("C", 0.5, sessions=5)], now
    )
    assert "C" in ids(result.problematic)
    assert "C" not in ids(result.due_today)
    assert "C" not in ids(result.due_this_week)


def test_green_card_due_later_this_week(make_card, studied, now):
    result = compute_due_sets([make_card("D", "green")], [studied("D", 5)], now)
    assert buckets_of(result, "D") == {"due_this_week"}


def test_mastered_card_due_within_a_day_waits_in_no_due_bucket(make_card, studied, now):
    result = compute_due_sets(
        [make_card("G", "green"), make_card("S", "solid")],
        [studied("G", 6.5), studied("S", 20.2)],
        now,
    )
    # Less than a day of lead: not upcoming yet, not overdue either
    assert buckets_of(result, "G") == set()
    assert buckets_of(result, "S") == set()


def test_mastered_card_with_exactly_one_day_lead_is_upcoming(make_card, studied, now):
    result = compute_due_sets([make_card("G", "green")], [studied("G", 6)], now)
    assert buckets_of(result, "G") == {"due_this_week"}


def test_unrecognized_state_without_summary(make_card, now):
    result = compute_due_sets([make_card("E", "blue")], [], now)
    assert buckets_of(result, "E") == {"never_reviewed", "due_today"}


# --- Classification details ---


def test_touched_card_due_after_one_day(make_card, studied, now):
    result = compute_due_sets([make_card("t", "touched")], [studied("t", 1)], now)
    assert buckets_of(result, "t") == {"due_today"}


def test_solid_card_within_interval_is_in_no_bucket(make_card, studied, now):
    result = compute_due_sets([make_card("s", "solid")], [studied("s", 3)], now)
    assert buckets_of(result, "s") == set()
    assert result.total_flashcards == 1


def test_overdue_green_card_not_at_risk_until_double_interval(make_card, studied, now):
    result = compute_due_sets(
        [make_card("g1", "green"), make_card("g2", "green"), make_card("g3", "green")],
        [studied("g1", 10), studied("g2", 14), studied("g3", 14.5)],
        now,
    )
    assert buckets_of(result, "g1") == {"due_today"}
    # Strictly more than twice the interval
    assert buckets_of(result, "g2") == {"due_today"}
    assert buckets_of(result, "g3") == {"due_today", "at_risk"}


def test_problematic_threshold_is_strictly_more_than_three(make_card, studied, now):
    result = compute_due_sets(
        [make_card("p3", "touched"), make_card("p4", "touched")],
        [studied("p3", 0.2, sessions=3), studied("p4", 0.2, sessions=4)],
        now,
    )
    assert ids(result.problematic) == ["p4"]


def test_summary_without_timestamp_counts_as_never_reviewed(make_card, now):
    summaries = [SessionSummary(card_id="x", session_count=6, last_studied_at=None)]
    result = compute_due_sets([make_card("x", "touched")], summaries, now)
    assert buckets_of(result, "x") == {"problematic", "never_reviewed", "due_today"}


def test_garbled_timestamp_counts_as_never_reviewed(make_card, now):
    summaries = [SessionSummary(card_id="x", session_count=2, last_studied_at="soon")]
    result = compute_due_sets([make_card("x", "green")], summaries, now)
    assert buckets_of(result, "x") == {"never_reviewed", "due_today"}


def test_none_session_count_is_zero(make_card, now):
    summaries = [
        SessionSummary(card_id="x", session_count=None, last_studied_at=now - timedelta(hours=2))
    ]
    result = compute_due_sets([make_card("x", "touched")], summaries, now)
    assert buckets_of(result, "x") == set()


def test_null_state_uses_touched_interval_but_is_never_problematic(make_card, studied, now):
    result = compute_due_sets(
        [make_card("n", None)], [studied("n", 1.5, sessions=9)], now
    )
    assert buckets_of(result, "n") == {"due_today"}


def test_mapping_input_is_used_as_index(make_card, studied, now):
    index = {"D": studied("D", 5)}
    result = compute_due_sets([make_card("D", "green")], index, now)
    assert ids(result.due_this_week) == ["D"]


def test_naive_now_with_naive_timestamps(make_card):
    naive_now = datetime(2024, 3, 13, 15, 30)
    summaries = [SessionSummary("D", 1, naive_now - timedelta(days=5))]
    result = compute_due_sets([make_card("D", "green")], summaries, naive_now)
    assert ids(result.due_this_week) == ["D"]


def test_naive_timestamp_with_aware_now(make_card, now):
    last = (now - timedelta(days=8)).replace(tzinfo=None)
    result = compute_due_sets([make_card("g", "green")], [SessionSummary("g", 1, last)], now)
    assert ids(result.due_today) == ["g"]


def test_start_of_today_uses_now_timezone(make_card):
    tz = timezone(timedelta(hours=-5))
    local_now = datetime(2024, 3, 13, 1, 0, tzinfo=tz)
    # Next review lands two local days out: inside the week window
    summaries = [SessionSummary("g", 1, local_now - timedelta(days=5, hours=1))]
    result = compute_due_sets([make_card("g", "green")], summaries, local_now)
    assert ids(result.due_this_week) == ["g"]


# --- Invariants ---


@pytest.fixture
def mixed_pool(make_card, studied):
    states = ["touched", "green", "solid", "blue", None]
    ages = [None, 0.1, 0.5, 1, 3, 6.5, 8, 15, 22, 43, 60]
    cards, summaries = [], []
    for state in states:
        for age in ages:
            for sessions in (1, 5):
                cid = f"{state}-{age}-{sessions}"
                cards.append(make_card(cid, state))
                if age is not None:
                    summaries.append(studied(cid, age, sessions=sessions))
    return cards, summaries


def test_count_conservation(mixed_pool, now):
    cards, summaries = mixed_pool
    assert compute_due_sets(cards, summaries, now).total_flashcards == len(cards)
    assert compute_due_sets([], summaries, now).total_flashcards == 0


def test_never_reviewed_cards_are_only_due_today(mixed_pool, now):
    cards, summaries = mixed_pool
    indexed = index_summaries(summaries)
    result = compute_due_sets(cards, summaries, now)
    for card in cards:
        if card.id not in indexed:
            assert buckets_of(result, card.id) == {"never_reviewed", "due_today"}


def test_touched_cards_never_at_risk(mixed_pool, now):
    cards, summaries = mixed_pool
    result = compute_due_sets(cards, summaries, now)
    assert all(c.state != "touched" for c in result.at_risk)


def test_problematic_cards_are_all_touched(mixed_pool, now):
    cards, summaries = mixed_pool
    result = compute_due_sets(cards, summaries, now)
    assert result.problematic
    assert all(c.state == "touched" for c in result.problematic)


def test_due_today_and_this_week_are_disjoint(mixed_pool, now):
    cards, summaries = mixed_pool
    result = compute_due_sets(cards, summaries, now)
    assert not set(ids(result.due_today)) & set(ids(result.due_this_week))


def test_idempotent(mixed_pool, now):
    cards, summaries = mixed_pool
    first = compute_due_sets(cards, summaries, now)
    second = compute_due_sets(cards, summaries, now)
    for name in BUCKETS:
        assert ids(getattr(first, name)) == ids(getattr(second, name))
    assert first.total_flashcards == second.total_flashcards


def test_buckets_keep_input_order(make_card, now):
    cards = [make_card(c) for c in "zyx"]
    result = compute_due_sets(cards, [], now)
    assert ids(result.due_today) == ["z", "y", "x"]


def test_aggregator_does_not_mutate_inputs(mixed_pool, now):
    cards, summaries = mixed_pool
    before = [(c.id, c.state) for c in cards]
    DueSetAggregator().compute(cards, summaries, now)
    assert [(c.id, c.state) for c in cards] == before


# --- Index ---


def test_index_summaries_last_row_wins(now):
    older = SessionSummary("a", 1, now - timedelta(days=3))
    newer = SessionSummary("a", 2, now - timedelta(days=1))
    index = index_summaries([older, None, SessionSummary("", 9), newer])
    assert index == {"a": newer}


def test_index_summaries_accepts_none():
    assert index_summaries(None) == {}


def test_counts():
    assert DueSets(total_flashcards=3).counts() == {
        "due_today": 0,
        "due_this_week": 0,
        "never_reviewed": 0,
        "at_risk": 0,
        "problematic": 0,
        "total_flashcards": 3,
    }
