import sqlite3
from datetime import datetime

import pytest

from kairos.domain.exceptions import SummaryFeedError
from kairos.infrastructure.adapters.sqlite_sessions import SqliteSessionSummaryFeed

ROWS = [
    ("card-1", "db-a", "g1", "touched", "touched", "2024-03-01T09:00:00"),
    ("card-1", "db-a", "g1", "touched", "green", "2024-03-05T09:00:00"),
    ("card-1", "db-a", "g2", "green", "solid", "2024-03-08T09:00:00"),
    ("card-2", "db-b", "g2", "touched", "touched", "2024-03-02T18:30:00"),
]


@pytest.fixture
def sessions_db(tmp_path):
    path = tmp_path / "study.db"
    conn = sqlite3.connect(path)
    conn.execute(
        """
        CREATE TABLE StudySessions (
            FlashcardId TEXT, DatabaseId TEXT, GroupId TEXT,
            PreviousState TEXT, NewState TEXT, StudiedAt TEXT
        )
        """
    )
    conn.executemany("INSERT INTO StudySessions VALUES (?, ?, ?, ?, ?, ?)", ROWS)
    conn.commit()
    conn.close()
    return path


@pytest.mark.asyncio
async def test_aggregates_all_groups(sessions_db):
    feed = SqliteSessionSummaryFeed(sessions_db)
    summaries = {s.card_id: s for s in await feed.fetch_session_summaries()}

    assert summaries["card-1"].session_count == 3
    assert summaries["card-1"].last_studied_at == datetime(2024, 3, 8, 9, 0)
    assert summaries["card-1"].latest_state == "solid"
    assert summaries["card-2"].session_count == 1


@pytest.mark.asyncio
async def test_filters_by_group(sessions_db):
    feed = SqliteSessionSummaryFeed(sessions_db)
    summaries = await feed.fetch_session_summaries("g1")

    assert len(summaries) == 1
    only = summaries[0]
    assert only.card_id == "card-1"
    assert only.session_count == 2
    assert only.last_studied_at == datetime(2024, 3, 5, 9, 0)
    assert only.latest_state == "green"


@pytest.mark.asyncio
async def test_missing_database(tmp_path):
    feed = SqliteSessionSummaryFeed(tmp_path / "nope.db")
    with pytest.raises(SummaryFeedError):
        await feed.fetch_session_summaries()


@pytest.mark.asyncio
async def test_missing_table(tmp_path):
    path = tmp_path / "empty.db"
    sqlite3.connect(path).close()
    feed = SqliteSessionSummaryFeed(path)
    with pytest.raises(SummaryFeedError):
        await feed.fetch_session_summaries()
