"""
SQLite Session Summary Feed: Infrastructure adapter for a local study log.

Implements SessionSummaryFeed by aggregating a StudySessions table
(FlashcardId, DatabaseId, GroupId, PreviousState, NewState, StudiedAt).
The database is opened read-only; nothing here writes history.
"""

import logging
import sqlite3
from pathlib import Path

from kairos.domain.exceptions import SummaryFeedError
from kairos.domain.models import SessionSummary, parse_timestamp
from kairos.domain.ports import SessionSummaryFeed

logger = logging.getLogger(__name__)

SUMMARY_QUERY = """
    SELECT s.FlashcardId,
           COUNT(*) AS SessionCount,
           MAX(s.StudiedAt) AS LastStudiedAt,
           (SELECT l.NewState FROM StudySessions l
             WHERE l.FlashcardId = s.FlashcardId {latest_filter}
             ORDER BY l.StudiedAt DESC LIMIT 1) AS LatestState
      FROM StudySessions s
      {where}
     GROUP BY s.FlashcardId
"""


class SqliteSessionSummaryFeed(SessionSummaryFeed):
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        if not self.db_path.exists():
            raise SummaryFeedError(f"Session database not found: {self.db_path}")
        return sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)

    async def fetch_session_summaries(
        self, group_id: str | None = None
    ) -> list[SessionSummary]:
        if group_id:
            sql = SUMMARY_QUERY.format(
                latest_filter="AND l.GroupId = ?", where="WHERE s.GroupId = ?"
            )
            params: tuple = (group_id, group_id)
        else:
            sql = SUMMARY_QUERY.format(latest_filter="", where="")
            params = ()

        try:
            conn = self._connect()
            try:
                rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Session summary query failed on {self.db_path}: {e}")
            raise SummaryFeedError(f"Session summary query failed: {e}") from e

        summaries = [
            SessionSummary(
                card_id=str(card_id),
                session_count=int(count or 0),
                last_studied_at=parse_timestamp(last),
                latest_state=latest,
            )
            for card_id, count, last, latest in rows
            if card_id
        ]
        logger.debug(f"Loaded {len(summaries)} session summaries from {self.db_path}")
        return summaries
