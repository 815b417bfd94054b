from datetime import datetime, timedelta, timezone

import pytest

from kairos.domain.models import Flashcard, SessionSummary


@pytest.fixture
def now():
    """A fixed, timezone-aware reference time (mid-afternoon)."""
    return datetime(2024, 3, 13, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_card():
    def _make(card_id, state="touched", **kwargs):
        return Flashcard(id=card_id, title=kwargs.pop("title", f"Card {card_id}"), state=state, **kwargs)

    return _make


@pytest.fixture
def studied(now):
    """Summary for a card last studied `days_ago` days before `now`."""

    def _make(card_id, days_ago, sessions=1, latest_state=None):
        return SessionSummary(
            card_id=card_id,
            session_count=sessions,
            last_studied_at=now - timedelta(days=days_ago),
            latest_state=latest_state,
        )

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and environment from the real user
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "KAIROS_NOTION_TOKEN",
        "KAIROS_SESSIONS_BACKEND",
        "KAIROS_SESSIONS_DB",
        "KAIROS_STUDY_API_URL",
        "KAIROS_CACHE_TTL",
        "KAIROS_GROUPS",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
