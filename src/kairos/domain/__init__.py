# Domain Package
from .knowledge import INTERVAL_DAYS, KnowledgeState, interval_days_for, parse_state
from .models import CollectionGroup, Flashcard, SessionSummary

__all__ = [
    "INTERVAL_DAYS",
    "KnowledgeState",
    "interval_days_for",
    "parse_state",
    "CollectionGroup",
    "Flashcard",
    "SessionSummary",
]
