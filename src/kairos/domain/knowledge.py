"""
Knowledge states and their fixed review intervals.

These are pure data structures with no I/O or external dependencies.
States are self-assessed by the learner, so any state may move to any
other state; nothing here validates transitions.
"""

import unicodedata
from enum import Enum
from types import MappingProxyType


class KnowledgeState(str, Enum):
    """Coarse mastery tiers, ordered from least to most mastered."""

    TOUCHED = "touched"
    GREEN = "green"
    SOLID = "solid"


INTERVAL_DAYS = MappingProxyType(
    {
        KnowledgeState.TOUCHED: 1,
        KnowledgeState.GREEN: 7,
        KnowledgeState.SOLID: 21,
    }
)

MASTERED_STATES = frozenset({KnowledgeState.GREEN, KnowledgeState.SOLID})

# Labels found in Notion select options, English and Spanish.
_LABEL_ALIASES = {
    "touched": KnowledgeState.TOUCHED,
    "tocado": KnowledgeState.TOUCHED,
    "green": KnowledgeState.GREEN,
    "verde": KnowledgeState.GREEN,
    "solid": KnowledgeState.SOLID,
    "solido": KnowledgeState.SOLID,
}

_DISPLAY_LABELS = {
    KnowledgeState.TOUCHED: "Tocado",
    KnowledgeState.GREEN: "Verde",
    KnowledgeState.SOLID: "Sólido",
}


def _fold(label: str) -> str:
    # "Sólido " -> "solido"
    decomposed = unicodedata.normalize("NFKD", label)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).strip().lower()


def interval_days_for(state: str | None) -> int:
    """
    Review interval in days for a knowledge state.

    Anything unrecognized (including None) gets the touched interval,
    since card data comes from an external source and may be malformed.
    """
    try:
        return INTERVAL_DAYS[KnowledgeState(state)]
    except ValueError:
        return INTERVAL_DAYS[KnowledgeState.TOUCHED]


def parse_state(label: str | None) -> KnowledgeState:
    """Map an external label (e.g. a Notion select option) to a KnowledgeState."""
    if not label:
        return KnowledgeState.TOUCHED
    return _LABEL_ALIASES.get(_fold(label), KnowledgeState.TOUCHED)


def is_mastered(state: str | None) -> bool:
    try:
        return KnowledgeState(state) in MASTERED_STATES
    except ValueError:
        return False


def state_label(state: KnowledgeState | str) -> str:
    """Display label written back to Notion for a state."""
    return _DISPLAY_LABELS[parse_state(state)]
