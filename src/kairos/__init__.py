"""kairos: spaced-repetition scheduling for Notion flashcard collections."""

from kairos.consts import VERSION

__version__ = VERSION
