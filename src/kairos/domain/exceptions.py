"""Errors raised at the boundaries of kairos."""


class KairosError(Exception):
    """Base class for kairos errors."""


class CardSourceError(KairosError):
    """A source collection could not be fetched or updated."""

    def __init__(self, message: str, collection_id: str | None = None):
        super().__init__(message)
        self.collection_id = collection_id


class SummaryFeedError(KairosError):
    """The session-summary feed is unreachable or returned malformed data."""


class StatePropertyMissingError(KairosError):
    """The Notion page has no property to store the knowledge state in."""

    def __init__(self, card_id: str, property_name: str):
        super().__init__(
            f"Page {card_id} has no '{property_name}' property. Add a Select "
            f"property named '{property_name}' with options Tocado, Verde, Sólido."
        )
        self.card_id = card_id
        self.property_name = property_name


class GroupNotFoundError(KairosError):
    """No configured group has the requested id."""

    def __init__(self, group_id: str):
        super().__init__(f"Unknown group: {group_id}")
        self.group_id = group_id


class ConfigurationError(KairosError):
    """The resolved configuration cannot build the requested adapters."""
