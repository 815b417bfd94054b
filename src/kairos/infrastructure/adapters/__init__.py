# Infrastructure Adapters Package
from .notion import NotionCardSource
from .sqlite_sessions import SqliteSessionSummaryFeed
from .study_api import HttpSessionSummaryFeed

__all__ = ["NotionCardSource", "HttpSessionSummaryFeed", "SqliteSessionSummaryFeed"]
