"""
Adapter Factory
Centralizes the logic for selecting card-source and session-feed adapters.
"""

import logging

from kairos.application.config import AppConfig
from kairos.application.scheduling.service import SpacedRepetitionService
from kairos.domain.exceptions import ConfigurationError
from kairos.domain.ports import SessionSummaryFeed
from kairos.infrastructure.adapters.notion import NotionCardSource
from kairos.infrastructure.adapters.sqlite_sessions import SqliteSessionSummaryFeed
from kairos.infrastructure.adapters.study_api import HttpSessionSummaryFeed

logger = logging.getLogger(__name__)


def get_card_source(config: AppConfig) -> NotionCardSource:
    return NotionCardSource(
        token=config.notion_token,
        api_url=config.notion_api_url,
        notion_version=config.notion_version,
        state_property=config.notion_state_property,
        cache_ttl=config.cache_ttl,
    )


def get_summary_feed(config: AppConfig) -> SessionSummaryFeed:
    """
    Returns the appropriate SessionSummaryFeed implementation based on config.
    """
    # 1. Manual selection
    if config.sessions_backend == "http":
        return HttpSessionSummaryFeed(config.study_api_url)

    if config.sessions_backend == "sqlite":
        if config.sessions_db is None:
            raise ConfigurationError("sessions_backend 'sqlite' requires sessions_db to be set")
        return SqliteSessionSummaryFeed(config.sessions_db)

    # 2. Auto selection: prefer the local database when it exists
    if config.sessions_db is not None and config.sessions_db.exists():
        logger.debug(f"Session feed: SQLite ({config.sessions_db})")
        return SqliteSessionSummaryFeed(config.sessions_db)

    logger.debug(f"Session feed: HTTP ({config.study_api_url})")
    return HttpSessionSummaryFeed(config.study_api_url)


def build_service(config: AppConfig) -> SpacedRepetitionService:
    return SpacedRepetitionService(
        card_source=get_card_source(config),
        summary_feed=get_summary_feed(config),
        groups=config.collection_groups(),
    )
