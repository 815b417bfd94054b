from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from kairos.domain.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_STATE_PROPERTY,
    NOTION_API_URL,
    NOTION_VERSION,
    STUDY_API_URL,
)
from kairos.domain.models import CollectionGroup


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/kairos/config.toml",
        Path.home() / ".kairos.toml",
    ]


class GroupConfig(BaseModel):
    """A study group as written in the config file."""

    id: str
    name: str
    collection_ids: list[str] = Field(default_factory=list)

    def to_domain(self) -> CollectionGroup:
        return CollectionGroup(
            id=self.id, name=self.name, collection_ids=tuple(self.collection_ids)
        )


class AppConfig(BaseSettings):
    """
    Configuration model for kairos.
    Supports loading from:
    1. Config file (~/.config/kairos/config.toml or ~/.kairos.toml)
    2. Environment variables (KAIROS_*)
    3. Manual overrides (CLI / API), highest priority
    """

    model_config = SettingsConfigDict(
        env_prefix="KAIROS_",
        extra="ignore",
    )

    # Notion
    notion_token: str | None = None
    notion_api_url: str = NOTION_API_URL
    notion_version: str = NOTION_VERSION
    notion_state_property: str = DEFAULT_STATE_PROPERTY
    cache_ttl: float = DEFAULT_CACHE_TTL

    # Session history
    sessions_backend: Literal["auto", "http", "sqlite"] = "auto"
    study_api_url: str = STUDY_API_URL
    sessions_db: Path | None = None

    # Groups of collections
    groups: list[GroupConfig] = Field(default_factory=list)

    # Logging
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/kairos/logs")
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("sessions_db", mode="before")
    @classmethod
    def resolve_sessions_db(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()

    @field_validator("cache_ttl")
    @classmethod
    def check_cache_ttl(cls, v: float) -> float:
        if v < 0:
            raise ValueError("cache_ttl must be >= 0")
        return v

    @field_validator("notion_api_url", "study_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def collection_groups(self) -> list[CollectionGroup]:
        return [g.to_domain() for g in self.groups]


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/kairos/config.toml (if exists)
    3. Environment variables (KAIROS_*)
    4. cli_overrides (passed from Typer or the HTTP API); None values are ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
