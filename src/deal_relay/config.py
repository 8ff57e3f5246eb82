"""Application configuration via pydantic-settings."""

from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""

    # Pipedrive
    pipedrive_api_token: str = ""
    pipedrive_base_url: str = "https://api.pipedrive.com/v1"
    recent_notes_limit: int = 20

    # File relay
    dispatcher_bot_user_id: str | None = None  # Upstream system whose PDFs are skipped

    # Reaction relay
    reaction_upload_files: bool = True
    note_reactions: Annotated[list[str], NoDecode] = [
        "white_check_mark",
        "heavy_check_mark",
        "ballot_box_with_check",
    ]
    notify_on_duplicate_reaction: bool = False

    # Archive
    archive_reactions: Annotated[list[str], NoDecode] = ["v", "file_cabinet"]
    archive_allowed_user_ids: Annotated[list[str], NoDecode] = []

    # Dedupe
    dedupe_window_seconds: float = 300.0
    dedupe_max_entries: int = 10_000

    # App
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 8080

    @field_validator(
        "note_reactions", "archive_reactions", "archive_allowed_user_ids", mode="before"
    )
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Accept comma-separated strings from the environment."""
        if isinstance(value, str):
            return [item.strip().strip(":") for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings. Lazy initialization to avoid import-time errors."""
    return Settings()
