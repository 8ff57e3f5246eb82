"""Slack payload models with the fields the relay needs (no raw payload)."""

import json

from pydantic import BaseModel, Field, field_validator


class SlackFile(BaseModel):
    """File metadata as returned by files.info or embedded in a message."""

    id: str
    name: str = ""
    title: str = ""
    filetype: str = ""
    user: str | None = None  # Uploader
    initial_comment: str | None = None
    url_private_download: str | None = None
    channels: list[str] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)
    shares: dict = Field(default_factory=dict)  # {"public": {C..: [...]}, "private": {G..: [...]}}

    @field_validator("initial_comment", mode="before")
    @classmethod
    def _comment_text(cls, value: object) -> object:
        """Slack returns initial_comment either as a string or as {"comment": "..."}."""
        if isinstance(value, dict):
            return value.get("comment")
        return value

    @property
    def descriptor(self) -> str:
        """Attachment line used in relayed notes, e.g. ``quote.pdf (pdf)``."""
        return f"{self.name} ({self.filetype})"


class ReactionEvent(BaseModel):
    """A reaction_added event reduced to its identity fields."""

    reaction: str
    channel_id: str
    message_ts: str  # Slack message ts, e.g., "1234567890.123456"
    user_id: str

    @property
    def dedupe_key(self) -> str:
        return f"{self.channel_id}:{self.message_ts}"


class SlackMessage(BaseModel):
    """A historical channel message fetched for note relay."""

    ts: str
    user: str | None = None
    text: str = ""
    files: list[SlackFile] = Field(default_factory=list)


class ArchiveRequest(BaseModel):
    """Context carried through the archive confirmation buttons' value."""

    channel_id: str
    deal_id: str | None = None

    def to_value(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_value(cls, value: str) -> "ArchiveRequest":
        return cls.model_validate(json.loads(value))
