"""Data models for the deal relay."""

from deal_relay.models.slack import ArchiveRequest, ReactionEvent, SlackFile, SlackMessage

__all__ = [
    "ArchiveRequest",
    "ReactionEvent",
    "SlackFile",
    "SlackMessage",
]
