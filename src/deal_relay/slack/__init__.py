"""Slack ingress and egress: webhook handling, lookups, downloads, and notifications."""

from deal_relay.slack.client import get_slack_client, reset_client
from deal_relay.slack.notifier import add_reaction, post_ephemeral, post_message

__all__ = [
    "add_reaction",
    "get_slack_client",
    "post_ephemeral",
    "post_message",
    "reset_client",
]
