"""Slack metadata lookups used by the relays.

Channel and file lookups propagate SlackApiError: without them there is
nothing to relay. User and permalink lookups only decorate a note, so they
degrade to a placeholder instead of failing the relay.
"""

import logging

from slack_sdk.errors import SlackApiError

from deal_relay.models.slack import SlackFile, SlackMessage
from deal_relay.slack.client import get_slack_client

logger = logging.getLogger(__name__)


async def get_channel_name(channel_id: str) -> str:
    """Return the channel's current name ("" when Slack omits it).

    Fetched fresh on every event since channels can be renamed.
    """
    client = await get_slack_client()
    response = await client.conversations_info(channel=channel_id)
    return (response.get("channel") or {}).get("name") or ""


async def get_file_info(file_id: str) -> SlackFile | None:
    """Return file metadata from files.info, or None if Slack returns no file."""
    client = await get_slack_client()
    response = await client.files_info(file=file_id)
    file = response.get("file")
    if not file:
        return None
    return SlackFile.model_validate(file)


async def fetch_message(channel_id: str, ts: str) -> SlackMessage | None:
    """Fetch the single message posted at exactly ``ts`` (inclusive history lookup)."""
    client = await get_slack_client()
    response = await client.conversations_history(
        channel=channel_id, latest=ts, inclusive=True, limit=1
    )
    messages = response.get("messages") or []
    if not messages:
        return None
    return SlackMessage.model_validate(messages[0])


async def get_user_display_name(user_id: str | None) -> str:
    """Return a user's real or display name, falling back to a raw mention."""
    if not user_id:
        return "unknown"
    try:
        client = await get_slack_client()
        response = await client.users_info(user=user_id)
    except SlackApiError:
        logger.warning("users.info failed for %s", user_id, exc_info=True)
        return f"<@{user_id}>"

    user = response.get("user") or {}
    profile = user.get("profile") or {}
    return user.get("real_name") or profile.get("display_name") or f"<@{user_id}>"


async def get_permalink(channel_id: str, ts: str) -> str | None:
    """Return the message permalink, or None if Slack cannot provide one."""
    try:
        client = await get_slack_client()
        response = await client.chat_getPermalink(channel=channel_id, message_ts=ts)
    except SlackApiError:
        logger.warning("chat.getPermalink failed for %s/%s", channel_id, ts, exc_info=True)
        return None
    return response.get("permalink")
