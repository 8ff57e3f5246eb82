"""Slack notification functions for relay outcomes.

All functions are fire-and-forget: they catch and log errors but never raise,
ensuring a failed confirmation message cannot undo or abort a CRM write that
already happened.
"""

import logging

from slack_sdk.errors import SlackApiError

from deal_relay.slack.client import get_slack_client

logger = logging.getLogger(__name__)


async def post_message(channel_id: str, text: str, thread_ts: str | None = None) -> None:
    """Post a channel message, or a thread reply when thread_ts is given.

    Args:
        channel_id: Slack channel ID.
        text: Message text (mrkdwn).
        thread_ts: Parent message timestamp for a threaded reply.
    """
    try:
        client = await get_slack_client()
        kwargs = {"channel": channel_id, "text": text}
        if thread_ts:
            kwargs["thread_ts"] = thread_ts
        await client.chat_postMessage(**kwargs)
    except SlackApiError:
        logger.warning("Failed to post message to %s", channel_id, exc_info=True)


async def post_ephemeral(
    channel_id: str, user_id: str, text: str, blocks: list[dict] | None = None
) -> None:
    """Post a message only visible to user_id.

    Args:
        channel_id: Slack channel ID.
        user_id: The only user who will see the message.
        text: Fallback text (also the full message when blocks is None).
        blocks: Optional Block Kit blocks, e.g. confirmation buttons.
    """
    try:
        client = await get_slack_client()
        kwargs = {"channel": channel_id, "user": user_id, "text": text}
        if blocks:
            kwargs["blocks"] = blocks
        await client.chat_postEphemeral(**kwargs)
    except SlackApiError:
        logger.warning(
            "Failed to post ephemeral message to %s in %s", user_id, channel_id, exc_info=True
        )


async def add_reaction(channel_id: str, timestamp: str, emoji: str) -> None:
    """Add an emoji reaction to the original message.

    Handles common non-error conditions gracefully:
    - missing_scope: bot lacks reactions:write permission
    - already_reacted: reaction already exists on the message
    - no_item_specified: message not found (deleted or invalid timestamp)

    Args:
        channel_id: Slack channel ID.
        timestamp: Original message timestamp.
        emoji: Emoji name without colons (e.g., "white_check_mark").
    """
    try:
        client = await get_slack_client()
        await client.reactions_add(
            channel=channel_id,
            name=emoji,
            timestamp=timestamp,
        )
    except SlackApiError as exc:
        error_code = exc.response.get("error", "") if exc.response else ""
        if error_code in ("missing_scope", "already_reacted", "no_item_specified"):
            logger.warning(
                "Reaction '%s' not added (%s): %s", emoji, error_code, timestamp
            )
        else:
            logger.error(
                "Failed to add reaction '%s' to %s: %s",
                emoji,
                timestamp,
                error_code,
                exc_info=True,
            )
