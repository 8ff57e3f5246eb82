"""Two-step channel archiving triggered by a reaction.

A qualifying reaction only asks the reacting user (privately) to confirm.
The archive happens when they press the confirm button; the button value
carries the ArchiveRequest so no server-side session is kept between the
prompt and the click.
"""

import logging
from enum import Enum

from slack_sdk.errors import SlackApiError

from deal_relay.config import get_settings
from deal_relay.models.slack import ArchiveRequest, ReactionEvent
from deal_relay.pipedrive import create_note
from deal_relay.relay.deals import extract_deal_id
from deal_relay.slack.client import get_slack_client
from deal_relay.slack.lookups import get_channel_name, get_user_display_name
from deal_relay.slack.notifier import post_ephemeral, post_message

logger = logging.getLogger(__name__)

ARCHIVE_CONFIRM_ACTION = "archive_confirm"
ARCHIVE_CANCEL_ACTION = "archive_cancel"

DENIED_TEXT = "🚫 You are not allowed to archive channels."


class ArchiveState(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    DENIED = "denied"
    FAILED = "failed"


def is_archive_allowed(user_id: str) -> bool:
    """An empty allow-list lets everyone archive."""
    allowed = get_settings().archive_allowed_user_ids
    return not allowed or user_id in allowed


def build_confirmation_blocks(channel_name: str, request: ArchiveRequest) -> list[dict]:
    """Block Kit prompt with confirm/cancel buttons carrying the request."""
    value = request.to_value()
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"Archive *#{channel_name}*? It will be hidden for every member.",
            },
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "action_id": ARCHIVE_CONFIRM_ACTION,
                    "style": "danger",
                    "text": {"type": "plain_text", "text": "Archive"},
                    "value": value,
                },
                {
                    "type": "button",
                    "action_id": ARCHIVE_CANCEL_ACTION,
                    "text": {"type": "plain_text", "text": "Cancel"},
                    "value": value,
                },
            ],
        },
    ]


async def request_archive(event: ReactionEvent) -> ArchiveState:
    """Ask the reacting user to confirm archiving the channel."""
    if not is_archive_allowed(event.user_id):
        logger.info("Archive denied for %s in %s", event.user_id, event.channel_id)
        await post_ephemeral(event.channel_id, event.user_id, DENIED_TEXT)
        return ArchiveState.DENIED

    channel_name = await get_channel_name(event.channel_id)
    request = ArchiveRequest(channel_id=event.channel_id, deal_id=extract_deal_id(channel_name))
    await post_ephemeral(
        event.channel_id,
        event.user_id,
        f"Archive #{channel_name}?",
        blocks=build_confirmation_blocks(channel_name, request),
    )
    return ArchiveState.REQUESTED


async def confirm_archive(request: ArchiveRequest, user_id: str) -> ArchiveState:
    """Archive the channel and, for deal channels, note it on the deal.

    The Pipedrive note is best-effort: the archive is never rolled back.
    """
    channel_id = request.channel_id
    if not is_archive_allowed(user_id):
        await post_ephemeral(channel_id, user_id, DENIED_TEXT)
        return ArchiveState.DENIED

    try:
        channel_name = await get_channel_name(channel_id) or channel_id
    except SlackApiError as exc:
        logger.warning("Could not look up %s before archiving: %s", channel_id, exc)
        channel_name = channel_id
    await post_message(channel_id, f"🗄️ Archiving this channel at the request of <@{user_id}>.")

    try:
        client = await get_slack_client()
        await client.conversations_archive(channel=channel_id)
    except SlackApiError as exc:
        error_code = exc.response.get("error", "") if exc.response else ""
        logger.error("Failed to archive %s: %s", channel_id, error_code, exc_info=True)
        await post_ephemeral(
            channel_id, user_id, f"⚠️ Could not archive this channel: {error_code or exc}"
        )
        return ArchiveState.FAILED

    logger.info("Archived %s (#%s) for %s", channel_id, channel_name, user_id)

    if request.deal_id:
        actor_name = await get_user_display_name(user_id)
        result = await create_note(
            request.deal_id, f"Slack channel #{channel_name} archived by {actor_name}."
        )
        if not result.success:
            logger.warning(
                "Archive note for deal %s not created: %s", request.deal_id, result.error
            )

    return ArchiveState.CONFIRMED


async def cancel_archive(request: ArchiveRequest, user_id: str) -> ArchiveState:
    await post_ephemeral(request.channel_id, user_id, "👍 Archive cancelled.")
    return ArchiveState.CANCELLED
