"""Note relay: a check-mark reaction copies the message into a Pipedrive deal note.

Steps run strictly in order and stop at the first that fails:
deal id from channel name -> dedupe cache -> fetch message -> names and
permalink -> attachments -> compose -> recent-notes permalink check -> create.
The dedupe key is only recorded after Pipedrive accepts the note, so a
failed relay can be retried by reacting again.
"""

import asyncio
import logging
from enum import Enum

import httpx

from deal_relay.config import get_settings
from deal_relay.models.slack import ReactionEvent, SlackFile
from deal_relay.pipedrive import PipedriveError, create_note, list_notes
from deal_relay.relay.deals import extract_deal_id
from deal_relay.relay.dedupe import DedupeCache
from deal_relay.relay.files import relay_file
from deal_relay.relay.ignore import evaluate_ignore_policy
from deal_relay.relay.notes import build_note
from deal_relay.slack.files import SlackDownloadError
from deal_relay.slack.lookups import (
    fetch_message,
    get_channel_name,
    get_permalink,
    get_user_display_name,
)
from deal_relay.slack.notifier import add_reaction, post_message

logger = logging.getLogger(__name__)

SENT_REACTION = "white_check_mark"


class RelayOutcome(str, Enum):
    SENT = "sent"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    SKIPPED = "skipped"  # Reacted message could not be fetched


async def _relay_attachments(files: list[SlackFile], deal_id: str, token: str) -> None:
    """Upload each relayable attachment; one failure does not stop the others or the note."""
    settings = get_settings()
    for file in files:
        reason = evaluate_ignore_policy(file, settings.dispatcher_bot_user_id)
        if reason is not None or not file.url_private_download:
            logger.info("Not uploading attachment %s (%s)", file.name, reason or "no url")
            continue
        try:
            await relay_file(file.url_private_download, token, deal_id, file.name)
        except (httpx.HTTPError, SlackDownloadError, PipedriveError, OSError) as exc:
            logger.warning("Failed to upload attachment %s: %s", file.name, exc)


async def _already_noted(deal_id: str, permalink: str, limit: int) -> bool:
    """True if one of the deal's recent notes already links to this message."""
    try:
        notes = await list_notes(deal_id, limit=limit, start=0)
    except (httpx.HTTPError, PipedriveError) as exc:
        logger.warning("Could not list recent notes for deal %s: %s", deal_id, exc)
        return False
    return any(permalink in (note.get("content") or "") for note in notes)


async def relay_note(event: ReactionEvent, dedupe: DedupeCache) -> RelayOutcome:
    """Relay the reacted message to the deal named by its channel.

    Returns the outcome; Pipedrive failures are reported in-thread, not raised.
    """
    settings = get_settings()
    channel_id, ts = event.channel_id, event.message_ts

    channel_name = await get_channel_name(channel_id)
    deal_id = extract_deal_id(channel_name)
    if deal_id is None:
        await post_message(channel_id, "⚠️ Channel name must include “deal123”.", thread_ts=ts)
        return RelayOutcome.FAILED

    if dedupe.was_recently_processed(event.dedupe_key):
        logger.info("Note for %s sent recently, skipping", event.dedupe_key)
        if settings.notify_on_duplicate_reaction:
            await post_message(
                channel_id, f"ℹ️ Already sent to Pipedrive deal *{deal_id}*.", thread_ts=ts
            )
        return RelayOutcome.DUPLICATE

    message = await fetch_message(channel_id, ts)
    if message is None or message.ts != ts:
        logger.info("Reacted message %s not found in %s", ts, channel_id)
        return RelayOutcome.SKIPPED

    author_name, reactor_name, permalink = await asyncio.gather(
        get_user_display_name(message.user),
        get_user_display_name(event.user_id),
        get_permalink(channel_id, ts),
    )

    attachments = [file.descriptor for file in message.files]
    if message.files and settings.reaction_upload_files:
        await _relay_attachments(message.files, deal_id, settings.slack_bot_token)

    content = build_note(
        channel_name=channel_name,
        reactor_name=reactor_name,
        author_name=author_name,
        ts=ts,
        permalink=permalink,
        text=message.text,
        attachments=attachments,
    )

    if permalink and await _already_noted(deal_id, permalink, settings.recent_notes_limit):
        await post_message(channel_id, "ℹ️ Already added to Pipedrive.", thread_ts=ts)
        return RelayOutcome.DUPLICATE

    result = await create_note(deal_id, content)
    if not result.success:
        logger.warning("Pipedrive rejected note for deal %s: %s", deal_id, result.error)
        await post_message(
            channel_id,
            f"⚠️ Failed to send to Pipedrive: {result.error or 'unknown error'}",
            thread_ts=ts,
        )
        return RelayOutcome.FAILED

    dedupe.mark_processed(event.dedupe_key)
    await add_reaction(channel_id, ts, SENT_REACTION)
    await post_message(channel_id, f"✅ Sent to Pipedrive deal *{deal_id}*.", thread_ts=ts)
    logger.info("Relayed note %s to Pipedrive deal %s", event.dedupe_key, deal_id)
    return RelayOutcome.SENT
