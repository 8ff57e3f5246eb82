"""Slack event dispatch and filtering.

The dispatch functions run inside the request and only decide what to do;
the work runs in background tasks (process_*), each of which catches and
logs every error so one bad event cannot affect the next.
"""

import logging

from fastapi import BackgroundTasks
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from deal_relay.config import get_settings
from deal_relay.models.slack import ArchiveRequest, ReactionEvent
from deal_relay.relay.archive import (
    ARCHIVE_CANCEL_ACTION,
    ARCHIVE_CONFIRM_ACTION,
    cancel_archive,
    confirm_archive,
    request_archive,
)
from deal_relay.relay.dedupe import DedupeCache
from deal_relay.relay.files import ingest_shared_file
from deal_relay.relay.note_relay import relay_note

logger = logging.getLogger(__name__)


def _bot_user_id(payload: dict) -> str | None:
    """The bot's own user id from the Events API authorizations block."""
    authorizations = payload.get("authorizations") or []
    if authorizations:
        return authorizations[0].get("user_id")
    return None


def handle_slack_event(
    payload: dict, background_tasks: BackgroundTasks, dedupe: DedupeCache
) -> JSONResponse:
    """Dispatch a Slack event based on its type.

    - url_verification: return the challenge token
    - event_callback: process the contained event
    - anything else: acknowledge with 200
    """
    if payload.get("type") == "url_verification":
        return JSONResponse({"challenge": payload["challenge"]})

    if payload.get("type") == "event_callback":
        event = payload.get("event", {})
        bot_user_id = _bot_user_id(payload)
        event_type = event.get("type")
        if event_type == "file_shared":
            handle_file_shared_event(event, background_tasks, dedupe, bot_user_id)
        elif event_type == "message":
            handle_file_share_message(event, background_tasks, dedupe, bot_user_id)
        elif event_type == "reaction_added":
            handle_reaction_event(event, background_tasks, dedupe, bot_user_id)

    return JSONResponse({"ok": True})


def handle_file_shared_event(
    event: dict,
    background_tasks: BackgroundTasks,
    dedupe: DedupeCache,
    bot_user_id: str | None = None,
) -> None:
    """Adapter for file_shared events."""
    file_id = event.get("file_id") or (event.get("file") or {}).get("id")
    if not file_id:
        return
    channel_id = event.get("channel_id") or (event.get("item") or {}).get("channel")

    background_tasks.add_task(
        process_file_shared,
        file_id=file_id,
        channel_id=channel_id,
        dedupe=dedupe,
        bot_user_id=bot_user_id,
    )


def handle_file_share_message(
    event: dict,
    background_tasks: BackgroundTasks,
    dedupe: DedupeCache,
    bot_user_id: str | None = None,
) -> None:
    """Adapter for message events with subtype file_share (some workspaces only send these)."""
    if event.get("subtype") != "file_share":
        return
    for file in event.get("files") or []:
        if not file.get("id"):
            continue
        background_tasks.add_task(
            process_file_shared,
            file_id=file["id"],
            channel_id=event.get("channel"),
            dedupe=dedupe,
            bot_user_id=bot_user_id,
        )


def handle_reaction_event(
    event: dict,
    background_tasks: BackgroundTasks,
    dedupe: DedupeCache,
    bot_user_id: str | None = None,
) -> None:
    """Route a reaction to the note relay or the archive flow.

    Filters:
    1. Reaction on something other than a message -> skip
    2. Missing channel or ts -> skip
    3. Added by this bot -> skip
    4. Reaction in neither trigger set -> skip
    """
    settings = get_settings()
    item = event.get("item") or {}

    if item.get("type", "message") != "message":
        return

    channel_id = item.get("channel")
    ts = item.get("ts")
    user_id = event.get("user")
    if not channel_id or not ts or not user_id:
        return

    if bot_user_id and user_id == bot_user_id:
        return

    reaction = ReactionEvent(
        reaction=event.get("reaction", ""),
        channel_id=channel_id,
        message_ts=ts,
        user_id=user_id,
    )

    if reaction.reaction in settings.note_reactions:
        background_tasks.add_task(process_reaction, reaction, dedupe)
    elif reaction.reaction in settings.archive_reactions:
        background_tasks.add_task(process_archive_reaction, reaction)


def handle_interaction(payload: dict, background_tasks: BackgroundTasks) -> JSONResponse:
    """Dispatch archive button clicks; every other interaction is acknowledged and ignored."""
    if payload.get("type") != "block_actions":
        return JSONResponse({"ok": True})

    user_id = (payload.get("user") or {}).get("id")
    if not user_id:
        return JSONResponse({"ok": True})

    for action in payload.get("actions") or []:
        action_id = action.get("action_id")
        if action_id in (ARCHIVE_CONFIRM_ACTION, ARCHIVE_CANCEL_ACTION):
            background_tasks.add_task(
                process_archive_action,
                action_id=action_id,
                value=action.get("value", ""),
                user_id=user_id,
            )

    return JSONResponse({"ok": True})


async def process_file_shared(
    file_id: str,
    channel_id: str | None,
    dedupe: DedupeCache,
    bot_user_id: str | None = None,
) -> None:
    """Relay a shared file; errors are logged, never raised."""
    try:
        await ingest_shared_file(file_id, channel_id, dedupe, bot_user_id)
    except Exception as exc:
        logger.error("File relay failed for %s: %s", file_id, exc, exc_info=True)


async def process_reaction(event: ReactionEvent, dedupe: DedupeCache) -> None:
    """Relay a reacted message as a note; errors are logged, never raised."""
    try:
        outcome = await relay_note(event, dedupe)
        logger.info("Note relay for %s: %s", event.dedupe_key, outcome.value)
    except Exception as exc:
        logger.error("Note relay failed for %s: %s", event.dedupe_key, exc, exc_info=True)


async def process_archive_reaction(event: ReactionEvent) -> None:
    try:
        await request_archive(event)
    except Exception as exc:
        logger.error("Archive request failed for %s: %s", event.channel_id, exc, exc_info=True)


async def process_archive_action(action_id: str, value: str, user_id: str) -> None:
    """Resume the archive flow from a button click."""
    try:
        request = ArchiveRequest.from_value(value)
    except (ValueError, ValidationError):
        logger.warning("Ignoring archive action with malformed value: %r", value)
        return

    try:
        if action_id == ARCHIVE_CONFIRM_ACTION:
            state = await confirm_archive(request, user_id)
        else:
            state = await cancel_archive(request, user_id)
        logger.info("Archive of %s by %s: %s", request.channel_id, user_id, state.value)
    except Exception as exc:
        logger.error("Archive action failed for %s: %s", request.channel_id, exc, exc_info=True)
