"""File relay: shared Slack PDFs -> Pipedrive deal files."""

import asyncio
import logging

from deal_relay.config import get_settings
from deal_relay.models.slack import SlackFile
from deal_relay.pipedrive import FileReceipt, create_file
from deal_relay.relay.deals import extract_deal_id, scope_file_name
from deal_relay.relay.dedupe import DedupeCache
from deal_relay.relay.ignore import evaluate_ignore_policy
from deal_relay.slack.files import downloaded_file
from deal_relay.slack.lookups import get_channel_name, get_file_info
from deal_relay.slack.notifier import post_message

logger = logging.getLogger(__name__)


async def relay_file(download_url: str, token: str, deal_id: str, file_name: str) -> FileReceipt:
    """Download a Slack file and attach it to a Pipedrive deal as ``file_name``.

    The temp copy is removed once the upload attempt finishes. Download and
    upload errors propagate to the caller.
    """
    async with downloaded_file(download_url, token) as path:
        content = await asyncio.to_thread(path.read_bytes)
        return await create_file(deal_id, content, file_name)


def resolve_file_channel(file: SlackFile, channel_id: str | None = None) -> str | None:
    """Pick the channel a shared file belongs to.

    The event's own channel wins; otherwise the file's channel list, group
    list, then the first key of its public or private shares.
    """
    if channel_id:
        return channel_id
    if file.channels:
        return file.channels[0]
    if file.groups:
        return file.groups[0]
    for scope in ("public", "private"):
        for shared_channel in file.shares.get(scope) or {}:
            return shared_channel
    return None


def file_dedupe_key(channel_id: str, file_id: str) -> str:
    return f"{channel_id}:file:{file_id}"


async def ingest_shared_file(
    file_id: str,
    channel_id: str | None,
    dedupe: DedupeCache,
    bot_user_id: str | None = None,
) -> FileReceipt | None:
    """Relay one shared file to the deal named by its channel.

    Shared by the file_shared and message/file_share adapters. Returns the
    receipt, or None when the file was skipped. The dedupe key stays reserved
    unless relaying raises, so a failed upload can be retried.
    """
    settings = get_settings()

    file = await get_file_info(file_id)
    if file is None:
        logger.warning("files.info returned no file for %s", file_id)
        return None

    reason = evaluate_ignore_policy(file, settings.dispatcher_bot_user_id, bot_user_id)
    if reason is not None:
        logger.info("Skipping file %s (%s): %s", file.id, reason.value, file.name)
        return None

    target = resolve_file_channel(file, channel_id)
    if target is None:
        logger.warning("No channel found for shared file %s", file.id)
        return None

    key = file_dedupe_key(target, file.id)
    if dedupe.was_recently_processed(key):
        logger.info("File %s already relayed from %s", file.id, target)
        return None
    # Reserve before the first await; both delivery paths for one upload run concurrently
    dedupe.mark_processed(key)

    try:
        return await _relay_to_deal(file, target, settings.slack_bot_token)
    except Exception:
        dedupe.discard(key)
        raise


async def _relay_to_deal(file: SlackFile, target: str, token: str) -> FileReceipt | None:
    channel_name = await get_channel_name(target)
    deal_id = extract_deal_id(channel_name)
    if deal_id is None:
        logger.info("No deal number in channel name: %s", channel_name)
        await post_message(
            target,
            f'❌ Could not find a deal number in channel name "{channel_name}". '
            'Make sure it includes "dealXX".',
        )
        return None

    if not file.url_private_download:
        logger.warning("File %s has no download URL", file.id)
        return None

    file_name = scope_file_name(channel_name)
    receipt = await relay_file(file.url_private_download, token, deal_id, file_name)

    await post_message(target, f"✅ Uploaded *{file_name}* to Pipedrive deal #{deal_id}")
    return receipt
