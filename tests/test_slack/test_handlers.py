"""Tests for Slack event dispatch, filtering, and the background task wrappers."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

from deal_relay.config import Settings
from deal_relay.models.slack import ArchiveRequest, ReactionEvent
from deal_relay.relay.archive import ArchiveState
from deal_relay.relay.dedupe import DedupeCache
from deal_relay.relay.note_relay import RelayOutcome
from deal_relay.slack.handlers import (
    handle_interaction,
    handle_reaction_event,
    handle_slack_event,
    process_archive_action,
    process_archive_reaction,
    process_file_shared,
    process_reaction,
)

CHANNEL = "C0DEAL57"
TS = "1234567890.123456"

_PATCH_PREFIX = "deal_relay.slack.handlers"


def _settings() -> Settings:
    return Settings(_env_file=None)


def _callback(event: dict, bot_user_id: str | None = "U_BOT") -> dict:
    payload = {"type": "event_callback", "event": event}
    if bot_user_id:
        payload["authorizations"] = [{"user_id": bot_user_id, "is_bot": True}]
    return payload


def _reaction(**overrides) -> dict:
    base = {
        "type": "reaction_added",
        "user": "U_ALICE",
        "reaction": "white_check_mark",
        "item": {"type": "message", "channel": CHANNEL, "ts": TS},
    }
    base.update(overrides)
    return base


# -- handle_slack_event --


def test_url_verification_returns_challenge():
    response = handle_slack_event({"type": "url_verification", "challenge": "abc"}, MagicMock(), DedupeCache())
    assert json.loads(response.body) == {"challenge": "abc"}


def test_unknown_payload_acknowledged():
    bg = MagicMock()
    response = handle_slack_event({"type": "app_rate_limited"}, bg, DedupeCache())
    assert json.loads(response.body) == {"ok": True}
    bg.add_task.assert_not_called()


def test_file_shared_dispatched():
    bg = MagicMock()
    dedupe = DedupeCache()
    event = {"type": "file_shared", "file_id": "F1", "channel_id": CHANNEL, "user_id": "U1"}

    handle_slack_event(_callback(event), bg, dedupe)

    bg.add_task.assert_called_once_with(
        process_file_shared, file_id="F1", channel_id=CHANNEL, dedupe=dedupe, bot_user_id="U_BOT"
    )


def test_file_shared_channel_from_item():
    bg = MagicMock()
    event = {"type": "file_shared", "file_id": "F1", "item": {"channel": "C_ITEM"}}

    handle_slack_event(_callback(event), bg, DedupeCache())

    assert bg.add_task.call_args.kwargs["channel_id"] == "C_ITEM"


def test_file_shared_without_channel_still_dispatched():
    """The file's own channel metadata is consulted later."""
    bg = MagicMock()
    handle_slack_event(_callback({"type": "file_shared", "file_id": "F1"}), bg, DedupeCache())
    assert bg.add_task.call_args.kwargs["channel_id"] is None


def test_file_shared_without_file_id_ignored():
    bg = MagicMock()
    handle_slack_event(_callback({"type": "file_shared", "channel_id": CHANNEL}), bg, DedupeCache())
    bg.add_task.assert_not_called()


def test_file_share_message_dispatches_each_file():
    bg = MagicMock()
    event = {
        "type": "message",
        "subtype": "file_share",
        "channel": CHANNEL,
        "files": [{"id": "F1"}, {"id": "F2"}, {"name": "no-id"}],
    }

    handle_slack_event(_callback(event), bg, DedupeCache())

    assert bg.add_task.call_count == 2
    file_ids = [c.kwargs["file_id"] for c in bg.add_task.call_args_list]
    assert file_ids == ["F1", "F2"]
    assert all(c.args[0] is process_file_shared for c in bg.add_task.call_args_list)


def test_plain_message_ignored():
    bg = MagicMock()
    event = {"type": "message", "channel": CHANNEL, "text": "hello", "ts": TS}
    handle_slack_event(_callback(event), bg, DedupeCache())
    bg.add_task.assert_not_called()


# -- handle_reaction_event --


@patch(f"{_PATCH_PREFIX}.get_settings", _settings)
def test_note_reaction_dispatched():
    bg = MagicMock()
    dedupe = DedupeCache()

    handle_reaction_event(_reaction(), bg, dedupe, "U_BOT")

    func, event, passed_dedupe = bg.add_task.call_args.args
    assert func is process_reaction
    assert event == ReactionEvent(
        reaction="white_check_mark", channel_id=CHANNEL, message_ts=TS, user_id="U_ALICE"
    )
    assert passed_dedupe is dedupe


@patch(f"{_PATCH_PREFIX}.get_settings", _settings)
def test_archive_reaction_dispatched():
    bg = MagicMock()

    handle_reaction_event(_reaction(reaction="v"), bg, DedupeCache(), "U_BOT")

    assert bg.add_task.call_args.args[0] is process_archive_reaction


@patch(f"{_PATCH_PREFIX}.get_settings", _settings)
def test_other_reaction_ignored():
    bg = MagicMock()
    handle_reaction_event(_reaction(reaction="tada"), bg, DedupeCache(), "U_BOT")
    bg.add_task.assert_not_called()


@patch(f"{_PATCH_PREFIX}.get_settings", _settings)
def test_bot_own_reaction_ignored():
    """The bot's own check-mark acknowledgment does not trigger another relay."""
    bg = MagicMock()
    handle_reaction_event(_reaction(user="U_BOT"), bg, DedupeCache(), "U_BOT")
    bg.add_task.assert_not_called()


@patch(f"{_PATCH_PREFIX}.get_settings", _settings)
def test_reaction_on_file_ignored():
    bg = MagicMock()
    handle_reaction_event(_reaction(item={"type": "file", "file": "F1"}), bg, DedupeCache(), "U_BOT")
    bg.add_task.assert_not_called()


@patch(f"{_PATCH_PREFIX}.get_settings", _settings)
def test_reaction_missing_ts_ignored():
    bg = MagicMock()
    handle_reaction_event(_reaction(item={"type": "message", "channel": CHANNEL}), bg, DedupeCache())
    bg.add_task.assert_not_called()


# -- handle_interaction --


def _block_actions(action_id: str, value: str, user_id: str = "U_CAROL") -> dict:
    return {
        "type": "block_actions",
        "user": {"id": user_id},
        "channel": {"id": CHANNEL},
        "actions": [{"action_id": action_id, "value": value, "type": "button"}],
    }


def test_interaction_confirm_dispatched():
    bg = MagicMock()
    value = ArchiveRequest(channel_id=CHANNEL, deal_id="9").to_value()

    response = handle_interaction(_block_actions("archive_confirm", value), bg)

    assert response.status_code == 200
    bg.add_task.assert_called_once_with(
        process_archive_action, action_id="archive_confirm", value=value, user_id="U_CAROL"
    )


def test_interaction_unknown_action_ignored():
    bg = MagicMock()
    handle_interaction(_block_actions("something_else", "{}"), bg)
    bg.add_task.assert_not_called()


def test_interaction_non_block_actions_ignored():
    bg = MagicMock()
    handle_interaction({"type": "view_submission", "user": {"id": "U1"}}, bg)
    bg.add_task.assert_not_called()


# -- background task wrappers --


async def test_process_file_shared_swallows_errors():
    """One failing event never propagates out of the background task."""
    with patch(f"{_PATCH_PREFIX}.ingest_shared_file", AsyncMock(side_effect=RuntimeError("boom"))):
        await process_file_shared("F1", CHANNEL, DedupeCache())


async def test_process_reaction_calls_relay():
    event = ReactionEvent(reaction="white_check_mark", channel_id=CHANNEL, message_ts=TS, user_id="U1")
    dedupe = DedupeCache()
    with patch(f"{_PATCH_PREFIX}.relay_note", AsyncMock(return_value=RelayOutcome.SENT)) as mock_relay:
        await process_reaction(event, dedupe)
    mock_relay.assert_called_once_with(event, dedupe)


async def test_process_reaction_swallows_errors():
    event = ReactionEvent(reaction="white_check_mark", channel_id=CHANNEL, message_ts=TS, user_id="U1")
    with patch(f"{_PATCH_PREFIX}.relay_note", AsyncMock(side_effect=RuntimeError("boom"))):
        await process_reaction(event, DedupeCache())


async def test_process_archive_reaction_swallows_errors():
    event = ReactionEvent(reaction="v", channel_id=CHANNEL, message_ts=TS, user_id="U1")
    with patch(f"{_PATCH_PREFIX}.request_archive", AsyncMock(side_effect=RuntimeError("boom"))):
        await process_archive_reaction(event)


async def test_process_archive_action_confirm():
    value = ArchiveRequest(channel_id=CHANNEL, deal_id="9").to_value()
    with (
        patch(f"{_PATCH_PREFIX}.confirm_archive", AsyncMock(return_value=ArchiveState.CONFIRMED)) as confirm,
        patch(f"{_PATCH_PREFIX}.cancel_archive", AsyncMock()) as cancel,
    ):
        await process_archive_action("archive_confirm", value, "U_CAROL")

    confirm.assert_called_once_with(ArchiveRequest(channel_id=CHANNEL, deal_id="9"), "U_CAROL")
    cancel.assert_not_called()


async def test_process_archive_action_cancel():
    value = ArchiveRequest(channel_id=CHANNEL, deal_id="9").to_value()
    with (
        patch(f"{_PATCH_PREFIX}.confirm_archive", AsyncMock()) as confirm,
        patch(f"{_PATCH_PREFIX}.cancel_archive", AsyncMock(return_value=ArchiveState.CANCELLED)) as cancel,
    ):
        await process_archive_action("archive_cancel", value, "U_CAROL")

    cancel.assert_called_once()
    confirm.assert_not_called()


async def test_process_archive_action_malformed_value():
    with patch(f"{_PATCH_PREFIX}.confirm_archive", AsyncMock()) as confirm:
        await process_archive_action("archive_confirm", "not-json", "U_CAROL")
    confirm.assert_not_called()
