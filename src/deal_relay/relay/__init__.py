"""Relay core: deal id resolution, ignore policy, dedupe, and the file/note/archive flows."""

from deal_relay.relay.archive import (
    ARCHIVE_CANCEL_ACTION,
    ARCHIVE_CONFIRM_ACTION,
    ArchiveState,
    cancel_archive,
    confirm_archive,
    request_archive,
)
from deal_relay.relay.deals import extract_deal_id, scope_file_name
from deal_relay.relay.dedupe import DedupeCache
from deal_relay.relay.files import ingest_shared_file, relay_file, resolve_file_channel
from deal_relay.relay.ignore import SkipReason, evaluate_ignore_policy
from deal_relay.relay.note_relay import RelayOutcome, relay_note
from deal_relay.relay.notes import build_note

__all__ = [
    "ARCHIVE_CANCEL_ACTION",
    "ARCHIVE_CONFIRM_ACTION",
    "ArchiveState",
    "build_note",
    "cancel_archive",
    "confirm_archive",
    "DedupeCache",
    "evaluate_ignore_policy",
    "extract_deal_id",
    "ingest_shared_file",
    "relay_file",
    "relay_note",
    "RelayOutcome",
    "request_archive",
    "resolve_file_channel",
    "scope_file_name",
    "SkipReason",
]
