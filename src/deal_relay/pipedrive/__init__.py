"""Pipedrive output: deal files and notes."""

from deal_relay.pipedrive.client import PipedriveError, get_pipedrive_client, reset_client
from deal_relay.pipedrive.models import FileReceipt, NoteResult
from deal_relay.pipedrive.service import create_file, create_note, list_notes

__all__ = [
    "create_file",
    "create_note",
    "FileReceipt",
    "get_pipedrive_client",
    "list_notes",
    "NoteResult",
    "PipedriveError",
    "reset_client",
]
