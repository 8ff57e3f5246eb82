"""Pipedrive deal writes: file attachments, notes, and recent-note listing.

create_file raises PipedriveError on failure so the file relay can abort.
create_note never raises for API or transport failures; it reports them in
NoteResult so the note relay can echo Pipedrive's message back to Slack.
list_notes is an idempotent read and is retried on transient errors.
"""

import logging

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from deal_relay.pipedrive.client import PipedriveError, get_pipedrive_client
from deal_relay.pipedrive.models import FileReceipt, NoteResult

logger = logging.getLogger(__name__)


def _is_retryable(error: BaseException) -> bool:
    """Transport errors, rate limits (429) and server errors (5xx) are transient."""
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


def _error_text(response: httpx.Response) -> str:
    """Pull Pipedrive's error message out of a response, falling back to the status line."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return f"HTTP {response.status_code}"
    return body.get("error") or f"HTTP {response.status_code}"


async def create_file(deal_id: str, content: bytes, file_name: str) -> FileReceipt:
    """Attach a file to a deal.

    Args:
        deal_id: Pipedrive deal id.
        content: Raw file bytes.
        file_name: Name shown in Pipedrive.

    Raises:
        PipedriveError: If the upload is rejected or cannot be sent.
    """
    client = get_pipedrive_client()
    try:
        response = await client.post(
            "/files",
            data={"deal_id": deal_id},
            files={"file": (file_name, content, "application/pdf")},
        )
    except httpx.HTTPError as exc:
        raise PipedriveError(f"File upload failed: {exc}") from exc

    if response.is_error:
        raise PipedriveError(_error_text(response))

    try:
        body = response.json()
    except ValueError as exc:
        raise PipedriveError(f"Unreadable upload response (HTTP {response.status_code})") from exc
    if not isinstance(body, dict):
        raise PipedriveError(f"Unexpected upload response (HTTP {response.status_code})")
    if not body.get("success"):
        raise PipedriveError(body.get("error") or "unknown error")

    data = body.get("data") or {}
    logger.info("Uploaded %s to Pipedrive deal %s", file_name, deal_id)
    return FileReceipt(file_id=data.get("id"), deal_id=deal_id, file_name=file_name)


async def create_note(deal_id: str, content: str) -> NoteResult:
    """Create a note on a deal, reporting failures instead of raising."""
    client = get_pipedrive_client()
    try:
        response = await client.post("/notes", json={"content": content, "deal_id": deal_id})
    except httpx.HTTPError as exc:
        logger.warning("Pipedrive note request failed for deal %s: %s", deal_id, exc)
        return NoteResult(success=False, error=str(exc) or type(exc).__name__)

    try:
        body = response.json()
    except ValueError:
        return NoteResult(success=False, error=f"HTTP {response.status_code}")
    if not isinstance(body, dict):
        return NoteResult(success=False, error=f"HTTP {response.status_code}")

    if not body.get("success"):
        return NoteResult(success=False, error=body.get("error") or "unknown error")

    data = body.get("data") or {}
    return NoteResult(success=True, note_id=data.get("id"))


@retry(
    retry=retry_if_exception(_is_retryable),
    wait=wait_exponential_jitter(initial=1, max=10, jitter=1),
    stop=stop_after_attempt(3),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def list_notes(deal_id: str, limit: int = 20, start: int = 0) -> list[dict]:
    """Return the most recent notes on a deal (empty list when there are none).

    Raises:
        httpx.HTTPError: On transport failures or error statuses.
        PipedriveError: If a 2xx response is not a Pipedrive JSON object.
    """
    client = get_pipedrive_client()
    response = await client.get(
        "/notes",
        params={"deal_id": deal_id, "limit": limit, "start": start},
    )
    response.raise_for_status()
    try:
        body = response.json()
    except ValueError as exc:
        raise PipedriveError(f"Unreadable notes response (HTTP {response.status_code})") from exc
    if not isinstance(body, dict):
        raise PipedriveError(f"Unexpected notes response (HTTP {response.status_code})")
    return body.get("data") or []
