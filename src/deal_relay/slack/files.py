"""Authenticated Slack file downloads into scoped temporary files."""

import logging
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlparse

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 256 * 1024


class SlackDownloadError(Exception):
    """Raised when Slack serves something other than the file (usually an auth page)."""


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


@retry(
    retry=retry_if_exception(_is_retryable),
    wait=wait_exponential_jitter(initial=1, max=10, jitter=1),
    stop=stop_after_attempt(3),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _fetch_to(url: str, token: str, path: Path) -> int:
    """Stream ``url`` into ``path`` and return the number of bytes written."""
    written = 0
    async with httpx.AsyncClient(follow_redirects=True, timeout=httpx.Timeout(60.0)) as client:
        async with client.stream(
            "GET", url, headers={"Authorization": f"Bearer {token}"}
        ) as response:
            response.raise_for_status()
            # Slack answers a bad token or missing files:read scope with an HTML login page
            content_type = response.headers.get("content-type", "").lower()
            if "text/html" in content_type or "application/json" in content_type:
                raise SlackDownloadError(f"Unexpected content type {content_type!r} for {url}")
            with path.open("wb") as fh:
                async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                    fh.write(chunk)
                    written += len(chunk)
    return written


def _remove(path: Path) -> None:
    """Delete a temp file; failure is logged, never raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Failed to remove temp file %s", path, exc_info=True)


@asynccontextmanager
async def downloaded_file(url: str, token: str) -> AsyncIterator[Path]:
    """Download a private Slack file and yield its temp path.

    The file is removed when the block exits, whether the caller's upload
    succeeded or raised.

    Raises:
        httpx.HTTPError: On network or HTTP status failures (after retries).
        SlackDownloadError: If Slack did not serve file content.
    """
    suffix = Path(urlparse(url).path).suffix
    fd, name = tempfile.mkstemp(prefix="deal-relay-", suffix=suffix)
    os.close(fd)
    path = Path(name)
    try:
        size = await _fetch_to(url, token, path)
        logger.info("Downloaded %d bytes from Slack to %s", size, path)
        yield path
    finally:
        _remove(path)
