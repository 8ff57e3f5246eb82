"""Async Pipedrive HTTP client singleton.

Creates a cached httpx.AsyncClient bound to the Pipedrive API base URL, with
the API token attached as the ``api_token`` query parameter on every request.
Follows the same lazy-init pattern as slack/client.py.
"""

import httpx

from deal_relay.config import get_settings

_client: httpx.AsyncClient | None = None


class PipedriveError(Exception):
    """Raised when Pipedrive rejects a write or returns an unusable response."""


def get_pipedrive_client() -> httpx.AsyncClient:
    """Return a cached async Pipedrive client instance.

    Creates the client on first call using pipedrive_base_url and
    pipedrive_api_token from settings. Subsequent calls return the cached instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        _client = httpx.AsyncClient(
            base_url=settings.pipedrive_base_url,
            params={"api_token": settings.pipedrive_api_token},
            timeout=httpx.Timeout(30.0),
        )
    return _client


def reset_client() -> None:
    """Reset the cached client instance. Used for testing."""
    global _client
    _client = None
