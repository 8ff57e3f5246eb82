"""Slack request signature verification as FastAPI dependencies."""

import json
from urllib.parse import parse_qs

from fastapi import HTTPException, Request
from slack_sdk.signature import SignatureVerifier

from deal_relay.config import get_settings


async def _verified_body(request: Request) -> str:
    """Return the raw request body after checking Slack's signature.

    Reads the raw body FIRST (before any parsing) to ensure the signature
    verification uses the exact bytes Slack signed.

    Raises HTTPException(403) if the signature is invalid.
    """
    settings = get_settings()
    body = (await request.body()).decode("utf-8")

    timestamp = request.headers.get("X-Slack-Request-Timestamp", "")
    signature = request.headers.get("X-Slack-Signature", "")

    verifier = SignatureVerifier(signing_secret=settings.slack_signing_secret)

    if not verifier.is_valid(body=body, timestamp=timestamp, signature=signature):
        raise HTTPException(status_code=403, detail="Invalid Slack signature")

    return body


async def verify_slack_request(request: Request) -> dict:
    """Verify an Events API request and return its JSON payload."""
    body = await _verified_body(request)
    return json.loads(body)


async def verify_slack_interaction(request: Request) -> dict:
    """Verify an interactivity request and return the decoded ``payload`` form field.

    Raises HTTPException(400) if the form has no JSON payload.
    """
    body = await _verified_body(request)
    fields = parse_qs(body)
    try:
        return json.loads(fields["payload"][0])
    except (KeyError, IndexError, ValueError) as exc:
        raise HTTPException(status_code=400, detail="Missing interaction payload") from exc
