"""Slack webhook router with signature verification."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from deal_relay.relay.dedupe import DedupeCache
from deal_relay.slack.handlers import handle_interaction, handle_slack_event
from deal_relay.slack.verification import verify_slack_interaction, verify_slack_request

router = APIRouter(prefix="", tags=["slack"])


def get_dedupe_cache(request: Request) -> DedupeCache:
    """The process-wide dedupe cache created in the app lifespan."""
    return request.app.state.dedupe_cache


@router.post("/slack/events")
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: dict = Depends(verify_slack_request),
    dedupe: DedupeCache = Depends(get_dedupe_cache),
) -> JSONResponse:
    """Receive Slack webhook events.

    Slack retries (X-Slack-Retry-Num header) are acknowledged immediately
    to prevent duplicate processing.
    """
    # Dedup: if Slack is retrying, acknowledge immediately
    if request.headers.get("X-Slack-Retry-Num"):
        return JSONResponse({"ok": True})

    return handle_slack_event(payload, background_tasks, dedupe)


@router.post("/slack/interactions")
async def slack_interactions(
    background_tasks: BackgroundTasks,
    payload: dict = Depends(verify_slack_interaction),
) -> JSONResponse:
    """Receive interactive component callbacks (archive confirm/cancel buttons)."""
    return handle_interaction(payload, background_tasks)
