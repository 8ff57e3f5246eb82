"""FastAPI application with lifespan and health endpoint."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from deal_relay.config import get_settings
from deal_relay.logging_config import configure_logging
from deal_relay.relay.dedupe import DedupeCache
from deal_relay.slack.router import router as slack_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging, load config, and create the dedupe cache."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.environment)
    app.state.settings = settings
    app.state.dedupe_cache = DedupeCache(
        window_seconds=settings.dedupe_window_seconds,
        max_entries=settings.dedupe_max_entries,
    )
    yield


app = FastAPI(
    title="Deal Relay",
    lifespan=lifespan,
)
app.include_router(slack_router)


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run and local development."""
    return {
        "status": "ok",
        "service": "deal-relay",
        "version": "0.1.0",
    }
