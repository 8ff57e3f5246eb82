"""Structured JSON logging configuration for Cloud Run.

Configures Python stdlib logging to emit JSON with GCP-compatible field names.
Cloud Run auto-extracts `severity`, `message`, and other fields from JSON on stdout.

Usage:
    from deal_relay.logging_config import configure_logging
    configure_logging(settings.log_level, settings.environment)
"""

import logging
import logging.config

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(funcName)s %(message)s",
            "rename_fields": {
                "levelname": "severity",
                "asctime": "timestamp",
                "name": "logger",
            },
            "static_fields": {
                "service": "deal-relay",
            },
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        # Request URLs include the Pipedrive api_token
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def configure_logging(level: str = "INFO", environment: str | None = None) -> None:
    """Apply structured JSON logging configuration.

    Call once at application startup (e.g., in FastAPI lifespan).
    All subsequent ``logging.getLogger()`` calls will emit JSON to stdout
    with GCP-compatible ``severity`` field mapped from Python's ``levelname``.
    The root level follows the ``log_level`` setting, and ``environment`` is
    added to every record when given.
    """
    formatter = dict(LOGGING_CONFIG["formatters"]["json"])
    if environment:
        formatter["static_fields"] = {**formatter["static_fields"], "environment": environment}
    config = {
        **LOGGING_CONFIG,
        "formatters": {"json": formatter},
        "root": {**LOGGING_CONFIG["root"], "level": level.upper()},
    }
    logging.config.dictConfig(config)
