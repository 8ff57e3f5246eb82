"""Ignore policy for shared files.

Only PDFs are relayed. PDFs that the upstream dispatch system already
delivers to Pipedrive on its own (generated work orders) are skipped, but
only when that system's account uploaded them, so a human sharing a file
with a similar name is never suppressed.
"""

import re
from enum import Enum

from deal_relay.models.slack import SlackFile

IGNORE_FILE_PATTERN = re.compile(r"^(WO_|Completed Work Order)", re.IGNORECASE)
IGNORE_COMMENT_PATTERN = re.compile(r"(Completed Work Order|AID:\d+)", re.IGNORECASE)


class SkipReason(str, Enum):
    NOT_PDF = "not_pdf"
    SELF_AUTHORED = "self_authored"
    UPSTREAM_FILENAME = "upstream_filename"
    UPSTREAM_COMMENT = "upstream_comment"


def evaluate_ignore_policy(
    file: SlackFile,
    upstream_user_id: str | None = None,
    bot_user_id: str | None = None,
) -> SkipReason | None:
    """Return why a file must not be relayed, or None to proceed.

    Args:
        file: File metadata from Slack.
        upstream_user_id: Account of the upstream dispatch system, if configured.
        bot_user_id: This bot's own user id; its uploads are never relayed.
    """
    if file.filetype != "pdf":
        return SkipReason.NOT_PDF

    if bot_user_id and file.user == bot_user_id:
        return SkipReason.SELF_AUTHORED

    if upstream_user_id and file.user == upstream_user_id:
        if IGNORE_FILE_PATTERN.search(file.name) or IGNORE_FILE_PATTERN.search(file.title):
            return SkipReason.UPSTREAM_FILENAME
        if file.initial_comment and IGNORE_COMMENT_PATTERN.search(file.initial_comment):
            return SkipReason.UPSTREAM_COMMENT

    return None
