"""Deal id extraction and deal-linked file naming from Slack channel names."""

import re

DEAL_ID_PATTERN = re.compile(r"deal(\d+)", re.IGNORECASE)

SCOPE_PREFIX = "Scope - "


def extract_deal_id(channel_name: str | None) -> str | None:
    """Return the digits following "deal" in a channel name, or None.

    Case-insensitive; the first match wins. The name is otherwise untouched.
    """
    match = DEAL_ID_PATTERN.search(channel_name or "")
    return match.group(1) if match else None


def scope_file_name(channel_name: str) -> str:
    """Build the Pipedrive file name for a PDF shared in a deal channel.

    ``deal57-roofing`` -> ``Scope - deal57 roofing.pdf``
    """
    name = f"{SCOPE_PREFIX}{channel_name.replace('-', ' ')}"
    if not name.lower().endswith(".pdf"):
        name += ".pdf"
    return name
