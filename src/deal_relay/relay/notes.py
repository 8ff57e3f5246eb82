"""Pipedrive note body built from a reacted Slack message."""

from datetime import datetime

PERMALINK_UNAVAILABLE = "(unavailable)"


def format_slack_ts(ts: str) -> str:
    """Render a Slack ts ("1700000000.000001") as a local date-time, whole seconds."""
    seconds = int(str(ts).split(".")[0])
    return datetime.fromtimestamp(seconds).strftime("%c")


def build_note(
    channel_name: str,
    reactor_name: str,
    author_name: str,
    ts: str,
    permalink: str | None,
    text: str,
    attachments: list[str],
) -> str:
    """Compose the note text.

    Layout: header naming the reactor, channel/author/when/link lines, then
    the trimmed message text and, after its own blank line, an ``Attachments:``
    bullet list. With no text the attachments follow two blank lines.
    """
    lines = [
        f"Slack note (via ✅ by {reactor_name})",
        f"Channel: #{channel_name}",
        f"Author: {author_name}",
        f"When: {format_slack_ts(ts)}",
        f"Link: {permalink or PERMALINK_UNAVAILABLE}",
    ]

    body: list[str] = []
    if text and text.strip():
        body.append(text.strip())
    if attachments:
        body.append("")
        body.extend(["Attachments:", *(f"• {item}" for item in attachments)])

    if body:
        lines.append("")
        lines.extend(body)
    return "\n".join(lines).strip()
