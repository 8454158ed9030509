"""Pick a bounded sample of one sender's recent messages."""

from __future__ import annotations

from .transcripts import ParsedMessage

# Placeholders WhatsApp writes in place of media and deleted messages.
# Android uses "<Media omitted>"; iOS names the media type.
JUNK_MARKERS = (
    "Media omitted",
    "image omitted",
    "video omitted",
    "audio omitted",
    "sticker omitted",
    "GIF omitted",
    "document omitted",
    "Contact card omitted",
    "message deleted",
    "This message was deleted",
    "You deleted this message",
)
MIN_CONTENT_LENGTH = 2


def is_junk(content: str) -> bool:
    """True for placeholder bodies and anything too short to say much."""
    if len(content) <= MIN_CONTENT_LENGTH:
        return True
    return any(marker in content for marker in JUNK_MARKERS)


def sender_contents(messages: list[ParsedMessage], sender: str) -> list[str]:
    """Non-junk message bodies from *sender* (exact, case-sensitive match), oldest first."""
    return [m.content for m in messages if m.sender == sender and not is_junk(m.content)]


def select_sample(messages: list[ParsedMessage], sender: str, max_count: int) -> str:
    """Join the most recent *max_count* qualifying messages from *sender*.

    Always the newest messages, never a random spread, so the sample tracks
    how the person writes now. Returns an empty string when nothing qualifies.
    """
    contents = sender_contents(messages, sender)
    if max_count <= 0:
        return ""
    return "\n".join(contents[-max_count:])
