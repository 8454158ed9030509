"""Chat export parsers and the message model they produce."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ParsedMessage:
    """One reconstructed chat message."""

    date: str  # raw date + time text, not normalized
    sender: str  # display name before the separator colon
    content: str  # body; continuation lines joined with "\n"


def participants(messages: list[ParsedMessage]) -> list[str]:
    """Distinct senders, in order of first appearance."""
    return list(dict.fromkeys(m.sender for m in messages))
