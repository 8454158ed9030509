"""Parse WhatsApp-style text exports into messages.

Android and iOS exports disagree on brackets, dash separators, seconds and
AM/PM markers, so a single permissive header pattern covers both families:

    12/05/23, 10:00 - Alice: hello
    [01/02/2024, 9:15:30 AM] Charlie: test

Any line that does not look like a header is treated as a continuation of the
message above it. Multi-line messages are therefore the default path rather
than a special case.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from . import ParsedMessage

_LOGGER = logging.getLogger(__name__)

HEADER_RE = re.compile(
    r"^\[?(\d{1,2}/\d{1,2}/\d{2,4}),?\s+"  # date
    r"(\d{1,2}:\d{2}(?::\d{2})?(?:\s?[AP]M)?)\]?\s+"  # time
    r"(?:- )?([^:]+):\s+(.+)"  # sender: content
)

# Bidi marks and other zero-width characters exports sprinkle around names.
_INVISIBLE = dict.fromkeys(
    [0x200E, 0x200F, 0x061C, 0xFEFF, *range(0x202A, 0x202F), *range(0x2066, 0x206A)]
)


def clean_line(line: str) -> str:
    """Strip invisible direction marks and surrounding whitespace."""
    return line.translate(_INVISIBLE).strip()


def parse_chat(text: str) -> list[ParsedMessage]:
    """Parse a chat export into messages, in the order they appear.

    Never raises for malformed input. Lines before the first header have no
    message to attach to and are dropped, so a file with no headers at all
    parses to an empty list; whether that is an error is up to the caller.

    Known limitation: a continuation line that happens to look like a header
    (``1/2/23, 10:00 - Note: ...``) starts a new message.
    """
    messages: list[ParsedMessage] = []
    current: ParsedMessage | None = None

    for raw_line in text.splitlines():
        line = clean_line(raw_line)
        if not line:
            continue

        match = HEADER_RE.match(line)
        if match:
            if current is not None:
                messages.append(current)
            date, time, sender, content = match.groups()
            current = ParsedMessage(
                date=f"{date} {time}",
                sender=sender.strip(),
                content=content.strip(),
            )
        elif current is not None:
            current.content += f"\n{line}"

    if current is not None:
        messages.append(current)

    return messages


def parse_chat_file(path: Path) -> list[ParsedMessage]:
    """Read an exported ``.txt`` chat and parse it.

    Decoding errors are replaced rather than raised; a leading BOM is dropped
    along with the other invisible marks.
    """
    text = path.read_text(encoding="utf-8", errors="replace")
    messages = parse_chat(text)
    _LOGGER.debug(
        "Parsed %d message(s) from %d line(s) in %s",
        len(messages),
        len(text.splitlines()),
        path,
    )
    return messages
