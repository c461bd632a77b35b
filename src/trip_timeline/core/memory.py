"""Attachment memory: extracted document text carried inside the chat transcript."""

from typing import Sequence

from .state import ChatTurn

ATTACHMENT_LABEL = "Attachment content"
ATTACHMENT_MARKER = f"--- {ATTACHMENT_LABEL} ---"

# Keep the tail: the most recent material matters most for the open questions
MAX_MEMORY_CHARS = 14000

ATTACHMENT_INSTRUCTION = (
    "Use the content of my attachments below to build the trip itinerary. "
    "Extract flights, hotels, dates and activities. If something is missing or ambiguous, ask."
)


def get_attachment_memory(messages: Sequence[ChatTurn], max_chars: int = MAX_MEMORY_CHARS) -> str:
    """
    Returns the attachment text of the most recent user turn that carries one.

    Turns are scanned newest to oldest and the first match wins. The text after
    the marker is used when the marker is present; a turn that only mentions
    the label is taken whole. Empty blocks are skipped. The result keeps the
    last ``max_chars`` characters.
    """
    for message in reversed(messages):
        if message.get("role") != "user":
            continue
        content = message.get("content") or ""
        idx = content.find(ATTACHMENT_MARKER)
        if idx == -1 and ATTACHMENT_LABEL not in content:
            continue
        text = content[idx + len(ATTACHMENT_MARKER):].strip() if idx >= 0 else content
        if not text:
            continue
        return text[-max_chars:] if len(text) > max_chars else text
    return ""


def build_attachment_turn(text: str) -> ChatTurn:
    """Builds the user turn that hands extracted attachment text to the assistant."""
    return {
        "role": "user",
        "content": f"{ATTACHMENT_INSTRUCTION}\n\n{ATTACHMENT_MARKER}\n\n{text}",
    }
