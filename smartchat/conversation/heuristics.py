"""Rule-based replies used when the completion backend fails."""

import re

EMPTY_INPUT_REPLY = "I'm here. How can I help today?"
HELP_REPLY = (
    "I can answer questions, outline plans, and help draft text. "
    'Try asking "Summarize X" or "Give me steps to Y".'
)
GREETING_REPLY = "Hey there! What would you like to work on?"

_HELP_INTENT = re.compile(r"\b(help|commands|what can you do)\b", re.IGNORECASE)
_GREETING_INTENT = re.compile(r"\b(hello|hi|hey)\b", re.IGNORECASE)


def heuristic_reply(user_text: str | None) -> str:
    """Compute a local fallback reply for a user turn.

    Help intent wins over greeting intent, so "hi, help" gets the
    capability description.
    """
    trimmed = (user_text or "").strip()
    if not trimmed:
        return EMPTY_INPUT_REPLY
    if _HELP_INTENT.search(trimmed):
        return HELP_REPLY
    if _GREETING_INTENT.search(trimmed):
        return GREETING_REPLY
    return (
        f'You said: "{trimmed}". I can\'t reach the assistant service right now, '
        "but I can still help brainstorm or outline steps."
    )
