"""Conversation orchestration.

Responsibilities:
    - Gated send of user turns (one in flight at a time)
    - Whole or streamed assistant replies into the current session
    - Local heuristic replies when the completion backend fails
    - Abort, reset and transcript rendering for the UI
"""

from smartchat.conversation.controller import (
    ChatState,
    CompletionBackend,
    ConversationController,
    RenderedMessage,
)
from smartchat.conversation.heuristics import heuristic_reply

__all__ = [
    "ChatState",
    "CompletionBackend",
    "ConversationController",
    "RenderedMessage",
    "heuristic_reply",
]
