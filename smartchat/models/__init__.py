"""Pydantic models shared by the store, controller, client and API.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Role: Message speaker (system, user, assistant)
    - Message: Individual immutable turn in a conversation
    - Session: Conversation thread with title and history
    - GenerationOptions: Optional sampling parameters
    - ChatCompletionRequest: Incoming completion request payload
"""

from smartchat.models.schemas import (
    DEFAULT_GREETING,
    ChatCompletionRequest,
    GenerationOptions,
    Message,
    Role,
    Session,
)

__all__ = [
    "DEFAULT_GREETING",
    "ChatCompletionRequest",
    "GenerationOptions",
    "Message",
    "Role",
    "Session",
]
