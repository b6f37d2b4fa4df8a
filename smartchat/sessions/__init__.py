"""Conversation session storage.

Responsibilities:
    - Ordered multi-session collection with a single current session
    - Write-through, best-effort persistence to a key/value surface
    - One-time migration of the legacy flat history
    - Auto-titling from the first user message
"""

from smartchat.sessions.storage import (
    LEGACY_HISTORY_KEY,
    SESSIONS_KEY,
    JsonFileKeyValueStore,
    KeyValueStore,
    MappingKeyValueStore,
)
from smartchat.sessions.store import (
    NEW_CHAT_TITLE,
    SessionNotFoundError,
    SessionStore,
    derive_title,
)

__all__ = [
    "LEGACY_HISTORY_KEY",
    "NEW_CHAT_TITLE",
    "SESSIONS_KEY",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MappingKeyValueStore",
    "SessionNotFoundError",
    "SessionStore",
    "derive_title",
]
