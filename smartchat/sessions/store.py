"""Multi-session conversation store with write-through persistence.

The store owns the ordered session collection and the current session
id. Every mutation re-serializes the whole collection to the durable
key/value surface (last writer wins, no partial updates). Persistence is
best-effort: read and write failures are logged and the in-memory
collection stays authoritative for the running process.

Loading favors partial recovery over hard failure:
    - persisted collection, with malformed entries dropped one by one
    - else the legacy flat history, migrated into a single session
    - else one default session
"""

import json
import logging
import uuid
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from smartchat.models.schemas import DEFAULT_GREETING, Message, Role, Session
from smartchat.sessions.storage import LEGACY_HISTORY_KEY, SESSIONS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

NEW_CHAT_TITLE = "New Chat"
FALLBACK_TITLE = "Conversation"
PLACEHOLDER_TITLES = frozenset({NEW_CHAT_TITLE, FALLBACK_TITLE})
MAX_TITLE_LENGTH = 60
AUTO_TITLE_LENGTH = 40


class SessionNotFoundError(KeyError):
    """Raised when an operation names a session id that does not exist."""


def default_messages() -> list[Message]:
    """History of a brand-new session: a single assistant greeting."""
    return [Message(role=Role.ASSISTANT, content=DEFAULT_GREETING)]


def derive_title(messages: Iterable[Message]) -> str | None:
    """Build a title from the first non-blank user message.

    Whitespace is collapsed before truncating to 40 characters.
    """
    for message in messages:
        if message.role is not Role.USER:
            continue
        collapsed = " ".join(message.content.split())
        if collapsed:
            return collapsed[:AUTO_TITLE_LENGTH]
    return None


def parse_messages(items: Iterable[Any]) -> list[Message]:
    """Validate raw message entries, dropping malformed ones."""
    messages: list[Message] = []
    for item in items:
        try:
            messages.append(Message.model_validate(item))
        except ValidationError:
            logger.warning(f"Dropping malformed message entry: {item!r:.80}")
    return messages


class SessionStore:
    """Owns the session collection and writes it through to storage."""

    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage
        self._sessions: list[Session] = []
        self._current_id: str | None = None
        self._issued_ids: set[str] = set()

    @property
    def sessions(self) -> list[Session]:
        """Sessions in display order."""
        return list(self._sessions)

    @property
    def current_id(self) -> str:
        """Id of the current session. Loads the collection on first use."""
        if self._current_id is None:
            return self.load_all()[0].id
        return self._current_id

    @property
    def current(self) -> Session:
        """The session the controller is operating on."""
        return self.get(self.current_id)

    def get(self, session_id: str) -> Session:
        for session in self._sessions:
            if session.id == session_id:
                return session
        raise SessionNotFoundError(session_id)

    # === Loading ===

    def load_all(self) -> list[Session]:
        """Load the collection, migrating or synthesizing as needed.

        Returns:
            The loaded sessions. Never empty. The first one becomes current.
        """
        sessions = self._load_collection()
        needs_write = False

        if not sessions:
            sessions = self._migrate_legacy()
            needs_write = True
        if not sessions:
            sessions = [self._new_session()]

        self._sessions = sessions
        self._current_id = sessions[0].id
        self._issued_ids.update(s.id for s in sessions)

        if needs_write:
            self.persist()
        return self.sessions

    def _read(self, key: str) -> Any:
        try:
            raw = self._storage.get(key)
        except Exception as e:
            logger.warning(f"Storage read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Ignoring corrupt value under {key}: {e}")
            return None

    def _load_collection(self) -> list[Session]:
        data = self._read(SESSIONS_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Persisted sessions are not a list, ignoring them")
            return []

        sessions: list[Session] = []
        seen: set[str] = set()
        for entry in data:
            session = self._parse_session(entry)
            if session is None or session.id in seen:
                logger.warning("Dropping malformed or duplicate session entry")
                continue
            seen.add(session.id)
            sessions.append(session)

        logger.info(f"Loaded {len(sessions)} of {len(data)} persisted sessions")
        return sessions

    def _parse_session(self, entry: Any) -> Session | None:
        if not isinstance(entry, dict):
            return None
        session_id = entry.get("id")
        raw_messages = entry.get("messages")
        if not isinstance(session_id, str) or not session_id or not isinstance(raw_messages, list):
            return None

        messages = parse_messages(raw_messages)
        if not messages:
            return None

        title = entry.get("title")
        if not isinstance(title, str) or not title.strip():
            title = FALLBACK_TITLE
        session = Session(id=session_id, title=title[:MAX_TITLE_LENGTH], messages=messages)
        self._refresh_title(session)
        return session

    def _migrate_legacy(self) -> list[Session]:
        data = self._read(LEGACY_HISTORY_KEY)
        if not isinstance(data, list):
            return []

        messages = parse_messages(data)
        if not messages:
            return []

        session = Session(
            id=self._new_id(),
            title=derive_title(messages) or FALLBACK_TITLE,
            messages=messages,
        )
        logger.info(f"Migrated legacy history ({len(messages)} messages) into session {session.id}")
        return [session]

    # === Persistence ===

    def persist(self, sessions: list[Session] | None = None) -> None:
        """Serialize the full collection to storage.

        Best-effort, not a transaction: failures are logged and swallowed.
        """
        to_write = self._sessions if sessions is None else sessions
        try:
            payload = json.dumps([s.model_dump(mode="json") for s in to_write])
            self._storage.set(SESSIONS_KEY, payload)
        except Exception as e:
            logger.warning(f"Failed to persist {len(to_write)} sessions: {e}")

    # === Collection mutations ===

    def _new_id(self) -> str:
        while True:
            session_id = uuid.uuid4().hex
            if session_id not in self._issued_ids:
                self._issued_ids.add(session_id)
                return session_id

    def _new_session(self) -> Session:
        return Session(id=self._new_id(), title=NEW_CHAT_TITLE, messages=default_messages())

    def create_session(self) -> Session:
        """Append a greeting-only session and make it current."""
        session = self._new_session()
        self._sessions.append(session)
        self._current_id = session.id
        logger.info(f"Created session {session.id}")
        self.persist()
        return session

    def select_session(self, session_id: str) -> Session | None:
        """Make an existing session current. Unknown ids are ignored."""
        for session in self._sessions:
            if session.id == session_id:
                self._current_id = session_id
                return session
        return None

    def delete_session(self, session_id: str) -> None:
        """Remove a session, keeping the collection non-empty."""
        remaining = [s for s in self._sessions if s.id != session_id]
        if len(remaining) == len(self._sessions):
            return

        self._sessions = remaining
        logger.info(f"Deleted session {session_id}")

        if not self._sessions:
            self._sessions.append(self._new_session())
        if self._current_id == session_id:
            self._current_id = self._sessions[0].id
        self.persist()

    def rename_session(self, session_id: str, new_title: str | None) -> None:
        """Set a caller-chosen title. Empty or cancelled input is ignored."""
        if not new_title or not new_title.strip():
            return
        session = self.get(session_id)
        session.title = new_title.strip()[:MAX_TITLE_LENGTH]
        self.persist()

    # === Message mutations ===

    def _refresh_title(self, session: Session) -> None:
        if session.title not in PLACEHOLDER_TITLES:
            return
        if title := derive_title(session.messages):
            session.title = title

    def append_message(self, session_id: str, message: Message) -> Session:
        session = self.get(session_id)
        session.messages.append(message)
        self._refresh_title(session)
        self.persist()
        return session

    def replace_last_assistant_message(self, session_id: str, content: str) -> bool:
        """Swap the content of a trailing assistant message.

        Returns:
            False if the session does not end with an assistant message.
        """
        session = self.get(session_id)
        last = session.messages[-1]
        if last.role is not Role.ASSISTANT:
            return False
        session.messages[-1] = last.model_copy(update={"content": content})
        self._refresh_title(session)
        self.persist()
        return True

    def reset_session(self, session_id: str) -> Session:
        """Clear a session back to the greeting and a placeholder title."""
        session = self.get(session_id)
        session.messages = default_messages()
        session.title = NEW_CHAT_TITLE
        self.persist()
        return session
