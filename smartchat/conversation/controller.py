"""Conversation controller: one user turn in, exactly one assistant turn out.

State machine per send: IDLE -> SENDING -> IDLE. A send while SENDING
is rejected, so the reply always targets the last message of the
session it started on and no other path can append in between.

Replies come from the completion client, either whole or streamed into
a single placeholder message. Any failure falls back to a local
heuristic reply. Aborting keeps whatever partial reply was buffered.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from smartchat.conversation.heuristics import heuristic_reply
from smartchat.models.schemas import Message, Role, Session
from smartchat.rendering.markdown import markdown_to_html, plain_text_to_html
from smartchat.sessions.store import SessionStore

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    """Controller state."""

    IDLE = "idle"
    SENDING = "sending"


class CompletionBackend(Protocol):
    """What the controller needs from a completion client."""

    async def complete(self, messages: Sequence[Message]) -> str: ...

    def stream(self, messages: Sequence[Message]) -> AsyncIterator[str]: ...


@dataclass(frozen=True)
class RenderedMessage:
    """A transcript entry ready for display."""

    role: Role
    html: str


class ConversationController:
    """Drives a chat UI over a session store and a completion client.

    Args:
        store: Session store. Loaded here if it has not been loaded yet.
        client: Completion client collaborator.
        streaming: Apply the reply chunk by chunk instead of all at once.
    """

    def __init__(
        self,
        store: SessionStore,
        client: CompletionBackend,
        *,
        streaming: bool = True,
    ) -> None:
        self._store = store
        self._client = client
        self.streaming = streaming

        self.state = ChatState.IDLE
        self.is_typing = False
        self.input_buffer = ""

        self._inflight: asyncio.Future[None] | None = None
        self._inflight_session: str | None = None
        self._aborted: set[asyncio.Future[None]] = set()
        self._timers: list[asyncio.TimerHandle] = []
        self._listeners: list[Callable[[], None]] = []

        if not store.sessions:
            store.load_all()

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def session(self) -> Session:
        """The current session."""
        return self._store.current

    @property
    def sessions(self) -> list[Session]:
        return self._store.sessions

    # === Change notification ===

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` after every transcript or state change."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()

    # === Sending ===

    async def send(self, text: str | None = None) -> bool:
        """Send a user turn and wait for the assistant turn.

        Args:
            text: Message text. Uses the input buffer when omitted.

        Returns:
            False if the input was blank or a send is already in flight.
        """
        text = (self.input_buffer if text is None else text).strip()
        if not text or self.state is ChatState.SENDING:
            return False

        self.state = ChatState.SENDING
        session_id = self._store.current_id
        self._store.append_message(session_id, Message(role=Role.USER, content=text))
        self.input_buffer = ""
        self.is_typing = True
        self._notify()

        history = list(self._store.get(session_id).messages)
        if self.streaming:
            request = self._stream_reply(session_id, history, text)
        else:
            request = self._complete_reply(session_id, history, text)

        future = asyncio.ensure_future(request)
        self._inflight = future
        self._inflight_session = session_id
        try:
            await future
        except asyncio.CancelledError:
            if future not in self._aborted:
                raise
            logger.info(f"Request aborted for session {session_id}, keeping partial reply")
        finally:
            self._aborted.discard(future)
            # A reset may already have released this request and started another
            if self._inflight is future:
                self._release()
            self._notify()
        return True

    def _release(self) -> None:
        self._inflight = None
        self._inflight_session = None
        self.state = ChatState.IDLE
        self.is_typing = False

    async def _complete_reply(self, session_id: str, history: list[Message], text: str) -> None:
        try:
            reply = await self._client.complete(history)
        except Exception as e:
            logger.warning(f"Completion failed, using local reply: {e}")
            reply = heuristic_reply(text)
        self._store.append_message(session_id, Message(role=Role.ASSISTANT, content=reply))

    async def _stream_reply(self, session_id: str, history: list[Message], text: str) -> None:
        # One placeholder per turn; every chunk rewrites it with the full buffer
        self._store.append_message(session_id, Message(role=Role.ASSISTANT, content=""))
        self._notify()

        buffer = ""
        try:
            async for chunk in self._client.stream(history):
                buffer += chunk
                self._store.replace_last_assistant_message(session_id, buffer)
                self._notify()
        except Exception as e:
            logger.warning(f"Streaming failed after {len(buffer)} chars: {e}")
            if not buffer:
                self._store.replace_last_assistant_message(session_id, heuristic_reply(text))

    def cancel(self) -> bool:
        """Abort the in-flight request, if any.

        Returns:
            True if a request was aborted.
        """
        future = self._inflight
        if future is None or future.done() or future in self._aborted:
            return False
        self._aborted.add(future)
        future.cancel()
        return True

    # === Session operations ===

    def reset(self) -> None:
        """Start the current session over with just the greeting.

        A request in flight for this session is aborted and released at
        once, so a new send is accepted right away. A request for another
        session keeps running.
        """
        session_id = self._store.current_id
        if self._inflight_session == session_id:
            self.cancel()
            self._release()
        self._store.reset_session(session_id)
        self.input_buffer = ""
        if self._inflight is None:
            self.state = ChatState.IDLE
            self.is_typing = False
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        self._notify()

    def new_session(self) -> Session:
        session = self._store.create_session()
        self._notify()
        return session

    def select_session(self, session_id: str) -> None:
        if self._store.select_session(session_id) is not None:
            self._notify()

    def delete_session(self, session_id: str) -> None:
        if session_id == self._inflight_session:
            self.cancel()
        self._store.delete_session(session_id)
        self._notify()

    def rename_session(self, session_id: str, new_title: str | None) -> None:
        self._store.rename_session(session_id, new_title)
        self._notify()

    # === Presentation ===

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """Run a visual callback later. ``reset`` cancels pending ones."""

        def fire() -> None:
            self._timers.remove(handle)
            callback()

        handle = asyncio.get_running_loop().call_later(delay, fire)
        self._timers.append(handle)
        return handle

    def transcript(self) -> list[RenderedMessage]:
        """Render the current session for display.

        Assistant content is rendered as markdown; everything else is shown
        literally so users cannot inject markup into their own turns.
        """
        rendered: list[RenderedMessage] = []
        for message in self.session.messages:
            if message.role is Role.ASSISTANT:
                html = markdown_to_html(message.content)
            else:
                html = plain_text_to_html(message.content)
            rendered.append(RenderedMessage(role=message.role, html=html))
        return rendered
