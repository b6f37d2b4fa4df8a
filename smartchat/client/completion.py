"""HTTP client for the chat completion backend.

Talks to ``POST /api/chat`` and reports three distinct outcomes:

    - success: reply text, whole or as incremental chunks
    - CompletionUnavailableError: backend unreachable or unconfigured
    - CompletionUpstreamError: backend answered with an error status
"""

import logging
from collections.abc import AsyncIterator, Sequence

import httpx

from smartchat.client.config import ClientConfig, get_client_config
from smartchat.models.schemas import GenerationOptions, Message

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


class CompletionError(Exception):
    """Base class for completion failures."""


class CompletionUnavailableError(CompletionError):
    """Raised when the backend cannot be reached or is not configured."""


class CompletionUpstreamError(CompletionError):
    """Raised when the backend returns a non-success status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}")
        self.status_code = status_code
        self.detail = detail


class CompletionClient:
    """Sends conversation history to the backend and reads the reply.

    Args:
        config: Client configuration. Loads from environment if not provided.
        options: Generation parameters. Only explicitly set ones are sent.
        transport: Optional httpx transport (ASGI or mock transports in tests).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        options: GenerationOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self._options = options
        self._transport = transport

    def build_payload(self, messages: Sequence[Message]) -> dict:
        """Build the request body for a message history."""
        payload: dict = {
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
        }
        if self._options and (options := self._options.as_kwargs()):
            payload["options"] = options
        return payload

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.timeout,
            transport=self._transport,
        )

    @staticmethod
    async def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        detail = (await response.aread()).decode("utf-8", errors="replace").strip()
        if response.status_code == httpx.codes.SERVICE_UNAVAILABLE:
            raise CompletionUnavailableError(detail or "Completion backend not configured")
        raise CompletionUpstreamError(response.status_code, detail)

    async def stream(self, messages: Sequence[Message]) -> AsyncIterator[str]:
        """Yield reply text chunks as they arrive.

        Raises:
            CompletionUnavailableError: Backend unreachable or unconfigured.
            CompletionUpstreamError: Backend returned an error status.
        """
        payload = self.build_payload(messages)
        logger.debug(f"POST {CHAT_PATH} messages={len(payload['messages'])}")
        try:
            async with (
                self._client() as client,
                client.stream("POST", CHAT_PATH, json=payload) as response,
            ):
                await self._raise_for_status(response)
                async for chunk in response.aiter_text():
                    if chunk:
                        yield chunk
        except httpx.RequestError as e:
            raise CompletionUnavailableError(f"Connection failed: {e}") from e

    async def complete(self, messages: Sequence[Message]) -> str:
        """Return the full reply text.

        Raises:
            CompletionUnavailableError: Backend unreachable or unconfigured.
            CompletionUpstreamError: Backend returned an error status.
        """
        return "".join([chunk async for chunk in self.stream(messages)])
