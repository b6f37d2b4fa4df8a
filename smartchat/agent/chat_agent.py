"""Agno agent service that proxies chat histories to the model provider.

Core module of the completion backend.

Architecture Decisions:

1. **Stateless** - The browser owns conversation history and sends the full
   message list with every request. The agent has no storage, so nothing is
   persisted server-side and ``session_id`` is never used.

2. **Singleton Pattern** - Agent construction validates configuration and
   builds the model client. The singleton reuses one agent across requests;
   only requests that override generation options get a one-off agent.

3. **Service Wrapper** - Decouples the HTTP layer from Agno's interface and
   turns provider failures into a single ``UpstreamCompletionError``.

4. **Explicit generation options** - Sampling parameters are passed to the
   model only when configured, so provider defaults apply otherwise.
"""

import logging
from collections.abc import AsyncGenerator, Sequence

from agno.agent import Agent
from agno.models.message import Message as AgentMessage
from agno.models.openai import OpenAIChat

from smartchat.agent.config import AgentConfig, get_agent_config
from smartchat.models.schemas import GenerationOptions, Message

logger = logging.getLogger(__name__)

_CONTENT_EVENT = "RunContent"
_ERROR_EVENT = "RunError"


class UpstreamCompletionError(Exception):
    """Raised when the model provider fails to produce a reply."""


class AgentService:
    """Service for forwarding chat histories to the model.

    Wraps Agno's Agent with:
    - OpenAI-compatible model configured from the environment
    - Per-request generation option overrides
    - Clean streaming interface for the chat endpoint
    - Centralized error handling
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._agent = self._create_agent(self._config.generation_options())

    def _create_agent(self, options: GenerationOptions) -> Agent:
        """Create the Agno agent instance.

        Args:
            options: Generation parameters; unset ones are left out.

        Returns:
            Configured Agent with an OpenAI-compatible model.
        """
        model_kwargs = options.as_kwargs()
        if self._config.base_url:
            model_kwargs["base_url"] = self._config.base_url

        model = OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            **model_kwargs,
        )

        return Agent(
            model=model,
            description="A helpful chat assistant.",
            instructions=[
                "Provide helpful and accurate responses.",
                "Be concise yet thorough.",
            ],
            # Output as markdown for rich formatting in UI
            markdown=True,
        )

    def _agent_for(self, options: GenerationOptions | None) -> Agent:
        overrides = options.as_kwargs() if options else {}
        if not overrides:
            return self._agent
        merged = {**self._config.generation_options().as_kwargs(), **overrides}
        return self._create_agent(GenerationOptions(**merged))

    @staticmethod
    def _to_agent_messages(messages: Sequence[Message]) -> list[AgentMessage]:
        # Roles map 1:1 onto the provider's chat roles
        return [AgentMessage(role=m.role.value, content=m.content) for m in messages]

    async def stream_reply(
        self,
        messages: Sequence[Message],
        options: GenerationOptions | None = None,
    ) -> AsyncGenerator[str]:
        """Stream reply chunks for a conversation.

        Args:
            messages: Full conversation history, oldest first.
            options: Optional generation parameter overrides.

        Yields:
            Response text chunks as they arrive.

        Raises:
            UpstreamCompletionError: If the provider call fails.
        """
        agent = self._agent_for(options)
        logger.info(f"Streaming completion for {len(messages)} messages")
        try:
            response_stream = agent.arun(
                self._to_agent_messages(messages),
                stream=True,
            )

            async for chunk in response_stream:
                event = getattr(chunk, "event", _CONTENT_EVENT)
                if event == _ERROR_EVENT:
                    raise UpstreamCompletionError(str(getattr(chunk, "content", "") or "Run failed"))
                if event == _CONTENT_EVENT and getattr(chunk, "content", None):
                    yield chunk.content

        except UpstreamCompletionError:
            raise
        except Exception as e:
            logger.error(f"Provider error while streaming: {e}")
            raise UpstreamCompletionError(str(e)) from e

    async def get_reply(
        self,
        messages: Sequence[Message],
        options: GenerationOptions | None = None,
    ) -> str:
        """Get the complete reply for a conversation.

        Non-streaming alternative for simpler use cases.

        Raises:
            UpstreamCompletionError: If the provider call fails.
        """
        agent = self._agent_for(options)
        try:
            response = await agent.arun(self._to_agent_messages(messages))
        except Exception as e:
            logger.error(f"Provider error: {e}")
            raise UpstreamCompletionError(str(e)) from e
        return response.content or ""


# Module-level singleton instance
_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    """Get or create the global agent service.

    Uses singleton pattern for resource efficiency.

    Returns:
        The AgentService instance.

    Raises:
        ValueError: If the provider is not configured.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
