"""Chat completion endpoint.

Forwards the browser's message history to the agent service and returns
the reply as streamed plain text. Outcomes the client can tell apart:

    - 200: reply text (possibly empty)
    - 503: backend not configured
    - 502: provider failed before producing any text
    - 422: invalid request body
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from smartchat.agent.chat_agent import AgentService, UpstreamCompletionError, get_agent_service
from smartchat.models.schemas import ChatCompletionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"
NOT_CONFIGURED_MESSAGE = (
    "Completion backend not configured. Set LLM_API_KEY or OPENAI_API_KEY."
)


def get_completion_service() -> AgentService | None:
    """Resolve the agent service, or None when it is not configured."""
    try:
        return get_agent_service()
    except ValueError as e:
        logger.warning(f"Completion backend not configured: {e}")
        return None


@router.post("/chat")
async def chat(
    request: ChatCompletionRequest,
    service: AgentService | None = Depends(get_completion_service),
) -> Response:
    """Stream the assistant reply for a conversation.

    The first chunk is fetched before responding so a provider failure can
    still be reported with an error status. Failures after that end the
    stream early.

    Args:
        request: Message history and optional generation options.
        service: Agent service dependency.

    Returns:
        Streaming plain text response, or a plain text error.
    """
    if service is None:
        return PlainTextResponse(
            NOT_CONFIGURED_MESSAGE,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    logger.info(f"Chat request with {len(request.messages)} messages")
    stream = service.stream_reply(request.messages, request.options)

    try:
        first = await anext(stream)
    except StopAsyncIteration:
        return PlainTextResponse("", media_type=TEXT_MEDIA_TYPE)
    except UpstreamCompletionError as e:
        logger.error(f"Provider error before first chunk: {e}")
        return PlainTextResponse(
            f"Completion provider error: {e}",
            status_code=status.HTTP_502_BAD_GATEWAY,
        )

    async def body() -> AsyncGenerator[str]:
        yield first
        try:
            async for chunk in stream:
                yield chunk
        except UpstreamCompletionError as e:
            logger.error(f"Provider error mid-stream, reply truncated: {e}")

    return StreamingResponse(body(), media_type=TEXT_MEDIA_TYPE)
