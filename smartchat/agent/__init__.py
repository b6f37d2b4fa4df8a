"""Agno agent logic for the completion backend.

Forwards browser-held chat histories to an OpenAI-compatible model.

Responsibilities:
    - Agent initialization with OpenAI models
    - Generation options from environment, with per-request overrides
    - Streaming token generation coordination
    - Mapping provider failures to a single error type

Leverages the Agno framework for model access.
Maintains clean separation from the HTTP layer.
"""

from smartchat.agent.chat_agent import AgentService, UpstreamCompletionError, get_agent_service
from smartchat.agent.config import AgentConfig, get_agent_config

__all__ = [
    "AgentConfig",
    "AgentService",
    "UpstreamCompletionError",
    "get_agent_config",
    "get_agent_service",
]
