"""Completion client used by the conversation controller.

Wraps the backend's plain-text chat endpoint behind ``complete`` and
``stream``, mapping transport and status failures to typed errors.
"""

from smartchat.client.completion import (
    CompletionClient,
    CompletionError,
    CompletionUnavailableError,
    CompletionUpstreamError,
)
from smartchat.client.config import ClientConfig, get_client_config

__all__ = [
    "ClientConfig",
    "CompletionClient",
    "CompletionError",
    "CompletionUnavailableError",
    "CompletionUpstreamError",
    "get_client_config",
]
