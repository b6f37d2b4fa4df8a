"""FastAPI endpoints for the chat completion backend.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Streamed plain-text reply for a message history
"""

from smartchat.api.app import app, create_app

__all__ = ["app", "create_app"]
