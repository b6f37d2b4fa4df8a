"""Smart Chat - multi-session chat UI over a remote completion service.

Combines NiceGUI for the chat interface, FastAPI for the completion
backend, Agno for model access, and Pydantic for data validation.

Components:
    - rendering: Streaming-safe markdown to HTML for assistant replies
    - sessions: Multi-session conversation store with persistence
    - conversation: Send/stream/fallback controller
    - client: HTTP completion client
    - agent: Backend model access
    - api: HTTP endpoints
    - ui: Web interface for chat interactions
"""

__version__ = "0.1.0"
