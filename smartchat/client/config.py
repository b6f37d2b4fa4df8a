"""Chat client configuration with environment variable loading."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ClientConfig(BaseModel):
    """Configuration for the chat UI's completion client.

    Attributes:
        api_base_url: Base URL of the completion backend.
        timeout: Request timeout in seconds.
        streaming: Whether replies are applied chunk by chunk.
        storage_path: Optional JSON file for session storage. When unset the
            UI keeps sessions in per-browser storage.
    """

    model_config = ConfigDict(validate_default=True)

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Completion backend base URL",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("CHAT_TIMEOUT", "120")),
        gt=0,
        description="Request timeout in seconds",
    )
    streaming: bool = Field(
        default_factory=lambda: _env_flag("CHAT_STREAMING", True),
        description="Apply replies incrementally as chunks arrive",
    )
    storage_path: Path | None = Field(
        default_factory=lambda: Path(p) if (p := os.getenv("CHAT_STORAGE_PATH")) else None,
        description="JSON file backing the session store",
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended."""
        return v.strip().rstrip("/")


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.
    """
    return ClientConfig()
