"""Agent configuration with environment variable loading.

Pydantic-based configuration for the completion backend.
Supports OpenAI and OpenAI-compatible APIs via custom base URL.
Generation parameters are only set when their variable is present.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from smartchat.models.schemas import GenerationOptions

# Load environment variables from .env file
load_dotenv()


def _env_number(name: str) -> str | None:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else None


class AgentConfig(BaseModel):
    """Configuration for the completion agent.

    Supports OpenAI and any OpenAI-compatible API via LLM_BASE_URL.

    Attributes:
        api_key: API key for model access.
        base_url: API base URL (None for OpenAI default).
        model_name: Model identifier to use.
        max_tokens: Maximum tokens in generated response, if set.
        temperature: Sampling temperature, if set.
        top_p: Nucleus sampling cutoff, if set.
        presence_penalty: Presence penalty, if set.
        frequency_penalty: Frequency penalty, if set.
    """

    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", "")),
        description="API key for LLM provider",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        description="API base URL (None for OpenAI default)",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"),
        description="Model to use",
    )
    max_tokens: int | None = Field(
        default_factory=lambda: _env_number("LLM_MAX_TOKENS"),
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    temperature: float | None = Field(
        default_factory=lambda: _env_number("LLM_TEMPERATURE"),
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    top_p: float | None = Field(
        default_factory=lambda: _env_number("LLM_TOP_P"),
        ge=0.0,
        le=1.0,
    )
    presence_penalty: float | None = Field(
        default_factory=lambda: _env_number("LLM_PRESENCE_PENALTY"),
        ge=-2.0,
        le=2.0,
    )
    frequency_penalty: float | None = Field(
        default_factory=lambda: _env_number("LLM_FREQUENCY_PENALTY"),
        ge=-2.0,
        le=2.0,
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )
        return v.strip()

    def generation_options(self) -> GenerationOptions:
        """Return the configured generation parameters."""
        return GenerationOptions(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            presence_penalty=self.presence_penalty,
            frequency_penalty=self.frequency_penalty,
        )


def get_agent_config() -> AgentConfig:
    """Create agent configuration from environment.

    Returns:
        Configured AgentConfig instance.

    Raises:
        ValueError: If no API key is set.
    """
    return AgentConfig()
