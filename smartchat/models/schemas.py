from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GREETING = "Hi, I'm your smart chat assistant. How can I help?"


class Role(str, Enum):
    """Speaker of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single turn in a conversation.

    Messages are frozen. The in-progress assistant reply is rebuilt by
    swapping in a new Message with the same role.

    Attributes:
        role: Who produced the message.
        content: Raw message text (never pre-rendered HTML).
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class Session(BaseModel):
    """One conversation thread with its own history and title.

    Attributes:
        id: Opaque identifier, unique for the process lifetime.
        title: Display title, placeholder until derived or renamed.
        messages: Ordered history. Never empty.
    """

    id: str = Field(..., min_length=1)
    title: str
    messages: list[Message] = Field(..., min_length=1)


class GenerationOptions(BaseModel):
    """Optional sampling parameters forwarded to the model provider.

    Every field defaults to None. Only explicitly set fields are sent.
    """

    max_tokens: int | None = Field(default=None, ge=1, le=128000)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)

    def as_kwargs(self) -> dict[str, float | int]:
        """Return only the parameters that were explicitly configured."""
        return self.model_dump(exclude_none=True)


class ChatCompletionRequest(BaseModel):
    """Request payload for the chat completion endpoint.

    Attributes:
        messages: Full conversation history, oldest first.
        options: Optional generation parameter overrides.
    """

    messages: list[Message] = Field(..., min_length=1)
    options: GenerationOptions | None = None

    @field_validator("messages")
    @classmethod
    def require_content(cls, v: list[Message]) -> list[Message]:
        """Reject histories with no non-blank turn."""
        if not any(m.content.strip() for m in v):
            raise ValueError("At least one message must have content")
        return v
