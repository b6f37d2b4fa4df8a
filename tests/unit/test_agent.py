"""Unit tests for AgentService and AgentConfig.

Tests configuration validation, agent initialization and reply handling.
"""

from collections.abc import AsyncIterator, Iterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from smartchat.agent.chat_agent import UpstreamCompletionError
from smartchat.agent.config import AgentConfig
from smartchat.models.schemas import GenerationOptions, Message, Role

HISTORY = [
    Message(role=Role.SYSTEM, content="Be brief."),
    Message(role=Role.USER, content="Hi"),
]


@pytest.fixture(autouse=True)
def clean_env() -> Iterator[None]:
    """Isolate tests from LLM_* variables in the developer's environment."""
    with patch.dict("os.environ", {}, clear=True):
        yield


class TestAgentConfig:
    """Tests for AgentConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = AgentConfig(
            api_key="sk-test-key-12345",
            model_name="gpt-4o",
            temperature=0.5,
            max_tokens=2048,
            top_p=0.9,
        )

        assert config.api_key == "sk-test-key-12345"
        assert config.model_name == "gpt-4o"
        assert config.temperature == 0.5
        assert config.max_tokens == 2048
        assert config.top_p == 0.9

    def test_config_with_default_values(self) -> None:
        """Generation options stay unset when only API key provided."""
        config = AgentConfig(api_key="sk-test-key")

        assert config.model_name == "gpt-4o-mini"
        assert config.base_url is None
        assert config.generation_options().as_kwargs() == {}

    def test_config_fails_with_missing_api_key(self) -> None:
        """Config raises ValueError when API key is missing."""
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="")

        assert "API key required" in str(exc_info.value)

    def test_config_fails_without_env_key(self) -> None:
        """Default construction needs a key in the environment."""
        with pytest.raises(ValidationError):
            AgentConfig()

    def test_config_strips_api_key_whitespace(self) -> None:
        """Config strips leading/trailing whitespace from API key."""
        config = AgentConfig(api_key="  sk-test-key  ")

        assert config.api_key == "sk-test-key"

    @pytest.mark.parametrize("temperature", [-0.1, 2.5])
    def test_config_rejects_temperature_out_of_range(self, temperature: float) -> None:
        """Config rejects temperature outside 0.0-2.0."""
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="sk-test", temperature=temperature)

        assert "temperature" in str(exc_info.value).lower()

    def test_config_fails_with_max_tokens_too_low(self) -> None:
        """Config rejects max_tokens below 1."""
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="sk-test", max_tokens=0)

        assert "max_tokens" in str(exc_info.value).lower()

    def test_config_reads_environment(self) -> None:
        """Only variables present in the environment become options."""
        env = {
            "LLM_API_KEY": "sk-env-key",
            "LLM_MODEL": "gpt-4o",
            "LLM_TEMPERATURE": "0.3",
            "LLM_FREQUENCY_PENALTY": "0.5",
            "LLM_TOP_P": "  ",
        }
        with patch.dict("os.environ", env):
            config = AgentConfig()

        assert config.api_key == "sk-env-key"
        assert config.model_name == "gpt-4o"
        assert config.generation_options().as_kwargs() == {
            "temperature": 0.3,
            "frequency_penalty": 0.5,
        }

    def test_openai_key_fallback(self) -> None:
        """OPENAI_API_KEY is used when LLM_API_KEY is absent."""
        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-openai"}):
            config = AgentConfig()

        assert config.api_key == "sk-openai"


class TestAgentServiceInit:
    """Tests for AgentService initialization."""

    @patch("smartchat.agent.chat_agent.OpenAIChat")
    @patch("smartchat.agent.chat_agent.Agent")
    def test_service_passes_only_configured_options(
        self,
        mock_agent_class: MagicMock,
        mock_openai_chat: MagicMock,
    ) -> None:
        """Unset generation options are not passed to the model."""
        from smartchat.agent.chat_agent import AgentService

        config = AgentConfig(api_key="sk-test-key", temperature=0.7)

        service = AgentService(config=config)

        mock_openai_chat.assert_called_once_with(
            id="gpt-4o-mini",
            api_key="sk-test-key",
            temperature=0.7,
        )
        mock_agent_class.assert_called_once()
        assert service._config == config

    @patch("smartchat.agent.chat_agent.OpenAIChat")
    @patch("smartchat.agent.chat_agent.Agent")
    def test_service_passes_base_url(
        self,
        mock_agent_class: MagicMock,
        mock_openai_chat: MagicMock,
    ) -> None:
        """Custom base URL reaches the model for compatible providers."""
        from smartchat.agent.chat_agent import AgentService

        AgentService(config=AgentConfig(api_key="sk", base_url="http://llm.local/v1"))

        assert mock_openai_chat.call_args.kwargs["base_url"] == "http://llm.local/v1"

    @patch("smartchat.agent.chat_agent.OpenAIChat")
    @patch("smartchat.agent.chat_agent.Agent")
    def test_service_creates_stateless_markdown_agent(
        self,
        mock_agent_class: MagicMock,
        mock_openai_chat: MagicMock,
    ) -> None:
        """Agent has no storage and outputs markdown."""
        from smartchat.agent.chat_agent import AgentService

        AgentService(config=AgentConfig(api_key="sk-test"))

        call_kwargs = mock_agent_class.call_args.kwargs
        assert call_kwargs["markdown"] is True
        assert "db" not in call_kwargs


def _events(*events: SimpleNamespace):
    async def gen() -> AsyncIterator[SimpleNamespace]:
        for event in events:
            yield event

    return lambda *args, **kwargs: gen()


class TestAgentServiceReplies:
    """Tests for streaming and whole replies."""

    @pytest.fixture
    def mocks(self) -> Iterator[tuple[MagicMock, MagicMock]]:
        with (
            patch("smartchat.agent.chat_agent.Agent") as mock_agent_class,
            patch("smartchat.agent.chat_agent.OpenAIChat") as mock_openai_chat,
        ):
            yield mock_agent_class, mock_openai_chat

    async def test_stream_yields_content_events_only(self, mocks: tuple[MagicMock, MagicMock]) -> None:
        """Only content events are forwarded."""
        from smartchat.agent.chat_agent import AgentService

        mock_agent_class, _ = mocks
        mock_agent_class.return_value.arun = _events(
            SimpleNamespace(event="RunStarted", content=None),
            SimpleNamespace(event="RunContent", content="Hel"),
            SimpleNamespace(event="RunContent", content="lo"),
            SimpleNamespace(event="RunCompleted", content="Hello"),
        )
        service = AgentService(config=AgentConfig(api_key="sk"))

        chunks = [chunk async for chunk in service.stream_reply(HISTORY)]

        assert chunks == ["Hel", "lo"]

    async def test_stream_maps_roles(self, mocks: tuple[MagicMock, MagicMock]) -> None:
        """The full history is forwarded with roles unchanged."""
        from smartchat.agent.chat_agent import AgentService

        mock_agent_class, _ = mocks
        arun = MagicMock(side_effect=_events())
        mock_agent_class.return_value.arun = arun
        service = AgentService(config=AgentConfig(api_key="sk"))

        _ = [chunk async for chunk in service.stream_reply(HISTORY)]

        sent = arun.call_args.args[0]
        assert [(m.role, m.content) for m in sent] == [("system", "Be brief."), ("user", "Hi")]
        assert arun.call_args.kwargs["stream"] is True

    async def test_stream_error_event_raises(self, mocks: tuple[MagicMock, MagicMock]) -> None:
        """Run errors surface as UpstreamCompletionError."""
        from smartchat.agent.chat_agent import AgentService

        mock_agent_class, _ = mocks
        mock_agent_class.return_value.arun = _events(
            SimpleNamespace(event="RunError", content="rate limited"),
        )
        service = AgentService(config=AgentConfig(api_key="sk"))

        with pytest.raises(UpstreamCompletionError, match="rate limited"):
            _ = [chunk async for chunk in service.stream_reply(HISTORY)]

    async def test_stream_provider_exception_raises(self, mocks: tuple[MagicMock, MagicMock]) -> None:
        """Provider exceptions are wrapped."""
        from smartchat.agent.chat_agent import AgentService

        mock_agent_class, _ = mocks
        mock_agent_class.return_value.arun = MagicMock(side_effect=RuntimeError("401"))
        service = AgentService(config=AgentConfig(api_key="sk"))

        with pytest.raises(UpstreamCompletionError, match="401"):
            _ = [chunk async for chunk in service.stream_reply(HISTORY)]

    async def test_request_options_override_config(self, mocks: tuple[MagicMock, MagicMock]) -> None:
        """Per-request options build a one-off agent merged with config."""
        from smartchat.agent.chat_agent import AgentService

        mock_agent_class, mock_openai_chat = mocks
        mock_agent_class.return_value.arun = _events()
        service = AgentService(config=AgentConfig(api_key="sk", max_tokens=100, temperature=0.7))

        _ = [
            chunk
            async for chunk in service.stream_reply(HISTORY, GenerationOptions(temperature=0.1))
        ]

        assert mock_openai_chat.call_count == 2
        assert mock_openai_chat.call_args.kwargs["temperature"] == 0.1
        assert mock_openai_chat.call_args.kwargs["max_tokens"] == 100

    async def test_get_reply(self, mocks: tuple[MagicMock, MagicMock]) -> None:
        """Non-streaming returns the response content."""
        from smartchat.agent.chat_agent import AgentService

        mock_agent_class, _ = mocks
        mock_agent_class.return_value.arun = AsyncMock(return_value=SimpleNamespace(content="Done"))
        service = AgentService(config=AgentConfig(api_key="sk"))

        assert await service.get_reply(HISTORY) == "Done"


class TestGetAgentService:
    """Tests for get_agent_service singleton function."""

    def test_singleton_returns_same_instance(self) -> None:
        """get_agent_service returns the same instance on multiple calls."""
        import smartchat.agent.chat_agent as chat_agent_module

        # Reset singleton
        chat_agent_module._agent_service = None

        with patch.object(chat_agent_module, "AgentService") as mock_service:
            mock_instance = MagicMock()
            mock_service.return_value = mock_instance

            first = chat_agent_module.get_agent_service()
            second = chat_agent_module.get_agent_service()

            assert first is second
            mock_service.assert_called_once()

        chat_agent_module._agent_service = None
