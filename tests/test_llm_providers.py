"""Tests for LLM provider abstraction."""
from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
import respx

from sagasynth.errors import ConfigurationError
from sagasynth.llm.providers import (
    DEFAULT_MODELS,
    AnthropicProvider,
    GeminiProvider,
    LLMProviderType,
    OllamaProvider,
    OpenAIProvider,
    get_default_model,
    get_llm_client,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SAGASYNTH_LLM_PROVIDER",
        "GOOGLE_API_KEY",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "ANTHROPIC_API_KEY",
        "OLLAMA_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestGeminiProvider:
    def test_is_available_with_key(self) -> None:
        assert GeminiProvider(api_key="test-key").is_available() is True

    def test_is_available_without_key(self) -> None:
        assert GeminiProvider(api_key=None).is_available() is False

    def test_provider_type(self) -> None:
        assert GeminiProvider(api_key="k").provider_type == LLMProviderType.GEMINI

    def test_chat_completion_requests_json(self) -> None:
        from google import genai

        with patch.object(genai, "Client") as mock_client_class:
            mock_client = MagicMock()
            mock_client_class.return_value = mock_client
            mock_response = MagicMock()
            mock_response.text = '{"ok": true}'
            mock_response.usage_metadata = MagicMock(prompt_token_count=12, candidates_token_count=8)
            mock_client.models.generate_content.return_value = mock_response

            provider = GeminiProvider(api_key="test-key")
            result = provider.chat_completion(
                messages=[
                    {"role": "system", "content": "Be terse."},
                    {"role": "user", "content": "Hi"},
                ],
                model="gemini-2.5-flash",
                temperature=0.7,
                max_tokens=3000,
                json_mode=True,
            )

            mock_client_class.assert_called_once_with(api_key="test-key")
            call_kwargs = mock_client.models.generate_content.call_args.kwargs
            assert call_kwargs["model"] == "gemini-2.5-flash"
            config = call_kwargs["config"]
            assert config.response_mime_type == "application/json"
            assert config.max_output_tokens == 3000
            assert config.system_instruction == "Be terse."
            assert len(call_kwargs["contents"]) == 1

            assert result.content == '{"ok": true}'
            assert result.input_tokens == 12
            assert result.output_tokens == 8
            assert result.total_tokens == 20

    def test_missing_text_becomes_empty_string(self) -> None:
        from google import genai

        with patch.object(genai, "Client") as mock_client_class:
            mock_response = MagicMock(text=None, usage_metadata=None)
            mock_client_class.return_value.models.generate_content.return_value = mock_response

            result = GeminiProvider(api_key="k").chat_completion(
                messages=[{"role": "user", "content": "Hi"}], model="gemini-2.5-flash"
            )

            assert result.content == ""
            assert result.total_tokens == 0


class TestOpenAIProvider:
    def test_provider_type(self) -> None:
        assert OpenAIProvider(api_key="k").provider_type == LLMProviderType.OPENAI

    def test_json_mode_sets_response_format(self) -> None:
        import openai

        with patch.object(openai, "OpenAI") as mock_openai_class:
            mock_client = MagicMock()
            mock_openai_class.return_value = mock_client
            mock_response = MagicMock()
            mock_response.choices = [MagicMock(message=MagicMock(content='{"a": 1}'))]
            mock_response.model = "gpt-4o-mini"
            mock_response.usage = MagicMock(prompt_tokens=10, completion_tokens=5, total_tokens=15)
            mock_client.chat.completions.create.return_value = mock_response

            provider = OpenAIProvider(api_key="test-key")
            result = provider.chat_completion(
                messages=[{"role": "user", "content": "Hi"}],
                model="gpt-4o-mini",
                max_tokens=100,
                json_mode=True,
            )

            call_kwargs = mock_client.chat.completions.create.call_args.kwargs
            assert call_kwargs["response_format"] == {"type": "json_object"}
            assert call_kwargs["max_tokens"] == 100
            assert mock_openai_class.call_args.kwargs["max_retries"] == 0
            assert result.content == '{"a": 1}'
            assert result.total_tokens == 15

    def test_reasoning_models_use_max_completion_tokens(self) -> None:
        import openai

        with patch.object(openai, "OpenAI") as mock_openai_class:
            mock_client = mock_openai_class.return_value
            mock_response = MagicMock()
            mock_response.choices = [MagicMock(message=MagicMock(content="x"))]
            mock_response.usage = None
            mock_client.chat.completions.create.return_value = mock_response

            OpenAIProvider(api_key="k").chat_completion(
                messages=[{"role": "user", "content": "Hi"}], model="o3-mini", max_tokens=50
            )

            call_kwargs = mock_client.chat.completions.create.call_args.kwargs
            assert call_kwargs["max_completion_tokens"] == 50
            assert "max_tokens" not in call_kwargs
            assert "response_format" not in call_kwargs


class TestAnthropicProvider:
    def test_is_available_without_key(self) -> None:
        assert AnthropicProvider(api_key=None).is_available() is False

    def test_chat_completion_separates_system_message(self) -> None:
        import anthropic

        with patch.object(anthropic, "Anthropic") as mock_anthropic_class:
            mock_client = MagicMock()
            mock_anthropic_class.return_value = mock_client
            mock_response = MagicMock()
            mock_response.content = [MagicMock(text="Hello from Claude!")]
            mock_response.model = "claude-3-5-haiku-20241022"
            mock_response.usage = MagicMock(input_tokens=10, output_tokens=5)
            mock_client.messages.create.return_value = mock_response

            provider = AnthropicProvider(api_key="test-key")
            result = provider.chat_completion(
                messages=[
                    {"role": "system", "content": "You are helpful."},
                    {"role": "user", "content": "Hi"},
                ],
                model="claude-3-5-haiku-20241022",
                temperature=0.5,
                json_mode=True,
            )

            call_kwargs = mock_client.messages.create.call_args.kwargs
            assert call_kwargs["system"] == "You are helpful."
            assert call_kwargs["messages"] == [{"role": "user", "content": "Hi"}]
            assert call_kwargs["max_tokens"] == 4096
            assert result.content == "Hello from Claude!"
            assert result.total_tokens == 15


class TestOllamaProvider:
    def test_custom_base_url(self) -> None:
        provider = OllamaProvider(base_url="http://custom:8080/")
        assert provider._base_url == "http://custom:8080"  # trailing slash stripped

    @respx.mock
    def test_json_mode_sends_format(self) -> None:
        route = respx.post("http://ollama.test/api/chat").mock(
            return_value=httpx.Response(
                200,
                json={
                    "model": "llama3.1",
                    "message": {"role": "assistant", "content": '{"x": 1}'},
                    "prompt_eval_count": 3,
                    "eval_count": 4,
                },
            )
        )

        result = OllamaProvider(base_url="http://ollama.test").chat_completion(
            messages=[{"role": "user", "content": "Hi"}],
            model="llama3.1",
            max_tokens=64,
            json_mode=True,
        )

        sent = json.loads(route.calls.last.request.content)
        assert sent["format"] == "json"
        assert sent["stream"] is False
        assert sent["options"]["num_predict"] == 64
        assert result.content == '{"x": 1}'
        assert result.total_tokens == 7

    @respx.mock
    def test_unreachable_server_is_unavailable(self) -> None:
        respx.get("http://ollama.test/api/tags").mock(side_effect=httpx.ConnectError("refused"))
        assert OllamaProvider(base_url="http://ollama.test").is_available() is False


class TestGetLLMClient:
    def test_defaults_to_gemini(self) -> None:
        client = get_llm_client(google_api_key="test-key")
        assert isinstance(client, GeminiProvider)

    def test_get_client_from_string(self) -> None:
        client = get_llm_client(provider="OpenAI", openai_api_key="test-key")
        assert isinstance(client, OpenAIProvider)

    def test_provider_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAGASYNTH_LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        assert isinstance(get_llm_client(), AnthropicProvider)

    @pytest.mark.parametrize(
        ("provider", "message"),
        [
            (LLMProviderType.GEMINI, "GOOGLE_API_KEY"),
            (LLMProviderType.OPENAI, "OPENAI_API_KEY"),
            (LLMProviderType.ANTHROPIC, "ANTHROPIC_API_KEY"),
        ],
    )
    def test_missing_key_is_configuration_error(self, provider: LLMProviderType, message: str) -> None:
        with pytest.raises(ConfigurationError, match=message):
            get_llm_client(provider=provider)

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            get_llm_client(provider="mistral")

    @patch("sagasynth.llm.providers.OllamaProvider.is_available", return_value=False)
    def test_unavailable_ollama(self, mock_available: MagicMock) -> None:
        with pytest.raises(ConfigurationError, match="Ollama server not available"):
            get_llm_client(provider=LLMProviderType.OLLAMA, ollama_base_url="http://ollama.test")


class TestDefaultModels:
    def test_every_provider_has_a_default(self) -> None:
        assert set(DEFAULT_MODELS) == set(LLMProviderType)

    def test_get_default_model(self) -> None:
        assert get_default_model(LLMProviderType.GEMINI) == "gemini-2.5-flash"
        assert get_default_model(LLMProviderType.OLLAMA) == "llama3.1"
