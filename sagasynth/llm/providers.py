"""Chat-completion clients for the text generation step.

Each provider turns a list of role/content messages into one reply string plus
token counts. ``get_llm_client`` picks the provider named by
``SAGASYNTH_LLM_PROVIDER`` (Gemini unless set) and fails fast when its key or
server is missing.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sagasynth.errors import ConfigurationError


class LLMProviderType(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""
    content: str
    model: str
    input_tokens: int
    output_tokens: int
    total_tokens: int


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout: float = 120.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return the reply to ``messages``; ``json_mode`` asks for a bare JSON object."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when a key is configured or the local server answers."""

    @property
    @abstractmethod
    def provider_type(self) -> LLMProviderType:
        ...


def _split_system(messages: list[dict[str, str]]) -> tuple[str, list[dict[str, str]]]:
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    rest = [m for m in messages if m["role"] != "system"]
    return "\n\n".join(system_parts), rest


class GeminiProvider(LLMProvider):
    """Google Gemini API provider (google-genai SDK)."""

    def __init__(self, api_key: str | None = None):
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout: float = 120.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        from google.genai import types

        client = self._get_client()
        system_content, chat_messages = _split_system(messages)

        contents = [
            types.Content(
                role="user" if msg["role"] == "user" else "model",
                parts=[types.Part(text=msg["content"])],
            )
            for msg in chat_messages
        ]

        config_kwargs: dict[str, Any] = {
            "temperature": temperature,
            # google-genai expects milliseconds
            "http_options": types.HttpOptions(timeout=int(timeout * 1000)),
        }
        if max_tokens:
            config_kwargs["max_output_tokens"] = max_tokens
        if system_content:
            config_kwargs["system_instruction"] = system_content
        if json_mode:
            config_kwargs["response_mime_type"] = "application/json"

        response = client.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(**config_kwargs),
        )

        usage = response.usage_metadata
        input_tokens = (usage.prompt_token_count or 0) if usage else 0
        output_tokens = (usage.candidates_token_count or 0) if usage else 0

        return LLMResponse(
            content=response.text or "",
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
        )

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.GEMINI


class OpenAIProvider(LLMProvider):
    """OpenAI API provider."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self._api_key = api_key
        self._base_url = base_url
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import OpenAI
            # No SDK-level retries: a failed sample is skipped, not retried
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=120.0,
                max_retries=0,
            )
        return self._client

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout: float = 120.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "timeout": timeout,
        }
        if max_tokens:
            # reasoning models reject max_tokens
            if "gpt-5" in model.lower() or "o1" in model.lower() or "o3" in model.lower():
                kwargs["max_completion_tokens"] = max_tokens
            else:
                kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = client.chat.completions.create(**kwargs)

        content = response.choices[0].message.content or ""
        usage = response.usage

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else 0,
        )

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OPENAI


class AnthropicProvider(LLMProvider):
    """Anthropic API provider."""

    def __init__(self, api_key: str | None = None):
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self._api_key, max_retries=0)
        return self._client

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout: float = 120.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        client = self._get_client()

        # Anthropic has no JSON response mode; the prompt carries the shape
        system_content, api_messages = _split_system(messages)

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m["role"], "content": m["content"]} for m in api_messages],
            "max_tokens": max_tokens or 4096,
            "timeout": timeout,
        }
        if system_content:
            kwargs["system"] = system_content
        if temperature > 0:
            kwargs["temperature"] = temperature

        response = client.messages.create(**kwargs)

        content = ""
        if response.content:
            content = response.content[0].text if hasattr(response.content[0], "text") else str(response.content[0])

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens if response.usage else 0,
            output_tokens=response.usage.output_tokens if response.usage else 0,
            total_tokens=(response.usage.input_tokens + response.usage.output_tokens) if response.usage else 0,
        )

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.ANTHROPIC


class OllamaProvider(LLMProvider):
    """Ollama local API provider."""

    def __init__(self, base_url: str = "http://localhost:11434"):
        self._base_url = base_url.rstrip("/")
        self._available: bool | None = None

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout: float = 120.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        import httpx

        url = f"{self._base_url}/api/chat"

        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
            },
        }
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens
        if json_mode:
            payload["format"] = "json"

        with httpx.Client(timeout=timeout) as client:
            response = client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()

        content = data.get("message", {}).get("content", "")

        prompt_eval_count = data.get("prompt_eval_count", 0)
        eval_count = data.get("eval_count", 0)

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            input_tokens=prompt_eval_count,
            output_tokens=eval_count,
            total_tokens=prompt_eval_count + eval_count,
        )

    def is_available(self) -> bool:
        if self._available is not None:
            return self._available

        import httpx
        try:
            with httpx.Client(timeout=5.0) as client:
                response = client.get(f"{self._base_url}/api/tags")
                self._available = response.status_code == 200
        except (httpx.HTTPError, OSError):
            self._available = False

        return self._available

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OLLAMA


def get_llm_client(
    provider: LLMProviderType | str | None = None,
    *,
    google_api_key: str | None = None,
    openai_api_key: str | None = None,
    openai_base_url: str | None = None,
    anthropic_api_key: str | None = None,
    ollama_base_url: str | None = None,
) -> LLMProvider:
    """Build the configured provider; keyword arguments override the environment.

    Raises ConfigurationError when the provider is unknown, has no key, or (for
    Ollama) its server does not answer.
    """
    if provider is None:
        provider = os.environ.get("SAGASYNTH_LLM_PROVIDER", "gemini")

    if isinstance(provider, str):
        try:
            provider = LLMProviderType(provider.lower())
        except ValueError as e:
            raise ConfigurationError(f"Unknown provider: {provider}") from e

    client: LLMProvider

    if provider == LLMProviderType.GEMINI:
        api_key = google_api_key or os.environ.get("GOOGLE_API_KEY")
        client = GeminiProvider(api_key=api_key)
        if not client.is_available():
            raise ConfigurationError("Gemini provider requires GOOGLE_API_KEY")

    elif provider == LLMProviderType.OPENAI:
        api_key = openai_api_key or os.environ.get("OPENAI_API_KEY")
        base_url = openai_base_url or os.environ.get("OPENAI_BASE_URL")
        client = OpenAIProvider(api_key=api_key, base_url=base_url)
        if not client.is_available():
            raise ConfigurationError("OpenAI provider requires OPENAI_API_KEY")

    elif provider == LLMProviderType.ANTHROPIC:
        api_key = anthropic_api_key or os.environ.get("ANTHROPIC_API_KEY")
        client = AnthropicProvider(api_key=api_key)
        if not client.is_available():
            raise ConfigurationError("Anthropic provider requires ANTHROPIC_API_KEY")

    elif provider == LLMProviderType.OLLAMA:
        base_url = ollama_base_url or os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
        client = OllamaProvider(base_url=base_url)
        if not client.is_available():
            raise ConfigurationError(f"Ollama server not available at {base_url}")

    else:
        raise ConfigurationError(f"Unknown provider: {provider}")

    return client


DEFAULT_MODELS = {
    LLMProviderType.GEMINI: "gemini-2.5-flash",
    LLMProviderType.OPENAI: "gpt-4o-mini",
    LLMProviderType.ANTHROPIC: "claude-3-5-haiku-20241022",
    LLMProviderType.OLLAMA: "llama3.1",
}


def get_default_model(provider: LLMProviderType) -> str:
    return DEFAULT_MODELS[provider]
