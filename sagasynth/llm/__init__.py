"""Text generation providers behind one chat-completion interface."""

from sagasynth.llm.providers import (
    DEFAULT_MODELS,
    AnthropicProvider,
    GeminiProvider,
    LLMProvider,
    LLMProviderType,
    LLMResponse,
    OllamaProvider,
    OpenAIProvider,
    get_default_model,
    get_llm_client,
)

__all__ = [
    "LLMProvider",
    "LLMProviderType",
    "LLMResponse",
    "GeminiProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "OllamaProvider",
    "get_llm_client",
    "get_default_model",
    "DEFAULT_MODELS",
]
