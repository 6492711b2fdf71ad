"""Embedding and chat model providers, created by name from config."""

from typing import Any, Type, TypeVar

from adapters.base import BaseEmbedder, BaseLLM
from adapters.embedding import OllamaEmbedder, OpenAIEmbedder
from adapters.llm import OllamaLLM, OpenAILLM
from adapters.retry import RetryPolicy, call_with_retry, is_retryable

T = TypeVar("T")

_EMBEDDERS: dict[str, Type[BaseEmbedder]] = {
    "openai": OpenAIEmbedder,
    "ollama": OllamaEmbedder,
}
_LLMS: dict[str, Type[BaseLLM]] = {
    "openai": OpenAILLM,
    "ollama": OllamaLLM,
}


def _create(registry: dict[str, Type[T]], label: str, provider: str, **kwargs: Any) -> T:
    try:
        cls = registry[provider]
    except KeyError:
        raise ValueError(
            f"Unknown {label} provider: {provider}. Available: {sorted(registry)}"
        ) from None
    return cls(**kwargs)


def register_embedder(provider: str, cls: Type[BaseEmbedder]) -> None:
    _EMBEDDERS[provider] = cls


def register_llm(provider: str, cls: Type[BaseLLM]) -> None:
    _LLMS[provider] = cls


def create_embedder(provider: str, **kwargs: Any) -> BaseEmbedder:
    """Create an embedder for a registered provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    return _create(_EMBEDDERS, "embedder", provider, **kwargs)


def create_llm(provider: str, **kwargs: Any) -> BaseLLM:
    """Create a chat model for a registered provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    return _create(_LLMS, "LLM", provider, **kwargs)


def list_embedder_providers() -> list[str]:
    return sorted(_EMBEDDERS)


def list_llm_providers() -> list[str]:
    return sorted(_LLMS)


__all__ = [
    "BaseEmbedder",
    "BaseLLM",
    "OpenAIEmbedder",
    "OllamaEmbedder",
    "OpenAILLM",
    "OllamaLLM",
    "RetryPolicy",
    "call_with_retry",
    "is_retryable",
    "create_embedder",
    "create_llm",
    "list_embedder_providers",
    "list_llm_providers",
    "register_embedder",
    "register_llm",
]
