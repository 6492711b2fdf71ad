from abc import ABC, abstractmethod
from typing import Any, Optional

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 350


class BaseEmbedder(ABC):
    """Abstract base class for embedding providers.

    Implementations return the provider's native vector length; adapting to
    the similarity index dimension happens in the ingestion pipeline.
    """

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Native output length of the embedding model."""
        pass


class BaseLLM(ABC):
    """Abstract base class for chat model providers.

    Providers implement `chat`; `generate` sends a single user prompt
    (optionally preceded by a system message) through it.
    """

    def __init__(
        self,
        model: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = DEFAULT_MAX_TOKENS,
        **kwargs: Any,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.kwargs = kwargs

    def sampling(self, **overrides: Any) -> tuple[float, Optional[int]]:
        """Temperature and token limit for one call, with per-call overrides."""
        return (
            overrides.get("temperature", self.temperature),
            overrides.get("max_tokens", self.max_tokens),
        )

    def generate(self, prompt: str, system: Optional[str] = None, **kwargs: Any) -> str:
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        return self.chat(messages, **kwargs)

    @abstractmethod
    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        pass
