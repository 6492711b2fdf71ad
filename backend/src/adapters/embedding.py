import os
from typing import Any, Optional

from openai import OpenAI

from adapters.base import BaseEmbedder
from adapters.utils import create_session_with_pooling, post_json

# Native output lengths; anything else is assumed to be 1536 unless
# `dimensions` is configured.
EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

DEFAULT_OPENAI_DIMENSION = 1536
DEFAULT_OLLAMA_DIMENSION = 768
DEFAULT_REQUEST_TIMEOUT = 30


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI (or OpenAI-compatible) embeddings endpoint."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        dimensions: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.client = OpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.dimensions = int(dimensions) if dimensions else None

    @property
    def dimension(self) -> int:
        if self.dimensions:
            return self.dimensions
        return EMBEDDING_DIMENSIONS.get(self.model, DEFAULT_OPENAI_DIMENSION)

    def embed(self, text: str) -> list[float]:
        params: dict[str, Any] = {"model": self.model, "input": text}
        if self.dimensions:
            params["dimensions"] = self.dimensions
        response = self.client.embeddings.create(**params)
        return response.data[0].embedding


class OllamaEmbedder(BaseEmbedder):
    """Local Ollama embeddings endpoint over a pooled session."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        dimension: int = DEFAULT_OLLAMA_DIMENSION,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._dimension = int(dimension)
        self.session = create_session_with_pooling()

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        data = post_json(
            self.session,
            f"{self.base_url}/api/embeddings",
            {"model": self.model, "prompt": text},
            self.timeout,
        )
        return data["embedding"]
