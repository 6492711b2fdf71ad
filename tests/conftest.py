from pathlib import Path
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from adapters.base import BaseEmbedder, BaseLLM
from adapters.retry import RetryPolicy
from models.chunk import Chunk
from pipelines import ChunkEmbedder, ClauseAnswerer
from stores import VectorStore


class APIStatusError(Exception):
    """Stand-in for a provider error carrying an HTTP status."""

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class MockEmbedder(BaseEmbedder):
    """Mock embedder for testing.

    Returns vectors from `vectors` when the text is known, otherwise a
    constant vector of the native dimension. Every input is recorded.
    """

    def __init__(
        self,
        dimension: int = 3,
        vectors: Optional[dict[str, list[float]]] = None,
        **kwargs: Any,
    ):
        super().__init__("mock-embedder", **kwargs)
        self._dimension = dimension
        self.vectors = vectors or {}
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.vectors.get(text, [0.1] * self._dimension)


class MockLLM(BaseLLM):
    """Mock LLM for testing; replies with `responses` in turn."""

    def __init__(self, *responses: str, model: str = "mock-llm", **kwargs: Any):
        super().__init__(model, **kwargs)
        self.responses = list(responses) or ['{"answer": "Mock answer", "citations": []}']
        self.prompts: list[str] = []

    def generate(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        return self.generate(messages[-1]["content"], **kwargs)


def make_response(content: bytes = b"", status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.content = content
    response.status_code = status_code
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    return sleeps.append


@pytest.fixture
def mock_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=3)


@pytest.fixture
def mock_llm() -> MockLLM:
    return MockLLM()


@pytest.fixture
def vector_store() -> VectorStore:
    return VectorStore(dimension=9)


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def temp_vector_store(temp_storage_dir: Path) -> VectorStore:
    return VectorStore(
        dimension=4,
        index_path=temp_storage_dir / "test.index",
        metadata_path=temp_storage_dir / "test.json",
    )


@pytest.fixture
def chunk_embedder(
    mock_embedder: MockEmbedder, vector_store: VectorStore, fake_sleep
) -> ChunkEmbedder:
    return ChunkEmbedder(
        embedder=mock_embedder,
        vector_store=vector_store,
        retry_policy=RetryPolicy(),
        sleep=fake_sleep,
    )


@pytest.fixture
def answerer(mock_llm: MockLLM, fake_sleep) -> ClauseAnswerer:
    return ClauseAnswerer(mock_llm, sleep=fake_sleep)


@pytest.fixture
def sample_chunks() -> list[Chunk]:
    return [
        Chunk(doc_name="policy.pdf", chunk_id=0, text="Hospitalisation cover and room rent limits."),
        Chunk(doc_name="policy.pdf", chunk_id=1, text="A grace period of thirty days applies to premium payment."),
        Chunk(doc_name="policy.pdf", chunk_id=2, text="Maternity expenses are covered after two years."),
        Chunk(doc_name="terms.docx", chunk_id=0, text="The grace period is waived for monthly plans."),
    ]


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    config_content = """
[embedding]
provider = "openai"
model = "text-embedding-3-small"
api_key = "test-key"

[llm]
provider = "openai"
model = "gpt-4o-mini"
api_key = "test-key"
temperature = 0.2
max_tokens = 350

[index]
provider = "faiss"
name = "test-index"
dimension = "${TEST_VECTOR_DIM:-12}"

[storage]
directory = "storage"

[ingestion]
chunk_size = 500
batch_size = 8
max_input_chars = 2000
max_chunks = "${TEST_MAX_CHUNKS:-}"

[retrieval]
top_k = 4

[retry]
max_attempts = 3
base_delay = 0.5
max_delay = 2.0
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path
