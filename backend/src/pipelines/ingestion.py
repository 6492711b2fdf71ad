import logging
import time
from typing import Any, Callable, Optional, Sequence

from adapters import BaseEmbedder
from adapters.retry import RetryPolicy, call_with_retry
from config import get_int_value
from errors import EmbeddingError
from models.chunk import Chunk
from stores import BaseVectorStore
from .base import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_INPUT_CHARS,
    create_embedder_from_config,
    create_vector_store_from_config,
)
from .utils import adapt_to_dimension

logger = logging.getLogger(__name__)


class ChunkEmbedder:
    """Embeds chunk texts and upserts them into the similarity index.

    Texts are embedded in batches, one provider call per text, each call
    wrapped in the retry policy. Vectors are adapted to the index dimension
    before they are stored or used for queries.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        vector_store: BaseVectorStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_input_chars: int = DEFAULT_MAX_INPUT_CHARS,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.batch_size = batch_size
        self.max_input_chars = max_input_chars
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: dict[str, Any], config_path=None) -> "ChunkEmbedder":
        return cls(
            embedder=create_embedder_from_config(config),
            vector_store=create_vector_store_from_config(config, config_path),
            batch_size=get_int_value(config, "ingestion.batch_size", DEFAULT_BATCH_SIZE),
            max_input_chars=get_int_value(
                config, "ingestion.max_input_chars", DEFAULT_MAX_INPUT_CHARS
            ),
            retry_policy=RetryPolicy.from_config(config),
        )

    @property
    def dimension(self) -> int:
        return self.vector_store.dimension

    def _embed_one(self, text: str) -> list[float]:
        truncated = text[: self.max_input_chars]
        vector = call_with_retry(
            lambda: self.embedder.embed(truncated), self.retry_policy, self.sleep
        )
        return adapt_to_dimension(vector, self.dimension)

    def embed_text(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts in order, returning one index-dimension vector per text."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            vectors.extend(self._embed_one(text) for text in batch)
            logger.debug(
                f"Embedded batch {start // self.batch_size + 1} "
                f"({len(vectors)}/{len(texts)} texts)"
            )
        return vectors

    def embed_query(self, question: str) -> list[float]:
        return self._embed_one(question)

    def embed(self, chunks: Sequence[Chunk]) -> BaseVectorStore:
        """Embed chunks and upsert them keyed by "<doc_name>_<chunk_id>".

        The index is opened first, so an unreadable index or one provisioned
        with another dimension fails here rather than at query time.

        Raises:
            EmbeddingError: If the index cannot be opened, or any embedding
                call or the index write fails.
        """
        try:
            self.vector_store.open()
        except Exception as e:
            raise EmbeddingError(f"Failed to open similarity index: {e}") from e

        if not chunks:
            return self.vector_store

        native = self.embedder.dimension
        logger.info(
            f"Embedding {len(chunks)} chunks with {self.embedder.model} "
            f"(batch size {self.batch_size}, dimension {native} -> {self.dimension})"
        )
        try:
            vectors = self.embed_text([c.text for c in chunks])
            self.vector_store.upsert(
                ids=[c.key for c in chunks],
                embeddings=vectors,
                metadata_list=[
                    {"doc_name": c.doc_name, "chunk_id": c.chunk_id, "text": c.text}
                    for c in chunks
                ],
            )
        except Exception as e:
            raise EmbeddingError(f"Failed to embed {len(chunks)} chunks: {e}") from e

        logger.info(f"Upserted {len(chunks)} vectors (index size {self.vector_store.count})")
        return self.vector_store
