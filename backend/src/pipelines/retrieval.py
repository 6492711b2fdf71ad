import logging
import re
from abc import ABC, abstractmethod
from typing import Sequence

from models.chunk import Chunk, RetrievedChunk
from stores import BaseVectorStore
from .base import DEFAULT_TOP_K
from .ingestion import ChunkEmbedder

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"\W+")


class BaseRetriever(ABC):
    """Returns the chunks most relevant to a question, best first."""

    strategy: str = "base"

    @abstractmethod
    def retrieve(self, question: str, top_k: int = DEFAULT_TOP_K) -> list[RetrievedChunk]:
        pass


class VectorRetriever(BaseRetriever):
    """Similarity search over the chunks upserted for this request."""

    strategy = "vector"

    def __init__(self, chunk_embedder: ChunkEmbedder, vector_store: BaseVectorStore):
        self.chunk_embedder = chunk_embedder
        self.vector_store = vector_store

    def retrieve(self, question: str, top_k: int = DEFAULT_TOP_K) -> list[RetrievedChunk]:
        logger.info(f"Vector search for: {question[:50]}...")
        query_vector = self.chunk_embedder.embed_query(question)
        matches = self.vector_store.query(query_vector, top_k=top_k)

        return [
            RetrievedChunk(
                doc_name=match.metadata["doc_name"],
                chunk_id=match.metadata["chunk_id"],
                text=match.metadata["text"],
                score=match.score,
            )
            for match in matches
        ]


def question_terms(question: str) -> list[str]:
    """Distinct lower-cased word terms of a question, in order of appearance."""
    terms = (t for t in _NON_WORD.split(question.lower()) if t)
    return list(dict.fromkeys(terms))


def keyword_score(terms: Sequence[str], text: str) -> int:
    """Number of terms contained (as substrings) in the lower-cased text."""
    haystack = text.lower()
    return sum(1 for term in terms if term in haystack)


class KeywordRetriever(BaseRetriever):
    """Keyword-overlap ranking used when embedding or indexing failed.

    Every chunk scores one point per distinct question term found anywhere in
    its text. Sorting is stable, so equal scores keep the loader's order.
    """

    strategy = "keyword"

    def __init__(self, chunks: Sequence[Chunk]):
        self.chunks = list(chunks)

    def retrieve(self, question: str, top_k: int = DEFAULT_TOP_K) -> list[RetrievedChunk]:
        terms = question_terms(question)
        scored = [
            RetrievedChunk(
                doc_name=chunk.doc_name,
                chunk_id=chunk.chunk_id,
                text=chunk.text,
                score=float(keyword_score(terms, chunk.text)),
            )
            for chunk in self.chunks
        ]
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored[:top_k]
