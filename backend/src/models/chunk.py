"""Data models for ClauseRAG."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """A fixed-size window of words taken from one document.

    Attributes:
        doc_name: Name of the source document (last path segment of its URL).
        chunk_id: Ordinal position of the chunk within its document, from 0.
        text: The chunk text, words joined by single spaces.
    """

    model_config = ConfigDict(frozen=True)

    doc_name: str
    chunk_id: int = Field(ge=0)
    text: str

    @property
    def key(self) -> str:
        """Similarity index id for this chunk."""
        return f"{self.doc_name}_{self.chunk_id}"

    def citation(self) -> "Citation":
        return Citation(doc_name=self.doc_name, chunk_id=self.chunk_id)


class RetrievedChunk(Chunk):
    """A chunk returned for a question, with its relevance score if known."""

    score: Optional[float] = None


class Citation(BaseModel):
    doc_name: str
    chunk_id: int


class StructuredAnswer(BaseModel):
    """Answer text plus the chunks it was drawn from."""

    answer: str
    citations: list[Citation] = Field(default_factory=list)


class IndexMatch(BaseModel):
    """A single similarity index hit."""

    id: str
    score: float
    metadata: dict = Field(default_factory=dict)
