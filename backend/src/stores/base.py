from abc import ABC, abstractmethod
from typing import Any

from models.chunk import IndexMatch


class BaseVectorStore(ABC):
    """Abstract base class for keyed similarity indexes.

    Entries are addressed by string id; upserting an existing id replaces the
    stored vector and metadata instead of adding a new entry.
    """

    def __init__(self, dimension: int, **kwargs: Any):
        self.dimension = dimension

    def open(self) -> None:
        """Load persisted state; stores without any are always open."""

    @abstractmethod
    def upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        metadata_list: list[dict[str, Any]],
    ) -> None:
        """Insert or overwrite entries."""
        pass

    @abstractmethod
    def query(self, vector: list[float], top_k: int = 4) -> list[IndexMatch]:
        """Return the top_k nearest entries, most similar first."""
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Delete all entries from the store."""
        pass

    @property
    @abstractmethod
    def count(self) -> int:
        """Return the number of vectors in the store."""
        pass
