from abc import ABC, abstractmethod
from typing import Sequence

from models.chunk import Chunk


class BaseDocumentLoader(ABC):
    """Abstract base class for document loaders."""

    @abstractmethod
    def load(self, documents: str | Sequence[str]) -> list[Chunk]:
        """Load every referenced document, in order, and return its chunks."""
        pass

    @abstractmethod
    def load_document(self, reference: str) -> list[Chunk]:
        """Load and chunk a single document."""
        pass
