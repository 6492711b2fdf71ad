from abc import ABC, abstractmethod

from models.chunk import Chunk


class BaseTextSplitter(ABC):
    """Abstract base class for text splitters."""

    @abstractmethod
    def chunk(self, text: str, doc_name: str) -> list[Chunk]:
        """Split a document's text into chunks tagged with doc_name."""
        pass

    @abstractmethod
    def split_text(self, text: str) -> list[str]:
        """Split raw text into chunk strings without metadata."""
        pass
