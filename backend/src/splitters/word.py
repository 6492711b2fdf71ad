from models.chunk import Chunk
from .base import BaseTextSplitter

DEFAULT_CHUNK_SIZE = 500


class WordWindowSplitter(BaseTextSplitter):
    """Splits text into consecutive, non-overlapping windows of words.

    500 whitespace-separated words approximate 400-500 model tokens. The last
    window may be shorter.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size

    def split_text(self, text: str) -> list[str]:
        words = text.split()
        return [
            " ".join(words[i : i + self.chunk_size])
            for i in range(0, len(words), self.chunk_size)
        ]

    def chunk(self, text: str, doc_name: str) -> list[Chunk]:
        return [
            Chunk(doc_name=doc_name, chunk_id=chunk_id, text=window)
            for chunk_id, window in enumerate(self.split_text(text))
        ]
