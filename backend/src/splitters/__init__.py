from .base import BaseTextSplitter
from .word import DEFAULT_CHUNK_SIZE, WordWindowSplitter

TextSplitter = WordWindowSplitter

__all__ = ["BaseTextSplitter", "WordWindowSplitter", "TextSplitter", "DEFAULT_CHUNK_SIZE"]
