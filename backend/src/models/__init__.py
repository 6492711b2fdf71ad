from .chunk import Chunk, Citation, IndexMatch, RetrievedChunk, StructuredAnswer
from .request import Diagnostics, QuestionError, RunRequest, RunResponse

__all__ = [
    "Chunk",
    "Citation",
    "IndexMatch",
    "RetrievedChunk",
    "StructuredAnswer",
    "Diagnostics",
    "QuestionError",
    "RunRequest",
    "RunResponse",
]
