"""Exception hierarchy for the question answering pipeline."""

from typing import Any


class ClauseRAGError(Exception):
    """Base class for all pipeline errors."""


class PipelineStepError(ClauseRAGError):
    """A structural failure that aborts the whole request.

    Attributes:
        step: Name of the pipeline step that failed (e.g. "validate", "load").
    """

    step = "pipeline"

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step, "error": str(self)}


class RequestValidationError(PipelineStepError, ValueError):
    step = "validate"


class DocumentLoadError(PipelineStepError):
    step = "load"


class UnsupportedFormatError(DocumentLoadError):
    """Raised when a document reference has no supported file suffix."""

    def __init__(self, reference: str, doc_name: str, extension: str):
        self.reference = reference
        self.doc_name = doc_name
        self.extension = extension
        super().__init__(
            f"Unsupported file type: {extension or '<none>'} "
            f"(from: {doc_name}, reference: {reference})"
        )


class EmbeddingError(ClauseRAGError):
    """Embedding or index write failed; callers fall back to keyword retrieval."""
