from typing import Any

from .base import BaseDocumentLoader
from .extractors import EXTRACTORS, list_supported_formats
from .remote import RemoteDocumentLoader, document_format, document_name


def create_loader(provider: str = "remote", **kwargs: Any) -> BaseDocumentLoader:
    """Create a document loader based on provider.

    Args:
        provider: Provider name ("remote" or "auto")
        **kwargs: Additional loader parameters

    Returns:
        BaseDocumentLoader instance
    """
    if provider in ("remote", "auto"):
        return RemoteDocumentLoader(**kwargs)
    raise ValueError(f"Unknown loader provider: {provider}")


__all__ = [
    "BaseDocumentLoader",
    "RemoteDocumentLoader",
    "EXTRACTORS",
    "create_loader",
    "document_format",
    "document_name",
    "list_supported_formats",
]
