from typing import Any

from .base import BaseVectorStore
from .faiss import FAISSVectorStore

VectorStore = FAISSVectorStore


def create_vector_store(
    provider: str,
    dimension: int,
    **kwargs: Any,
) -> BaseVectorStore:
    """Create a vector store instance based on provider.

    Args:
        provider: Provider name (currently only "faiss" supported)
        dimension: Vector dimension the index is provisioned with
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseVectorStore instance
    """
    if provider == "faiss":
        return FAISSVectorStore(dimension=dimension, **kwargs)
    raise ValueError(f"Unknown vector store provider: {provider}")


__all__ = ["BaseVectorStore", "FAISSVectorStore", "VectorStore", "create_vector_store"]
