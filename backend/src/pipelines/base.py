from pathlib import Path
from typing import Any, Callable

from adapters import BaseEmbedder, BaseLLM, create_embedder, create_llm
from config import get_config_value, get_int_value, get_storage_dir
from stores import BaseVectorStore, create_vector_store

DEFAULT_BATCH_SIZE = 8
DEFAULT_MAX_INPUT_CHARS = 2000
DEFAULT_TOP_K = 4
DEFAULT_INDEX_NAME = "clauses"
DEFAULT_INDEX_DIMENSION = 1536


def _create_adapter_from_config(
    config: dict[str, Any],
    section: str,
    create_fn: Callable[..., Any],
    defaults: dict[str, str],
) -> Any:
    """Create an adapter (embedder or LLM) from configuration."""
    section_config = config.get(section, {})
    provider = section_config.get("provider", defaults["provider"])
    model = section_config.get("model") or defaults["model"]

    extra_kwargs = {
        k: v for k, v in section_config.items() if k not in ("provider", "model")
    }

    return create_fn(provider, model=model, **extra_kwargs)


def create_embedder_from_config(config: dict[str, Any]) -> BaseEmbedder:
    defaults = {"provider": "openai", "model": "text-embedding-3-small"}
    return _create_adapter_from_config(config, "embedding", create_embedder, defaults)


def create_llm_from_config(config: dict[str, Any]) -> BaseLLM:
    defaults = {"provider": "openai", "model": "gpt-4o-mini"}
    return _create_adapter_from_config(config, "llm", create_llm, defaults)


def get_vector_store_paths(
    config: dict[str, Any], config_path: Path, index_name: str
) -> tuple[Path, Path]:
    """Get index and metadata paths for the named similarity index."""
    storage_dir = get_storage_dir(config, config_path)
    index_id = index_name.replace("/", "_").replace("-", "_")
    return (
        storage_dir / f"faiss_{index_id}.index",
        storage_dir / f"faiss_{index_id}.json",
    )


def create_vector_store_from_config(
    config: dict[str, Any], config_path: Path | None = None
) -> BaseVectorStore:
    """Create the similarity index; persisted only when a config path is known."""
    provider = get_config_value(config, "index.provider", "faiss")
    index_name = get_config_value(config, "index.name") or DEFAULT_INDEX_NAME
    dimension = get_int_value(config, "index.dimension", DEFAULT_INDEX_DIMENSION)

    kwargs: dict[str, Any] = {}
    if config_path is not None:
        index_path, metadata_path = get_vector_store_paths(
            config, config_path, index_name
        )
        kwargs = {"index_path": index_path, "metadata_path": metadata_path}
    return create_vector_store(provider, dimension=dimension, **kwargs)
