from .base import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_INPUT_CHARS,
    DEFAULT_TOP_K,
    create_embedder_from_config,
    create_llm_from_config,
    create_vector_store_from_config,
    get_vector_store_paths,
)
from .generation import ClauseAnswerer, build_prompt, parse_answer, strip_code_fences
from .ingestion import ChunkEmbedder
from .retrieval import BaseRetriever, KeywordRetriever, VectorRetriever
from .run import QuestionAnsweringPipeline, get_pipeline, run_request
from .utils import adapt_to_dimension

__all__ = [
    "ChunkEmbedder",
    "BaseRetriever",
    "KeywordRetriever",
    "VectorRetriever",
    "ClauseAnswerer",
    "QuestionAnsweringPipeline",
    "get_pipeline",
    "run_request",
    "adapt_to_dimension",
    "build_prompt",
    "parse_answer",
    "strip_code_fences",
    "create_embedder_from_config",
    "create_llm_from_config",
    "create_vector_store_from_config",
    "get_vector_store_paths",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_INPUT_CHARS",
    "DEFAULT_TOP_K",
]
