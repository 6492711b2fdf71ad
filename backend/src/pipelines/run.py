import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from config import get_config_value, get_float_value, get_int_value, load_config
from errors import EmbeddingError, RequestValidationError
from loaders import BaseDocumentLoader, create_loader
from loaders.remote import DEFAULT_FETCH_TIMEOUT
from models.chunk import Chunk, StructuredAnswer
from models.request import Diagnostics, QuestionError, RunRequest, RunResponse
from splitters import DEFAULT_CHUNK_SIZE, WordWindowSplitter
from .base import DEFAULT_TOP_K
from .generation import ClauseAnswerer
from .ingestion import ChunkEmbedder
from .retrieval import BaseRetriever, KeywordRetriever, VectorRetriever

logger = logging.getLogger(__name__)


class QuestionAnsweringPipeline:
    """Answers a batch of questions about a batch of remote documents.

    One run: validate the request, load and chunk every document (any
    failure aborts), embed up to max_chunks chunks, then answer each
    question in order. If embedding fails the run switches to keyword
    retrieval over all loaded chunks; if one question fails only its slot
    in the answers becomes an error record.
    """

    def __init__(
        self,
        loader: BaseDocumentLoader,
        chunk_embedder: ChunkEmbedder,
        answerer: ClauseAnswerer,
        top_k: int = DEFAULT_TOP_K,
        max_chunks: Optional[int] = None,
    ):
        self.loader = loader
        self.chunk_embedder = chunk_embedder
        self.answerer = answerer
        self.top_k = top_k
        self.max_chunks = max_chunks

    @classmethod
    def from_config(
        cls, config: dict[str, Any], config_path: Path | None = None
    ) -> "QuestionAnsweringPipeline":
        """Create pipeline from configuration dictionary."""
        splitter = WordWindowSplitter(
            chunk_size=get_int_value(config, "ingestion.chunk_size", DEFAULT_CHUNK_SIZE)
        )
        loader = create_loader(
            get_config_value(config, "ingestion.loader", "remote"),
            splitter=splitter,
            timeout=get_float_value(config, "ingestion.fetch_timeout", DEFAULT_FETCH_TIMEOUT),
        )

        return cls(
            loader=loader,
            chunk_embedder=ChunkEmbedder.from_config(config, config_path),
            answerer=ClauseAnswerer.from_config(config),
            top_k=get_int_value(config, "retrieval.top_k", DEFAULT_TOP_K),
            max_chunks=get_int_value(config, "ingestion.max_chunks", None),
        )

    @staticmethod
    def validate(payload: Any) -> RunRequest:
        if isinstance(payload, RunRequest):
            return payload
        try:
            return RunRequest.model_validate(payload)
        except ValidationError as e:
            raise RequestValidationError(f"Invalid request: {e}") from e

    def prepare_retriever(self, chunks: list[Chunk]) -> tuple[BaseRetriever, int]:
        """Embed chunks (up to max_chunks) and pick the retrieval strategy.

        Only a positive max_chunks caps the chunks sent for embedding.

        Returns:
            Tuple of (retriever, number of chunks sent for embedding). The
            count is reported even when embedding fails and the keyword
            retriever is returned.
        """
        cap = self.max_chunks if self.max_chunks and self.max_chunks > 0 else None
        to_embed = chunks if cap is None else chunks[:cap]
        if len(to_embed) < len(chunks):
            logger.info(
                f"Embedding first {len(to_embed)} of {len(chunks)} chunks "
                f"(max_chunks={self.max_chunks})"
            )
        try:
            vector_store = self.chunk_embedder.embed(to_embed)
        except EmbeddingError as e:
            logger.warning(f"{e}; falling back to keyword retrieval")
            return KeywordRetriever(chunks), len(to_embed)
        return VectorRetriever(self.chunk_embedder, vector_store), len(to_embed)

    def answer_question(
        self, question: str, retriever: BaseRetriever
    ) -> Union[StructuredAnswer, QuestionError]:
        try:
            top_chunks = retriever.retrieve(question, top_k=self.top_k)
            return self.answerer.answer(question, top_chunks)
        except Exception as e:
            logger.exception(f"Failed to answer question: {question[:50]}")
            return QuestionError(question=question, error=str(e) or type(e).__name__)

    def run(self, payload: Any) -> RunResponse:
        """Execute a full run.

        Raises:
            RequestValidationError: If documents or questions are malformed.
            DocumentLoadError: If any document cannot be fetched or parsed.
        """
        request = self.validate(payload)
        chunks = self.loader.load(request.documents)

        retriever, embedded = self.prepare_retriever(chunks)
        logger.info(
            f"Answering {len(request.questions)} questions with "
            f"{retriever.strategy} retrieval"
        )
        answers = [self.answer_question(q, retriever) for q in request.questions]

        return RunResponse(
            answers=answers,
            diagnostics=Diagnostics(
                total_chunks=len(chunks),
                embedded_chunks=embedded,
                max_chunks=self.max_chunks,
                embedding_model=self.chunk_embedder.embedder.model,
                fallback_used=isinstance(retriever, KeywordRetriever),
            ),
        )


def get_pipeline(config_path: Path = Path("config.toml")) -> QuestionAnsweringPipeline:
    """Create a question answering pipeline from a config file."""
    config = load_config(config_path)
    return QuestionAnsweringPipeline.from_config(config, config_path)


def run_request(
    payload: Any, config_path: Path = Path("config.toml")
) -> dict[str, Any]:
    """Run a request and return the JSON-ready response body."""
    return get_pipeline(config_path).run(payload).to_dict()
