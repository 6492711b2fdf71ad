import json
import logging
import re
import time
from typing import Any, Callable, Optional, Sequence

from pydantic import ValidationError

from adapters import BaseLLM
from adapters.retry import RetryPolicy, call_with_retry
from models.chunk import Chunk, Citation, StructuredAnswer
from .base import create_llm_from_config

logger = logging.getLogger(__name__)

UNKNOWN_ANSWER = "I don't know"
FALLBACK_CITATION_COUNT = 2

ANSWER_INSTRUCTIONS = (
    "You are a precise insurance policy clause evaluator. Answer strictly "
    "from the context above and always cite your sources.\n"
    "Respond ONLY with a JSON object with keys: answer (string) and citations "
    "(array of {\"doc_name\": string, \"chunk_id\": integer}). "
    f"If the context does not cover the question, set answer to \"{UNKNOWN_ANSWER}\" "
    "and citations to []."
)

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"```\s*$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def build_context(chunks: Sequence[Chunk]) -> str:
    return "\n\n".join(
        f"Chunk {position} (doc: {chunk.doc_name}, id: {chunk.chunk_id}):\n{chunk.text}"
        for position, chunk in enumerate(chunks, start=1)
    )


def build_prompt(question: str, chunks: Sequence[Chunk]) -> str:
    return (
        f"Context:\n{build_context(chunks)}\n\n"
        f"Question: {question}\n\n"
        f"{ANSWER_INSTRUCTIONS}"
    )


def strip_code_fences(raw: str) -> str:
    """Remove a leading ``` / ```json fence and a trailing ``` fence."""
    cleaned = _OPENING_FENCE.sub("", raw.strip())
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def parse_answer(raw: str, chunks: Sequence[Chunk]) -> StructuredAnswer:
    """Extract a StructuredAnswer from free-form model output.

    The greedy {...} region is parsed as JSON. Output that does not parse
    still produces an answer: the cleaned text, cited to the first two
    context chunks. Citations naming chunks outside the context are dropped.
    """
    cleaned = strip_code_fences(raw)
    match = _JSON_OBJECT.search(cleaned)
    candidate = match.group(0) if match else cleaned

    try:
        parsed = StructuredAnswer.model_validate(json.loads(candidate))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Model output is not a JSON answer ({e}); using raw text")
        return StructuredAnswer(
            answer=cleaned,
            citations=[c.citation() for c in chunks[:FALLBACK_CITATION_COUNT]],
        )

    supplied = {(c.doc_name, c.chunk_id) for c in chunks}
    citations = [
        c for c in parsed.citations if (c.doc_name, c.chunk_id) in supplied
    ]
    if len(citations) < len(parsed.citations):
        logger.warning(
            f"Dropped {len(parsed.citations) - len(citations)} citations "
            "not present in the supplied context"
        )
    return StructuredAnswer(answer=parsed.answer, citations=_dedupe(citations))


def _dedupe(citations: list[Citation]) -> list[Citation]:
    seen = set()
    unique = []
    for citation in citations:
        key = (citation.doc_name, citation.chunk_id)
        if key not in seen:
            seen.add(key)
            unique.append(citation)
    return unique


class ClauseAnswerer:
    """Asks the language model to answer a question from retrieved chunks."""

    def __init__(
        self,
        llm: BaseLLM,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.llm = llm
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ClauseAnswerer":
        return cls(
            llm=create_llm_from_config(config),
            retry_policy=RetryPolicy.from_config(config),
        )

    def answer(self, question: str, top_chunks: Sequence[Chunk]) -> StructuredAnswer:
        prompt = build_prompt(question, top_chunks)
        raw = call_with_retry(
            lambda: self.llm.generate(prompt), self.retry_policy, self.sleep
        )
        return parse_answer(raw, top_chunks)
