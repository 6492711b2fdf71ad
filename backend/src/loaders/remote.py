import logging
from typing import Callable, Optional, Sequence
from urllib.parse import unquote, urlparse

import requests

from adapters.utils import create_session_with_pooling
from errors import DocumentLoadError, UnsupportedFormatError
from models.chunk import Chunk
from splitters import BaseTextSplitter, WordWindowSplitter
from .base import BaseDocumentLoader
from .extractors import EXTRACTORS

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 60
ACCEPT_HEADER = (
    "application/pdf, "
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document, "
    "message/rfc822, */*"
)


def document_name(reference: str) -> str:
    """Last path segment of a URL, ignoring any query string."""
    path = urlparse(reference).path
    name = unquote(path.split("/")[-1])
    return name or "document"


def document_format(doc_name: str) -> str:
    """Lower-cased suffix after the last dot, or "" when there is none."""
    if "." not in doc_name:
        return ""
    return doc_name.rsplit(".", 1)[-1].lower()


class RemoteDocumentLoader(BaseDocumentLoader):
    """Downloads documents by URL and chunks their extracted text.

    Loading is fail-fast: the first document that cannot be fetched, has an
    unsupported format, or cannot be parsed aborts the whole load.
    """

    def __init__(
        self,
        splitter: Optional[BaseTextSplitter] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        extractors: Optional[dict[str, Callable[[bytes], str]]] = None,
    ):
        self.splitter = splitter or WordWindowSplitter()
        self.session = session or create_session_with_pooling(
            headers={"Accept": ACCEPT_HEADER}
        )
        self.timeout = timeout
        self.extractors = extractors if extractors is not None else dict(EXTRACTORS)

    def fetch(self, reference: str) -> bytes:
        try:
            response = self.session.get(reference, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise DocumentLoadError(f"Failed to fetch {reference}: {e}") from e
        return response.content

    def extract_text(self, data: bytes, doc_format: str, doc_name: str) -> str:
        try:
            return self.extractors[doc_format](data)
        except Exception as e:
            raise DocumentLoadError(
                f"Failed to parse {doc_format} document {doc_name}: {e}"
            ) from e

    def load_document(self, reference: str) -> list[Chunk]:
        doc_name = document_name(reference)
        doc_format = document_format(doc_name)
        if doc_format not in self.extractors:
            raise UnsupportedFormatError(reference, doc_name, doc_format)

        data = self.fetch(reference)
        text = self.extract_text(data, doc_format, doc_name)
        chunks = self.splitter.chunk(text, doc_name)

        logger.info(
            f"Loaded {doc_name} ({doc_format}, {len(data)} bytes): {len(chunks)} chunks"
        )
        return chunks

    def load(self, documents: str | Sequence[str]) -> list[Chunk]:
        if isinstance(documents, str):
            documents = [documents]

        chunks: list[Chunk] = []
        for reference in documents:
            chunks.extend(self.load_document(reference))

        logger.info(f"Loaded {len(documents)} documents into {len(chunks)} chunks")
        return chunks
