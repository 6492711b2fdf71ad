"""Plain-text extraction for the supported document formats."""

import html
import re
import tempfile
from email import policy
from email.parser import BytesParser
from pathlib import Path
from typing import Callable

from llama_index.core import SimpleDirectoryReader

_TAG_PATTERN = re.compile(r"<[^>]+>")


def _read_with_llama_index(data: bytes, suffix: str) -> str:
    # SimpleDirectoryReader picks its reader from the file suffix, so the
    # downloaded bytes go through a temp file carrying the original suffix.
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / f"document{suffix}"
        path.write_bytes(data)
        reader = SimpleDirectoryReader(input_files=[str(path)], raise_on_error=True)
        documents = reader.load_data()
    return "\n".join(doc.text for doc in documents)


def extract_pdf(data: bytes) -> str:
    return _read_with_llama_index(data, ".pdf")


def extract_docx(data: bytes) -> str:
    return _read_with_llama_index(data, ".docx")


def extract_email(data: bytes) -> str:
    """Return the text body of an RFC-822 message.

    The plain-text part is preferred; an HTML-only message has its tags
    stripped. A message without a text body yields an empty string.
    """
    message = BytesParser(policy=policy.default).parsebytes(data)
    body = message.get_body(preferencelist=("plain", "html"))
    if body is None:
        return ""
    content = body.get_content()
    if body.get_content_subtype() == "html":
        content = html.unescape(_TAG_PATTERN.sub(" ", content))
    return content


EXTRACTORS: dict[str, Callable[[bytes], str]] = {
    "pdf": extract_pdf,
    "docx": extract_docx,
    "eml": extract_email,
}


def list_supported_formats() -> list[str]:
    return list(EXTRACTORS.keys())
