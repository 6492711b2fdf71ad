from email.message import EmailMessage
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import make_response
from errors import DocumentLoadError, UnsupportedFormatError
from loaders import (
    RemoteDocumentLoader,
    create_loader,
    document_format,
    document_name,
    list_supported_formats,
)
from loaders.extractors import extract_email, extract_pdf
from splitters import TextSplitter, WordWindowSplitter
from stores import VectorStore, create_vector_store


class TestTextSplitter:
    def test_empty_text_yields_no_chunks(self) -> None:
        splitter = TextSplitter()
        assert splitter.chunk("", "a.pdf") == []
        assert splitter.chunk("  \n\t ", "a.pdf") == []

    def test_windows_of_500_words(self) -> None:
        words = [f"w{i}" for i in range(1234)]
        chunks = WordWindowSplitter().chunk(" ".join(words), "policy.pdf")

        assert [c.chunk_id for c in chunks] == [0, 1, 2]
        assert [len(c.text.split()) for c in chunks] == [500, 500, 234]
        assert all(c.doc_name == "policy.pdf" for c in chunks)
        assert chunks[1].text.split()[0] == "w500"

    def test_exact_multiple_has_no_empty_tail(self) -> None:
        chunks = WordWindowSplitter(chunk_size=5).chunk("a b c d e f g h i j", "x.eml")
        assert [c.text for c in chunks] == ["a b c d e", "f g h i j"]

    def test_whitespace_runs_normalised(self) -> None:
        text = "Grace\tperiod\n\n of   thirty days"
        chunks = WordWindowSplitter(chunk_size=3).chunk(text, "x.pdf")
        assert [c.text for c in chunks] == ["Grace period of", "thirty days"]

    def test_reconstructs_token_stream(self) -> None:
        text = "one  two\nthree four\tfive six seven"
        chunks = WordWindowSplitter(chunk_size=2).chunk(text, "x.pdf")
        rebuilt = " ".join(c.text for c in sorted(chunks, key=lambda c: c.chunk_id))
        assert rebuilt.split() == text.split()

    def test_deterministic(self) -> None:
        text = "lorem ipsum " * 600
        splitter = WordWindowSplitter()
        assert splitter.chunk(text, "d.pdf") == splitter.chunk(text, "d.pdf")

    def test_invalid_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            WordWindowSplitter(chunk_size=0)


class TestVectorStore:
    def test_upsert_and_query(self, temp_vector_store: VectorStore) -> None:
        temp_vector_store.upsert(
            ids=["a.pdf_0", "a.pdf_1"],
            embeddings=[[1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0]],
            metadata_list=[
                {"doc_name": "a.pdf", "chunk_id": 0, "text": "first"},
                {"doc_name": "a.pdf", "chunk_id": 1, "text": "second"},
            ],
        )

        matches = temp_vector_store.query([0.1, 0.9, 0.0, 0.0], top_k=2)

        assert temp_vector_store.count == 2
        assert [m.id for m in matches] == ["a.pdf_1", "a.pdf_0"]
        assert matches[0].metadata["text"] == "second"
        assert matches[0].score > matches[1].score

    def test_reupsert_overwrites_without_growing(
        self, temp_vector_store: VectorStore
    ) -> None:
        ids = ["a.pdf_0", "a.pdf_1"]
        metadata = [{"text": "old 0"}, {"text": "old 1"}]
        temp_vector_store.upsert(ids, [[1.0, 0, 0, 0], [0, 1.0, 0, 0]], metadata)

        temp_vector_store.upsert(
            ids, [[0, 0, 1.0, 0], [0, 0, 0, 1.0]], [{"text": "new 0"}, {"text": "new 1"}]
        )

        assert temp_vector_store.count == 2
        matches = temp_vector_store.query([0, 0, 1.0, 0], top_k=1)
        assert matches[0].id == "a.pdf_0"
        assert matches[0].metadata["text"] == "new 0"

    def test_top_k_larger_than_store(self, temp_vector_store: VectorStore) -> None:
        temp_vector_store.upsert(["x_0"], [[1.0, 1.0, 0, 0]], [{"text": "only"}])
        assert len(temp_vector_store.query([1.0, 0, 0, 0], top_k=10)) == 1

    def test_query_empty_store(self, temp_vector_store: VectorStore) -> None:
        assert temp_vector_store.query([1.0, 0, 0, 0], top_k=4) == []

    def test_rejects_wrong_dimension(self, temp_vector_store: VectorStore) -> None:
        with pytest.raises(ValueError, match="dimension 4"):
            temp_vector_store.upsert(["x_0"], [[1.0, 2.0]], [{}])

    def test_persists_and_reloads(
        self, temp_vector_store: VectorStore, temp_storage_dir: Path
    ) -> None:
        temp_vector_store.upsert(
            ["a.pdf_0"], [[0.5, 0.5, 0, 0]], [{"doc_name": "a.pdf", "chunk_id": 0, "text": "t"}]
        )

        reloaded = VectorStore(
            dimension=4,
            index_path=temp_storage_dir / "test.index",
            metadata_path=temp_storage_dir / "test.json",
        )

        assert reloaded.count == 1
        assert reloaded.query([1.0, 1.0, 0, 0], top_k=1)[0].metadata["text"] == "t"

        reloaded.upsert(["a.pdf_0"], [[0, 0, 1.0, 0]], [{"text": "t2"}])
        assert reloaded.count == 1

    def test_two_writers_on_same_files_keep_both_entries(
        self, temp_storage_dir: Path
    ) -> None:
        paths = {
            "index_path": temp_storage_dir / "shared.index",
            "metadata_path": temp_storage_dir / "shared.json",
        }
        first = VectorStore(dimension=4, **paths)
        second = VectorStore(dimension=4, **paths)
        assert first.count == 0
        assert second.count == 0

        first.upsert(["a.pdf_0"], [[1.0, 0, 0, 0]], [{"text": "from first"}])
        second.upsert(["b.pdf_0"], [[0, 1.0, 0, 0]], [{"text": "from second"}])
        first.upsert(["a.pdf_1"], [[0, 0, 1.0, 0]], [{"text": "first again"}])

        reloaded = VectorStore(dimension=4, **paths)
        assert reloaded.count == 3
        ids = {m.id for m in reloaded.query([1.0, 1.0, 1.0, 0], top_k=3)}
        assert ids == {"a.pdf_0", "b.pdf_0", "a.pdf_1"}

    def test_mismatched_index_fails_on_open_not_construction(
        self, temp_vector_store: VectorStore, temp_storage_dir: Path
    ) -> None:
        temp_vector_store.upsert(["x_0"], [[1.0, 0, 0, 0]], [{}])

        wider = VectorStore(
            dimension=8,
            index_path=temp_storage_dir / "test.index",
            metadata_path=temp_storage_dir / "test.json",
        )

        with pytest.raises(ValueError, match="has dimension 4, expected 8"):
            wider.open()

    def test_corrupt_metadata_fails_on_open(self, temp_storage_dir: Path) -> None:
        metadata_path = temp_storage_dir / "broken.json"
        metadata_path.write_text("{not json")
        store = VectorStore(dimension=4, metadata_path=metadata_path)

        with pytest.raises(ValueError, match="not valid JSON"):
            store.open()

    def test_delete_all(self, temp_vector_store: VectorStore) -> None:
        temp_vector_store.upsert(["x_0", "x_1"], [[1.0, 0, 0, 0], [0, 1.0, 0, 0]], [{}, {}])
        temp_vector_store.delete_all()
        assert temp_vector_store.count == 0
        assert temp_vector_store.query([1.0, 0, 0, 0]) == []

    def test_create_vector_store_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown vector store provider"):
            create_vector_store("pinecone", dimension=4)


class TestDocumentNaming:
    @pytest.mark.parametrize(
        "reference, expected",
        [
            ("https://x/docs/policy.pdf", "policy.pdf"),
            ("https://x/docs/Policy.PDF?sv=2023&sig=abc", "Policy.PDF"),
            ("https://x/a%20b.docx", "a b.docx"),
            ("https://x/", "document"),
        ],
    )
    def test_document_name(self, reference: str, expected: str) -> None:
        assert document_name(reference) == expected

    def test_document_format_case_insensitive(self) -> None:
        assert document_format("Policy.PDF") == "pdf"
        assert document_format("archive.tar.EML") == "eml"
        assert document_format("README") == ""


def fake_session(*responses) -> MagicMock:
    session = MagicMock()
    session.get.side_effect = list(responses)
    return session


class TestRemoteDocumentLoader:
    def make_loader(self, session: MagicMock) -> RemoteDocumentLoader:
        return RemoteDocumentLoader(
            splitter=WordWindowSplitter(chunk_size=3),
            session=session,
            extractors={
                "pdf": lambda data: data.decode(),
                "docx": lambda data: data.decode().upper(),
                "eml": lambda data: data.decode(),
            },
        )

    def test_load_aggregates_in_order(self) -> None:
        session = fake_session(
            make_response(b"one two three four"), make_response(b"five six")
        )
        loader = self.make_loader(session)

        chunks = loader.load(["https://x/a.pdf", "https://x/b.docx"])

        assert [(c.doc_name, c.chunk_id, c.text) for c in chunks] == [
            ("a.pdf", 0, "one two three"),
            ("a.pdf", 1, "four"),
            ("b.docx", 0, "FIVE SIX"),
        ]
        assert session.get.call_args_list[0][0][0] == "https://x/a.pdf"

    def test_single_reference_string(self) -> None:
        loader = self.make_loader(fake_session(make_response(b"hello")))
        chunks = loader.load("https://x/mail.EML")
        assert [(c.doc_name, c.text) for c in chunks] == [("mail.EML", "hello")]

    def test_unsupported_format_fails_fast(self) -> None:
        session = fake_session(make_response(b"ok"), make_response(b"never"))
        loader = self.make_loader(session)

        with pytest.raises(UnsupportedFormatError) as exc_info:
            loader.load(["https://x/a.pdf", "https://x/sheet.xlsx", "https://x/c.pdf"])

        assert exc_info.value.doc_name == "sheet.xlsx"
        assert "sheet.xlsx" in str(exc_info.value)
        assert "https://x/sheet.xlsx" in str(exc_info.value)
        assert session.get.call_count == 1

    def test_fetch_error_is_load_error(self) -> None:
        response = make_response()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        loader = self.make_loader(fake_session(response))

        with pytest.raises(DocumentLoadError, match="Failed to fetch"):
            loader.load(["https://x/a.pdf"])

    def test_connection_error_is_load_error(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        loader = self.make_loader(session)

        with pytest.raises(DocumentLoadError):
            loader.load("https://x/a.pdf")

    def test_parse_error_is_load_error(self) -> None:
        def broken(data: bytes) -> str:
            raise ValueError("not a PDF")

        loader = RemoteDocumentLoader(
            session=fake_session(make_response(b"garbage")), extractors={"pdf": broken}
        )

        with pytest.raises(DocumentLoadError, match="not a PDF") as exc_info:
            loader.load("https://x/a.pdf")
        assert exc_info.value.step == "load"


class TestExtractors:
    def test_extract_email_plain_text(self) -> None:
        message = EmailMessage()
        message["Subject"] = "Claim"
        message["From"] = "a@example.com"
        message.set_content("Dental claims need pre-approval.")

        assert extract_email(message.as_bytes()).strip() == "Dental claims need pre-approval."

    def test_extract_email_prefers_plain_over_html(self) -> None:
        message = EmailMessage()
        message.set_content("plain body")
        message.add_alternative("<p>html body</p>", subtype="html")

        assert extract_email(message.as_bytes()).strip() == "plain body"

    def test_extract_email_html_only(self) -> None:
        message = EmailMessage()
        message.set_content("<p>Room&nbsp;rent <b>capped</b></p>", subtype="html")

        text = extract_email(message.as_bytes())
        assert text.split() == ["Room", "rent", "capped"]

    def test_extract_pdf_uses_pdf_suffix(self) -> None:
        with patch("loaders.extractors.SimpleDirectoryReader") as mock_reader:
            mock_reader.return_value.load_data.return_value = [
                MagicMock(text="page one"),
                MagicMock(text="page two"),
            ]

            text = extract_pdf(b"%PDF-1.4")

        input_files = mock_reader.call_args[1]["input_files"]
        assert input_files[0].endswith(".pdf")
        assert mock_reader.call_args[1]["raise_on_error"] is True
        assert text == "page one\npage two"


class TestLoaderFactory:
    def test_create_remote_loader(self) -> None:
        splitter = WordWindowSplitter(chunk_size=7)
        loader = create_loader("remote", splitter=splitter, timeout=5)

        assert isinstance(loader, RemoteDocumentLoader)
        assert loader.splitter is splitter
        assert loader.timeout == 5

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown loader provider"):
            create_loader("s3")

    def test_supported_formats(self) -> None:
        assert sorted(list_supported_formats()) == ["docx", "eml", "pdf"]
