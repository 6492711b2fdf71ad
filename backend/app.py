import sys
from pathlib import Path

import streamlit as st

sys.path.insert(0, str(Path(__file__).parent / "src"))

from config import find_config_path
from loaders import list_supported_formats
from errors import PipelineStepError
from models.request import QuestionError
from pipelines import get_pipeline

st.set_page_config(page_title="ClauseRAG", page_icon="📄")

st.title("📄 ClauseRAG - Policy Q&A")

CONFIG_PATH = find_config_path()


def parse_lines(value: str) -> list[str]:
    return [line.strip() for line in value.splitlines() if line.strip()]


if "pipeline" not in st.session_state:
    with st.spinner("Loading pipeline..."):
        try:
            st.session_state.pipeline = get_pipeline(CONFIG_PATH)
        except Exception as e:
            st.error(f"Failed to load pipeline: {e}")
            st.session_state.pipeline = None

if st.session_state.pipeline is None:
    st.warning("⚠️ Pipeline not loaded. Check config.toml and API keys.")
    st.stop()

SUPPORTED = " / ".join(f".{fmt}" for fmt in list_supported_formats())

documents = st.text_area(f"Document URLs (one per line, {SUPPORTED}):", height=100)
questions = st.text_area("Questions (one per line):", height=150)

if st.button("Ask", disabled=not (documents.strip() and questions.strip())):
    with st.spinner("Downloading, indexing and answering..."):
        try:
            response = st.session_state.pipeline.run(
                {"documents": parse_lines(documents), "questions": parse_lines(questions)}
            )
        except PipelineStepError as e:
            st.error(f"❌ Step '{e.step}' failed: {e}")
            st.stop()

    diagnostics = response.diagnostics
    if diagnostics.fallback_used:
        st.warning("Embedding failed; answers use keyword retrieval.")

    for question, answer in zip(parse_lines(questions), response.answers):
        st.subheader(question)
        if isinstance(answer, QuestionError):
            st.error(f"❌ {answer.error}")
            continue
        st.write(answer.answer)
        if answer.citations:
            st.caption(
                "Sources: "
                + ", ".join(f"{c.doc_name} #{c.chunk_id}" for c in answer.citations)
            )

    with st.expander("Diagnostics"):
        st.json(response.to_dict()["diagnostics"])
