"""Request and response shapes for a question answering run."""

from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.chunk import StructuredAnswer


class RunRequest(BaseModel):
    """Documents to read and questions to answer about them."""

    documents: list[str] = Field(min_length=1)
    questions: list[str] = Field(min_length=1)

    @field_validator("documents", mode="before")
    @classmethod
    def _wrap_single_document(cls, value):
        if isinstance(value, str):
            return [value]
        return value


class QuestionError(BaseModel):
    """Stands in for an answer when a single question could not be answered."""

    question: str
    error: str


class Diagnostics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_chunks: int = Field(alias="totalChunks")
    embedded_chunks: int = Field(alias="embeddedChunks")
    max_chunks: int | None = Field(default=None, alias="maxChunks")
    embedding_model: str = Field(alias="embeddingModel")
    fallback_used: bool = Field(alias="fallbackUsed")


class RunResponse(BaseModel):
    answers: list[Union[StructuredAnswer, QuestionError]]
    diagnostics: Diagnostics

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
