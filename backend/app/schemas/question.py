"""Schemas for questions, approval and bulk import reports."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads exposed in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MediaText(CamelModel):
    """Text/image pair. Both values are trimmed; empty string means absent."""

    text: str = ""
    image: str = ""

    @field_validator("text", "image", mode="before")
    @classmethod
    def trim(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()


class QuestionOut(CamelModel):
    """Question response schema."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    title: MediaText
    options: list[MediaText]
    correct_answer: int
    explanation: MediaText
    categories: list[UUID] = Field(
        default_factory=list,
        validation_alias=AliasChoices("category_ids", "categories"),
    )
    tags: list[str] = Field(default_factory=list)
    difficulty: int
    created_by: UUID | None = None
    is_approved: bool
    approved_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ApprovalRequest(CamelModel):
    """Body for the approval toggle."""

    is_approved: bool
    approved_by: str | None = Field(
        None, description="User id or username of the approver (required when approving)"
    )


class DeleteResponse(BaseModel):
    message: str


class ImportRowSuccess(BaseModel):
    row: int
    title: str
    question_id: UUID


class ImportRowProblem(BaseModel):
    """A failed or skipped row with the reason."""

    row: int
    title: str
    reason: str


class BatchReportOut(BaseModel):
    """Bulk import result."""

    message: str
    total: int
    successful_count: int
    failed_count: int
    skipped_count: int
    successful: list[ImportRowSuccess]
    failed: list[ImportRowProblem]
    skipped: list[ImportRowProblem]
