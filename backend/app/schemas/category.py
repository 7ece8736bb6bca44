"""Schemas for categories."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryIn(BaseModel):
    """Create/update body."""

    name: str = Field(..., max_length=200)


class CategoryOut(BaseModel):
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CategoryDeleteOut(BaseModel):
    message: str
    category: CategoryOut
