"""Question bank models: questions and their category links."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    SmallInteger,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Weak category references; orphans are removed explicitly on category delete.
question_categories = Table(
    "question_categories",
    Base.metadata,
    Column(
        "question_id",
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        Uuid,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("ix_question_categories_category_id", "category_id"),
)


class Question(Base):
    """Question with MediaText title/explanation and embedded options."""

    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    title_text = Column(Text, nullable=False, default="")
    title_image = Column(String(1000), nullable=False, default="")
    options = Column(JSON, nullable=False, default=list)  # [{"text", "image"}, ...]
    correct_answer = Column(SmallInteger, nullable=False)
    explanation_text = Column(Text, nullable=False, default="")
    explanation_image = Column(String(1000), nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    difficulty = Column(Integer, nullable=False, default=3)

    # Weak user references, resolved at write time
    created_by = Column(Uuid, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    approved_by = Column(Uuid, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    categories = relationship(
        "Category",
        secondary=question_categories,
        lazy="selectin",
        order_by="Category.name",
    )

    __table_args__ = (
        CheckConstraint("correct_answer >= 0", name="ck_question_correct_answer"),
        CheckConstraint("difficulty >= 1 AND difficulty <= 5", name="ck_question_difficulty"),
        Index("ix_questions_title_text", "title_text"),
        Index("ix_questions_created_at", "created_at"),
    )

    @property
    def title(self) -> dict[str, str]:
        return {"text": self.title_text or "", "image": self.title_image or ""}

    @title.setter
    def title(self, value: dict[str, str]) -> None:
        self.title_text = value.get("text", "")
        self.title_image = value.get("image", "")

    @property
    def explanation(self) -> dict[str, str]:
        return {"text": self.explanation_text or "", "image": self.explanation_image or ""}

    @explanation.setter
    def explanation(self, value: dict[str, str]) -> None:
        self.explanation_text = value.get("text", "")
        self.explanation_image = value.get("image", "")

    @property
    def category_ids(self) -> list[uuid.UUID]:
        return [c.id for c in self.categories]
