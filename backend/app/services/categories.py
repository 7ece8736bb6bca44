"""Category management with case-insensitive unique names."""

from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.app_exceptions import AppError, DuplicateConflict, NotFoundError
from app.core.logging import get_logger
from app.models.category import Category
from app.models.question import Question, question_categories
from app.services.questions.resolver import parse_uuid

logger = get_logger(__name__)


def normalize_category_name(name: str | None) -> str:
    normalized = (name or "").strip().lower()
    if not normalized:
        raise AppError("Category name is required", {"field": "name"}, code="VALIDATION_FAILED")
    return normalized


def _find_by_name(db: Session, name: str) -> Category | None:
    return db.query(Category).filter(func.lower(Category.name) == name).first()


def get_category(db: Session, category_id: Any) -> Category:
    parsed = parse_uuid(category_id)
    category = None
    if parsed is not None:
        category = db.query(Category).filter(Category.id == parsed).first()
    if not category:
        raise NotFoundError("Category not found", {"id": str(category_id)})
    return category


def list_categories(db: Session) -> list[Category]:
    return db.query(Category).order_by(Category.name.asc()).all()


def create_category(db: Session, name: str) -> Category:
    normalized = normalize_category_name(name)
    if _find_by_name(db, normalized):
        raise DuplicateConflict("Category already exists", {"name": normalized})

    category = Category(name=normalized)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("category_created", extra={"category_id": str(category.id), "name": normalized})
    return category


def update_category(db: Session, category_id: Any, name: str) -> Category:
    category = get_category(db, category_id)
    normalized = normalize_category_name(name)

    existing = _find_by_name(db, normalized)
    if existing and existing.id != category.id:
        raise DuplicateConflict("Category name already exists", {"name": normalized})

    category.name = normalized
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: Any) -> Category:
    """Delete a category and pull it from every question in the same commit."""
    category = get_category(db, category_id)

    questions = (
        db.query(Question)
        .join(question_categories, question_categories.c.question_id == Question.id)
        .filter(question_categories.c.category_id == category.id)
        .all()
    )
    for question in questions:
        question.categories = [c for c in question.categories if c.id != category.id]

    db.delete(category)
    db.commit()

    logger.info(
        "category_deleted",
        extra={"category_id": str(category.id), "questions_updated": len(questions)},
    )
    return category
