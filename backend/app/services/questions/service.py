"""Question persistence: create, update, approval, delete and listings."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Text, cast
from sqlalchemy.orm import Session

from app.core.app_exceptions import NotFoundError
from app.core.logging import get_logger
from app.models.category import Category
from app.models.question import Question, question_categories
from app.services.media import MediaStore
from app.services.questions.approval import apply_approval
from app.services.questions.draft import QuestionDraft, QuestionPatch, media_text
from app.services.questions.normalizer import upload_pending_images
from app.services.questions.resolver import (
    load_categories,
    parse_uuid,
    resolve_category_references,
    resolve_user_reference,
)
from app.services.questions.validation import DIRECT, validate_question, validate_question_patch

logger = get_logger(__name__)


def get_question(db: Session, question_id: Any) -> Question:
    """Load a question or raise NotFoundError (malformed ids included)."""
    parsed = parse_uuid(question_id)
    question = None
    if parsed is not None:
        question = db.query(Question).filter(Question.id == parsed).first()
    if not question:
        raise NotFoundError("Question not found", {"id": str(question_id)})
    return question


def list_questions(db: Session) -> list[Question]:
    return db.query(Question).order_by(Question.created_at.desc()).all()


def list_questions_by_category(db: Session, category_id: Any) -> list[Question]:
    parsed = parse_uuid(category_id)
    category = None
    if parsed is not None:
        category = db.query(Category).filter(Category.id == parsed).first()
    if not category:
        raise NotFoundError("Category not found", {"id": str(category_id)})

    return (
        db.query(Question)
        .join(question_categories, question_categories.c.question_id == Question.id)
        .filter(question_categories.c.category_id == category.id)
        .order_by(Question.created_at.desc())
        .all()
    )


def list_questions_by_tag(db: Session, tag: str) -> list[Question]:
    """Questions carrying exactly `tag`. Raises NotFoundError when none do."""
    tag = tag.strip()
    # Textual prefilter on the serialized JSON array, exact match in Python
    candidates = (
        db.query(Question)
        .filter(cast(Question.tags, Text).contains(json.dumps(tag)))
        .order_by(Question.created_at.desc())
        .all()
    )
    questions = [q for q in candidates if tag in (q.tags or [])]
    if not questions:
        raise NotFoundError("No questions found for this tag", {"tag": tag})
    return questions


def list_questions_by_date_range(
    db: Session, start: datetime | None, end: datetime | None
) -> list[Question]:
    """Questions created within [start, end]; either bound may be open."""
    query = db.query(Question)
    if start is not None:
        query = query.filter(Question.created_at >= start)
    if end is not None:
        query = query.filter(Question.created_at <= end)
    return query.order_by(Question.created_at.desc()).all()


def create_question(
    db: Session, draft: QuestionDraft, media_store: MediaStore | None = None
) -> Question:
    """Validate, resolve references and persist a new question.

    Nothing is written and no attachment is uploaded when validation or any
    reference check fails. An upload failure aborts the create.
    """
    validate_question(draft, DIRECT)

    category_ids = resolve_category_references(db, draft.categories)
    created_by = resolve_user_reference(db, draft.created_by)

    question = Question(
        title_text=draft.title["text"],
        title_image=draft.title["image"],
        options=[dict(option) for option in draft.options],
        correct_answer=draft.correct_answer,
        explanation_text=draft.explanation["text"],
        explanation_image=draft.explanation["image"],
        tags=list(draft.tags),
        difficulty=draft.difficulty,
        created_by=created_by,
        is_approved=False,
        approved_by=None,
    )
    question.categories = load_categories(db, category_ids)

    if draft.is_approved:
        apply_approval(db, question, True, draft.approved_by)

    if draft.pending_images:
        upload_pending_images(
            draft.pending_images,
            media_store,
            title=draft.title,
            options=draft.options,
            explanation=draft.explanation,
        )
        question.title = draft.title
        question.options = [dict(option) for option in draft.options]
        question.explanation = draft.explanation

    db.add(question)
    db.commit()
    db.refresh(question)

    logger.info(
        "question_created",
        extra={"question_id": str(question.id), "categories": len(category_ids)},
    )
    return question


def _merge_options(question: Question, patch: QuestionPatch) -> list[dict[str, str]] | None:
    fields_set = patch.fields_set()
    if "options" not in fields_set and not patch.option_updates:
        return None

    base = patch.options if "options" in fields_set else (question.options or [])
    merged = [media_text(option) for option in base]
    for index, partial in sorted(patch.option_updates.items()):
        # Questions imported with fewer options gain empty slots up to the edited one
        while len(merged) <= index:
            merged.append(media_text())
        merged[index] = {**merged[index], **partial}
    return merged


def update_question(
    db: Session,
    question: Question,
    patch: QuestionPatch,
    media_store: MediaStore | None = None,
) -> Question:
    """Apply a partial update. Only changed fields are validated.

    Attachments are uploaded after validation and the category check pass.
    """
    fields_set = patch.fields_set()
    changes: dict[str, Any] = {}

    if "title" in fields_set:
        changes["title"] = {**question.title, **patch.title}
    options = _merge_options(question, patch)
    if options is not None:
        changes["options"] = options
    if "explanation" in fields_set:
        changes["explanation"] = {**question.explanation, **patch.explanation}
    if "correct_answer" in fields_set:
        changes["correct_answer"] = patch.correct_answer
    if "difficulty" in fields_set:
        changes["difficulty"] = patch.difficulty

    validate_question_patch(changes, question.options or [])

    categories = None
    if "categories" in fields_set:
        categories = load_categories(db, resolve_category_references(db, patch.categories))

    upload_pending_images(
        patch.pending_images,
        media_store,
        title=changes.get("title"),
        options=changes.get("options"),
        explanation=changes.get("explanation"),
    )

    if "title" in changes:
        question.title = changes["title"]
    if "options" in changes:
        question.options = changes["options"]
    if "explanation" in changes:
        question.explanation = changes["explanation"]
    if "correct_answer" in changes:
        question.correct_answer = changes["correct_answer"]
    if "difficulty" in changes:
        question.difficulty = changes["difficulty"]
    if "tags" in fields_set:
        question.tags = list(patch.tags)
    if categories is not None:
        question.categories = categories
    if "created_by" in fields_set:
        question.created_by = resolve_user_reference(db, patch.created_by)

    db.commit()
    db.refresh(question)

    logger.info(
        "question_updated",
        extra={"question_id": str(question.id), "fields": sorted(fields_set)},
    )
    return question


def set_question_approval(
    db: Session, question_id: Any, is_approved: bool, approved_by: Any
) -> Question:
    question = get_question(db, question_id)
    apply_approval(db, question, is_approved, approved_by)
    db.commit()
    db.refresh(question)
    return question


def delete_question(db: Session, question_id: Any) -> UUID:
    question = get_question(db, question_id)
    deleted_id = question.id
    db.delete(question)
    db.commit()
    logger.info("question_deleted", extra={"question_id": str(deleted_id)})
    return deleted_id
