"""CSV export of the whole question bank.

Column names match what the bulk importer reads, so an exported file can be
fed straight back into the import endpoint.
"""

import csv
import io
from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.question import Question
from app.models.user import User
from app.services.questions.draft import OPTION_COUNT, media_text

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "title_text",
    "title_image",
    *[
        column
        for n in range(1, OPTION_COUNT + 1)
        for column in (f"option_{n}_text", f"option_{n}_image")
    ],
    "correct_answer",
    "correct_answer_text",
    "explanation_text",
    "explanation_image",
    "categories",
    "tags",
    "difficulty",
    "created_by",
    "is_approved",
    "approved_by",
    "created_at",
]


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def pad_options(options: Sequence[Any] | None) -> list[dict[str, str]]:
    padded = [media_text(option) for option in (options or [])][:OPTION_COUNT]
    while len(padded) < OPTION_COUNT:
        padded.append(media_text())
    return padded


def correct_answer_text(index: int | None, padded: Sequence[dict[str, str]]) -> str:
    """Text of the correct option.

    Falls back to reading the index as 1-based when the 0-based slot has no
    text. Older exports used that convention and consumers still parse it.
    """
    if index is None:
        return ""
    if 0 <= index < len(padded) and padded[index]["text"]:
        return padded[index]["text"]
    if 0 <= index - 1 < len(padded):
        return padded[index - 1]["text"]
    return ""


def _usernames(db: Session, questions: Iterable[Question]) -> dict[UUID, str]:
    ids = set()
    for question in questions:
        if question.created_by:
            ids.add(question.created_by)
        if question.approved_by:
            ids.add(question.approved_by)
    if not ids:
        return {}
    rows = db.query(User.id, User.username).filter(User.id.in_(list(ids))).all()
    return {row.id: row.username for row in rows}


def _user_label(user_id: UUID | None, usernames: dict[UUID, str]) -> str:
    if user_id is None:
        return ""
    return usernames.get(user_id, str(user_id))


def question_to_row(question: Question, usernames: dict[UUID, str]) -> list[str]:
    padded = pad_options(question.options)
    values: list[Any] = [question.title_text, question.title_image]
    for option in padded:
        values.extend([option["text"], option["image"]])
    values.extend(
        [
            question.correct_answer,
            correct_answer_text(question.correct_answer, padded),
            question.explanation_text,
            question.explanation_image,
            ", ".join(sorted(category.name for category in question.categories)),
            ", ".join(question.tags or []),
            question.difficulty,
            _user_label(question.created_by, usernames),
            "true" if question.is_approved else "false",
            _user_label(question.approved_by, usernames),
            question.created_at.isoformat() if question.created_at else "",
        ]
    )
    return [_cell(value) for value in values]


def export_questions_csv(db: Session) -> str:
    """Serialize every question, oldest first, as CSV text."""
    questions = db.query(Question).order_by(Question.created_at.asc()).all()
    usernames = _usernames(db, questions)

    # Every field is quoted, embedded quotes doubled
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for question in questions:
        writer.writerow(question_to_row(question, usernames))

    logger.info("questions_exported", extra={"count": len(questions)})
    return output.getvalue()
