"""Bulk import: apply each spreadsheet row as an independent question write."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.question import Question
from app.models.user import User
from app.services.questions.draft import DEFAULT_DIFFICULTY, OPTION_COUNT, QuestionDraft, media_text
from app.services.questions.normalizer import parse_int
from app.services.questions.resolver import (
    load_categories,
    resolve_category_names,
    resolve_user_reference,
)
from app.services.questions.validation import (
    BULK,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    validate_question,
)

logger = get_logger(__name__)

# Data rows start on line 2 of the file; line 1 is the header
HEADER_OFFSET = 2

TITLE_REQUIRED = "title text required"
DUPLICATE_TITLE = "duplicate title"


class RowRejected(Exception):
    """Row fails a rule; the message is reported as the reason."""


@dataclass
class RowOutcome:
    row: int
    title: str
    reason: str | None = None
    question_id: UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"row": self.row, "title": self.title}
        if self.question_id is not None:
            data["question_id"] = self.question_id
        else:
            data["reason"] = self.reason
        return data


@dataclass
class BatchReport:
    total: int = 0
    successful: list[RowOutcome] = field(default_factory=list)
    failed: list[RowOutcome] = field(default_factory=list)
    skipped: list[RowOutcome] = field(default_factory=list)

    @property
    def successful_count(self) -> int:
        return len(self.successful)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def message(self) -> str:
        return (
            f"Import completed: {self.successful_count} imported, "
            f"{self.failed_count} failed, {self.skipped_count} skipped"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "total": self.total,
            "successful_count": self.successful_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "successful": [o.to_dict() for o in self.successful],
            "failed": [o.to_dict() for o in self.failed],
            "skipped": [o.to_dict() for o in self.skipped],
        }


def _cell(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def collect_options(row: Mapping[str, Any]) -> list[dict[str, str]]:
    """Options from option_1..4 columns; a slot counts only when its text is non-empty."""
    options = []
    for n in range(1, OPTION_COUNT + 1):
        text = _cell(row, f"option_{n}_text")
        if not text:
            continue
        options.append(media_text(text=text, image=_cell(row, f"option_{n}_image")))
    return options


def split_categories(value: str) -> list[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def _bulk_difficulty(value: str) -> int:
    parsed = parse_int(value)
    if parsed is None or not MIN_DIFFICULTY <= parsed <= MAX_DIFFICULTY:
        return DEFAULT_DIFFICULTY
    return parsed


class BulkImportReconciler:
    """Process import rows in order; a row's failure never stops the batch.

    Each accepted row is committed on its own, so earlier rows stay written
    when a later one fails.
    """

    def __init__(self, db: Session, actor: User | None = None):
        self.db = db
        self.actor_id = actor.id if actor is not None else None

    def reconcile(self, rows: Sequence[Mapping[str, Any]]) -> BatchReport:
        report = BatchReport(total=len(rows))

        for index, row in enumerate(rows):
            row_number = index + HEADER_OFFSET
            title = _cell(row, "title_text")
            try:
                question = self._process_row(row, title)
            except RowRejected as e:
                report.failed.append(RowOutcome(row_number, title, reason=str(e)))
                continue
            except Exception as e:
                self.db.rollback()
                logger.warning(
                    "import_row_error",
                    extra={"row": row_number, "error": str(e)},
                )
                report.failed.append(RowOutcome(row_number, title, reason=str(e) or type(e).__name__))
                continue

            if question is None:
                report.skipped.append(RowOutcome(row_number, title, reason=DUPLICATE_TITLE))
            else:
                report.successful.append(RowOutcome(row_number, title, question_id=question.id))

        logger.info(
            "import_completed",
            extra={
                "total": report.total,
                "successful": report.successful_count,
                "failed": report.failed_count,
                "skipped": report.skipped_count,
            },
        )
        return report

    def _process_row(self, row: Mapping[str, Any], title: str) -> Question | None:
        """Persist one row. Returns None when the row is a duplicate."""
        if not title:
            raise RowRejected(TITLE_REQUIRED)

        options = collect_options(row)
        if not BULK.accepts_option_count(len(options)):
            raise RowRejected(BULK.options_message)

        correct_answer = parse_int(_cell(row, "correct_answer"))
        if correct_answer is None or not 0 <= correct_answer < len(options):
            raise RowRejected(f"correct answer must be between 0 and {len(options) - 1}")

        difficulty = _bulk_difficulty(_cell(row, "difficulty"))

        category_ids, unresolved = resolve_category_names(
            self.db, split_categories(_cell(row, "categories"))
        )
        if unresolved:
            raise RowRejected(f"categories not found: {', '.join(unresolved)}")

        if self._title_exists(title):
            return None

        created_by = resolve_user_reference(self.db, _cell(row, "created_by") or None)
        if created_by is None:
            created_by = self.actor_id

        draft = QuestionDraft(
            title=media_text(text=title, image=_cell(row, "title_image")),
            options=options,
            correct_answer=correct_answer,
            explanation=media_text(
                text=_cell(row, "explanation_text"), image=_cell(row, "explanation_image")
            ),
            categories=category_ids,
            tags=split_categories(_cell(row, "tags")),
            difficulty=difficulty,
        )
        validate_question(draft, BULK)

        question = Question(
            title_text=draft.title["text"],
            title_image=draft.title["image"],
            options=draft.options,
            correct_answer=draft.correct_answer,
            explanation_text=draft.explanation["text"],
            explanation_image=draft.explanation["image"],
            tags=draft.tags,
            difficulty=draft.difficulty,
            created_by=created_by,
            # Imported content is never pre-approved
            is_approved=False,
            approved_by=None,
        )
        question.categories = load_categories(self.db, category_ids)

        self.db.add(question)
        self.db.commit()
        self.db.refresh(question)
        return question

    def _title_exists(self, title: str) -> bool:
        return (
            self.db.query(Question.id).filter(Question.title_text == title).first() is not None
        )
