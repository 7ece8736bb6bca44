"""Structural validation for question drafts and patches.

Checks run in a fixed order (title, options, correct answer) and the first
failure wins, so clients always see the same message for the same input.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from app.core.app_exceptions import QuestionValidationError
from app.services.questions.draft import OPTION_COUNT, QuestionDraft

TITLE_REQUIRED = "Question title must have text or image"
OPTIONS_INVALID = "There must be exactly 4 options and each must have text or image"
CORRECT_ANSWER_INVALID = "correctAnswer must be an integer index (0-3) of the options array"
DIFFICULTY_INVALID = "difficulty must be an integer between 1 and 5"

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


@dataclass(frozen=True)
class ValidationPolicy:
    """Option-count rule for a write path."""

    name: str
    min_options: int
    max_options: int
    options_message: str

    def accepts_option_count(self, count: int) -> bool:
        return self.min_options <= count <= self.max_options


DIRECT = ValidationPolicy("direct", OPTION_COUNT, OPTION_COUNT, OPTIONS_INVALID)
BULK = ValidationPolicy("bulk", 2, OPTION_COUNT, "at least 2 options required")


def is_media_text_filled(value: Any) -> bool:
    """True iff the pair has non-empty text or a non-empty image after trimming."""
    if not isinstance(value, Mapping):
        return False
    text = value.get("text") or ""
    image = value.get("image") or ""
    return bool(str(text).strip()) or bool(str(image).strip())


def _options_satisfy(options: Any, policy: ValidationPolicy) -> bool:
    if not isinstance(options, Sequence) or isinstance(options, (str, bytes)):
        return False
    if not policy.accepts_option_count(len(options)):
        return False
    return all(is_media_text_filled(option) for option in options)


def validate_options_array(options: Any) -> bool:
    """Direct-write rule: exactly 4 options, each filled."""
    return _options_satisfy(options, DIRECT)


def validate_bulk_options(options: Any) -> bool:
    """Bulk-import rule: 2 to 4 options, each filled."""
    return _options_satisfy(options, BULK)


def validate_correct_answer_index(index: Any, options: Sequence[Any]) -> bool:
    """True iff index is an int in [0, len(options))."""
    # bool is an int subclass; reject it explicitly
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    return 0 <= index < len(options)


def validate_difficulty(difficulty: Any) -> bool:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        return False
    return MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY


def validate_question(draft: QuestionDraft, policy: ValidationPolicy = DIRECT) -> None:
    """Raise QuestionValidationError on the first violated rule."""
    if not is_media_text_filled(draft.title):
        raise QuestionValidationError(TITLE_REQUIRED, {"field": "title"})

    if not _options_satisfy(draft.options, policy):
        raise QuestionValidationError(policy.options_message, {"field": "options"})

    if not validate_correct_answer_index(draft.correct_answer, draft.options):
        raise QuestionValidationError(CORRECT_ANSWER_INVALID, {"field": "correctAnswer"})

    if not validate_difficulty(draft.difficulty):
        raise QuestionValidationError(DIFFICULTY_INVALID, {"field": "difficulty"})


def validate_question_patch(changes: Mapping[str, Any], current_options: Sequence[Any]) -> None:
    """Validate only the fields present in a merged change set.

    `changes` holds full merged values (title and options already combined
    with the stored question). A changed correct answer is checked against
    the options the question will have after the update.
    """
    if "title" in changes and not is_media_text_filled(changes["title"]):
        raise QuestionValidationError(TITLE_REQUIRED, {"field": "title"})

    if "options" in changes and not validate_options_array(changes["options"]):
        raise QuestionValidationError(OPTIONS_INVALID, {"field": "options"})

    if "correct_answer" in changes:
        options = changes.get("options", current_options)
        if not validate_correct_answer_index(changes["correct_answer"], options):
            raise QuestionValidationError(CORRECT_ANSWER_INVALID, {"field": "correctAnswer"})

    if "difficulty" in changes and not validate_difficulty(changes["difficulty"]):
        raise QuestionValidationError(DIFFICULTY_INVALID, {"field": "difficulty"})
