"""Question write pipeline: normalize -> validate -> resolve -> persist."""

from app.services.questions.approval import ApprovalState, apply_approval, approval_state
from app.services.questions.draft import PendingImage, QuestionDraft, QuestionPatch
from app.services.questions.normalizer import (
    coerce_list_field,
    normalize_question,
    normalize_question_patch,
    parse_int,
    upload_pending_images,
)
from app.services.questions.resolver import (
    resolve_approver_reference,
    resolve_category_names,
    resolve_category_references,
    resolve_user_reference,
)
from app.services.questions.validation import (
    BULK,
    DIRECT,
    ValidationPolicy,
    is_media_text_filled,
    validate_bulk_options,
    validate_correct_answer_index,
    validate_options_array,
    validate_question,
    validate_question_patch,
)

__all__ = [
    "ApprovalState",
    "apply_approval",
    "approval_state",
    "PendingImage",
    "QuestionDraft",
    "QuestionPatch",
    "coerce_list_field",
    "normalize_question",
    "normalize_question_patch",
    "parse_int",
    "upload_pending_images",
    "resolve_approver_reference",
    "resolve_category_names",
    "resolve_category_references",
    "resolve_user_reference",
    "BULK",
    "DIRECT",
    "ValidationPolicy",
    "is_media_text_filled",
    "validate_bulk_options",
    "validate_correct_answer_index",
    "validate_options_array",
    "validate_question",
    "validate_question_patch",
]
