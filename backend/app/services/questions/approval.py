"""Approval state transitions for questions."""

from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.question import Question
from app.services.questions.resolver import resolve_approver_reference

logger = get_logger(__name__)


class ApprovalState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


def approval_state(question: Question) -> ApprovalState:
    return ApprovalState.APPROVED if question.is_approved else ApprovalState.PENDING


def apply_approval(db: Session, question: Question, is_approved: bool, approved_by: Any) -> Question:
    """Move a question between Pending and Approved.

    Approving requires a resolvable approver; the question is left untouched
    when resolution fails. Un-approving always clears the approver.
    """
    if is_approved:
        approver_id = resolve_approver_reference(db, approved_by)
        question.is_approved = True
        question.approved_by = approver_id
    else:
        question.is_approved = False
        question.approved_by = None

    logger.info(
        "question_approval_changed",
        extra={
            "question_id": str(question.id) if question.id else None,
            "state": approval_state(question).value,
            "approved_by": str(question.approved_by) if question.approved_by else None,
        },
    )
    return question
