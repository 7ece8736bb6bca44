"""Tests for the approve/unapprove toggle."""

import pytest
from sqlalchemy.orm import Session

from app.core.app_exceptions import InvalidApprover
from app.services.questions.approval import ApprovalState, apply_approval, approval_state
from app.services.questions.service import set_question_approval
from tests.helpers.seed import create_test_question, create_test_user


def test_approve_with_username(db: Session):
    reviewer = create_test_user(db, username="reviewer")
    question = create_test_question(db)

    apply_approval(db, question, True, "reviewer")

    assert question.is_approved is True
    assert question.approved_by == reviewer.id
    assert approval_state(question) == ApprovalState.APPROVED


def test_approve_with_unresolvable_approver_leaves_question_unchanged(db: Session):
    question = create_test_question(db)
    db.commit()

    with pytest.raises(InvalidApprover):
        set_question_approval(db, question.id, True, "nobody")

    db.refresh(question)
    assert question.is_approved is False
    assert question.approved_by is None


def test_approve_without_approver_rejected(db: Session):
    question = create_test_question(db)
    with pytest.raises(InvalidApprover):
        apply_approval(db, question, True, None)
    assert question.is_approved is False


def test_failed_reapproval_keeps_previous_approver(db: Session):
    reviewer = create_test_user(db, username="reviewer")
    question = create_test_question(db)
    set_question_approval(db, question.id, True, str(reviewer.id))

    with pytest.raises(InvalidApprover):
        set_question_approval(db, question.id, True, "ghost")

    db.refresh(question)
    assert question.is_approved is True
    assert question.approved_by == reviewer.id


def test_unapprove_clears_approver(db: Session):
    reviewer = create_test_user(db, username="reviewer")
    question = create_test_question(db)
    set_question_approval(db, question.id, True, "reviewer")

    question = set_question_approval(db, question.id, False, str(reviewer.id))

    assert question.is_approved is False
    assert question.approved_by is None
    assert approval_state(question) == ApprovalState.PENDING
