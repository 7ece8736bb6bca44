"""Tests for the bulk import reconciler."""

from unittest.mock import patch

from sqlalchemy.orm import Session

from app.models.question import Question
from app.services.importer.reconciler import BulkImportReconciler
from tests.helpers.seed import create_test_category, create_test_question, create_test_user


def _row(title: str = "Row question", **overrides) -> dict[str, str]:
    row = {
        "title_text": title,
        "option_1_text": "one",
        "option_2_text": "two",
        "option_3_text": "three",
        "option_4_text": "four",
        "correct_answer": "1",
        "difficulty": "2",
        "categories": "",
    }
    row.update(overrides)
    return row


class TestRowOutcomes:
    def test_valid_row_is_imported(self, db: Session):
        report = BulkImportReconciler(db).reconcile([_row()])

        assert report.total == 1
        assert report.successful_count == 1
        outcome = report.successful[0]
        assert outcome.row == 2
        question = db.query(Question).filter(Question.id == outcome.question_id).one()
        assert [o["text"] for o in question.options] == ["one", "two", "three", "four"]
        assert question.correct_answer == 1
        assert question.difficulty == 2
        assert question.is_approved is False

    def test_missing_title_fails_row(self, db: Session):
        rows = [_row("first"), _row(""), _row("third")]
        report = BulkImportReconciler(db).reconcile(rows)

        assert [o.row for o in report.failed] == [3]
        assert "title" in report.failed[0].reason
        assert 3 not in [o.row for o in report.successful]
        assert report.skipped == []
        assert report.successful_count == 2

    def test_duplicate_title_in_same_batch_is_skipped(self, db: Session):
        report = BulkImportReconciler(db).reconcile([_row("Same"), _row("  Same  ")])

        assert [o.row for o in report.successful] == [2]
        assert [o.row for o in report.skipped] == [3]
        assert report.skipped[0].reason == "duplicate title"
        assert db.query(Question).count() == 1

    def test_duplicate_of_existing_question_is_skipped(self, db: Session):
        create_test_question(db, title="Already here")
        db.commit()
        report = BulkImportReconciler(db).reconcile([_row("Already here")])
        assert report.skipped_count == 1

    def test_fewer_than_two_options_fails(self, db: Session):
        row = _row(option_2_text="", option_3_text=" ", option_4_text="")
        report = BulkImportReconciler(db).reconcile([row])
        assert report.failed[0].reason == "at least 2 options required"

    def test_two_options_accepted(self, db: Session):
        row = _row(option_3_text="", option_4_text="", correct_answer="0")
        report = BulkImportReconciler(db).reconcile([row])
        assert report.successful_count == 1
        question = db.query(Question).one()
        assert len(question.options) == 2

    def test_empty_slots_are_dropped(self, db: Session):
        row = _row(option_2_text="", correct_answer="2")
        report = BulkImportReconciler(db).reconcile([row])
        question = db.query(Question).filter(Question.id == report.successful[0].question_id).one()
        assert [o["text"] for o in question.options] == ["one", "three", "four"]
        assert question.correct_answer == 2

    def test_correct_answer_out_of_range(self, db: Session):
        report = BulkImportReconciler(db).reconcile([_row(correct_answer="4")])
        assert report.failed[0].reason == "correct answer must be between 0 and 3"

    def test_correct_answer_not_numeric(self, db: Session):
        report = BulkImportReconciler(db).reconcile([_row(correct_answer="B")])
        assert report.failed_count == 1
        assert "between 0 and 3" in report.failed[0].reason

    def test_bad_difficulty_defaults_to_three(self, db: Session):
        BulkImportReconciler(db).reconcile([_row("a", difficulty="9"), _row("b", difficulty="x")])
        assert {q.difficulty for q in db.query(Question).all()} == {3}


class TestCategoriesAndCreator:
    def test_categories_by_name_and_id(self, db: Session):
        algebra = create_test_category(db, "algebra")
        geometry = create_test_category(db, "geometry")
        row = _row(categories=f"Algebra, {geometry.id}")

        report = BulkImportReconciler(db).reconcile([row])

        question = db.query(Question).filter(Question.id == report.successful[0].question_id).one()
        assert set(question.category_ids) == {algebra.id, geometry.id}

    def test_any_unresolved_category_fails_row(self, db: Session):
        create_test_category(db, "algebra")
        report = BulkImportReconciler(db).reconcile([_row(categories="algebra, physics, chem")])

        assert report.failed[0].reason == "categories not found: physics, chem"
        assert db.query(Question).count() == 0

    def test_created_by_username(self, db: Session):
        author = create_test_user(db, username="author")
        BulkImportReconciler(db).reconcile([_row(created_by="author")])
        assert db.query(Question).one().created_by == author.id

    def test_created_by_falls_back_to_actor(self, db: Session):
        actor = create_test_user(db, username="importer")
        BulkImportReconciler(db, actor=actor).reconcile([_row(created_by="ghost")])
        assert db.query(Question).one().created_by == actor.id

    def test_created_by_null_without_actor(self, db: Session):
        BulkImportReconciler(db).reconcile([_row(created_by="ghost")])
        assert db.query(Question).one().created_by is None

    def test_approval_columns_ignored(self, db: Session):
        reviewer = create_test_user(db, username="reviewer")
        BulkImportReconciler(db).reconcile([_row(is_approved="true", approved_by=str(reviewer.id))])
        question = db.query(Question).one()
        assert question.is_approved is False
        assert question.approved_by is None


class TestFailureIsolation:
    def test_unexpected_error_fails_only_that_row(self, db: Session):
        reconciler = BulkImportReconciler(db)
        original = reconciler._title_exists
        calls = {"n": 0}

        def flaky(title: str) -> bool:
            calls["n"] += 1
            if calls["n"] == 2:
                raise RuntimeError("store unavailable")
            return original(title)

        with patch.object(reconciler, "_title_exists", side_effect=flaky):
            report = reconciler.reconcile([_row("a"), _row("b"), _row("c")])

        assert [o.row for o in report.successful] == [2, 4]
        assert report.failed[0].row == 3
        assert report.failed[0].reason == "store unavailable"
        assert {q.title_text for q in db.query(Question).all()} == {"a", "c"}

    def test_report_dict_shape(self, db: Session):
        report = BulkImportReconciler(db).reconcile([_row("ok"), _row("")])
        data = report.to_dict()
        assert data["total"] == 2
        assert data["successful_count"] == 1
        assert data["failed_count"] == 1
        assert data["failed"][0] == {"row": 3, "title": "", "reason": "title text required"}
        assert "question_id" in data["successful"][0]
