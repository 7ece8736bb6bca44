"""Tests for question structural validation."""

import pytest

from app.core.app_exceptions import QuestionValidationError
from app.services.questions.draft import QuestionDraft, media_text
from app.services.questions.validation import (
    BULK,
    CORRECT_ANSWER_INVALID,
    DIRECT,
    OPTIONS_INVALID,
    TITLE_REQUIRED,
    is_media_text_filled,
    validate_bulk_options,
    validate_correct_answer_index,
    validate_options_array,
    validate_question,
    validate_question_patch,
)


def _options(*texts: str) -> list[dict[str, str]]:
    return [media_text(text=t) for t in texts]


def _draft(**overrides) -> QuestionDraft:
    data = {
        "title": media_text(text="Capital of France?"),
        "options": _options("Paris", "Rome", "Madrid", "Berlin"),
        "correct_answer": 0,
    }
    data.update(overrides)
    return QuestionDraft(**data)


class TestMediaTextFilled:
    def test_text_only(self):
        assert is_media_text_filled({"text": "hi", "image": ""})

    def test_image_only(self):
        assert is_media_text_filled({"text": "", "image": "https://x/y.png"})

    def test_whitespace_is_empty(self):
        assert not is_media_text_filled({"text": "   ", "image": " "})

    def test_non_mapping(self):
        assert not is_media_text_filled("text")
        assert not is_media_text_filled(None)


class TestOptionsRules:
    """Direct writes need exactly 4 options; bulk import accepts 2 to 4."""

    def test_direct_accepts_four_filled(self):
        assert validate_options_array(_options("a", "b", "c", "d"))

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 5])
    def test_direct_rejects_other_counts(self, count):
        assert not validate_options_array(_options(*["x"] * count))

    def test_direct_rejects_one_empty_option(self):
        options = _options("a", "b", "c", "d")
        options[2] = media_text()
        assert not validate_options_array(options)

    def test_direct_accepts_image_only_option(self):
        options = _options("a", "b", "c")
        options.append(media_text(image="https://img/d.png"))
        assert validate_options_array(options)

    @pytest.mark.parametrize("count", [2, 3, 4])
    def test_bulk_accepts_two_to_four(self, count):
        assert validate_bulk_options(_options(*["x"] * count))

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_bulk_rejects_outside_range(self, count):
        assert not validate_bulk_options(_options(*["x"] * count))

    def test_non_list_rejected(self):
        assert not validate_options_array("abcd")
        assert not validate_options_array(None)


class TestCorrectAnswerIndex:
    @pytest.mark.parametrize("index", [0, 1, 2, 3])
    def test_in_range(self, index):
        assert validate_correct_answer_index(index, [1, 2, 3, 4])

    @pytest.mark.parametrize("index", [-1, 4, 10, None, "1", 1.0, True])
    def test_rejected(self, index):
        assert not validate_correct_answer_index(index, [1, 2, 3, 4])


class TestValidateQuestion:
    def test_valid_draft_passes(self):
        validate_question(_draft())

    def test_title_checked_first(self):
        draft = _draft(title=media_text(), options=[], correct_answer=None)
        with pytest.raises(QuestionValidationError) as exc:
            validate_question(draft)
        assert exc.value.message == TITLE_REQUIRED

    def test_options_checked_before_correct_answer(self):
        draft = _draft(options=_options("a", "b"), correct_answer=None)
        with pytest.raises(QuestionValidationError) as exc:
            validate_question(draft)
        assert exc.value.message == OPTIONS_INVALID

    def test_unparsable_correct_answer_rejected(self):
        with pytest.raises(QuestionValidationError) as exc:
            validate_question(_draft(correct_answer=None))
        assert exc.value.message == CORRECT_ANSWER_INVALID

    def test_out_of_range_correct_answer_rejected(self):
        with pytest.raises(QuestionValidationError):
            validate_question(_draft(correct_answer=4))

    def test_difficulty_range(self):
        with pytest.raises(QuestionValidationError):
            validate_question(_draft(difficulty=6))

    def test_bulk_policy_allows_three_options(self):
        draft = _draft(options=_options("a", "b", "c"), correct_answer=2)
        validate_question(draft, BULK)
        with pytest.raises(QuestionValidationError):
            validate_question(draft, DIRECT)

    def test_error_status_is_400(self):
        with pytest.raises(QuestionValidationError) as exc:
            validate_question(_draft(title=media_text()))
        assert exc.value.status_code == 400
        assert exc.value.code == "VALIDATION_FAILED"


class TestValidatePatch:
    current = _options("a", "b", "c", "d")

    def test_empty_patch_passes(self):
        validate_question_patch({}, self.current)

    def test_only_changed_fields_checked(self):
        # An untouched title is not re-validated
        validate_question_patch({"correct_answer": 3}, self.current)

    def test_correct_answer_against_stored_options(self):
        with pytest.raises(QuestionValidationError):
            validate_question_patch({"correct_answer": 4}, self.current)

    def test_correct_answer_against_merged_options(self):
        # Stored question has only 2 options (bulk import); new options make index 3 valid
        validate_question_patch(
            {"options": self.current, "correct_answer": 3}, _options("a", "b")
        )

    def test_patched_options_must_be_four(self):
        with pytest.raises(QuestionValidationError) as exc:
            validate_question_patch({"options": _options("a", "b", "c")}, self.current)
        assert exc.value.message == OPTIONS_INVALID

    def test_patched_title_must_be_filled(self):
        with pytest.raises(QuestionValidationError):
            validate_question_patch({"title": media_text()}, self.current)
