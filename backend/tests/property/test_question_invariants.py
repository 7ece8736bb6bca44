"""Property-based tests for question validation invariants."""

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.core.app_exceptions import InvalidCategoriesFormat, QuestionValidationError
from app.services.questions.draft import QuestionDraft, media_text
from app.services.questions.normalizer import coerce_list_field, parse_int
from app.services.questions.validation import (
    BULK,
    DIRECT,
    is_media_text_filled,
    validate_correct_answer_index,
    validate_question,
)

blank = st.sampled_from(["", " ", "\t", "  \n "])
filled_text = st.text(min_size=1, max_size=20).filter(lambda s: s.strip())
media_pairs = st.fixed_dictionaries(
    {"text": st.one_of(blank, filled_text), "image": st.one_of(blank, filled_text)}
)
filled_pairs = st.one_of(
    st.fixed_dictionaries({"text": filled_text, "image": blank}),
    st.fixed_dictionaries({"text": blank, "image": filled_text}),
)


def _draft(options, correct_answer=0, difficulty=3) -> QuestionDraft:
    return QuestionDraft(
        title=media_text(text="Title"),
        options=options,
        correct_answer=correct_answer,
        explanation=media_text(),
        difficulty=difficulty,
    )


@settings(max_examples=50, deadline=None)
@given(pair=media_pairs)
def test_filled_iff_text_or_image_after_trim(pair: dict) -> None:
    """
    Property: a text/image pair is filled exactly when either side has
    non-whitespace content.
    """
    expected = bool(pair["text"].strip()) or bool(pair["image"].strip())
    assert is_media_text_filled(pair) is expected


@settings(max_examples=50, deadline=None)
@given(options=st.lists(media_pairs, min_size=0, max_size=6), correct=st.integers(-2, 6))
def test_direct_accepts_only_four_filled_options_and_valid_index(options: list, correct: int) -> None:
    """
    Property: a direct write is accepted iff there are exactly 4 filled
    options and the correct answer indexes one of them.

    Invariants:
    - Rejected drafts raise QuestionValidationError, never anything else
    - Accepted drafts have 0 <= correct_answer < 4
    """
    draft = _draft(options, correct)
    should_pass = (
        len(options) == 4
        and all(is_media_text_filled(o) for o in options)
        and 0 <= correct < len(options)
    )

    if should_pass:
        validate_question(draft, DIRECT)
    else:
        with pytest.raises(QuestionValidationError):
            validate_question(draft, DIRECT)


@settings(max_examples=50, deadline=None)
@given(options=st.lists(filled_pairs, min_size=0, max_size=6))
def test_bulk_option_count_window(options: list) -> None:
    """Property: bulk import accepts between 2 and 4 filled options."""
    draft = _draft(options, correct_answer=0)
    if 2 <= len(options) <= 4:
        validate_question(draft, BULK)
    else:
        with pytest.raises(QuestionValidationError):
            validate_question(draft, BULK)


@settings(max_examples=50, deadline=None)
@given(difficulty=st.integers(-5, 10))
def test_difficulty_range(difficulty: int) -> None:
    """Property: stored difficulty is always within 1..5."""
    draft = _draft([{"text": str(i), "image": ""} for i in range(4)], difficulty=difficulty)
    if 1 <= difficulty <= 5:
        validate_question(draft)
    else:
        with pytest.raises(QuestionValidationError):
            validate_question(draft)


@given(value=st.one_of(st.booleans(), st.floats(), st.text(max_size=5), st.none()))
def test_non_int_correct_answer_never_valid(value) -> None:
    assert validate_correct_answer_index(value, ["a", "b", "c", "d"]) is False


@given(number=st.integers(-10_000, 10_000), suffix=st.sampled_from(["", "abc", ".7", " apples"]))
def test_parse_int_reads_leading_integer(number: int, suffix: str) -> None:
    assert parse_int(f"{number}{suffix}") == number


@given(items=st.lists(st.text(min_size=1, max_size=10), max_size=5))
def test_coerce_list_field_decodes_json_arrays(items: list) -> None:
    assert coerce_list_field(json.dumps(items), InvalidCategoriesFormat) == items
    assert coerce_list_field(items, InvalidCategoriesFormat) == items


@given(word=st.text(alphabet="abcdefghij", min_size=1, max_size=10))
def test_coerce_list_field_wraps_plain_strings(word: str) -> None:
    assert coerce_list_field(f"  {word} ", InvalidCategoriesFormat) == [word]
