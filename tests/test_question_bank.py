import json

import pytest

from exam_portal.core.question_bank import (
    QuestionBankValidationError,
    parse_question_bank,
    preview,
    question_from_document,
)

VALID = {"question": "2+2=?", "options": {"a": "3", "b": "4", "c": "5", "d": "6"}, "answer": "B"}


def test_valid_bank_parses_in_order():
    second = {**VALID, "question": "3+3=?", "answer": "d"}
    questions = parse_question_bank(json.dumps([VALID, second]))
    assert [q.text for q in questions] == ["2+2=?", "3+3=?"]
    assert questions[0].options == {"a": "3", "b": "4", "c": "5", "d": "6"}
    assert questions[0].correct_answer == "B"


def test_aliases_are_accepted():
    record = {"q": "Alias?", "options": VALID["options"], "correctAnswer": "a"}
    (question,) = parse_question_bank(json.dumps([record]).encode())
    assert question.text == "Alias?"
    assert question.correct_answer == "a"


def test_invalid_json_is_rejected():
    with pytest.raises(QuestionBankValidationError, match="Failed to parse JSON"):
        parse_question_bank("{not json")


@pytest.mark.parametrize("payload", ["{}", "[]", '"text"'])
def test_top_level_must_be_non_empty_array(payload):
    with pytest.raises(QuestionBankValidationError):
        parse_question_bank(payload)


def test_errors_are_reported_per_record_and_whole_bank_rejected():
    broken = [
        VALID,
        {"question": "", "options": {"a": "1", "b": "", "c": "3", "d": "4"}, "answer": "e"},
        "not an object",
    ]
    with pytest.raises(QuestionBankValidationError) as excinfo:
        parse_question_bank(json.dumps(broken))
    assert excinfo.value.errors == [
        "Q2: missing 'question' text; option 'b' is empty; answer must be one of a/b/c/d",
        "Q3: record must be an object",
    ]


def test_only_first_five_errors_are_reported():
    records = [{"question": "x"} for _ in range(8)]
    with pytest.raises(QuestionBankValidationError) as excinfo:
        parse_question_bank(json.dumps(records))
    assert len(excinfo.value.errors) == 5
    assert "8 question(s) failed validation" in str(excinfo.value)


def test_stored_free_text_question_is_loadable():
    question = question_from_document({"question": "Name a prime", "answer": "7", "_id": "x"})
    assert question.is_free_text
    assert question.to_document() == {"question": "Name a prime", "answer": "7"}


def test_preview_limits_to_first_three():
    questions = parse_question_bank(json.dumps([VALID] * 5))
    summary = preview(questions)
    assert len(summary) == 3
    assert summary[0].answer == "B"
