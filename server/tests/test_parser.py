import json

import pytest

from exam_prep.errors import ExtractionError
from exam_prep.generators.parser import extract_json, parse_question

from conftest import question_json


def test_extracts_json_surrounded_by_prose():
    text = "Sure! Here is your question:\n" + question_json(7) + "\nGood luck with your studies."
    question = parse_question(text)
    assert question.question_text.startswith("Question number 7")
    assert question.option_c == "Height value 7.3 m"
    assert question.correct_answer == "B"
    assert question.explanation == "Use v² = u² - 2gh."


def test_extracts_fenced_block():
    text = "```json\n" + question_json(2) + "\n```"
    assert parse_question(text).option_a == "Height value 2.1 m"


def test_prefers_first_parseable_object():
    broken = '{"question_text": oops, "option_a" "option_b" "option_c" "option_d" "correct_answer" "explanation"}'
    data = extract_json(broken + "\n" + question_json(3))
    assert data is not None
    assert data["option_d"] == "Height value 3.4 m"


@pytest.mark.parametrize("raw, expected", [
    ("c", "C"),
    ("D) 42 m", "D"),
    (" b. because", "B"),
    ("Z", "A"),
    ("", "A"),
])
def test_correct_answer_normalised(raw, expected):
    assert parse_question(question_json(1, correct_answer=raw)).correct_answer == expected


def test_field_regex_fallback():
    text = (
        'question_text: "Which gas is produced when zinc reacts with dilute sulfuric acid?"\n'
        'option_a: "Hydrogen gas"\n'
        'option_b: "Oxygen gas"\n'
        'option_c: "Carbon dioxide"\n'
        'option_d: "Sulfur dioxide"\n'
        'correct_answer: "A"\n'
    )
    question = parse_question(text)
    assert question.question_text.startswith("Which gas")
    assert question.option_d == "Sulfur dioxide"
    assert question.correct_answer == "A"


def test_field_regex_rejects_short_content():
    text = 'question_text: "Too short?"\noption_a: "a"\noption_b: "b"\noption_c: "c"\noption_d: "d"'
    with pytest.raises(ExtractionError):
        parse_question(text)


def test_incomplete_json_is_rejected():
    data = json.loads(question_json(4))
    del data["option_d"]
    with pytest.raises(ExtractionError):
        parse_question(json.dumps(data))


@pytest.mark.parametrize("text", ["", "   ", "I'm sorry, I can't help with that request."])
def test_unusable_text_raises(text):
    with pytest.raises(ExtractionError):
        parse_question(text)
