from exam_prep.generators.fingerprint import fingerprint, full_key, hash_question
from exam_prep.generators.schemas import GenQuestion


def _question(text, a="Alpha option", b="Beta option", c="Gamma", d="Delta"):
    return GenQuestion(question_text=text, option_a=a, option_b=b, option_c=c, option_d=d)


def test_fingerprint_ignores_case_and_tail():
    base = "What is the net force on a 2 kg block sliding down a frictionless incline"
    one = _question(base + " at 30 degrees?")
    two = _question(base.upper() + " AT 45 DEGREES?", a="ALPHA OPTION", b="beta option")
    assert fingerprint(one) == fingerprint(two)


def test_fingerprint_sees_first_two_options_only():
    one = _question("Same text", c="Different C", d="Different D")
    two = _question("Same text", c="Other C", d="Other D")
    three = _question("Same text", b="Changed B")
    assert fingerprint(one) == fingerprint(two)
    assert fingerprint(one) != fingerprint(three)


def test_fingerprint_accepts_mappings():
    question = _question("Mapping text")
    assert fingerprint(question.model_dump()) == fingerprint(question)


def test_full_key_uses_all_options():
    one = {"question_text": " Text ", "option_a": "a", "option_b": "b", "option_c": "c", "option_d": "d"}
    two = {"question_text": "text", "option_a": "A", "option_b": "B", "option_c": "C", "option_d": "D "}
    three = dict(two, option_d="e")
    assert full_key(one) == full_key(two)
    assert full_key(one) != full_key(three)


def test_hash_question_matches_32_bit_string_hash():
    assert hash_question("") == "0"
    assert hash_question("a") == "97"
    assert hash_question("hello") == "99162322"
    # Wraps to the minimum signed 32-bit value
    assert hash_question("polygenelubricants") == "-2147483648"
