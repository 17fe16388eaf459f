import math
import random
import re

import pytest

from exam_prep.generators import fallback
from exam_prep.generators.fingerprint import hash_question
from exam_prep.generators.schemas import LETTERS


def _dec(value: float, unit: str) -> str:
    rounded = round(value, 1)
    text = f"{int(rounded)}" if rounded == int(rounded) else f"{rounded}"
    return f"{text}{unit}"


def _numbers(text: str):
    return [float(n) for n in re.findall(r"\d+(?:\.\d+)?", text)]


def expected_rectangle(q):
    length, width = _numbers(q)[:2]
    if "area" in q:
        return f"{int(length * width)} cm²"
    return f"{int(2 * (length + width))} cm"


def expected_linear(q):
    a, b, c = [int(n) for n in re.search(r"(\d+)x \+ (\d+) = (\d+)", q).groups()]
    return f"x = {(c - b) // a}"


def expected_derivative(q):
    a, b, c = [int(n) for n in re.search(r"(\d+)x³ - (\d+)x² \+ (\d+)x", q).groups()]
    return f"f'(x) = {3 * a}x² - {2 * b}x + {c}"


def expected_acceleration(q):
    accel, seconds = _numbers(q)[:2]
    return _dec(0.5 * accel * seconds * seconds, " m")


def expected_resistors(q):
    r1, r2 = [int(n) for n in re.findall(r"= (\d+) Ω", q)]
    if "parallel" in q:
        return _dec(r1 * r2 / (r1 + r2), " Ω")
    return _dec(r1 + r2, " Ω")


def expected_force(q):
    mass, accel = [int(n) for n in re.findall(r"(\d+) (?:kg|m/s)", q)]
    return f"{mass * accel} N"


def expected_ph(q):
    concentration = float(re.search(r"of a ([\d.]+) M", q).group(1))
    return str(int(round(-math.log10(concentration))))


def expected_reaction(q):
    reactants = re.search(r"reaction: (.+) → \?", q).group(1)
    return dict(fallback.REACTIONS)[reactants]


CHECKERS = {
    "rectangle": expected_rectangle,
    "linear_equation": expected_linear,
    "derivative": expected_derivative,
    "acceleration": expected_acceleration,
    "resistors": expected_resistors,
    "force": expected_force,
    "ph": expected_ph,
    "reaction": expected_reaction,
}


def _family_templates():
    return [t for templates in fallback.TEMPLATES.values() for t in templates if t.family]


@pytest.mark.parametrize("template", _family_templates(), ids=lambda t: t.family)
def test_perturbed_answer_matches_recomputed_value(template):
    for seed in range(15):
        rng = random.Random(seed)
        for index in range(6):
            for attempt, force in ((0, False), (1, False), (2, True)):
                varied = fallback.create_unique_template(template, index, attempt, force, rng)
                assert varied.correct in LETTERS
                assert len(set(varied.options.values())) == 4, varied.options
                if template.family == "organelle":
                    name = re.search(r"of the (.+) in a", varied.question).group(1)
                    entry = next(o for o in fallback.ORGANELLES if o[0] == name)
                    assert varied.correct_value in entry[1:]
                else:
                    assert varied.correct_value == CHECKERS[template.family](varied.question), varied


def test_seeded_perturbation_is_reproducible():
    template = fallback.TEMPLATES["physics"][0]
    one = fallback.create_unique_template(template, 3, 1, True, random.Random(99))
    two = fallback.create_unique_template(template, 3, 1, True, random.Random(99))
    assert one == two


def test_shuffle_keeps_correct_value():
    template = fallback.TEMPLATES["history"][0]
    for seed in range(10):
        shuffled = fallback.shuffle_options(template, random.Random(seed))
        assert shuffled.correct_value == "1896"
        assert sorted(shuffled.options.values()) == sorted(template.options.values())


def test_batch_has_distinct_questions_when_reusing_templates():
    questions, meta = fallback.generate_batch("Civics", "all", 20, random.Random(5))
    assert len(questions) == 20
    assert len({hash_question(q.question_text) for q in questions}) == 20
    assert meta == {"isReusingTemplates": True, "subjectTemplateCount": 2, "requestedCount": 20}
    for q in questions:
        assert q.source == "fallback"
        assert q.subject == "Civics"
        assert q.explanation
        assert q.correct_answer in LETTERS


def test_batch_without_reuse():
    questions, meta = fallback.generate_batch("mathematics", "all", 3, random.Random(1))
    assert len(questions) == 3
    assert meta["isReusingTemplates"] is False
    assert {q.id for q in questions} == {f"question-{i}-mathematics-all" for i in (1, 2, 3)}


def test_batch_filters_by_difficulty():
    questions, _ = fallback.generate_batch("mathematics", "easy", 4, random.Random(2))
    assert {q.difficulty_level for q in questions} == {1}


def test_batch_is_reproducible_with_seed():
    one, _ = fallback.generate_batch("physics", "all", 6, random.Random(11))
    two, _ = fallback.generate_batch("physics", "all", 6, random.Random(11))
    assert [q.question_text for q in one] == [q.question_text for q in two]
    assert [q.correct_answer for q in one] == [q.correct_answer for q in two]


def test_unknown_subject_batch_is_empty():
    questions, meta = fallback.generate_batch("astrology", "all", 3)
    assert questions == []
    assert meta["subjectTemplateCount"] == 0


def test_template_for_slot_generic_for_unknown_subject():
    question = fallback.template_for_slot("Economics", "Explain inflation", 0, random.Random(0))
    assert "Economics" in question.question_text
    assert "Explain inflation" in question.question_text
    assert question.correct_answer == "B"


def test_template_for_slot_known_subject():
    question = fallback.template_for_slot("chemistry", None, 1, random.Random(0))
    assert question.question_text
    assert len(set(question.options)) == 4
