"""
Duplicate detection keys for generated questions.
"""
from typing import Mapping, Union

from exam_prep.generators.schemas import GenQuestion

TEXT_PREFIX = 50
OPTION_PREFIX = 20


def fingerprint(question: Union[GenQuestion, Mapping]) -> str:
    """Near-duplicate key: question text prefix plus the first two option prefixes."""
    if isinstance(question, GenQuestion):
        text, a, b = question.question_text, question.option_a, question.option_b
    else:
        text = question.get("question_text") or ""
        a = question.get("option_a") or ""
        b = question.get("option_b") or ""
    return "|".join([
        text[:TEXT_PREFIX].lower(),
        a[:OPTION_PREFIX].lower(),
        b[:OPTION_PREFIX].lower(),
    ])


def full_key(question: Mapping) -> str:
    """Exact-duplicate key over the trimmed text and all four options."""
    fields = ("question_text", "option_a", "option_b", "option_c", "option_d")
    return "|".join((question.get(f) or "").strip().lower() for f in fields)


def hash_question(text: str) -> str:
    """32-bit rolling string hash (h*31 + c), returned as a decimal string."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)
