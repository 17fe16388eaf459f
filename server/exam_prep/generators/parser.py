"""
LLM response extraction.

The model is asked for a bare JSON object but frequently wraps it in prose
or a fenced block, or emits something that only looks like JSON. Extraction
tries, in order:

1. every `{...}` span that mentions all seven question fields
2. the first fenced code block
3. the outermost brace span
4. the whole text
5. field-by-field regex over the raw text

Results from step 5 are only accepted when the text and options look like
real content.
"""
import json
import logging
import re
from typing import Optional

from pydantic import ValidationError

from exam_prep.errors import ExtractionError
from exam_prep.generators.schemas import GenQuestion

logger = logging.getLogger(__name__)

FIELDS = ("question_text", "option_a", "option_b", "option_c", "option_d", "correct_answer", "explanation")

MIN_TEXT_LENGTH = 20
MIN_OPTION_LENGTH = 5

_OBJECT_RE = re.compile(
    r"\{[\s\S]*?\bquestion_text\b[\s\S]*?\boption_a\b[\s\S]*?\boption_b\b[\s\S]*?\boption_c\b"
    r"[\s\S]*?\boption_d\b[\s\S]*?\bcorrect_answer\b[\s\S]*?\bexplanation\b[\s\S]*?\}"
)
_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_TRIM_RE = re.compile(r"^[:\"'\s]+|[:\"'\s,]+$")


def _loads(candidate: str) -> Optional[dict]:
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def _outermost(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end <= start:
        return None
    return text[start:end]


def extract_json(text: str) -> Optional[dict]:
    """Return the first JSON object recoverable from text, or None."""
    for match in _OBJECT_RE.finditer(text):
        data = _loads(match.group(0))
        if data is not None:
            return data

    fenced = _FENCE_RE.search(text)
    if fenced:
        data = _loads(fenced.group(1))
        if data is not None:
            return data

    span = _outermost(text)
    if span:
        data = _loads(span)
        if data is not None:
            return data

    return _loads(text.strip())


def extract_field(text: str, field: str, default: str = "") -> str:
    """Best-effort regex extraction of one field from malformed output."""
    name = re.escape(field)
    patterns = [
        rf"\"{name}\"\s*:\s*\"([^\"]*)\"",
        rf"\"{name}\"\s*:\s*'([^']*)'",
        rf"{name}\s*:\s*\"([^\"]*)\"",
        rf"{name}\s*:\s*'([^']*)'",
        rf"{name}\s*=\s*\"([^\"]*)\"",
        rf"{name}\s*=\s*'([^']*)'",
        rf"{name}:\s*([^,}}\n]*)",
    ]
    for pattern in patterns:
        match = re.search(pattern, text, re.IGNORECASE)
        if match and match.group(1).strip():
            return match.group(1).strip()

    section_patterns = [
        rf"{name}[:\s]*(.*?)(?=option_|correct_|explanation|$)",
        rf"{name}[.:\s]*(.*?)(?=\n\n|$)",
    ]
    for pattern in section_patterns:
        match = re.search(pattern, text, re.IGNORECASE | re.DOTALL)
        if match and match.group(1).strip():
            value = _TRIM_RE.sub("", match.group(1).strip())
            if value:
                return value

    return default


def _from_mapping(data: dict) -> Optional[GenQuestion]:
    values = {field: data.get(field) for field in FIELDS}
    if not values["question_text"]:
        return None
    for field in FIELDS[1:5]:
        if values[field] is None or str(values[field]).strip() == "":
            return None
    try:
        return GenQuestion(
            question_text=str(values["question_text"]).strip(),
            option_a=str(values["option_a"]).strip(),
            option_b=str(values["option_b"]).strip(),
            option_c=str(values["option_c"]).strip(),
            option_d=str(values["option_d"]).strip(),
            correct_answer=values["correct_answer"] or "A",
            explanation=str(values["explanation"] or "").strip(),
        )
    except ValidationError as e:
        logger.debug("Rejected JSON candidate: %s", e)
        return None


def is_reasonable(question: GenQuestion) -> bool:
    """Length heuristic used to accept regex-recovered questions."""
    return (
        len(question.question_text) > MIN_TEXT_LENGTH
        and all(len(option) > MIN_OPTION_LENGTH for option in question.options)
    )


def parse_question(text: str) -> GenQuestion:
    """
    Extract a question from raw LLM output.

    Raises:
        ExtractionError: nothing usable could be recovered.
    """
    if not text or not text.strip():
        raise ExtractionError("Empty response text")

    data = extract_json(text)
    if data is not None:
        question = _from_mapping(data)
        if question is not None:
            return question
        logger.info("JSON found but incomplete, falling back to field extraction")

    # Missing fields stay empty so they fail the length check
    manual = GenQuestion(
        question_text=extract_field(text, "question_text"),
        option_a=extract_field(text, "option_a"),
        option_b=extract_field(text, "option_b"),
        option_c=extract_field(text, "option_c"),
        option_d=extract_field(text, "option_d"),
        correct_answer=extract_field(text, "correct_answer", "A"),
        explanation=extract_field(text, "explanation", "Explanation not provided"),
    )
    if is_reasonable(manual):
        return manual

    raise ExtractionError("Failed to extract valid question data from AI response")
