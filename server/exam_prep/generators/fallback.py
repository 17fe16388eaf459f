"""
Static Fallback Template Bank.

Hand-authored multiple-choice questions per subject and difficulty, used
when AI generation is unavailable. Templates that belong to a numeric
family (rectangle, linear equation, pH, ...) are regenerated with fresh
constants on every use and their correct option is recomputed; every other
template is varied by prefixing and reshuffling its options. Shuffling
always re-derives the correct letter from the correct option's value.

All randomness goes through a `random.Random` so a seed reproduces a batch.
"""
import logging
import random
import time
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from exam_prep.generators.fingerprint import hash_question
from exam_prep.generators.schemas import (
    LETTERS,
    GeneratedQuestion,
    GenQuestion,
    Template,
)

logger = logging.getLogger(__name__)

MAX_UNIQUE_ATTEMPTS = 10

DIFFICULTY_LEVELS = {"easy": 1, "medium": 3, "hard": 5}


def _t(question: str, options: Sequence[str], correct: str, difficulty: str = "medium",
       explanation: str = "", family: Optional[str] = None) -> Template:
    return Template(
        question=question,
        options=dict(zip(LETTERS, options)),
        correct=correct,
        difficulty=difficulty,
        explanation=explanation,
        family=family,
    )


TEMPLATES: Dict[str, List[Template]] = {
    "mathematics": [
        _t("Calculate the area of a rectangle with length 8 cm and width 5 cm.",
           ["13 cm²", "26 cm²", "40 cm²", "45 cm²"], "C", "easy",
           "Area = length × width = 8 × 5 = 40 cm².", family="rectangle"),
        _t("Solve the equation 2x + 7 = 15.",
           ["x = 2", "x = 3", "x = 4", "x = 5"], "C", "easy",
           "Subtract 7 from both sides to get 2x = 8, so x = 4.", family="linear_equation"),
        _t("Find the derivative of f(x) = 2x³ - 3x² + x - 2.",
           ["f'(x) = 6x² - 6x + 1", "f'(x) = 6x² - 6x - 1", "f'(x) = 6x² + 6x + 1", "f'(x) = 6x² - 6x"],
           "A", "medium", "Differentiate term by term using the power rule.", family="derivative"),
        _t("In an arithmetic sequence, the 5th term is 13 and the 12th term is 41. What is the 20th term?",
           ["78", "69", "81", "73"], "D", "hard",
           "a + 4d = 13 and a + 11d = 41 give d = 4 and a = -3, so a₂₀ = -3 + 19 × 4 = 73."),
        _t("What is the sum of the interior angles of a hexagon?",
           ["540°", "720°", "900°", "360°"], "B", "medium",
           "The interior angle sum of an n-gon is (n - 2) × 180°, so (6 - 2) × 180° = 720°."),
    ],
    "physics": [
        _t("A car accelerates from rest at 2.0 m/s². How far will it travel in 5 seconds?",
           ["13 m", "25 m", "38 m", "10 m"], "B", "medium",
           "d = ½at² = 0.5 × 2.0 × 5² = 25 m.", family="acceleration"),
        _t("What is the equivalent resistance of two resistors R₁ = 4 Ω and R₂ = 4 Ω connected in series?",
           ["8 Ω", "2 Ω", "16 Ω", "0 Ω"], "A", "easy",
           "Series resistances add: 4 + 4 = 8 Ω.", family="resistors"),
        _t("Calculate the force needed to accelerate a 5 kg object at 3 m/s².",
           ["10 N", "15 N", "20 N", "30 N"], "B", "easy",
           "Newton's second law: F = ma = 5 × 3 = 15 N.", family="force"),
        _t("Which quantity is conserved in a perfectly elastic collision but not in an inelastic one?",
           ["Momentum", "Kinetic energy", "Mass", "Total energy"], "B", "hard",
           "Momentum is conserved in every collision; kinetic energy only in elastic ones."),
    ],
    "chemistry": [
        _t("Calculate the pH of a 0.01 M HCl solution.",
           ["1", "2", "3", "12"], "B", "medium",
           "HCl dissociates completely, so [H⁺] = 0.01 M and pH = -log(0.01) = 2.", family="ph"),
        _t("What is the product of the reaction: Na₂CO₃ + 2HCl → ?",
           ["CaCl₂ + H₂O + CO₂", "2NaCl + H₂O + CO₂", "Na₂SO₄ + 2H₂O", "MgCl₂ + H₂"], "B", "medium",
           "A carbonate reacts with an acid to give a salt, water and carbon dioxide.", family="reaction"),
        _t("Which element has the highest electronegativity?",
           ["Oxygen", "Chlorine", "Fluorine", "Nitrogen"], "C", "easy",
           "Fluorine has the highest electronegativity on the Pauling scale (3.98)."),
        _t("In the Haber process, what is the effect of increasing pressure on the yield of ammonia?",
           ["Yield decreases", "Yield increases", "No effect", "The reaction stops"], "B", "hard",
           "N₂ + 3H₂ ⇌ 2NH₃ has fewer moles of gas on the right, so higher pressure favours ammonia."),
    ],
    "biology": [
        _t("What is the main function of the mitochondria in a cell?",
           ["Protein synthesis", "ATP production", "Photosynthesis", "Cellular digestion"], "B", "easy",
           "Mitochondria carry out aerobic respiration and produce most of the cell's ATP.", family="organelle"),
        _t("Which blood cells are primarily responsible for fighting infection?",
           ["Red blood cells", "Platelets", "White blood cells", "Plasma cells only"], "C", "easy",
           "White blood cells (leukocytes) are the core of the immune response."),
        _t("During which phase of mitosis do sister chromatids separate?",
           ["Prophase", "Metaphase", "Anaphase", "Telophase"], "C", "medium",
           "Sister chromatids are pulled to opposite poles during anaphase."),
    ],
    "english": [
        _t("What is the function of a subordinating conjunction in a complex sentence?",
           ["It joins two independent clauses", "It introduces a dependent clause",
            "It modifies a noun", "It replaces a noun"], "B", "medium",
           "Subordinating conjunctions such as 'because' and 'although' introduce dependent clauses."),
        _t("Which sentence uses the passive voice?",
           ["The chef cooked the meal.", "The meal was cooked by the chef.",
            "The chef is cooking.", "The chef will cook."], "B", "easy",
           "In the passive voice the object of the action becomes the subject."),
        _t("Which literary device compares two things using 'like' or 'as'?",
           ["Metaphor", "Simile", "Personification", "Hyperbole"], "B", "easy",
           "A simile makes an explicit comparison using 'like' or 'as'."),
    ],
    "history": [
        _t("In which year did the Battle of Adwa take place?",
           ["1889", "1896", "1905", "1935"], "B", "easy",
           "Ethiopian forces defeated the Italian army at Adwa on 1 March 1896."),
        _t("What was the main purpose of the Berlin Conference of 1884-85?",
           ["To end the First World War", "To regulate European colonization of Africa",
            "To found the League of Nations", "To unify Germany"], "B", "medium",
           "The conference set the rules for European partition of Africa."),
        _t("Which factor most directly triggered the outbreak of the First World War?",
           ["The assassination of Archduke Franz Ferdinand", "The Russian Revolution",
            "The Treaty of Versailles", "The Great Depression"], "A", "hard",
           "The assassination in Sarajevo in June 1914 set the alliance system in motion."),
    ],
    "geography": [
        _t("Which biome is characterized by very low annual precipitation and extreme temperature ranges?",
           ["Tropical rainforest", "Temperate deciduous forest", "Desert", "Tundra"], "C", "medium",
           "Deserts receive under 250 mm of rain a year and have large daily temperature swings."),
        _t("What is the longest river in Africa?",
           ["Congo", "Niger", "Nile", "Zambezi"], "C", "easy",
           "The Nile is about 6,650 km long."),
        _t("Which process forms a rift valley?",
           ["Glacial erosion", "Divergence of tectonic plates", "River deposition", "Wind abrasion"],
           "B", "hard", "Rift valleys form where the crust is pulled apart along diverging plates."),
    ],
    "civics": [
        _t("What is the primary role of the judiciary in a democratic system?",
           ["Making laws", "Interpreting laws", "Enforcing laws", "Electing leaders"], "B", "easy",
           "Courts interpret the constitution and laws and settle disputes."),
        _t("Which principle divides government power among the legislative, executive and judicial branches?",
           ["Federalism", "Separation of powers", "Popular sovereignty", "Rule of majority"], "B", "medium",
           "Separation of powers prevents any single branch from holding all authority."),
    ],
}

QUESTION_PREFIXES = [
    "Consider the following: ",
    "Analyze this problem: ",
    "In this case: ",
    "Evaluate the following: ",
    "For this question: ",
]

FORCED_PREFIXES = [
    "For this specific case: ",
    "Consider carefully: ",
    "In this particular scenario: ",
    "Analyze the following: ",
    "Taking a different approach: ",
]


# --- Option helpers ---

def shuffle_options(template: Template, rng: random.Random) -> Template:
    """Shuffle options and re-derive the correct letter from the correct value."""
    correct_value = template.correct_value
    values = [template.options[letter] for letter in LETTERS]
    rng.shuffle(values)
    options = dict(zip(LETTERS, values))
    correct = next(letter for letter in LETTERS if options[letter] == correct_value)
    return template.model_copy(update={"options": options, "correct": correct})


def _numeric_template(question: str, correct: float, distractors: List[float],
                      fmt: Callable[[float], str], base: Template, explanation: str) -> Template:
    """Build a 4-option template with distinct formatted values; correct placed at A."""
    seen = {fmt(correct)}
    values = [fmt(correct)]
    for value in distractors:
        step = 1
        while fmt(value) in seen:
            value = value + step
            step += 1
        seen.add(fmt(value))
        values.append(fmt(value))
        if len(values) == 4:
            break
    return base.model_copy(update={
        "question": question,
        "options": dict(zip(LETTERS, values)),
        "correct": "A",
        "explanation": explanation,
    })


def _fmt_int(unit: str = "") -> Callable[[float], str]:
    return lambda v: f"{int(round(v))}{unit}"


def _fmt_dec(unit: str = "") -> Callable[[float], str]:
    def fmt(v: float) -> str:
        rounded = round(v, 1)
        text = f"{int(rounded)}" if rounded == int(rounded) else f"{rounded}"
        return f"{text}{unit}"
    return fmt


# --- Perturbation families ---
# Each returns a new template whose correct option is recomputed from the
# constants it writes into the question text.

def _rectangle(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    length = 5 + (index % 7) + rng.randint(0, variation * 5)
    width = 3 + (index % 5) + rng.randint(0, variation * 3)
    area = length * width
    perimeter = 2 * (length + width)
    if (index + attempt) % 2 == 0:
        return _numeric_template(
            f"Calculate the area of a rectangle with length {length} cm and width {width} cm.",
            area, [length + width, perimeter, area + rng.randint(1, 10)], _fmt_int(" cm²"), base,
            f"Area = length × width = {length} × {width} = {area} cm².",
        )
    return _numeric_template(
        f"Find the perimeter of a rectangle with length {length} cm and width {width} cm.",
        perimeter, [area, length * 2, width * 2], _fmt_int(" cm"), base,
        f"Perimeter = 2 × (length + width) = 2 × ({length} + {width}) = {perimeter} cm.",
    )


def _linear_equation(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    a = 1 + (index % 5) + rng.randint(0, variation * 2)
    b = 3 + (index % 7) + rng.randint(0, variation * 3)
    x = 1 + rng.randint(0, 4 + variation)
    c = a * x + b
    return _numeric_template(
        f"Solve the equation {a}x + {b} = {c}.",
        x, [x - 2, x - 1, x + 1], lambda v: f"x = {int(v)}", base,
        f"Subtract {b} from both sides to get {a}x = {c - b}, so x = {x}.",
    )


def _derivative(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    coefficient_sets = [(2, 3, 1), (3, 2, 4), (1, 4, 2), (4, 1, 3), (5, 2, 3), (2, 5, 6)]
    a, b, c = coefficient_sets[(index + attempt + rng.randint(0, variation)) % len(coefficient_sets)]
    a += variation - 1
    question = f"Find the derivative of f(x) = {a}x³ - {b}x² + {c}x - 2."
    correct = f"f'(x) = {3 * a}x² - {2 * b}x + {c}"
    options = [
        correct,
        f"f'(x) = {3 * a}x² - {2 * b}x - {c}",
        f"f'(x) = {3 * a}x² + {2 * b}x + {c}",
        f"f'(x) = {3 * a}x² - {2 * b}x",
    ]
    return base.model_copy(update={
        "question": question,
        "options": dict(zip(LETTERS, options)),
        "correct": "A",
        "explanation": f"Power rule: d/dx({a}x³) = {3 * a}x², d/dx(-{b}x²) = -{2 * b}x, d/dx({c}x) = {c}.",
    })


def _acceleration(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    accel = float(2 + (index % 3) + rng.randint(0, variation * 2))
    seconds = 5 + (index % 7) + rng.randint(0, variation * 3)
    distance = 0.5 * accel * seconds * seconds
    return _numeric_template(
        f"A car accelerates from rest at {accel:.1f} m/s². How far will it travel in {seconds} seconds?",
        distance, [distance / 2, distance * 1.5, accel * seconds], _fmt_dec(" m"), base,
        f"d = ½at² = 0.5 × {accel:.1f} × {seconds}² = {_fmt_dec(' m')(distance)}.",
    )


def _resistors(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    r1 = 2 + (index % 6) + rng.randint(0, variation * 4)
    r2 = 4 + (index % 4) + rng.randint(0, variation * 3)
    series = r1 + r2
    parallel = (r1 * r2) / (r1 + r2)
    fmt = _fmt_dec(" Ω")
    if (index + attempt) % 2 == 0:
        return _numeric_template(
            f"What is the equivalent resistance of two resistors R₁ = {r1} Ω and R₂ = {r2} Ω connected in parallel?",
            parallel, [series, r1 * r2, (r1 + r2) / 2], fmt, base,
            f"1/R = 1/{r1} + 1/{r2}, so R = ({r1} × {r2}) / ({r1} + {r2}) = {fmt(parallel)}.",
        )
    return _numeric_template(
        f"What is the equivalent resistance of two resistors R₁ = {r1} Ω and R₂ = {r2} Ω connected in series?",
        series, [parallel, r1 * r2, abs(r1 - r2)], fmt, base,
        f"Series resistances add: {r1} + {r2} = {series} Ω.",
    )


def _force(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    mass = 2 + (index % 8) + rng.randint(0, variation * 4)
    accel = 3 + (index % 5) + rng.randint(0, variation * 3)
    force = mass * accel
    return _numeric_template(
        f"Calculate the force needed to accelerate a {mass} kg object at {accel} m/s².",
        force, [force - 5, force + 5, force * 2], _fmt_int(" N"), base,
        f"Newton's second law: F = ma = {mass} × {accel} = {force} N.",
    )


STRONG_ACIDS = ["HCl", "HNO₃", "HBr"]


def _ph(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    exponent = 1 + (index + attempt + rng.randint(0, variation)) % 5
    concentration = f"{10.0 ** -exponent:.{exponent}f}"
    acid = STRONG_ACIDS[(index + attempt) % len(STRONG_ACIDS)]
    below = exponent - 1 if exponent > 1 else exponent + 3
    return _numeric_template(
        f"Calculate the pH of a {concentration} M {acid} solution.",
        exponent, [exponent + 1, below, 14 - exponent], _fmt_int(), base,
        f"{acid} is a strong monoprotic acid, so [H⁺] = {concentration} M and pH = -log({concentration}) = {exponent}.",
    )


REACTIONS = [
    ("Na₂CO₃ + 2HCl", "2NaCl + H₂O + CO₂"),
    ("CaCO₃ + 2HCl", "CaCl₂ + H₂O + CO₂"),
    ("2NaOH + H₂SO₄", "Na₂SO₄ + 2H₂O"),
    ("Mg + 2HCl", "MgCl₂ + H₂"),
]


def _reaction(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    reactants, products = REACTIONS[(index + attempt + rng.randint(0, variation)) % len(REACTIONS)]
    options = [products] + [p for _, p in REACTIONS if p != products]
    return base.model_copy(update={
        "question": f"What is the product of the reaction: {reactants} → ?",
        "options": dict(zip(LETTERS, options)),
        "correct": "A",
        "explanation": f"{reactants} → {products}.",
    })


ORGANELLES = [
    ("Mitochondria", "ATP production", "Cellular respiration"),
    ("Ribosome", "Protein synthesis", "Translation of mRNA"),
    ("Golgi apparatus", "Processing and packaging macromolecules", "Protein modification and sorting"),
    ("Endoplasmic reticulum", "Synthesis of lipids and proteins", "Transport of cellular materials"),
    ("Chloroplast", "Photosynthesis", "Light energy conversion"),
    ("Lysosome", "Cellular digestion", "Breaking down waste materials"),
]


def _organelle(base: Template, index: int, attempt: int, variation: int, rng: random.Random) -> Template:
    position = (index + attempt + rng.randint(0, variation)) % len(ORGANELLES)
    use_alt = (index + attempt) % 2 == 1
    name, function, alt = ORGANELLES[position]
    correct = alt if use_alt else function
    others = [(o[2] if use_alt else o[1]) for i, o in enumerate(ORGANELLES) if i != position]
    rng.shuffle(others)
    return base.model_copy(update={
        "question": f"What is the primary function of the {name} in a eukaryotic cell?",
        "options": dict(zip(LETTERS, [correct] + others[:3])),
        "correct": "A",
        "explanation": f"The {name} is responsible for {correct.lower()}.",
    })


FAMILIES: Dict[str, Callable[[Template, int, int, int, random.Random], Template]] = {
    "rectangle": _rectangle,
    "linear_equation": _linear_equation,
    "derivative": _derivative,
    "acceleration": _acceleration,
    "resistors": _resistors,
    "force": _force,
    "ph": _ph,
    "reaction": _reaction,
    "organelle": _organelle,
}


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:] if text else text


def create_unique_template(template: Template, index: int, attempt: int,
                           force_uniqueness: bool, rng: random.Random) -> Template:
    """Perturb a template once. Stronger variation when templates are being reused."""
    variation = 2 if force_uniqueness else 1
    family = FAMILIES.get(template.family or "")
    if family is not None:
        return shuffle_options(family(template, index, attempt, variation, rng), rng)

    if force_uniqueness or attempt > 0:
        prefix = rng.choice(QUESTION_PREFIXES)
        template = template.model_copy(update={"question": prefix + _lower_first(template.question)})
    return shuffle_options(template, rng)


def create_forced_unique_template(template: Template, index: int, used_hashes: Set[str],
                                  rng: random.Random) -> Template:
    """Last resort: push numeric constants further, then number the question."""
    family = FAMILIES.get(template.family or "")
    if family is not None:
        for step in range(3, 3 + MAX_UNIQUE_ATTEMPTS):
            candidate = family(template, index + step * 7, step, step, rng)
            if hash_question(candidate.question) not in used_hashes:
                return shuffle_options(candidate, rng)

    prefix = rng.choice(FORCED_PREFIXES)
    variant = 1
    question = f"{prefix}{_lower_first(template.question)}"
    while hash_question(question) in used_hashes:
        variant += 1
        question = f"Variant {variant}: {prefix}{_lower_first(template.question)}"
    return shuffle_options(template.model_copy(update={"question": question}), rng)


# --- Public API ---

def templates_for(subject: str, difficulty: str = "all") -> List[Template]:
    """Templates for a subject, filtered by difficulty ('all' keeps every one)."""
    templates = TEMPLATES.get(subject.lower(), [])
    if difficulty and difficulty != "all":
        filtered = [t for t in templates if t.difficulty == difficulty]
        # A subject without templates at this level still gets its full pool
        return filtered or list(templates)
    return list(templates)


def explanation_for(template: Template, subject: str, difficulty: str) -> str:
    if template.explanation:
        return template.explanation
    texts = {
        "easy": "This is a fundamental concept in",
        "medium": "This problem requires application of key principles in",
        "hard": "This advanced question tests deep understanding of",
    }
    lead = texts.get(template.difficulty or difficulty, "This question tests your knowledge of")
    return f"{lead} {subject}. The correct answer applies principles from the {subject} curriculum."


def generate_batch(subject: str, difficulty: str = "all", count: int = 5,
                   rng: Optional[random.Random] = None) -> Tuple[List[GeneratedQuestion], Dict]:
    """
    Build `count` distinct questions from the template bank.

    Returns:
        (questions, meta) where meta carries isReusingTemplates,
        subjectTemplateCount and requestedCount.
    """
    rng = rng or random.Random()
    subject_key = subject.lower()
    pool = templates_for(subject_key, difficulty)
    if not pool:
        return [], {"isReusingTemplates": False, "subjectTemplateCount": 0, "requestedCount": count}

    pool = pool[:]
    rng.shuffle(pool)
    used_hashes: Set[str] = set()
    questions: List[GeneratedQuestion] = []
    reusing = False

    for i in range(count):
        if i >= len(pool) and not reusing:
            reusing = True
            logger.warning("⚠️ Reusing templates for %s (%s) to meet requested count of %d questions.",
                           subject, difficulty, count)

        template = pool[i % len(pool)]
        modified = template
        question_hash = None
        for attempt in range(MAX_UNIQUE_ATTEMPTS):
            modified = create_unique_template(template, i, attempt, reusing, rng)
            question_hash = hash_question(modified.question)
            if question_hash not in used_hashes:
                break

        if question_hash in used_hashes:
            modified = create_forced_unique_template(template, i, used_hashes, rng)
            question_hash = hash_question(modified.question)
        used_hashes.add(question_hash)

        if reusing:
            question_id = f"question-{i + 1}-{subject_key}-{difficulty}-modified-{int(time.time() * 1000)}-{rng.randint(0, 999)}"
        else:
            question_id = f"question-{i + 1}-{subject_key}-{difficulty}"

        gen = modified.to_gen().model_copy(update={
            "explanation": explanation_for(modified, subject, difficulty),
        })
        questions.append(GeneratedQuestion.from_gen(
            gen,
            subject=subject,
            index=i,
            source="fallback",
            difficulty_level=DIFFICULTY_LEVELS.get(modified.difficulty or difficulty, 5),
            question_id=question_id,
        ))

    rng.shuffle(questions)
    meta = {
        "isReusingTemplates": reusing,
        "subjectTemplateCount": len(pool),
        "requestedCount": count,
    }
    return questions, meta


def generic_template(subject: str, unit_objective: Optional[str] = None) -> Template:
    related = f" related to {unit_objective}" if unit_objective else ""
    return _t(
        f"A challenging question about {subject}{related}",
        [
            "Option A - This would be a plausible but incorrect answer",
            "Option B - This would be the correct answer",
            "Option C - This would be a plausible but incorrect answer",
            "Option D - This would be a plausible but incorrect answer",
        ],
        "B",
        explanation=(
            "This is a fallback question created when AI generation failed. The correct answer "
            "would be B because of specific concepts and principles related to the topic."
        ),
    )


def template_for_slot(subject: str, unit_objective: Optional[str], index: int,
                      rng: Optional[random.Random] = None) -> GenQuestion:
    """Fallback question for one generation slot."""
    rng = rng or random.Random()
    templates = TEMPLATES.get(subject.lower())
    if not templates:
        return generic_template(subject, unit_objective).to_gen()
    template = templates[index % len(templates)]
    return create_unique_template(template, index, 0, False, rng).to_gen()
