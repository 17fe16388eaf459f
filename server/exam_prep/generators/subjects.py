"""
Subject reference data used to vary generation prompts.
"""
from typing import Dict, List, Optional


# Subject-specific instructions for the question prompt
SUBJECT_PROMPT_GUIDES: Dict[str, str] = {
    "Mathematics": "Include challenging formulas, multi-step problems, and conceptual understanding. Questions should require application of mathematical principles rather than simple recall.",
    "Chemistry": "Include complex chemical reactions, integrated concepts across topics, and problems requiring mathematical calculations and conceptual understanding.",
    "Physics": "Include problems requiring application of multiple physical laws, mathematical manipulations, and conceptual understanding across topics.",
    "Biology": "Questions should integrate multiple biological systems, require analysis of complex processes, and application of biological principles to novel scenarios.",
    "History": "Include questions that require analysis of historical events, comparison of multiple perspectives, and evaluation of historical significance and impact.",
    "Geography": "Include questions on complex geographical phenomena, interconnections between physical and human geography, and analysis of geographical data.",
    "Civics": "Include complex ethical scenarios, analysis of governance structures, and application of civic principles to real-world situations.",
}

# Learning objectives by subject and unit
LEARNING_OBJECTIVES: Dict[str, Dict[str, List[str]]] = {
    "Mathematics": {
        "Grade 12 Unit 1": [
            "Understand sequence and series",
            "Compute terms of a sequence from a given rule",
            "Use given terms to develop a formula that represent the sequence",
            "Identify different types of sequences and series",
            "Compute the partial and infinite sum of some sequences",
            "Apply understanding of sequences and series to real-life problems",
        ],
        "Grade 12 Unit 3": [
            "Describe absolute and relative dispersion and their interpretation",
            "Conceptualize specific facts about measurement in statistical data",
            "Grasp basic concepts about sampling techniques",
            "Appreciate the value of statistics in real life",
        ],
        "Grade 12 Unit 4": [
            "Deduce how to find regions of inequality graphs",
            "Solve systems of linear inequality",
            "Construct linear programming problems",
            "Solve real life problems of linear programming problems",
        ],
    },
    "Chemistry": {
        "Grade 12 Unit 1": [
            "Understand Acid-Base Concepts",
            "Solve Equilibrium Problems",
            "Work with Acid-Base Indicators and Titrations",
        ],
        "Grade 12 Unit 2": [
            "Understand Redox Reactions",
            "Explain Electrolysis processes",
            "Work with Electrochemical Cells",
            "Describe Industrial Applications",
        ],
    },
    "Physics": {
        "Grade 12 Unit 2": [
            "Understand two-dimensional motions",
            "Describe projectile motion",
            "Explain rotational dynamics and Kepler's laws",
            "Apply Newton's law of universal gravitation",
        ],
        "Grade 12 Unit 3": [
            "Understand fluid mechanics concepts and pressure",
            "Apply Pascal's and Archimedes' principles",
            "Analyze fluid flow behaviors",
        ],
    },
}

CONCEPTS_BY_SUBJECT: Dict[str, List[str]] = {
    "Mathematics": [
        "algebraic proofs", "complex number operations", "statistical inference",
        "geometric transformations", "calculus optimization", "sequences and series",
        "probability distributions", "vector spaces", "differential equations",
        "number theory", "graph theory", "mathematical modeling", "set theory",
    ],
    "Physics": [
        "projectile motion", "fluid dynamics", "electromagnetic induction",
        "quantum phenomena", "thermodynamic cycles", "wave interference",
        "gravitational fields", "nuclear reactions", "circuit analysis",
        "optics", "relative motion", "energy transformations", "magnetic fields",
    ],
    "Chemistry": [
        "equilibrium reactions", "organic synthesis", "kinetic theory",
        "molecular structure", "acid-base titrations", "redox reactions",
        "intermolecular forces", "chemical energetics", "reaction mechanisms",
        "electrochemistry", "coordination compounds", "isomerism", "periodic trends",
    ],
    "Biology": [
        "gene regulation", "ecosystem dynamics", "cellular respiration",
        "evolutionary mechanisms", "physiological systems", "protein synthesis",
        "immune responses", "hormonal control", "plant physiology",
        "neural transmission", "biodiversity", "inheritance patterns", "homeostasis",
    ],
    "History": [
        "political revolutions", "economic systems", "cultural movements",
        "diplomatic relations", "social reforms", "technological innovations",
        "imperial expansion", "religious conflicts", "intellectual thought",
        "migration patterns", "warfare tactics", "environmental history", "gender roles",
    ],
    "Geography": [
        "geomorphological processes", "climate systems", "population dynamics",
        "urban development", "resource management", "agricultural patterns",
        "industrialization", "transportation networks", "cultural landscapes",
        "economic geography", "political boundaries", "environmental challenges", "migration",
    ],
    "Civics": [
        "constitutional principles", "judicial systems", "electoral processes",
        "civil liberties", "government structures", "public policy",
        "international relations", "civic participation", "legal frameworks",
        "human rights", "federal systems", "political ideologies", "media influence",
    ],
}

DEFAULT_CONCEPTS = ["fundamental principles", "critical analysis", "applied scenarios", "theoretical models"]

UNIQUENESS_REQUIREMENTS = [
    "Create a completely UNIQUE and ORIGINAL question unlike any other - question index #{index}",
    "Design this question to be distinctly different from all others in the set - variation #{index}",
    "This question MUST use a completely different scenario and context than others - uniqueness index #{index}",
    "Make this question stand apart from others by using a novel approach - distinctiveness factor #{index}",
    "Generate a question that is fundamentally different in structure and content - differentiation point #{index}",
]

CONCEPT_VARIATIONS = [
    ("advanced {subject} concepts related to {concept}", 0),
    ("challenging problems involving {concept}", 10),
    ("critical thinking about {concept}", 20),
    ("application-oriented scenarios for {concept}", 30),
    ("analysis-level problems concerning {concept}", 40),
]

# Rotated per client attempt to vary the instruction wording
CHALLENGE_VARIATIONS = ["challenging", "advanced", "complex", "difficult", "analytical"]


def concept_for(subject: str, seed: int = 0) -> str:
    concepts = CONCEPTS_BY_SUBJECT.get(display_name(subject), DEFAULT_CONCEPTS)
    return concepts[seed % len(concepts)]


def objective_for(subject: str, index: int, unit_objective: Optional[str] = None) -> str:
    """Describe the learning objective the question must target, or ''."""
    if unit_objective:
        return (
            f'focusing SPECIFICALLY on this learning objective: "{unit_objective}". '
            "All questions MUST directly align with this objective."
        )
    units = LEARNING_OBJECTIVES.get(display_name(subject))
    if not units:
        return ""
    unit_names = list(units)
    unit = unit_names[index % len(unit_names)]
    objectives = units[unit]
    if not objectives:
        return ""
    objective = objectives[index % len(objectives)]
    return (
        f'focusing on this learning objective from {unit}: "{objective}". '
        "The question must directly assess this objective."
    )


def uniqueness_requirement(index: int) -> str:
    template = UNIQUENESS_REQUIREMENTS[index % len(UNIQUENESS_REQUIREMENTS)]
    return template.format(index=index)


def concept_variation(subject: str, index: int) -> str:
    template, offset = CONCEPT_VARIATIONS[index % len(CONCEPT_VARIATIONS)]
    return template.format(subject=subject, concept=concept_for(subject, index + offset))


def display_name(subject: str) -> str:
    """'mathematics' -> 'Mathematics', the key used by the tables above."""
    return subject.strip().capitalize()


def guide_for(subject: str) -> str:
    return SUBJECT_PROMPT_GUIDES.get(display_name(subject), "")
