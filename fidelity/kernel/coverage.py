"""
Fidelity Kernel — Framework Coverage Analyzer

Measures how much of a persona's mental-model vocabulary a text uses:
framework names, concepts (by name, definition keywords or examples) and the
diagnostic questions attached to each framework.

Score: 30 for frameworks referenced, 50 for concepts used, 20 for questions
applied. A persona without frameworks scores 100.
"""

from __future__ import annotations

import math
import re
from typing import Any

from fidelity.kernel.types import (
    CONCEPT_POINTS,
    FRAMEWORK_REFERENCE_POINTS,
    QUESTION_POINTS,
    FrameworkCoverageResult,
    SingleFrameworkCoverage,
    clamp_score,
    round_half_up,
)
from fidelity.models.persona import Framework, FrameworkConcept, PersonaDefinition

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "shall", "can", "need", "dare",
        "ought", "used", "to", "of", "in", "for", "on", "with", "at", "by",
        "from", "up", "about", "into", "over", "after", "beneath", "under",
        "above", "this", "that", "these", "those", "it", "its", "and", "but",
        "or", "nor", "so", "yet", "both", "either", "neither", "not", "only",
        "own", "same", "than", "too", "very", "just", "also", "now", "here",
        "there", "when", "where", "why", "how", "all", "each", "every", "few",
        "more", "most", "other", "some", "such", "no", "any", "which", "who",
    }
)

_NON_LETTERS = re.compile(r"[^a-z\s]")

MAX_SUGGESTIONS = 5

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_framework_coverage(text: str, persona: PersonaDefinition) -> FrameworkCoverageResult:
    lowered = text.lower()

    per_framework: dict[str, SingleFrameworkCoverage] = {}
    referenced: list[str] = []
    concepts: list[str] = []
    questions: list[str] = []

    for name, framework in persona.frameworks.items():
        coverage = _analyze_framework(lowered, name, framework)
        per_framework[name] = coverage
        if coverage.referenced:
            referenced.append(name)
        concepts.extend(coverage.concepts_found)
        questions.extend(q for q in framework.questions if is_question_used(lowered, q))

    score = _coverage_score(persona, per_framework, concepts, questions)

    return FrameworkCoverageResult(
        coverage_score=score,
        framework_coverage=per_framework,
        referenced_frameworks=referenced,
        concepts_mentioned=list(dict.fromkeys(concepts)),
        questions_used=list(dict.fromkeys(questions)),
        assessment=_assessment(score, per_framework, concepts, questions, persona.identity.name),
    )


def quick_framework_check(text: str, persona: PersonaDefinition, threshold: int = 50) -> bool:
    return analyze_framework_coverage(text, persona).coverage_score >= threshold


def get_framework_suggestions(text: str, persona: PersonaDefinition) -> list[str]:
    """
    Next steps for better coverage, at most five:
    unreferenced frameworks first, then under-used referenced ones, then one
    diagnostic question not yet asked.
    """
    result = analyze_framework_coverage(text, persona)
    suggestions: list[str] = []

    for name, coverage in result.framework_coverage.items():
        if not coverage.referenced and coverage.total_concepts > 0:
            suggestions.append(f"Consider referencing the {name} framework")

    for name, coverage in result.framework_coverage.items():
        if coverage.referenced and coverage.coverage < 50:
            unused = [c for c in persona.frameworks[name].concepts if c not in coverage.concepts_found]
            if unused:
                suggestions.append(f"Apply more concepts from {name}: {', '.join(unused[:3])}")

    for framework in persona.frameworks.values():
        unused_questions = [q for q in framework.questions if q not in result.questions_used]
        if unused_questions:
            suggestions.append(f'Consider using diagnostic question: "{unused_questions[0][:50]}..."')
            break

    return suggestions[:MAX_SUGGESTIONS]


def get_framework_report(text: str, persona: PersonaDefinition) -> dict[str, dict[str, Any]]:
    """Per framework: referenced flag plus used/unused status of every concept and question."""
    result = analyze_framework_coverage(text, persona)
    report: dict[str, dict[str, Any]] = {}

    for name, framework in persona.frameworks.items():
        coverage = result.framework_coverage[name]
        report[name] = {
            "referenced": coverage.referenced,
            "concepts": [
                {"name": concept, "used": concept in coverage.concepts_found}
                for concept in framework.concepts
            ],
            "questions": [
                {"text": q, "used": q in result.questions_used} for q in framework.questions
            ],
        }

    return report


def extract_keywords(text: str) -> list[str]:
    """Lower-case letters-only words longer than 3 characters, stop words removed."""
    cleaned = _NON_LETTERS.sub("", text.lower())
    return [w for w in cleaned.split() if len(w) > 3 and w not in STOP_WORDS]


def is_question_used(lowered_text: str, question: str) -> bool:
    target = question.lower()
    if target in lowered_text:
        return True

    # A question with no keywords counts as used
    keywords = extract_keywords(target)[:4]
    found = sum(1 for kw in keywords if kw in lowered_text)
    return found >= math.ceil(len(keywords) * 0.6)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _normalize_name(name: str) -> str:
    return name.lower().replace("_", " ").replace("-", " ")


def _analyze_framework(lowered: str, name: str, framework: Framework) -> SingleFrameworkCoverage:
    referenced = _normalize_name(name) in lowered or name.lower() in lowered

    found = [
        concept_name
        for concept_name, concept in framework.concepts.items()
        if _is_concept_mentioned(lowered, concept_name, concept)
    ]
    total = len(framework.concepts)

    return SingleFrameworkCoverage(
        name=name,
        referenced=referenced,
        concepts_found=found,
        total_concepts=total,
        coverage=round_half_up(len(found) / total * 100) if total else 0,
    )


def _is_concept_mentioned(lowered: str, name: str, concept: FrameworkConcept) -> bool:
    normalized = name.lower().replace("_", " ")
    if normalized in lowered:
        return True

    # An empty word list satisfies its ratio rule (0 >= ceil(0))
    name_words = [w for w in normalized.split() if len(w) > 2]
    if sum(1 for w in name_words if w in lowered) >= math.ceil(len(name_words) * 0.7):
        return True

    # Repeated keywords each count
    if sum(1 for kw in extract_keywords(concept.definition) if kw in lowered) >= 3:
        return True

    for example in concept.examples:
        words = [w for w in example.lower().split() if len(w) > 4]
        if sum(1 for w in words if w in lowered) >= math.ceil(len(words) * 0.5):
            return True

    return False


def _coverage_score(
    persona: PersonaDefinition,
    per_framework: dict[str, SingleFrameworkCoverage],
    concepts: list[str],
    questions: list[str],
) -> int:
    if not per_framework:
        return 100

    frameworks = list(per_framework.values())
    score = sum(1 for f in frameworks if f.referenced) / len(frameworks) * FRAMEWORK_REFERENCE_POINTS

    total_concepts = sum(f.total_concepts for f in frameworks)
    unique_concepts = len(set(concepts))
    score += unique_concepts / total_concepts * CONCEPT_POINTS if total_concepts else CONCEPT_POINTS

    total_questions = sum(len(f.questions) for f in persona.frameworks.values())
    score += len(questions) / total_questions * QUESTION_POINTS if total_questions else QUESTION_POINTS

    return clamp_score(score)


def _assessment(
    score: int,
    per_framework: dict[str, SingleFrameworkCoverage],
    concepts: list[str],
    questions: list[str],
    name: str,
) -> str:
    if score >= 80:
        verdict = "Excellent"
    elif score >= 60:
        verdict = "Good"
    elif score >= 40:
        verdict = "Moderate"
    else:
        verdict = "Low"
    lines = [f"{verdict} {name} framework coverage ({score}/100)."]

    referenced = sum(1 for f in per_framework.values() if f.referenced)
    lines.append(f"Frameworks referenced: {referenced}/{len(per_framework)}")

    for fw_name, coverage in per_framework.items():
        status = "✓" if coverage.referenced else "○"
        lines.append(
            f"  {status} {fw_name}: {len(coverage.concepts_found)}/{coverage.total_concepts} "
            f"concepts ({coverage.coverage}%)"
        )

    lines.append(f"Total concepts used: {len(set(concepts))}")

    if questions:
        lines.append(f"Diagnostic questions applied: {len(questions)}")

    return "\n".join(lines)
