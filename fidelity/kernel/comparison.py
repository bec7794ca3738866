"""
Fidelity Kernel — Comparison Engine

Two kinds of comparison:

  text vs. personas   — run all three analyzers per persona, rank by the
                        weighted quality score (ties keep input order)
  persona vs. persona — Jaccard similarity of voice, frameworks and required
                        markers, independent of any text

Personas are passed as an ordered mapping {id: persona} or a sequence of
(id, persona) pairs. Order matters: it breaks ranking ties and lays out the
matrix and differentiator output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from fidelity.config import settings
from fidelity.kernel.coverage import analyze_framework_coverage
from fidelity.kernel.scoring import calculate_fidelity_score
from fidelity.kernel.types import (
    BestMatch,
    CrossPersonaComparison,
    Differentiators,
    PersonaComparisonResult,
    PersonaSimilarity,
    round_half_up,
)
from fidelity.kernel.voice import analyze_voice_consistency
from fidelity.models.config import ValidationConfig
from fidelity.models.persona import PersonaDefinition

logger = logging.getLogger(__name__)

PersonaCollection = Mapping[str, PersonaDefinition] | Sequence[tuple[str, PersonaDefinition]]

CLOSE_ALTERNATIVE_GAP = 10
MAX_RANKINGS = 5
_MEDALS = ("🥇", "🥈", "🥉")


class DuplicatePersonaId(ValueError):
    """Raised when a sequence of (id, persona) pairs repeats an id."""


# ---------------------------------------------------------------------------
# Text vs. personas
# ---------------------------------------------------------------------------


def compare_across_personas(
    text: str,
    personas: PersonaCollection,
    config: ValidationConfig | None = None,
) -> CrossPersonaComparison:
    """Score `text` against every persona and rank them, best first."""
    config = config or settings.validation_config()
    entries = _ordered(personas)

    results = [_analyze_for_persona(text, pid, persona, config) for pid, persona in entries]
    # sorted() is stable: equal scores keep input order
    results = sorted(results, key=lambda r: r.quality_score, reverse=True)

    return CrossPersonaComparison(
        analyzed_text=text,
        results=results,
        best_match=results[0].persona_id if results else "",
        summary=_comparison_summary(results, text),
    )


def find_best_persona_match(text: str, personas: PersonaCollection) -> BestMatch | None:
    comparison = compare_across_personas(text, personas)
    if not comparison.results:
        return None
    best = comparison.results[0]
    return BestMatch(persona_id=best.persona_id, persona_name=best.persona_name, score=best.quality_score)


# ---------------------------------------------------------------------------
# Persona vs. persona
# ---------------------------------------------------------------------------


def compare_persona_characteristics(a: PersonaDefinition, b: PersonaDefinition) -> PersonaSimilarity:
    voice = _jaccard_percent([*a.voice.tone, *a.voice.style], [*b.voice.tone, *b.voice.style])
    frameworks = _jaccard_percent(a.frameworks, b.frameworks)
    validation = _jaccard_percent(
        (m.pattern for m in a.validation.must_include),
        (m.pattern for m in b.validation.must_include),
    )
    return PersonaSimilarity(
        voice_similarity=voice,
        framework_overlap=frameworks,
        validation_similarity=validation,
        overall=round_half_up(voice * 0.4 + frameworks * 0.4 + validation * 0.2),
    )


def generate_similarity_matrix(personas: PersonaCollection) -> dict[str, dict[str, int]]:
    """Full N×N overall-similarity matrix. Diagonal is 100."""
    entries = _ordered(personas)
    matrix: dict[str, dict[str, int]] = {}
    for id_a, a in entries:
        row: dict[str, int] = {}
        for id_b, b in entries:
            row[id_b] = 100 if id_a == id_b else compare_persona_characteristics(a, b).overall
        matrix[id_a] = row
    return matrix


def identify_differentiators(personas: PersonaCollection) -> Differentiators:
    """Frameworks, tones and phrases that belong to exactly one persona."""
    entries = _ordered(personas)
    return Differentiators(
        unique_frameworks=_unique_items({pid: list(p.frameworks) for pid, p in entries}),
        unique_tones=_unique_items({pid: p.voice.tone for pid, p in entries}),
        unique_phrases=_unique_items({pid: p.voice.phrases for pid, p in entries}),
    )


def get_comparative_analysis(personas: PersonaCollection) -> str:
    entries = _ordered(personas)
    lines = [f"Comparative Analysis of {len(entries)} Personas", "=" * 50, ""]

    for pid, persona in entries:
        lines.append(f"{persona.identity.name} ({pid})")
        lines.append(f"  Role: {persona.identity.role}")
        lines.append(f"  Frameworks: {len(persona.frameworks)}")
        lines.append(f"  Case Studies: {len(persona.case_studies)}")
        lines.append(f"  Voice: {len(persona.voice.tone)} tones, {len(persona.voice.phrases)} phrases")
        lines.append("")

    diff = identify_differentiators(entries)
    lines.append("Unique Differentiators:")
    for pid, persona in entries:
        frameworks = diff.unique_frameworks.get(pid, [])
        tones = diff.unique_tones.get(pid, [])
        if not frameworks and not tones:
            continue
        lines.append(f"  {persona.identity.name}:")
        if frameworks:
            lines.append(f"    Frameworks: {', '.join(frameworks)}")
        if tones:
            lines.append(f"    Tones: {', '.join(tones)}")

    if len(entries) > 1:
        names = {pid: persona.identity.name for pid, persona in entries}
        matrix = generate_similarity_matrix(entries)
        lines.append("")
        lines.append("Similarity Matrix:")
        for id_a, row in matrix.items():
            others = [f"{names[id_b]}: {value}%" for id_b, value in row.items() if id_b != id_a]
            lines.append(f"  {names[id_a]} → {', '.join(others)}")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _ordered(personas: PersonaCollection) -> list[tuple[str, PersonaDefinition]]:
    if isinstance(personas, Mapping):
        return list(personas.items())

    entries = list(personas)
    seen: set[str] = set()
    for pid, _ in entries:
        if pid in seen:
            raise DuplicatePersonaId(f"Duplicate persona id: {pid}")
        seen.add(pid)
    return entries


def _analyze_for_persona(
    text: str,
    persona_id: str,
    persona: PersonaDefinition,
    config: ValidationConfig,
) -> PersonaComparisonResult:
    fidelity = calculate_fidelity_score(text, persona, passing_score=config.fidelity_threshold)
    voice = analyze_voice_consistency(text, persona)
    framework = analyze_framework_coverage(text, persona)

    w = config.weights
    quality = round_half_up(
        fidelity.score * w.fidelity + voice.consistency_score * w.voice + framework.coverage_score * w.framework
    )
    logger.debug(
        "Persona %s: fidelity=%d voice=%d framework=%d quality=%d",
        persona_id,
        fidelity.score,
        voice.consistency_score,
        framework.coverage_score,
        quality,
    )

    return PersonaComparisonResult(
        persona_id=persona_id,
        persona_name=persona.identity.name,
        fidelity_score=fidelity,
        voice_analysis=voice,
        framework_coverage=framework,
        quality_score=quality,
    )


def _comparison_summary(results: list[PersonaComparisonResult], text: str) -> str:
    if not results:
        return "No personas to compare against."

    best = results[0]
    lines = [
        f"Analyzed {len(text)} characters against {len(results)} persona(s).",
        "",
        f"Best Match: {best.persona_name} ({best.quality_score}/100)",
        f"  - Fidelity: {best.fidelity_score.score}/100",
        f"  - Voice: {best.voice_analysis.consistency_score}/100",
        f"  - Framework: {best.framework_coverage.coverage_score}/100",
    ]

    if len(results) > 1:
        runner_up = results[1]
        if best.quality_score - runner_up.quality_score < CLOSE_ALTERNATIVE_GAP:
            lines.append("")
            lines.append(f"Close Alternative: {runner_up.persona_name} ({runner_up.quality_score}/100)")

        lines.append("")
        lines.append("Rankings:")
        for i, r in enumerate(results[:MAX_RANKINGS]):
            medal = _MEDALS[i] if i < len(_MEDALS) else f"{i + 1}."
            lines.append(f"  {medal} {r.persona_name}: {r.quality_score}/100")

    return "\n".join(lines)


def _jaccard_percent(a: Iterable[str], b: Iterable[str]) -> int:
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0
    return round_half_up(len(set_a & set_b) / len(union) * 100)


def _unique_items(items: dict[str, list[str]]) -> dict[str, list[str]]:
    unique: dict[str, list[str]] = {}
    for pid, own in items.items():
        others: set[str] = set()
        for other_id, other in items.items():
            if other_id != pid:
                others.update(other)
        unique[pid] = [x for x in dict.fromkeys(own) if x not in others]
    return unique
