"""
Fidelity Kernel — Fidelity Scorer

Scores a text against a persona's weighted validation markers:

  must_include    — up to 60 points, weighted share of required markers found
  should_include  — up to 30 points, weighted share of bonus markers found
  must_avoid      — penalty, each triggered marker subtracts its weight

Score is clamped to [0, 100]. A text passes when the score reaches the passing
score AND at least 80% of required markers matched. A persona with no
required markers has no ratio at all, and that fails the gate.
"""

from __future__ import annotations

from collections.abc import Sequence

from fidelity.kernel.matcher import match_markers
from fidelity.kernel.types import (
    DEFAULT_PASSING_SCORE,
    MUST_AVOID_DEFAULT_PENALTY,
    MUST_INCLUDE_DEFAULT_WEIGHT,
    MUST_INCLUDE_POINTS,
    MUST_INCLUDE_RATIO_THRESHOLD,
    SHOULD_INCLUDE_DEFAULT_WEIGHT,
    SHOULD_INCLUDE_POINTS,
    AvoidBreakdown,
    FidelityBreakdown,
    FidelityScore,
    MatchResult,
    PatternBreakdown,
    SampleValidation,
    SampleValidationResult,
    clamp_score,
    round_half_up,
)
from fidelity.models.persona import PersonaDefinition, ValidationMarker


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_fidelity_score(
    text: str,
    persona: PersonaDefinition,
    *,
    additional_must_avoid: Sequence[ValidationMarker] | None = None,
    passing_score: int = DEFAULT_PASSING_SCORE,
) -> FidelityScore:
    """
    Score `text` against the persona's validation markers.

    `additional_must_avoid` markers (e.g. from a department) are appended to
    the persona's own must-avoid list before matching.
    """
    validation = persona.validation
    avoid_markers = [*validation.must_avoid, *(additional_must_avoid or [])]

    must = match_markers(text, validation.must_include)
    should = match_markers(text, validation.should_include)
    avoid = match_markers(text, avoid_markers)

    must_points = _weighted_points(must, MUST_INCLUDE_DEFAULT_WEIGHT, MUST_INCLUDE_POINTS)
    should_points = _weighted_points(should, SHOULD_INCLUDE_DEFAULT_WEIGHT, SHOULD_INCLUDE_POINTS)
    penalty = sum(m.marker.weight_or(MUST_AVOID_DEFAULT_PENALTY) for m in avoid.matched)

    score = clamp_score(must_points + should_points - penalty)

    ratio = must_include_ratio(must)
    passed = score >= passing_score and ratio is not None and ratio >= MUST_INCLUDE_RATIO_THRESHOLD

    breakdown = FidelityBreakdown(
        must_include=PatternBreakdown(
            matched=len(must.matched),
            total=len(must),
            patterns=must.matched_labels,
            missing=must.unmatched_labels,
        ),
        should_include=PatternBreakdown(
            matched=len(should.matched),
            total=len(should),
            patterns=should.matched_labels,
            missing=should.unmatched_labels,
        ),
        must_avoid=AvoidBreakdown(triggered=len(avoid.matched), patterns=avoid.matched_labels),
    )

    return FidelityScore(
        score=score,
        breakdown=breakdown,
        passed=passed,
        assessment=_assessment(score, passed, breakdown, persona.identity.name),
    )


def must_include_ratio(must: MatchResult) -> float | None:
    """Fraction of required markers matched; None when there are none to match."""
    if len(must) == 0:
        return None
    return len(must.matched) / len(must)


def get_suggestions(text: str, persona: PersonaDefinition) -> list[str]:
    """Concrete edits: required markers to add, forbidden markers to remove."""
    validation = persona.validation
    must = match_markers(text, validation.must_include)
    avoid = match_markers(text, validation.must_avoid)

    suggestions = [f"Include: {label}" for label in must.unmatched_labels]
    suggestions.extend(f"Remove: {label}" for label in avoid.matched_labels)
    return suggestions


def validate_against_samples(text: str, persona: PersonaDefinition) -> SampleValidation:
    """
    Compare `text` with each sample's good and bad responses.

    A sample counts as passed when the text scores at least the midpoint
    between the good and bad response scores (or when there's no bad response).
    """
    samples = persona.sample_responses
    if not samples:
        return SampleValidation(pass_rate=1.0, results=[])

    candidate = calculate_fidelity_score(text, persona).score

    results: list[SampleValidationResult] = []
    for sample_id, sample in samples.items():
        good = calculate_fidelity_score(sample.good_response, persona).score
        bad = (
            calculate_fidelity_score(sample.bad_response, persona).score
            if sample.bad_response is not None
            else None
        )
        closer_to_good = bad is None or candidate >= (good + bad) / 2
        results.append(
            SampleValidationResult(
                sample_id=sample_id,
                prompt=sample.prompt,
                score=candidate,
                good_score=good,
                bad_score=bad,
                closer_to_good=closer_to_good,
            )
        )

    pass_rate = sum(1 for r in results if r.closer_to_good) / len(results)
    return SampleValidation(pass_rate=pass_rate, results=results)


def quick_fidelity_check(text: str, persona: PersonaDefinition) -> bool:
    return calculate_fidelity_score(text, persona).passed


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _weighted_points(result: MatchResult, default_weight: float, points: int) -> float:
    """Weighted share of matched markers scaled to `points`. Full points if nothing to weigh."""
    total = sum(m.marker.weight_or(default_weight) for m in result.matches)
    if total <= 0:
        return float(points)
    matched = sum(m.marker.weight_or(default_weight) for m in result.matched)
    return matched / total * points


def _assessment(score: int, passed: bool, breakdown: FidelityBreakdown, name: str) -> str:
    lines: list[str] = []

    if passed:
        if score >= 90:
            lines.append(f"Excellent {name} fidelity ({score}/100).")
        elif score >= 80:
            lines.append(f"Good {name} fidelity ({score}/100).")
        else:
            lines.append(f"Acceptable {name} fidelity ({score}/100).")
    else:
        lines.append(f"Low {name} fidelity ({score}/100). Does not pass threshold.")

    must = breakdown.must_include
    pct = f"{round_half_up(must.matched / must.total * 100)}%" if must.total else "n/a"
    lines.append(f"Required patterns: {must.matched}/{must.total} ({pct})")

    if 0 < len(must.missing) <= 3:
        lines.append(f"Missing: {', '.join(must.missing)}")

    should = breakdown.should_include
    if should.total > 0:
        lines.append(f"Bonus patterns: {should.matched}/{should.total}")

    if breakdown.must_avoid.patterns:
        lines.append(f"Violations: {', '.join(breakdown.must_avoid.patterns)}")

    return "\n".join(lines)
