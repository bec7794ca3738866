"""
Fidelity Kernel — Report Generator

Runs fidelity, voice and framework analysis for one text, combines them into
a weighted overall score and derives a prioritized list of recommendations.

Renderers:
  format_report        — fixed-width text report with score bars
  generate_json_report — full report as JSON
  generate_summary     — one-paragraph plain-language summary
"""

from __future__ import annotations

import json
import logging

from fidelity.config import settings
from fidelity.kernel.coverage import analyze_framework_coverage, get_framework_suggestions
from fidelity.kernel.scoring import calculate_fidelity_score, get_suggestions
from fidelity.kernel.types import (
    PRIORITY_ORDER,
    FidelityScore,
    FrameworkCoverageResult,
    QualityReport,
    Recommendation,
    ThresholdCheck,
    VoiceAnalysisResult,
    now_iso,
    round_half_up,
)
from fidelity.kernel.voice import analyze_voice_consistency, get_voice_suggestions
from fidelity.models.config import DepartmentContext, ValidationConfig
from fidelity.models.persona import PersonaDefinition

logger = logging.getLogger(__name__)

RECOMMENDED_SAMPLE_COUNT = 3
EXCELLENT_FIDELITY = 90

HEAVY_RULE = "═" * 60
LIGHT_RULE = "─" * 40

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_quality_report(
    text: str,
    persona: PersonaDefinition,
    config: ValidationConfig | None = None,
    department: DepartmentContext | None = None,
) -> QualityReport:
    """
    Analyze `text` against `persona` and build a QualityReport.

    A department contributes extra must-avoid markers and may override
    thresholds and weights; both are applied before any scoring.
    """
    config = config or settings.validation_config()
    if department is not None:
        config = config.with_overrides(department.overrides)

    fidelity = calculate_fidelity_score(
        text,
        persona,
        additional_must_avoid=department.additional_must_avoid if department else None,
        passing_score=config.fidelity_threshold,
    )
    voice = analyze_voice_consistency(text, persona)
    framework = analyze_framework_coverage(text, persona)

    w = config.weights
    overall = round_half_up(
        fidelity.score * w.fidelity + voice.consistency_score * w.voice + framework.coverage_score * w.framework
    )

    persona_info: dict[str, str] = {"id": persona.persona_id, "name": persona.identity.name}
    if persona.metadata and persona.metadata.version:
        persona_info["version"] = persona.metadata.version

    report = QualityReport(
        generated_at=now_iso(),
        persona=persona_info,
        scores={
            "fidelity": fidelity.score,
            "voice_consistency": voice.consistency_score,
            "framework_coverage": framework.coverage_score,
            "overall": overall,
        },
        fidelity=fidelity,
        voice=voice,
        framework=framework,
        recommendations=_recommendations(text, persona, fidelity, voice, framework, config),
        department={"id": department.id, "name": department.name} if department else None,
    )

    logger.info(
        "Quality report for %s: overall=%d (%d recommendations)",
        persona_info["id"],
        overall,
        len(report.recommendations),
    )
    return report


def passes_quality_thresholds(report: QualityReport, config: ValidationConfig | None = None) -> ThresholdCheck:
    config = config or settings.validation_config()
    scores = report.scores
    failures: list[str] = []

    if scores["fidelity"] < config.fidelity_threshold:
        failures.append(f"Fidelity {scores['fidelity']} < threshold {config.fidelity_threshold}")
    if scores["voice_consistency"] < config.voice_threshold:
        failures.append(f"Voice {scores['voice_consistency']} < threshold {config.voice_threshold}")
    if scores["framework_coverage"] < config.framework_threshold:
        failures.append(f"Framework {scores['framework_coverage']} < threshold {config.framework_threshold}")

    if config.strict_constraints and report.voice.constraint_violations:
        failures.append(f"Constraint violations: {', '.join(report.voice.constraint_violations)}")

    return ThresholdCheck(passed=not failures, failures=failures)


def format_report(report: QualityReport) -> str:
    lines = [HEAVY_RULE, f"QUALITY REPORT: {report.persona['name']}"]
    if report.department:
        lines.append(f"Department: {report.department['name']} ({report.department['id']})")
    lines.append(f"Generated: {report.generated_at}")
    if "version" in report.persona:
        lines.append(f"Version: {report.persona['version']}")
    lines += [HEAVY_RULE, ""]

    scores = report.scores
    lines += [
        "SCORES",
        LIGHT_RULE,
        f"  Overall:           {format_score(scores['overall'])}",
        f"  Fidelity:          {format_score(scores['fidelity'])}",
        f"  Voice Consistency: {format_score(scores['voice_consistency'])}",
        f"  Framework Coverage:{format_score(scores['framework_coverage'])}",
        "",
    ]

    b = report.fidelity.breakdown
    lines += [
        "FIDELITY ANALYSIS",
        LIGHT_RULE,
        f"  Required patterns: {b.must_include.matched}/{b.must_include.total}",
        f"  Bonus patterns:    {b.should_include.matched}/{b.should_include.total}",
    ]
    if b.must_avoid.triggered:
        lines.append(f"  Violations:        {b.must_avoid.triggered}")
    lines += [f"  Status:            {'PASSED' if report.fidelity.passed else 'FAILED'}", ""]

    voice = report.voice
    tones = sum(1 for t in voice.tone_markers if t.detected)
    phrases = sum(1 for p in voice.phrase_matches if p.match_type != "absent")
    styles = sum(1 for s in voice.style_patterns if s.followed)
    lines += [
        "VOICE ANALYSIS",
        LIGHT_RULE,
        f"  Tones detected:    {tones}/{len(voice.tone_markers)}",
        f"  Phrases matched:   {phrases}/{len(voice.phrase_matches)}",
        f"  Styles followed:   {styles}/{len(voice.style_patterns)}",
    ]
    if voice.constraint_violations:
        lines.append(f"  Violations:        {', '.join(voice.constraint_violations)}")
    lines.append("")

    fw = report.framework
    lines += [
        "FRAMEWORK COVERAGE",
        LIGHT_RULE,
        f"  Frameworks used:   {len(fw.referenced_frameworks)}/{len(fw.framework_coverage)}",
        f"  Concepts applied:  {len(fw.concepts_mentioned)}",
        f"  Questions used:    {len(fw.questions_used)}",
        "",
    ]
    for name, coverage in fw.framework_coverage.items():
        status = "✓" if coverage.referenced else "○"
        lines.append(
            f"    {status} {name}: {coverage.coverage}% "
            f"({len(coverage.concepts_found)}/{coverage.total_concepts} concepts)"
        )
    lines.append("")

    if report.recommendations:
        lines += ["RECOMMENDATIONS", LIGHT_RULE]
        for priority, heading, bullet in (
            ("high", "HIGH PRIORITY:", "[!]"),
            ("medium", "MEDIUM PRIORITY:", "[*]"),
            ("low", "LOW PRIORITY:", "[-]"),
        ):
            recs = [r for r in report.recommendations if r.priority == priority]
            if recs:
                lines.append(f"  {heading}")
                lines.extend(f"    {bullet} {r.suggestion}" for r in recs)
        lines.append("")

    lines.append(HEAVY_RULE)
    return "\n".join(lines)


def format_score(score: int) -> str:
    """'  85/100 ████████░░ ✓' — one bar block per 10 points."""
    filled = max(0, min(10, score // 10))
    bar = "█" * filled + "░" * (10 - filled)
    if score >= 80:
        status = "✓"
    elif score >= 60:
        status = "~"
    else:
        status = "✗"
    return f"{score:>3}/100 {bar} {status}"


def generate_json_report(report: QualityReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def generate_summary(report: QualityReport) -> str:
    scores = report.scores
    overall = scores["overall"]
    if overall >= 80:
        status = "excellent"
    elif overall >= 70:
        status = "good"
    elif overall >= 60:
        status = "acceptable"
    else:
        status = "needs improvement"

    summary = (
        f"{report.persona['name']} persona quality is {status} ({overall}/100). "
        f"Fidelity: {scores['fidelity']}, Voice: {scores['voice_consistency']}, "
        f"Framework: {scores['framework_coverage']}."
    )

    high = sum(1 for r in report.recommendations if r.priority == "high")
    if high:
        summary += f" {high} high-priority issue(s) require attention."
    return summary


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def _recommendations(
    text: str,
    persona: PersonaDefinition,
    fidelity: FidelityScore,
    voice: VoiceAnalysisResult,
    framework: FrameworkCoverageResult,
    config: ValidationConfig,
) -> list[Recommendation]:
    recs: list[Recommendation] = []

    if fidelity.score < config.fidelity_threshold:
        for suggestion in get_suggestions(text, persona)[:3]:
            issue = "Validation pattern violation" if suggestion.startswith("Remove:") else "Missing required pattern"
            recs.append(Recommendation("validation", "high", issue, suggestion))

    for violation in voice.constraint_violations:
        recs.append(Recommendation("voice", "high", "Voice constraint violated", f"Address constraint: {violation}"))

    if voice.consistency_score < config.voice_threshold:
        for suggestion in get_voice_suggestions(text, persona)[:2]:
            recs.append(Recommendation("voice", "medium", "Voice consistency needs improvement", suggestion))

    if framework.coverage_score < config.framework_threshold:
        for suggestion in get_framework_suggestions(text, persona)[:2]:
            recs.append(Recommendation("framework", "medium", "Framework coverage insufficient", suggestion))

    sample_count = len(persona.sample_responses)
    if sample_count < RECOMMENDED_SAMPLE_COUNT:
        recs.append(
            Recommendation(
                "sample",
                "low",
                "Few sample responses defined",
                f"Add more sample_responses to persona (currently {sample_count}, recommend 3+)",
            )
        )

    if config.fidelity_threshold <= fidelity.score < EXCELLENT_FIDELITY:
        must = fidelity.breakdown.must_include
        missed = must.total - must.matched
        if missed > 0:
            recs.append(
                Recommendation(
                    "validation",
                    "low",
                    f"{missed} optional patterns could be added",
                    "Review must_include patterns for additional coverage opportunities",
                )
            )

    return sorted(recs, key=lambda r: PRIORITY_ORDER[r.priority])
