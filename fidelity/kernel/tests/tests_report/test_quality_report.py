"""
Report Generator Tests

The default persona's good response scores fidelity 90, voice 87 and
framework 52. Most tests use weights 0.5 / 0.25 / 0.25 so the overall score
is exact: 45 + 21.75 + 13 = 79.75 → 80.
"""

from __future__ import annotations

import json
import logging

import pytest

from fidelity.kernel.report import (
    HEAVY_RULE,
    format_report,
    format_score,
    generate_json_report,
    generate_quality_report,
    generate_summary,
    passes_quality_thresholds,
)
from fidelity.kernel.tests.factories import GOOD_RESPONSE, make_persona
from fidelity.models.config import (
    DepartmentContext,
    DepartmentOverrides,
    ScoreWeights,
    ValidationConfig,
    WeightOverrides,
)
from fidelity.models.persona import ValidationMarker

QUARTER_WEIGHTS = ValidationConfig(weights=ScoreWeights(fidelity=0.5, voice=0.25, framework=0.25))
SAMPLE_RECOMMENDATION = "Add more sample_responses to persona (currently 1, recommend 3+)"


@pytest.fixture
def good_report(clay):
    return generate_quality_report(GOOD_RESPONSE, clay, QUARTER_WEIGHTS)


@pytest.fixture
def poor_report(clay):
    return generate_quality_report("Nothing here.", clay, QUARTER_WEIGHTS)


@pytest.fixture
def engineering():
    return DepartmentContext(
        id="eng",
        name="Engineering",
        additional_must_avoid=[ValidationMarker(pattern="blockchain", description="Hype", weight=20)],
        overrides=DepartmentOverrides(fidelity_threshold=95),
    )


# ============================================================================
# Scores
# ============================================================================


def test_scores(good_report):
    assert good_report.scores == {
        "fidelity": 90,
        "voice_consistency": 87,
        "framework_coverage": 52,
        "overall": 80,
    }
    assert good_report.fidelity.passed is True


def test_persona_info(good_report):
    assert good_report.persona == {"id": "clay-christensen", "name": "Clay Christensen", "version": "1.0.0"}
    assert good_report.department is None
    unversioned = generate_quality_report(GOOD_RESPONSE, make_persona(version=None), QUARTER_WEIGHTS)
    assert "version" not in unversioned.persona


def test_generated_at_is_utc_iso(good_report):
    assert good_report.generated_at.endswith("Z")
    assert good_report.generated_at[10] == "T"


def test_logs_summary_line(clay, caplog):
    with caplog.at_level(logging.INFO, logger="fidelity.kernel.report"):
        generate_quality_report(GOOD_RESPONSE, clay, QUARTER_WEIGHTS)
    assert "Quality report for clay-christensen: overall=80 (1 recommendations)" in caplog.text


def test_config_from_environment(clay, monkeypatch):
    monkeypatch.setenv("PERSONA_FIDELITY_THRESHOLD", "95")
    report = generate_quality_report(GOOD_RESPONSE, clay)
    assert report.fidelity.passed is False


# ============================================================================
# Department context
# ============================================================================


def test_department_markers_and_overrides(clay, engineering):
    report = generate_quality_report(GOOD_RESPONSE + " Add blockchain.", clay, QUARTER_WEIGHTS, engineering)

    assert report.department == {"id": "eng", "name": "Engineering"}
    assert report.scores["fidelity"] == 70
    assert report.fidelity.breakdown.must_avoid.patterns == ["Hype"]
    assert report.fidelity.passed is False  # threshold raised to 95


def test_department_weight_overrides(clay):
    department = DepartmentContext(
        id="fin",
        name="Finance",
        overrides=DepartmentOverrides(weights=WeightOverrides(fidelity=1.0, voice=0.0, framework=0.0)),
    )
    report = generate_quality_report(GOOD_RESPONSE, clay, QUARTER_WEIGHTS, department)
    assert report.scores["overall"] == 90


def test_department_does_not_change_caller_config(clay, engineering):
    generate_quality_report(GOOD_RESPONSE, clay, QUARTER_WEIGHTS, engineering)
    assert QUARTER_WEIGHTS.fidelity_threshold == 70


# ============================================================================
# Recommendations
# ============================================================================


def test_good_report_only_asks_for_samples(good_report):
    assert [(r.category, r.priority, r.suggestion) for r in good_report.recommendations] == [
        ("sample", "low", SAMPLE_RECOMMENDATION),
    ]


def test_poor_report_recommendations_in_priority_order(poor_report):
    recs = [(r.category, r.priority, r.suggestion) for r in poor_report.recommendations]
    assert recs == [
        ("validation", "high", "Include: Disruption framing"),
        ("validation", "high", "Include: Jobs-to-be-done lens"),
        ("voice", "medium", "Add professorial tone to your response"),
        ("voice", "medium", "Add humble tone to your response"),
        ("framework", "medium", "Consider referencing the disruptive_innovation framework"),
        ("framework", "medium", "Consider referencing the jobs_to_be_done framework"),
        ("sample", "low", SAMPLE_RECOMMENDATION),
    ]
    assert poor_report.recommendations[0].issue == "Missing required pattern"


def test_constraint_violation_is_high_priority(clay):
    report = generate_quality_report("We should leverage synergy.", clay, QUARTER_WEIGHTS)
    violation = [r for r in report.recommendations if r.issue == "Voice constraint violated"]
    assert violation[0].priority == "high"
    assert violation[0].suggestion == "Address constraint: Never use corporate jargon"
    removal = [r for r in report.recommendations if r.suggestion == "Remove: Corporate buzzwords"]
    assert removal[0].issue == "Validation pattern violation"


def test_passing_but_not_excellent_fidelity_suggests_review():
    persona = make_persona(
        must_include=[
            {"pattern": "alpha"},
            {"pattern": "beta"},
            {"pattern": "gamma"},
            {"pattern": "delta"},
            {"pattern": "omega"},
        ],
        should_include=[],
        samples={f"s{i}": {"prompt": "p", "good_response": "g"} for i in range(3)},
    )
    report = generate_quality_report("alpha beta gamma delta", persona, QUARTER_WEIGHTS)  # 48 + 30
    low = [r for r in report.recommendations if r.priority == "low"]
    assert [(r.category, r.issue) for r in low] == [("validation", "1 optional patterns could be added")]


# ============================================================================
# Threshold checks
# ============================================================================


def test_passes_thresholds(good_report):
    check = passes_quality_thresholds(good_report, QUARTER_WEIGHTS)
    assert check.passed is True
    assert check.failures == []


def test_threshold_failures_listed(good_report):
    config = ValidationConfig(fidelity_threshold=95, voice_threshold=90, framework_threshold=60)
    check = passes_quality_thresholds(good_report, config)
    assert check.passed is False
    assert check.failures == [
        "Fidelity 90 < threshold 95",
        "Voice 87 < threshold 90",
        "Framework 52 < threshold 60",
    ]


def test_threshold_defaults_from_environment(good_report, monkeypatch):
    monkeypatch.setenv("PERSONA_FRAMEWORK_THRESHOLD", "60")
    assert passes_quality_thresholds(good_report).failures == ["Framework 52 < threshold 60"]


def test_strict_constraints(clay):
    report = generate_quality_report("We should leverage synergy.", clay, QUARTER_WEIGHTS)
    lenient = ValidationConfig(fidelity_threshold=0, voice_threshold=0, framework_threshold=0)
    strict = lenient.model_copy(update={"strict_constraints": True})

    assert passes_quality_thresholds(report, lenient).passed is True
    check = passes_quality_thresholds(report, strict)
    assert check.failures == ["Constraint violations: Never use corporate jargon"]


# ============================================================================
# Renderers
# ============================================================================


@pytest.mark.parametrize(
    "score,expected",
    [
        (100, "100/100 ██████████ ✓"),
        (85, " 85/100 ████████░░ ✓"),
        (65, " 65/100 ██████░░░░ ~"),
        (5, "  5/100 ░░░░░░░░░░ ✗"),
    ],
)
def test_format_score(score, expected):
    assert format_score(score) == expected


def test_format_report(good_report):
    lines = format_report(good_report).split("\n")

    assert lines[0] == HEAVY_RULE
    assert lines[-1] == HEAVY_RULE
    assert lines[1] == "QUALITY REPORT: Clay Christensen"
    assert "Version: 1.0.0" in lines
    assert "  Overall:            80/100 ████████░░ ✓" in lines
    assert "  Status:            PASSED" in lines
    assert "  Tones detected:    2/2" in lines
    assert "    ✓ jobs_to_be_done: 0% (0/1 concepts)" in lines
    assert "    ○ disruptive_innovation: 50% (1/2 concepts)" in lines
    assert "  LOW PRIORITY:" in lines
    assert f"    [-] {SAMPLE_RECOMMENDATION}" in lines
    assert "  HIGH PRIORITY:" not in lines


def test_format_report_with_department(clay, engineering):
    report = generate_quality_report(GOOD_RESPONSE, clay, QUARTER_WEIGHTS, engineering)
    assert format_report(report).split("\n")[2] == "Department: Engineering (eng)"


def test_format_report_high_priority_markers(poor_report):
    text = format_report(poor_report)
    assert "    [!] Include: Disruption framing" in text
    assert "    [*] Add humble tone to your response" in text


def test_json_report(good_report):
    raw = generate_json_report(good_report)
    data = json.loads(raw)

    assert data["scores"]["overall"] == 80
    assert set(data["analysis"]) == {"fidelity", "voice", "framework"}
    assert data["recommendations"][0]["category"] == "sample"
    assert "department" not in data
    assert "✓" in raw  # non-ASCII kept as-is


def test_summary(good_report, poor_report):
    assert generate_summary(good_report) == (
        "Clay Christensen persona quality is excellent (80/100). Fidelity: 90, Voice: 87, Framework: 52."
    )
    assert generate_summary(poor_report).endswith(" 2 high-priority issue(s) require attention.")
    assert "needs improvement" in generate_summary(poor_report)
