"""
Fidelity Kernel — Shared Types

Result records and scoring constants used across the matcher, analyzers,
comparison engine, report generator and test runner.

Every record is created fresh inside one call and handed back to the caller.
`to_dict()` gives the JSON shape consumed by reports and CI output.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from fidelity.models.persona import ValidationMarker

# ---------------------------------------------------------------------------
# Scoring constants
# ---------------------------------------------------------------------------

MUST_INCLUDE_POINTS = 60
MUST_INCLUDE_DEFAULT_WEIGHT = 5
MUST_INCLUDE_RATIO_THRESHOLD = 0.8

SHOULD_INCLUDE_POINTS = 30
SHOULD_INCLUDE_DEFAULT_WEIGHT = 3

MUST_AVOID_DEFAULT_PENALTY = 15

DEFAULT_PASSING_SCORE = 70

TONE_POINTS = 40
PHRASE_POINTS = 30
STYLE_POINTS = 30
CONSTRAINT_PENALTY = 10

FRAMEWORK_REFERENCE_POINTS = 30
CONCEPT_POINTS = 50
QUESTION_POINTS = 20

PRIORITY_ORDER: dict[str, int] = {"high": 0, "medium": 1, "low": 2}

MatchType = Literal["exact", "variant", "absent"]
Priority = Literal["high", "medium", "low"]
RecommendationCategory = Literal["voice", "framework", "validation", "sample"]
TestCategory = Literal["fidelity", "voice", "framework", "negative", "edge_case"]

TEST_CATEGORIES: tuple[str, ...] = ("fidelity", "voice", "framework", "negative", "edge_case")


# ---------------------------------------------------------------------------
# Pattern matching
# ---------------------------------------------------------------------------


@dataclass
class MarkerMatch:
    """One marker's outcome, keyed by its position in the marker list."""

    index: int
    marker: ValidationMarker
    matched: bool

    @property
    def label(self) -> str:
        return self.marker.label


@dataclass
class MatchResult:
    """Outcome of matching a marker list against a text, in marker order."""

    matches: list[MarkerMatch] = field(default_factory=list)

    @property
    def matched(self) -> list[MarkerMatch]:
        return [m for m in self.matches if m.matched]

    @property
    def unmatched(self) -> list[MarkerMatch]:
        return [m for m in self.matches if not m.matched]

    @property
    def matched_labels(self) -> list[str]:
        return [m.label for m in self.matched]

    @property
    def unmatched_labels(self) -> list[str]:
        return [m.label for m in self.unmatched]

    def __len__(self) -> int:
        return len(self.matches)


# ---------------------------------------------------------------------------
# Fidelity
# ---------------------------------------------------------------------------


@dataclass
class PatternBreakdown:
    matched: int
    total: int
    patterns: list[str] = field(default_factory=list)  # matched labels
    missing: list[str] = field(default_factory=list)  # unmatched labels

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched": self.matched,
            "total": self.total,
            "patterns": self.patterns,
            "missing": self.missing,
        }


@dataclass
class AvoidBreakdown:
    triggered: int
    patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"triggered": self.triggered, "patterns": self.patterns}


@dataclass
class FidelityBreakdown:
    must_include: PatternBreakdown
    should_include: PatternBreakdown
    must_avoid: AvoidBreakdown

    def to_dict(self) -> dict[str, Any]:
        return {
            "must_include": self.must_include.to_dict(),
            "should_include": self.should_include.to_dict(),
            "must_avoid": self.must_avoid.to_dict(),
        }


@dataclass
class FidelityScore:
    """Score (0–100), per-list breakdown, verdict and a readable assessment."""

    score: int
    breakdown: FidelityBreakdown
    passed: bool
    assessment: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "breakdown": self.breakdown.to_dict(),
            "passed": self.passed,
            "assessment": self.assessment,
        }


@dataclass
class SampleValidationResult:
    sample_id: str
    prompt: str
    score: int
    good_score: int
    bad_score: int | None
    closer_to_good: bool

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "sample_id": self.sample_id,
            "prompt": self.prompt,
            "score": self.score,
            "good_score": self.good_score,
            "closer_to_good": self.closer_to_good,
        }
        if self.bad_score is not None:
            d["bad_score"] = self.bad_score
        return d


@dataclass
class SampleValidation:
    pass_rate: float
    results: list[SampleValidationResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"pass_rate": self.pass_rate, "results": [r.to_dict() for r in self.results]}


# ---------------------------------------------------------------------------
# Voice
# ---------------------------------------------------------------------------


@dataclass
class ToneMatch:
    expected: str
    detected: bool
    evidence: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"expected": self.expected, "detected": self.detected}
        if self.evidence is not None:
            d["evidence"] = self.evidence
        return d


@dataclass
class PhraseMatch:
    phrase: str
    match_type: MatchType
    matched_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"phrase": self.phrase, "match_type": self.match_type}
        if self.matched_text is not None:
            d["matched_text"] = self.matched_text
        return d


@dataclass
class StyleMatch:
    pattern: str
    followed: bool
    confidence: float  # 0.0–1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "followed": self.followed,
            "confidence": round(self.confidence, 3),
        }


@dataclass
class VoiceAnalysisResult:
    consistency_score: int
    tone_markers: list[ToneMatch] = field(default_factory=list)
    phrase_matches: list[PhraseMatch] = field(default_factory=list)
    style_patterns: list[StyleMatch] = field(default_factory=list)
    constraint_violations: list[str] = field(default_factory=list)
    assessment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "consistency_score": self.consistency_score,
            "tone_markers": [t.to_dict() for t in self.tone_markers],
            "phrase_matches": [p.to_dict() for p in self.phrase_matches],
            "style_patterns": [s.to_dict() for s in self.style_patterns],
            "constraint_violations": self.constraint_violations,
            "assessment": self.assessment,
        }


# ---------------------------------------------------------------------------
# Framework coverage
# ---------------------------------------------------------------------------


@dataclass
class SingleFrameworkCoverage:
    name: str
    referenced: bool
    concepts_found: list[str]
    total_concepts: int
    coverage: int  # percent of this framework's concepts found

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "referenced": self.referenced,
            "concepts_found": self.concepts_found,
            "total_concepts": self.total_concepts,
            "coverage": self.coverage,
        }


@dataclass
class FrameworkCoverageResult:
    coverage_score: int
    framework_coverage: dict[str, SingleFrameworkCoverage] = field(default_factory=dict)
    referenced_frameworks: list[str] = field(default_factory=list)
    concepts_mentioned: list[str] = field(default_factory=list)
    questions_used: list[str] = field(default_factory=list)
    assessment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "coverage_score": self.coverage_score,
            "framework_coverage": {k: v.to_dict() for k, v in self.framework_coverage.items()},
            "referenced_frameworks": self.referenced_frameworks,
            "concepts_mentioned": self.concepts_mentioned,
            "questions_used": self.questions_used,
            "assessment": self.assessment,
        }


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


@dataclass
class PersonaComparisonResult:
    persona_id: str
    persona_name: str
    fidelity_score: FidelityScore
    voice_analysis: VoiceAnalysisResult
    framework_coverage: FrameworkCoverageResult
    quality_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "persona_name": self.persona_name,
            "fidelity_score": self.fidelity_score.to_dict(),
            "voice_analysis": self.voice_analysis.to_dict(),
            "framework_coverage": self.framework_coverage.to_dict(),
            "quality_score": self.quality_score,
        }


@dataclass
class CrossPersonaComparison:
    """Ranked results (highest quality first) for one text across many personas."""

    analyzed_text: str
    results: list[PersonaComparisonResult]
    best_match: str
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "analyzed_text": self.analyzed_text,
            "results": [r.to_dict() for r in self.results],
            "best_match": self.best_match,
            "summary": self.summary,
        }


@dataclass
class PersonaSimilarity:
    """Text-independent similarity of two personas, as integer percentages."""

    voice_similarity: int
    framework_overlap: int
    validation_similarity: int
    overall: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "voice_similarity": self.voice_similarity,
            "framework_overlap": self.framework_overlap,
            "validation_similarity": self.validation_similarity,
            "overall": self.overall,
        }


@dataclass
class BestMatch:
    persona_id: str
    persona_name: str
    score: int


@dataclass
class Differentiators:
    """Per persona: the frameworks, tones and phrases no other persona has."""

    unique_frameworks: dict[str, list[str]] = field(default_factory=dict)
    unique_tones: dict[str, list[str]] = field(default_factory=dict)
    unique_phrases: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unique_frameworks": self.unique_frameworks,
            "unique_tones": self.unique_tones,
            "unique_phrases": self.unique_phrases,
        }


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@dataclass
class Recommendation:
    category: RecommendationCategory
    priority: Priority
    issue: str
    suggestion: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority,
            "issue": self.issue,
            "suggestion": self.suggestion,
        }


@dataclass
class QualityReport:
    """Fidelity, voice and framework analyses merged into one weighted report."""

    generated_at: str  # ISO 8601 UTC
    persona: dict[str, Any]  # id, name, version?
    scores: dict[str, int]  # fidelity, voice_consistency, framework_coverage, overall
    fidelity: FidelityScore
    voice: VoiceAnalysisResult
    framework: FrameworkCoverageResult
    recommendations: list[Recommendation] = field(default_factory=list)
    department: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "generated_at": self.generated_at,
            "persona": self.persona,
            "scores": self.scores,
            "analysis": {
                "fidelity": self.fidelity.to_dict(),
                "voice": self.voice.to_dict(),
                "framework": self.framework.to_dict(),
            },
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
        if self.department is not None:
            d["department"] = self.department
        return d


@dataclass
class ThresholdCheck:
    passed: bool
    failures: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Test runner
# ---------------------------------------------------------------------------


@dataclass
class TestExpectation:
    """What a test case expects of the score and matched patterns."""

    __test__ = False

    should_pass: bool
    min_score: int | None = None
    max_score: int | None = None
    required_patterns: list[str] | None = None
    forbidden_patterns: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"should_pass": self.should_pass}
        if self.min_score is not None:
            d["min_score"] = self.min_score
        if self.max_score is not None:
            d["max_score"] = self.max_score
        if self.required_patterns is not None:
            d["required_patterns"] = self.required_patterns
        if self.forbidden_patterns is not None:
            d["forbidden_patterns"] = self.forbidden_patterns
        return d


@dataclass
class TestCase:
    __test__ = False

    id: str
    description: str
    category: TestCategory
    input: str
    expected: TestExpectation

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "category": self.category,
            "input": self.input,
            "expected": self.expected.to_dict(),
        }


@dataclass
class TestResult:
    __test__ = False

    test_case: TestCase
    passed: bool
    actual_score: int | None = None
    matched_patterns: list[str] = field(default_factory=list)
    error: str | None = None
    execution_time: float = 0.0  # ms

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "test_case": self.test_case.to_dict(),
            "passed": self.passed,
            "matched_patterns": self.matched_patterns,
            "execution_time": round(self.execution_time, 3),
        }
        if self.actual_score is not None:
            d["actual_score"] = self.actual_score
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass
class TestSuiteResult:
    __test__ = False

    persona_id: str
    total_tests: int
    passed_tests: int
    failed_tests: int
    pass_rate: int  # percent
    results: list[TestResult]
    total_execution_time: float  # ms
    timestamp: str  # ISO 8601 UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "total_tests": self.total_tests,
            "passed_tests": self.passed_tests,
            "failed_tests": self.failed_tests,
            "pass_rate": self.pass_rate,
            "results": [r.to_dict() for r in self.results],
            "total_execution_time": round(self.total_execution_time, 3),
            "timestamp": self.timestamp,
        }


@dataclass
class CIResult:
    passed: bool
    message: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (builtin round() is banker's)."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    """Clamp to [0, 100] and round."""
    return round_half_up(max(0.0, min(100.0, value)))


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
