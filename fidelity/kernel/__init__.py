"""
Fidelity Kernel — the pure scoring engine.

Components, leaf first:
  matcher     — marker list vs. text, index-keyed results
  scoring     — weighted fidelity score with pass/fail gate
  detectors   — immutable tone/style/antipattern registry
  voice       — voice consistency analysis
  coverage    — framework coverage analysis
  comparison  — text vs. many personas, persona vs. persona similarity
  report      — quality report with prioritized recommendations
  runner      — generated test suites with text / JUnit output

Nothing here does I/O or keeps state between calls.
"""

from fidelity.kernel.comparison import (
    DuplicatePersonaId,
    compare_across_personas,
    compare_persona_characteristics,
    find_best_persona_match,
    generate_similarity_matrix,
    get_comparative_analysis,
    identify_differentiators,
)
from fidelity.kernel.coverage import (
    analyze_framework_coverage,
    get_framework_report,
    get_framework_suggestions,
    quick_framework_check,
)
from fidelity.kernel.detectors import DEFAULT_REGISTRY, DetectorRegistry
from fidelity.kernel.matcher import match_markers
from fidelity.kernel.report import (
    format_report,
    generate_json_report,
    generate_quality_report,
    generate_summary,
    passes_quality_thresholds,
)
from fidelity.kernel.runner import (
    format_test_results,
    generate_junit_report,
    generate_test_cases,
    passes_ci,
    run_custom_test,
    run_test_suite,
)
from fidelity.kernel.scoring import (
    calculate_fidelity_score,
    get_suggestions,
    quick_fidelity_check,
    validate_against_samples,
)
from fidelity.kernel.voice import (
    analyze_voice_consistency,
    get_voice_suggestions,
    quick_voice_check,
)

__all__ = [
    "match_markers",
    "calculate_fidelity_score",
    "get_suggestions",
    "validate_against_samples",
    "quick_fidelity_check",
    "DetectorRegistry",
    "DEFAULT_REGISTRY",
    "analyze_voice_consistency",
    "quick_voice_check",
    "get_voice_suggestions",
    "analyze_framework_coverage",
    "quick_framework_check",
    "get_framework_suggestions",
    "get_framework_report",
    "compare_across_personas",
    "compare_persona_characteristics",
    "generate_similarity_matrix",
    "identify_differentiators",
    "find_best_persona_match",
    "get_comparative_analysis",
    "DuplicatePersonaId",
    "generate_quality_report",
    "passes_quality_thresholds",
    "format_report",
    "generate_json_report",
    "generate_summary",
    "generate_test_cases",
    "run_test_suite",
    "run_custom_test",
    "format_test_results",
    "generate_junit_report",
    "passes_ci",
]
