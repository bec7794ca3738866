"""
Framework Coverage Analyzer Tests

Default persona vs. its good sample response:
  frameworks referenced 1/2          → 15
  concepts 1/3 (low_end_disruption)  → 16.67
  questions 2/2                      → 20
  total 51.67                        → 52
"""

from __future__ import annotations

from fidelity.kernel.coverage import (
    analyze_framework_coverage,
    extract_keywords,
    get_framework_report,
    get_framework_suggestions,
    is_question_used,
    quick_framework_check,
)
from fidelity.kernel.tests.factories import GOOD_RESPONSE, make_persona


def single_framework(name="pricing", concepts=None, questions=None):
    return make_persona(
        frameworks={
            name: {
                "description": "A framework",
                "concepts": concepts or {},
                "questions": questions or [],
            }
        }
    )


# ============================================================================
# Full analysis
# ============================================================================


def test_good_response_coverage(clay):
    result = analyze_framework_coverage(GOOD_RESPONSE, clay)

    assert result.coverage_score == 52
    assert result.referenced_frameworks == ["jobs_to_be_done"]
    assert result.concepts_mentioned == ["low_end_disruption"]
    assert result.questions_used == [
        "Who are the overserved customers in this market?",
        "What job is the customer hiring this product to do?",
    ]

    disruptive = result.framework_coverage["disruptive_innovation"]
    assert disruptive.referenced is False
    assert disruptive.concepts_found == ["low_end_disruption"]
    assert disruptive.total_concepts == 2
    assert disruptive.coverage == 50
    assert result.framework_coverage["jobs_to_be_done"].coverage == 0


def test_good_response_assessment(clay):
    lines = analyze_framework_coverage(GOOD_RESPONSE, clay).assessment.split("\n")
    assert lines == [
        "Moderate Clay Christensen framework coverage (52/100).",
        "Frameworks referenced: 1/2",
        "  ○ disruptive_innovation: 1/2 concepts (50%)",
        "  ✓ jobs_to_be_done: 0/1 concepts (0%)",
        "Total concepts used: 1",
        "Diagnostic questions applied: 2",
    ]


def test_no_frameworks_scores_full():
    persona = make_persona(frameworks={})
    result = analyze_framework_coverage("anything", persona)
    assert result.coverage_score == 100
    assert result.framework_coverage == {}
    assert result.assessment.startswith("Excellent")


def test_unrelated_text_scores_low(clay):
    result = analyze_framework_coverage("The weather is sunny today.", clay)
    assert result.coverage_score == 0
    assert result.assessment.startswith("Low")


def test_framework_without_concepts_or_questions_gets_base_points():
    """Not referenced (0) + no concepts (50) + no questions (20)."""
    persona = single_framework()
    assert analyze_framework_coverage("nothing", persona).coverage_score == 70


# ============================================================================
# Reference and concept detection
# ============================================================================


def test_framework_referenced_by_normalized_name():
    persona = single_framework(name="blue-ocean_strategy")
    result = analyze_framework_coverage("Apply blue ocean strategy here.", persona)
    assert result.referenced_frameworks == ["blue-ocean_strategy"]


def test_framework_referenced_by_raw_name():
    persona = single_framework(name="five_forces")
    result = analyze_framework_coverage("see five_forces", persona)
    assert result.referenced_frameworks == ["five_forces"]


def test_concept_by_name():
    persona = single_framework(concepts={"value_chain": {"definition": "x"}})
    result = analyze_framework_coverage("Map the value chain first.", persona)
    assert result.concepts_mentioned == ["value_chain"]


def test_concept_by_most_name_words():
    """Three of four name words present meets the 70% bar (ceil(2.8) = 3)."""
    persona = single_framework(concepts={"low_cost_entry_strategy": {"definition": "x"}})
    hit = analyze_framework_coverage("A low cost strategy.", persona)
    miss = analyze_framework_coverage("A low cost plan.", persona)
    assert hit.concepts_mentioned == ["low_cost_entry_strategy"]
    assert miss.concepts_mentioned == []


def test_concept_by_definition_keywords():
    persona = single_framework(
        concepts={"sustaining_trap": {"definition": "Incumbents improve products for demanding customers"}}
    )
    result = analyze_framework_coverage("incumbents keep serving demanding customers", persona)
    assert result.concepts_mentioned == ["sustaining_trap"]


def test_repeated_definition_keywords_each_count():
    """Three occurrences of one keyword meet the three-keyword bar; two do not."""
    persona = single_framework(concepts={"growth_engine": {"definition": "margin margin margin growth"}})
    assert analyze_framework_coverage("margin", persona).concepts_mentioned == ["growth_engine"]

    persona = single_framework(concepts={"growth_engine": {"definition": "margin margin growth"}})
    assert analyze_framework_coverage("margin", persona).concepts_mentioned == []


def test_concept_by_example():
    persona = single_framework(
        concepts={"foothold_strategy": {"definition": "x", "examples": ["Honda motorcycles entering America"]}}
    )
    result = analyze_framework_coverage("Think of honda and its motorcycles.", persona)
    assert result.concepts_mentioned == ["foothold_strategy"]


def test_concept_without_long_name_words_counts_as_mentioned():
    """No name word longer than 2 characters leaves nothing to miss."""
    persona = single_framework(concepts={"ai": {"definition": "x"}}, questions=["Why?"])
    result = analyze_framework_coverage("unrelated text entirely", persona)
    assert result.concepts_mentioned == ["ai"]
    assert result.questions_used == ["Why?"]
    assert result.coverage_score == 70  # 0 + 50 + 20


def test_example_without_long_words_counts_as_mentioned():
    persona = single_framework(concepts={"pricing_model": {"definition": "x", "examples": ["is it so"]}})
    result = analyze_framework_coverage("hello", persona)
    assert result.concepts_mentioned == ["pricing_model"]


# ============================================================================
# Keywords and questions
# ============================================================================


def test_extract_keywords():
    assert extract_keywords("The Theory's key insight: customers hire products!") == [
        "theorys",
        "insight",
        "customers",
        "hire",
        "products",
    ]


def test_extract_keywords_drops_stop_words():
    assert extract_keywords("there should about which would") == []


def test_question_used_by_keywords():
    assert is_question_used("overserved customers everywhere", "Who are the overserved customers in this market?")


def test_question_without_keywords_counts_as_used():
    assert is_question_used("so why not", "Why?") is True
    assert is_question_used("", "Is it so?") is True


# ============================================================================
# Helpers
# ============================================================================


def test_quick_framework_check(clay):
    assert quick_framework_check(GOOD_RESPONSE, clay) is True
    assert quick_framework_check(GOOD_RESPONSE, clay, threshold=60) is False


def test_suggestions_for_good_response(clay):
    assert get_framework_suggestions(GOOD_RESPONSE, clay) == [
        "Consider referencing the disruptive_innovation framework",
        "Apply more concepts from jobs_to_be_done: functional_job",
    ]


def test_suggestions_for_unrelated_text(clay):
    assert get_framework_suggestions("Nothing.", clay) == [
        "Consider referencing the disruptive_innovation framework",
        "Consider referencing the jobs_to_be_done framework",
        'Consider using diagnostic question: "Who are the overserved customers in this market?..."',
    ]


def test_suggestions_capped_at_five():
    frameworks = {
        f"framework_{i}": {"description": "d", "concepts": {f"concept_{i}": {"definition": "x"}}}
        for i in range(7)
    }
    persona = make_persona(frameworks=frameworks)
    assert len(get_framework_suggestions("Nothing.", persona)) == 5


def test_framework_report(clay):
    report = get_framework_report(GOOD_RESPONSE, clay)
    assert report["disruptive_innovation"] == {
        "referenced": False,
        "concepts": [
            {"name": "low_end_disruption", "used": True},
            {"name": "sustaining_innovation", "used": False},
        ],
        "questions": [{"text": "Who are the overserved customers in this market?", "used": True}],
    }
    assert report["jobs_to_be_done"]["referenced"] is True
    assert report["jobs_to_be_done"]["concepts"] == [{"name": "functional_job", "used": False}]
