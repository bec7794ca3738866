"""
Voice Analyzer Tests

Scoring: tone 40 + phrases 30 + style 30, minus 10 per constraint violation.
The default persona's good sample response:
  tones 2/2 (40) + phrases 2/2 exact (30) + styles (0.8 + 0.3) / 2 * 30 (16.5) = 86.5 → 87
"""

from __future__ import annotations

from fidelity.kernel.tests.factories import GOOD_RESPONSE, make_persona
from fidelity.kernel.voice import (
    analyze_voice_consistency,
    check_constraints,
    get_voice_suggestions,
    quick_voice_check,
)


def voice_only(**kwargs):
    defaults = {"tone": [], "phrases": [], "style": [], "constraints": []}
    defaults.update(kwargs)
    return make_persona(**defaults)


# ============================================================================
# Full analysis
# ============================================================================


def test_good_response_is_strong(clay):
    result = analyze_voice_consistency(GOOD_RESPONSE, clay)
    assert result.consistency_score == 87
    assert [(t.expected, t.detected, t.evidence) for t in result.tone_markers] == [
        ("professorial", True, "theory"),
        ("humble", True, "I think"),
    ]
    assert [p.match_type for p in result.phrase_matches] == ["exact", "exact"]
    assert [(s.pattern, s.followed) for s in result.style_patterns] == [
        ("asks questions first", True),
        ("uses examples", True),
    ]
    assert result.constraint_violations == []
    assert result.assessment.split("\n")[0] == "Strong Clay Christensen voice consistency (87/100)."


def test_score_combines_tone_and_variant_phrase():
    """Curious tone detected (40) + one variant phrase (0.5 * 30) = 55."""
    persona = voice_only(tone=["curious"], phrases=["market creating innovation"])
    result = analyze_voice_consistency("Is this a new market? Innovation keeps creating value.", persona)

    assert result.tone_markers[0].evidence == "?"
    phrase = result.phrase_matches[0]
    assert phrase.match_type == "variant"
    assert phrase.matched_text == "market, creating, innovation"
    assert result.consistency_score == 55
    assert result.assessment.startswith("Weak")


def test_empty_voice_scores_zero():
    result = analyze_voice_consistency("Any text at all.", voice_only())
    assert result.consistency_score == 0
    assert "Phrase matches: 0 exact, 0 variant of 0 expected" in result.assessment
    assert "Style patterns: 0/0 followed" in result.assessment


def test_violation_penalty_floors_at_zero():
    persona = voice_only(constraints=["Avoid being overconfident"])
    result = analyze_voice_consistency("This will definitely work.", persona)
    assert result.constraint_violations == ["Avoid being overconfident"]
    assert result.consistency_score == 0


def test_violation_penalty_subtracts_ten():
    """Tone 40 - 10 for one violation = 30."""
    persona = voice_only(tone=["curious"], constraints=["No jargon"])
    result = analyze_voice_consistency("Should we pivot?", persona)
    assert result.constraint_violations == ["No jargon"]
    assert result.consistency_score == 30
    assert "Constraint violations: No jargon" in result.assessment


# ============================================================================
# Tones
# ============================================================================


def test_tone_lookup_is_case_insensitive():
    persona = voice_only(tone=["Professorial"])
    result = analyze_voice_consistency("Let me explain the research.", persona)
    assert result.tone_markers[0].expected == "Professorial"
    assert result.tone_markers[0].detected is True


def test_unknown_tone_matches_whole_word():
    persona = voice_only(tone=["whimsical"])
    hit = analyze_voice_consistency("A Whimsical take on strategy.", persona)
    miss = analyze_voice_consistency("Pure whimsicality.", persona)
    assert hit.tone_markers[0].detected is True
    assert hit.tone_markers[0].evidence == "whimsical"
    assert miss.tone_markers[0].detected is False
    assert miss.tone_markers[0].evidence is None


def test_unknown_tone_with_regex_characters():
    persona = voice_only(tone=["c++"])
    result = analyze_voice_consistency("plain words", persona)
    assert result.tone_markers[0].detected is False


def test_missing_tones_listed_in_assessment():
    persona = voice_only(tone=["warm", "direct"])
    result = analyze_voice_consistency("Nothing to see.", persona)
    assert "Missing tones: warm, direct" in result.assessment
    assert not any(line.startswith("Detected tones") for line in result.assessment.split("\n"))


# ============================================================================
# Phrases and styles
# ============================================================================


def test_exact_phrase_is_case_insensitive():
    persona = voice_only(phrases=["Jobs To Be Done"])
    result = analyze_voice_consistency("think about jobs to be done", persona)
    assert result.phrase_matches[0].match_type == "exact"
    assert result.phrase_matches[0].matched_text == "Jobs To Be Done"


def test_absent_phrase():
    persona = voice_only(phrases=["the theory would predict"])
    result = analyze_voice_consistency("no overlap here", persona)
    assert result.phrase_matches[0].match_type == "absent"
    assert result.phrase_matches[0].matched_text is None


def test_short_word_phrase_cannot_be_variant():
    """No words longer than 3 characters means no variant match."""
    persona = voice_only(phrases=["to be or not"])
    result = analyze_voice_consistency("be not to", persona)
    assert result.phrase_matches[0].match_type == "absent"


def test_style_lookup_is_case_insensitive():
    persona = voice_only(style=["Cites Evidence"])
    result = analyze_voice_consistency("The research is clear.", persona)
    assert result.style_patterns[0].pattern == "Cites Evidence"
    assert result.style_patterns[0].followed is True
    assert result.style_patterns[0].confidence == 0.8


def test_unregistered_style_uses_keywords():
    persona = voice_only(style=["Uses vivid metaphors"])
    hit = analyze_voice_consistency("Paint a vivid picture.", persona)
    miss = analyze_voice_consistency("Dry and plain.", persona)
    assert (hit.style_patterns[0].followed, hit.style_patterns[0].confidence) == (True, 0.5)
    assert (miss.style_patterns[0].followed, miss.style_patterns[0].confidence) == (False, 0.3)


# ============================================================================
# Constraints
# ============================================================================


def test_clause_and_antipattern_violations_keep_order():
    violations = check_constraints(
        "We should definitely leverage this.",
        ["Never use corporate jargon", "Avoid being overconfident"],
    )
    assert violations == ["Never use corporate jargon", "Avoid being overconfident"]


def test_clause_names_thing_to_avoid():
    assert check_constraints("Here are bullet points.", ["No bullet points"]) == ["No bullet points"]
    assert check_constraints("Here is prose.", ["No bullet points"]) == []


def test_never_clause_uses_object():
    assert check_constraints("Say cheers!", ["Never say cheers"]) == ["Never say cheers"]


def test_later_clause_checked_when_earlier_finds_nothing():
    """The avoid clause misses; the no clause still catches buzzwords."""
    rule = "Avoid hype; no buzzwords"
    assert check_constraints("We love buzzwords here", [rule]) == [rule]
    assert check_constraints("We love plain words here", [rule]) == []


def test_violation_reported_once():
    """Both the clause and the jargon table fire; the constraint is listed once."""
    assert check_constraints("Less jargon, more leverage.", ["Avoid jargon"]) == ["Avoid jargon"]


def test_antipattern_needs_keyword_in_constraint():
    assert check_constraints("Definitely.", ["Be kind"]) == []


# ============================================================================
# Helpers
# ============================================================================


def test_quick_voice_check(clay):
    assert quick_voice_check(GOOD_RESPONSE, clay) is True
    assert quick_voice_check("Nothing here.", clay) is False
    assert quick_voice_check(GOOD_RESPONSE, clay, threshold=90) is False


def test_voice_suggestions(clay):
    assert get_voice_suggestions("Nothing here.", clay) == [
        "Add professorial tone to your response",
        "Add humble tone to your response",
        'Consider using phrase: "the theory would predict"',
        'Consider using phrase: "jobs to be done"',
        "Apply style pattern: asks questions first",
        "Apply style pattern: uses examples",
    ]


def test_voice_suggestions_end_with_violations():
    persona = voice_only(constraints=["Avoid being overconfident"])
    assert get_voice_suggestions("Absolutely.", persona) == [
        "Fix constraint violation: Avoid being overconfident"
    ]


def test_to_dict_rounds_confidence(clay):
    d = analyze_voice_consistency(GOOD_RESPONSE, clay).to_dict()
    assert d["style_patterns"][1] == {"pattern": "uses examples", "followed": True, "confidence": 0.3}
    assert d["tone_markers"][0]["evidence"] == "theory"
