"""
Fidelity Kernel — Voice Analyzer

Checks a text against a persona's voice: expected tones, characteristic
phrases, style patterns and stated constraints. Produces a 0–100 consistency
score weighted tone 40 / phrases 30 / style 30, minus 10 per constraint
violation.

All lookups go through a DetectorRegistry (DEFAULT_REGISTRY unless the caller
supplies one).
"""

from __future__ import annotations

import math
import re

from fidelity.kernel.detectors import DEFAULT_REGISTRY, DetectorRegistry
from fidelity.kernel.types import (
    CONSTRAINT_PENALTY,
    PHRASE_POINTS,
    STYLE_POINTS,
    TONE_POINTS,
    PhraseMatch,
    StyleMatch,
    ToneMatch,
    VoiceAnalysisResult,
    round_half_up,
)
from fidelity.models.persona import PersonaDefinition

# Constraint clauses, tried in order; each names the thing to avoid.
_AVOID_CLAUSES = (
    re.compile(r"never (use|say|mention|include) (.+)"),
    re.compile(r"avoid (.+)"),
    re.compile(r"don't (.+)"),
    re.compile(r"no (.+)"),
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_voice_consistency(
    text: str,
    persona: PersonaDefinition,
    registry: DetectorRegistry = DEFAULT_REGISTRY,
) -> VoiceAnalysisResult:
    voice = persona.voice

    tones = [_detect_tone(text, tone, registry) for tone in voice.tone]
    phrases = [_match_phrase(text, phrase) for phrase in voice.phrases]
    styles = [_detect_style(text, style, registry) for style in voice.style]
    violations = check_constraints(text, voice.constraints, registry)

    score = _consistency_score(tones, phrases, styles, violations)

    return VoiceAnalysisResult(
        consistency_score=score,
        tone_markers=tones,
        phrase_matches=phrases,
        style_patterns=styles,
        constraint_violations=violations,
        assessment=_assessment(score, tones, phrases, styles, violations, persona.identity.name),
    )


def quick_voice_check(
    text: str,
    persona: PersonaDefinition,
    threshold: int = 60,
    registry: DetectorRegistry = DEFAULT_REGISTRY,
) -> bool:
    return analyze_voice_consistency(text, persona, registry).consistency_score >= threshold


def get_voice_suggestions(
    text: str,
    persona: PersonaDefinition,
    registry: DetectorRegistry = DEFAULT_REGISTRY,
) -> list[str]:
    """Up to two fixes each for tones, phrases and styles, then every constraint violation."""
    result = analyze_voice_consistency(text, persona, registry)
    suggestions: list[str] = []

    missing_tones = [t for t in result.tone_markers if not t.detected]
    for tone in missing_tones[:2]:
        suggestions.append(f"Add {tone.expected} tone to your response")

    absent_phrases = [p for p in result.phrase_matches if p.match_type == "absent"]
    for phrase in absent_phrases[:2]:
        suggestions.append(f'Consider using phrase: "{phrase.phrase}"')

    unfollowed = [s for s in result.style_patterns if not s.followed]
    for style in unfollowed[:2]:
        suggestions.append(f"Apply style pattern: {style.pattern}")

    for violation in result.constraint_violations:
        suggestions.append(f"Fix constraint violation: {violation}")

    return suggestions


def check_constraints(
    text: str,
    constraints: list[str],
    registry: DetectorRegistry = DEFAULT_REGISTRY,
) -> list[str]:
    """
    Constraints the text breaks, deduplicated, in constraint order.

    A constraint is broken when any of its "never/avoid/don't/no X" clauses
    names an X that appears in the text, or when it mentions an antipattern keyword
    (overconfident, jargon, ...) whose detector fires on the text.
    """
    lowered = text.lower()
    violations: list[str] = []

    for constraint in constraints:
        rule = constraint.lower()

        for clause in _AVOID_CLAUSES:
            m = clause.search(rule)
            if m and m.group(m.lastindex or 0) in lowered:
                violations.append(constraint)
                break

        for keyword, detector in registry.antipatterns.items():
            if keyword in rule and detector.search(text):
                violations.append(constraint)

    return list(dict.fromkeys(violations))


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def _detect_tone(text: str, tone: str, registry: DetectorRegistry) -> ToneMatch:
    patterns = registry.tone(tone)

    if patterns is None:
        # Unknown tone: look for the word itself
        detected = re.search(rf"\b{re.escape(tone)}\b", text, re.IGNORECASE) is not None
        return ToneMatch(expected=tone, detected=detected, evidence=tone if detected else None)

    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return ToneMatch(expected=tone, detected=True, evidence=m.group(0))

    return ToneMatch(expected=tone, detected=False)


def _match_phrase(text: str, phrase: str) -> PhraseMatch:
    lowered = text.lower()
    target = phrase.lower()

    if target in lowered:
        return PhraseMatch(phrase=phrase, match_type="exact", matched_text=phrase)

    key_words = [w for w in target.split() if len(w) > 3][:3]
    if key_words:
        found = [w for w in key_words if w in lowered]
        if len(found) >= math.ceil(len(key_words) / 2):
            return PhraseMatch(phrase=phrase, match_type="variant", matched_text=", ".join(found))

    return PhraseMatch(phrase=phrase, match_type="absent")


def _detect_style(text: str, style: str, registry: DetectorRegistry) -> StyleMatch:
    detector = registry.style(style)
    if detector is not None:
        followed, confidence = detector(text)
        return StyleMatch(pattern=style, followed=followed, confidence=confidence)

    # Unregistered style: keyword overlap with the style description
    lowered = text.lower()
    keywords = [w for w in style.lower().split() if len(w) > 4]
    found = [w for w in keywords if w in lowered]
    followed = len(found) >= math.ceil(len(keywords) / 3)
    return StyleMatch(pattern=style, followed=followed, confidence=0.5 if followed else 0.3)


# ---------------------------------------------------------------------------
# Scoring and assessment
# ---------------------------------------------------------------------------


def _consistency_score(
    tones: list[ToneMatch],
    phrases: list[PhraseMatch],
    styles: list[StyleMatch],
    violations: list[str],
) -> int:
    max_score = TONE_POINTS + PHRASE_POINTS + STYLE_POINTS
    score = 0.0

    if tones:
        score += sum(1 for t in tones if t.detected) / len(tones) * TONE_POINTS

    if phrases:
        exact = sum(1 for p in phrases if p.match_type == "exact")
        variant = sum(1 for p in phrases if p.match_type == "variant")
        score += (exact + variant * 0.5) / len(phrases) * PHRASE_POINTS

    if styles:
        score += sum(s.confidence for s in styles if s.followed) / len(styles) * STYLE_POINTS

    score = max(0.0, score - len(violations) * CONSTRAINT_PENALTY)
    return round_half_up(score / max_score * 100)


def _assessment(
    score: int,
    tones: list[ToneMatch],
    phrases: list[PhraseMatch],
    styles: list[StyleMatch],
    violations: list[str],
    name: str,
) -> str:
    if score >= 80:
        lines = [f"Strong {name} voice consistency ({score}/100)."]
    elif score >= 60:
        lines = [f"Moderate {name} voice consistency ({score}/100)."]
    else:
        lines = [f"Weak {name} voice consistency ({score}/100)."]

    detected = [t.expected for t in tones if t.detected]
    missing = [t.expected for t in tones if not t.detected]
    if detected:
        lines.append(f"Detected tones: {', '.join(detected)}")
    if 0 < len(missing) <= 3:
        lines.append(f"Missing tones: {', '.join(missing)}")

    exact = sum(1 for p in phrases if p.match_type == "exact")
    variant = sum(1 for p in phrases if p.match_type == "variant")
    lines.append(f"Phrase matches: {exact} exact, {variant} variant of {len(phrases)} expected")

    followed = sum(1 for s in styles if s.followed)
    lines.append(f"Style patterns: {followed}/{len(styles)} followed")

    if violations:
        lines.append(f"Constraint violations: {', '.join(violations)}")

    return "\n".join(lines)
