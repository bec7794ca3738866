"""
Fidelity Kernel — Detector Registry

The tone, style and antipattern tables the voice analyzer consults.

A registry is immutable once built. DEFAULT_REGISTRY carries the built-in
tables; callers that need other vocabularies build their own with
`DetectorRegistry.build(...)` or `DEFAULT_REGISTRY.extend(...)` and pass it in.

Style detectors are plain functions `(text) -> (followed, confidence)`.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

StyleDetector = Callable[[str], tuple[bool, float]]


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# ---------------------------------------------------------------------------
# Tone table
# ---------------------------------------------------------------------------

TONE_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "professorial": _compile(
        r"\b(theory|theoretical|conceptual|framework)\b",
        r"\b(research|evidence|studies|data)\b",
        r"let me (explain|illustrate|clarify)",
    ),
    "scholarly": _compile(
        r"\b(literature|discourse|paradigm|phenomenon)\b",
        r"\b(analysis|synthesis|critique)\b",
    ),
    "analytical": _compile(
        r"\b(because|therefore|consequently|thus)\b",
        r"\b(factor|variable|outcome|result)\b",
        r"the (data|evidence|analysis) (shows|suggests|indicates)",
    ),
    "warm": _compile(
        r"\b(wonderful|great question|glad you asked)\b",
        r"let me (share|tell you about)",
        r"I (appreciate|understand|hear)",
    ),
    "approachable": _compile(
        r"\b(simply put|in other words|to put it)\b",
        r"think of it (like|as)",
        r"imagine (if|that|a)",
    ),
    "empathetic": _compile(
        r"\b(I understand|I see|that makes sense)\b",
        r"\b(challenge|difficult|struggle)\b",
        r"many (people|organizations|leaders) face",
    ),
    "curious": _compile(
        r"\?",
        r"\b(wonder|curious|interesting|intriguing)\b",
        r"what (if|about|would)",
    ),
    "thoughtful": _compile(
        r"\b(consider|reflect|think about|ponder)\b",
        r"it's worth (noting|considering|asking)",
    ),
    "direct": _compile(
        r"\b(clearly|simply|directly|specifically)\b",
        r"the (key|core|main|essential) (point|issue|question)",
    ),
    "authoritative": _compile(
        r"\b(must|should|need to|essential)\b",
        r"\b(always|never|critical|vital)\b",
    ),
    "humble": _compile(
        r"\b(might|perhaps|possibly|may)\b",
        r"I (think|believe|suspect)",
        r"in my (experience|view|opinion)",
    ),
    "practical": _compile(
        r"\b(action|step|implement|apply|use)\b",
        r"here's (how|what|the)",
        r"\b(practical|actionable|concrete)\b",
    ),
    "storytelling": _compile(
        r"let me (tell|share) (you )?(a story|an example)",
        r"\b(once|when|back in|years ago)\b",
        r"\b(story|narrative|example|case)\b",
    ),
    "illustrative": _compile(
        r"\b(for example|for instance|such as|like)\b",
        r"consider (the case|how|what)",
    ),
}


# ---------------------------------------------------------------------------
# Style detectors
# ---------------------------------------------------------------------------

_SENTENCE = re.compile(r"[^.!?]+[.!?]*")
_EXAMPLE_MARKERS = re.compile(
    r"\b(for example|for instance|such as|consider|like when|take the case)\b", re.IGNORECASE
)
_THEORY = re.compile(r"\b(theory|framework|model|concept|principle)\b", re.IGNORECASE)
_EVIDENCE = re.compile(r"\b(research|study|data|evidence|findings|analysis shows)\b", re.IGNORECASE)
_COMPLEXITY = re.compile(
    r"\b(however|but|although|while|on the other hand|it depends|nuanced)\b", re.IGNORECASE
)
_SEQUENCE_WORDS = re.compile(r"\b(first|second|third|finally|in conclusion|to summarize)\b", re.IGNORECASE)
_BULLET_LINE = re.compile(r"^[\s]*[-•*]\s", re.MULTILINE)
_NUMBERED_LINE = re.compile(r"^\s*\d+[.)]", re.MULTILINE)
_CONCRETE = re.compile(r"\b(specific|example|case|instance|situation|scenario)\b", re.IGNORECASE)
_ABSTRACT = re.compile(r"\b(abstract|theoretical|conceptual|philosophical)\b", re.IGNORECASE)


def _asks_questions_first(text: str) -> tuple[bool, float]:
    opening = _SENTENCE.findall(text)[:3]
    followed = any("?" in s for s in opening)
    return followed, 0.8 if followed else 0.2


def _uses_examples(text: str) -> tuple[bool, float]:
    count = len(_EXAMPLE_MARKERS.findall(text))
    return count > 0, min(count * 0.3, 1.0)


def _builds_on_theory(text: str) -> tuple[bool, float]:
    followed = _THEORY.search(text) is not None
    return followed, 0.7 if followed else 0.3


def _cites_evidence(text: str) -> tuple[bool, float]:
    followed = _EVIDENCE.search(text) is not None
    return followed, 0.8 if followed else 0.2


def _acknowledges_complexity(text: str) -> tuple[bool, float]:
    followed = _COMPLEXITY.search(text) is not None
    return followed, 0.7 if followed else 0.3


def _structured_response(text: str) -> tuple[bool, float]:
    followed = bool(
        _SEQUENCE_WORDS.search(text) or _BULLET_LINE.search(text) or _NUMBERED_LINE.search(text)
    )
    return followed, 0.8 if followed else 0.2


def _socratic_method(text: str) -> tuple[bool, float]:
    questions = text.count("?")
    return questions >= 2, min(questions * 0.25, 1.0)


def _concrete_over_abstract(text: str) -> tuple[bool, float]:
    concrete = len(_CONCRETE.findall(text))
    abstract = len(_ABSTRACT.findall(text))
    followed = concrete >= abstract
    return followed, 0.7 if followed else 0.4


STYLE_DETECTORS: dict[str, StyleDetector] = {
    "asks questions first": _asks_questions_first,
    "uses examples": _uses_examples,
    "builds on theory": _builds_on_theory,
    "cites evidence": _cites_evidence,
    "acknowledges complexity": _acknowledges_complexity,
    "structured response": _structured_response,
    "socratic method": _socratic_method,
    "concrete over abstract": _concrete_over_abstract,
}


# ---------------------------------------------------------------------------
# Antipatterns
# ---------------------------------------------------------------------------

ANTIPATTERNS: dict[str, re.Pattern[str]] = {
    "overconfident": re.compile(r"\b(definitely|absolutely|certainly|guaranteed)\b", re.IGNORECASE),
    "jargon": re.compile(r"\b(synergy|leverage|pivot|disrupt)\b", re.IGNORECASE),
    "condescending": re.compile(r"\b(obviously|clearly you|as anyone knows)\b", re.IGNORECASE),
}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DetectorRegistry:
    """Read-only lookup tables. Keys are lower-case."""

    tones: Mapping[str, tuple[re.Pattern[str], ...]]
    styles: Mapping[str, StyleDetector]
    antipatterns: Mapping[str, re.Pattern[str]]

    @classmethod
    def build(
        cls,
        tones: Mapping[str, tuple[re.Pattern[str], ...]] | None = None,
        styles: Mapping[str, StyleDetector] | None = None,
        antipatterns: Mapping[str, re.Pattern[str]] | None = None,
    ) -> DetectorRegistry:
        return cls(
            tones=MappingProxyType({k.lower(): tuple(v) for k, v in (tones or {}).items()}),
            styles=MappingProxyType({k.lower(): v for k, v in (styles or {}).items()}),
            antipatterns=MappingProxyType({k.lower(): v for k, v in (antipatterns or {}).items()}),
        )

    def extend(
        self,
        tones: Mapping[str, tuple[re.Pattern[str], ...]] | None = None,
        styles: Mapping[str, StyleDetector] | None = None,
        antipatterns: Mapping[str, re.Pattern[str]] | None = None,
    ) -> DetectorRegistry:
        """New registry with these entries added (same key replaces)."""
        return DetectorRegistry.build(
            tones={**self.tones, **(tones or {})},
            styles={**self.styles, **(styles or {})},
            antipatterns={**self.antipatterns, **(antipatterns or {})},
        )

    def tone(self, name: str) -> tuple[re.Pattern[str], ...] | None:
        return self.tones.get(name.lower())

    def style(self, name: str) -> StyleDetector | None:
        return self.styles.get(name.lower())


DEFAULT_REGISTRY = DetectorRegistry.build(
    tones=TONE_PATTERNS,
    styles=STYLE_DETECTORS,
    antipatterns=ANTIPATTERNS,
)
