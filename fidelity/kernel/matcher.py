"""
Fidelity Kernel — Pattern Matcher

Tests a list of validation markers against a text. Each marker's pattern is
tried as a case-insensitive regular expression; patterns that don't compile
are treated as literal keywords. Never raises on a malformed pattern.

Results are keyed by the marker's position, so two markers that share a
description are still scored independently.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from fidelity.kernel.types import MarkerMatch, MatchResult
from fidelity.models.persona import ValidationMarker

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def match_markers(text: str, markers: Sequence[ValidationMarker]) -> MatchResult:
    """Match every marker against `text`. Output order follows `markers`."""
    lowered = text.lower()
    return MatchResult(
        matches=[
            MarkerMatch(index=i, marker=marker, matched=marker_matches(text, lowered, marker.pattern))
            for i, marker in enumerate(markers)
        ]
    )


def marker_matches(text: str, lowered: str, pattern: str) -> bool:
    """True if `pattern` (regex, or literal on compile error) occurs in the text."""
    try:
        regex = re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug("Pattern %r is not a valid regex (%s), matching literally", pattern, e)
        return pattern.lower() in lowered or pattern in text

    return regex.search(text) is not None or regex.search(lowered) is not None
