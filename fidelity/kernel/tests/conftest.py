"""
Kernel test configuration.

Shared persona fixtures. Builders live in factories.py so test modules can
also call them directly with overrides.
"""

import pytest

from fidelity.kernel.tests.factories import make_persona


@pytest.fixture
def clay():
    """The default Clay Christensen persona with one good/bad sample pair."""
    return make_persona()


@pytest.fixture(autouse=True)
def _clear_threshold_env(monkeypatch):
    # Environment overrides would shift every default threshold
    for name in (
        "PERSONA_FIDELITY_THRESHOLD",
        "PERSONA_VOICE_THRESHOLD",
        "PERSONA_FRAMEWORK_THRESHOLD",
        "PERSONA_STRICT_CONSTRAINTS",
        "PERSONA_CI_MIN_PASS_RATE",
    ):
        monkeypatch.delenv(name, raising=False)
