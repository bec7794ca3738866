"""
persona-fidelity configuration — environment overrides in one place.

Read from the environment at access time so CI jobs can tighten thresholds
without touching persona files. Unset variables fall back to the engine
defaults (70 / 60 / 50, strict constraints off, CI pass rate 80%).
"""

from __future__ import annotations

import os

from fidelity.models.config import ValidationConfig


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


class Settings:
    """Scoring defaults from environment variables."""

    @property
    def FIDELITY_THRESHOLD(self) -> int:
        return _int_env("PERSONA_FIDELITY_THRESHOLD", 70)

    @property
    def VOICE_THRESHOLD(self) -> int:
        return _int_env("PERSONA_VOICE_THRESHOLD", 60)

    @property
    def FRAMEWORK_THRESHOLD(self) -> int:
        return _int_env("PERSONA_FRAMEWORK_THRESHOLD", 50)

    @property
    def STRICT_CONSTRAINTS(self) -> bool:
        return _bool_env("PERSONA_STRICT_CONSTRAINTS", False)

    @property
    def CI_MIN_PASS_RATE(self) -> int:
        return _int_env("PERSONA_CI_MIN_PASS_RATE", 80)

    def validation_config(self) -> ValidationConfig:
        """Build a ValidationConfig from the current environment."""
        return ValidationConfig(
            fidelity_threshold=self.FIDELITY_THRESHOLD,
            voice_threshold=self.VOICE_THRESHOLD,
            framework_threshold=self.FRAMEWORK_THRESHOLD,
            strict_constraints=self.STRICT_CONSTRAINTS,
        )


# Singleton instance
settings = Settings()
