"""Validation configuration and department context models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from fidelity.models.persona import ValidationMarker


class ScoreWeights(BaseModel):
    """Weights for combining fidelity, voice and framework scores into one number."""

    fidelity: float = 0.5
    voice: float = 0.3
    framework: float = 0.2


class WeightOverrides(BaseModel):
    fidelity: float | None = None
    voice: float | None = None
    framework: float | None = None


class DepartmentOverrides(BaseModel):
    """Threshold and weight overrides a department applies to its personas."""

    model_config = {"extra": "forbid"}

    fidelity_threshold: int | None = None
    voice_threshold: int | None = None
    framework_threshold: int | None = None
    weights: WeightOverrides | None = None


class ValidationConfig(BaseModel):
    """Per-call thresholds and weights. Defaults: 70 / 60 / 50, weights 0.5 / 0.3 / 0.2."""

    model_config = {"extra": "forbid"}

    fidelity_threshold: int = 70
    voice_threshold: int = 60
    framework_threshold: int = 50
    strict_constraints: bool = False
    weights: ScoreWeights = Field(default_factory=ScoreWeights)

    def with_overrides(self, overrides: DepartmentOverrides | None) -> ValidationConfig:
        """Return a copy with every value present in `overrides` applied."""
        if overrides is None:
            return self.model_copy()

        weights = self.weights
        if overrides.weights is not None:
            w = overrides.weights
            weights = ScoreWeights(
                fidelity=w.fidelity if w.fidelity is not None else weights.fidelity,
                voice=w.voice if w.voice is not None else weights.voice,
                framework=w.framework if w.framework is not None else weights.framework,
            )

        return self.model_copy(
            update={
                "fidelity_threshold": (
                    overrides.fidelity_threshold
                    if overrides.fidelity_threshold is not None
                    else self.fidelity_threshold
                ),
                "voice_threshold": (
                    overrides.voice_threshold if overrides.voice_threshold is not None else self.voice_threshold
                ),
                "framework_threshold": (
                    overrides.framework_threshold
                    if overrides.framework_threshold is not None
                    else self.framework_threshold
                ),
                "weights": weights,
            }
        )


class DepartmentContext(BaseModel):
    """
    Department data resolved by the caller and passed into report generation.

    The engine does no department lookup of its own; it only applies the
    shared must-avoid markers and the overrides given here.
    """

    id: str
    name: str
    additional_must_avoid: list[ValidationMarker] = Field(default_factory=list)
    overrides: DepartmentOverrides | None = None
