"""
Pydantic models for persona-fidelity.

Input shapes only. No imports from the kernel.
"""

from fidelity.models.config import (
    DepartmentContext,
    DepartmentOverrides,
    ScoreWeights,
    ValidationConfig,
    WeightOverrides,
)
from fidelity.models.persona import (
    AnalysisPatterns,
    CaseStudy,
    Framework,
    FrameworkConcept,
    OutputSection,
    PersonaDefinition,
    PersonaIdentity,
    PersonaMetadata,
    PersonaValidation,
    PersonaVoice,
    SampleResponse,
    ValidationMarker,
)

__all__ = [
    # Persona models
    "PersonaDefinition",
    "PersonaIdentity",
    "PersonaVoice",
    "Framework",
    "FrameworkConcept",
    "CaseStudy",
    "AnalysisPatterns",
    "OutputSection",
    "PersonaValidation",
    "ValidationMarker",
    "SampleResponse",
    "PersonaMetadata",
    # Config models
    "ValidationConfig",
    "ScoreWeights",
    "WeightOverrides",
    "DepartmentOverrides",
    "DepartmentContext",
]
