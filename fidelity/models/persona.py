"""Persona definition models.

The persona loader hands the engine a plain dict; these models give it a typed,
validated shape. Nothing in the engine mutates a persona after construction.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field

PersonaCategory = Literal[
    "business-strategist",
    "technical-architect",
    "domain-expert",
    "creative",
    "custom",
]

_WHITESPACE = re.compile(r"\s+")


class ValidationMarker(BaseModel):
    """A weighted pattern (regex or literal keyword) used for fidelity scoring."""

    model_config = {"frozen": True}

    pattern: str
    description: str | None = None
    weight: float | None = None

    @property
    def label(self) -> str:
        """What reports and suggestions display for this marker."""
        return self.description if self.description is not None else self.pattern

    def weight_or(self, default: float) -> float:
        return self.weight if self.weight is not None else default


class PersonaIdentity(BaseModel):
    name: str
    role: str
    background: str
    era: str | None = None
    notable_works: list[str] = Field(default_factory=list)


class PersonaVoice(BaseModel):
    """Tone, phrasing and style targets. Each list element is detected independently."""

    tone: list[str] = Field(default_factory=list)
    phrases: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)


class FrameworkConcept(BaseModel):
    definition: str
    examples: list[str] = Field(default_factory=list)
    insight: str | None = None
    subconcepts: dict[str, str] = Field(default_factory=dict)


class Framework(BaseModel):
    """A named mental model: concepts plus the diagnostic questions that apply it."""

    description: str
    concepts: dict[str, FrameworkConcept] = Field(default_factory=dict)
    questions: list[str] = Field(default_factory=list)
    when_to_use: str | None = None
    common_mistakes: list[str] = Field(default_factory=list)


class CaseStudy(BaseModel):
    pattern: str
    story: str
    signals: list[str] = Field(default_factory=list)
    lessons: list[str] = Field(default_factory=list)
    source: str | None = None


class OutputSection(BaseModel):
    section: str
    purpose: str | None = None


class AnalysisPatterns(BaseModel):
    approach: list[str] = Field(default_factory=list)
    output_structure: list[OutputSection] = Field(default_factory=list)
    synthesis_guidance: str | None = None


class PersonaValidation(BaseModel):
    """Required, bonus and forbidden marker lists."""

    must_include: list[ValidationMarker] = Field(default_factory=list)
    should_include: list[ValidationMarker] = Field(default_factory=list)
    must_avoid: list[ValidationMarker] = Field(default_factory=list)


class SampleResponse(BaseModel):
    prompt: str
    good_response: str
    bad_response: str | None = None
    explanation: str | None = None


class PersonaMetadata(BaseModel):
    version: str | None = None
    author: str | None = None
    created: str | None = None
    updated: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: PersonaCategory | None = None
    department: str | None = None


class PersonaDefinition(BaseModel):
    """
    A complete persona as the engine consumes it.

    Mapping fields (frameworks, case_studies, sample_responses) keep the order
    of the source document. That order drives test-case generation, report
    layout and tie-breaks, so it is part of the contract.
    """

    identity: PersonaIdentity
    voice: PersonaVoice
    frameworks: dict[str, Framework] = Field(default_factory=dict)
    case_studies: dict[str, CaseStudy] = Field(default_factory=dict)
    analysis_patterns: AnalysisPatterns | None = None
    validation: PersonaValidation
    sample_responses: dict[str, SampleResponse] = Field(default_factory=dict)
    metadata: PersonaMetadata | None = None

    @property
    def persona_id(self) -> str:
        """Slug derived from the display name: 'Clay Christensen' → 'clay-christensen'."""
        return _WHITESPACE.sub("-", self.identity.name.lower())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersonaDefinition:
        """Validate an already-decoded persona document. Raises pydantic.ValidationError."""
        return cls.model_validate(data)
