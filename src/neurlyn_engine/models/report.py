"""Report models — the output of the scoring & profile engine.

The report is the only thing ``finalize`` returns.  Every recoverable
problem encountered during the session (coerced scores, unknown trait keys,
straight-lining) is surfaced in ``quality`` so the caller can decide whether
to flag the session as low-validity.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TraitScore(BaseModel):
    """Aggregated score for one trait."""

    trait: str
    # Mean of weight * score across contributing responses
    raw: float
    percentile: int
    level: str
    description: Optional[str] = None
    contributing: int


class QualityMetrics(BaseModel):
    """Validity signals for the response set."""

    completion_rate: float
    mean_response_time: Optional[float] = None
    response_diversity: float
    longest_run: int
    straight_lining: bool
    careless_responding: bool
    acquiescence: bool
    coerced_responses: int = 0
    unknown_traits: int = 0
    data_quality: str


class HiddenPattern(BaseModel):
    """A detected cross-signal pattern with its rule's fixed confidence."""

    type: str
    confidence: float
    description: str = ""


class Archetype(BaseModel):
    """Qualitative archetype label chosen from the profile table."""

    name: str
    tagline: str = ""
    description: str = ""
    strengths: List[str] = Field(default_factory=list)
    challenges: List[str] = Field(default_factory=list)


class Recommendations(BaseModel):
    immediate: List[str] = Field(default_factory=list)
    assessment: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


class Report(BaseModel):
    """Final assessment report."""

    response_count: int
    trait_scores: dict[str, TraitScore]
    quality: QualityMetrics
    confidence: float
    response_style: str
    consistency: float
    hidden_patterns: List[HiddenPattern] = Field(default_factory=list)
    archetype: Archetype
    primary_profile: str
    pathways: List[str] = Field(default_factory=list)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    # Dimension name -> label, e.g. {"decision_style": "intuitive"}
    styles: dict[str, str] = Field(default_factory=dict)
    resilience_factors: List[str] = Field(default_factory=list)
