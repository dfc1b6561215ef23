"""Profile-table and norm models from ``v1/norms.yaml`` and ``v1/profiles.yaml``.

Profile labelling is an explicit lookup table, not a classifier:

  - ``archetypes``: rules over trait *percentiles*; first match wins
  - ``primary_profiles``: rules over raw trait *means*; first match wins
  - ``hidden_patterns``: rules over indicators, category counts, response
    style and engagement; every matching rule is reported
  - ``banded_dimensions``: mean score of selected responses mapped to a
    high / middle / low label (decision style, stress response, ...)
  - ``dominant_dimensions``: option with the most top-category answers
    (learning style)
  - ``resilience_factors``: factors with at least one top-category answer

Each archetype/profile rule has a list of ``when`` predicates that are
AND-ed together.  A rule with an empty ``when`` list always matches.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .report import Archetype
from .response import ResponseEvent


class Norm(BaseModel):
    """Reference-population mean and standard deviation for one trait."""

    mean: float
    std: float

    @model_validator(mode="after")
    def _chk(self):
        if self.std <= 0:
            raise ValueError("std must be > 0")
        return self


class TraitPredicate(BaseModel):
    """A single condition on a trait value.

    Operators:
      - eq, ne: equality / inequality
      - lt, le, gt, ge: numeric comparisons
      - between: value is [min, max] inclusive

    A trait missing from the score map never satisfies a predicate.
    """

    trait: str
    op: Literal["eq", "ne", "lt", "le", "gt", "ge", "between"]
    value: Any


class ArchetypeRule(BaseModel):
    """If ALL predicates in ``when`` hold, the archetype applies."""

    when: List[TraitPredicate] = Field(default_factory=list)
    archetype: Archetype


class PrimaryProfileRule(BaseModel):
    when: List[TraitPredicate] = Field(default_factory=list)
    label: str


class CategoryCount(BaseModel):
    """At least ``min_count`` top-category answers within ``category``."""

    category: str
    min_count: int


class HiddenPatternRule(BaseModel):
    """Every declared condition must hold for the pattern to be reported."""

    type: str
    confidence: float
    description: str = ""
    high_in_category: Optional[CategoryCount] = None
    any_indicators: List[str] = Field(default_factory=list)
    all_indicators: List[str] = Field(default_factory=list)
    response_style: Optional[str] = None
    engagement: Optional[str] = None


# ---------------------------------------------------------------------------
# Style dimensions and resilience factors
# ---------------------------------------------------------------------------


class ResponseSelector(BaseModel):
    """Picks the responses a style rule looks at.

    A response is selected when it matches ANY listed field: its category,
    its subcategory, or a positive weight on one of ``traits``.
    """

    categories: List[str] = Field(default_factory=list)
    subcategories: List[str] = Field(default_factory=list)
    traits: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _chk(self):
        if not (self.categories or self.subcategories or self.traits):
            raise ValueError("selector needs at least one of categories, subcategories, traits")
        return self

    def matches(self, response: ResponseEvent) -> bool:
        if response.category in self.categories:
            return True
        if response.subcategory is not None and response.subcategory in self.subcategories:
            return True
        return any(response.trait_weights.get(t, 0.0) > 0 for t in self.traits)


class BandedDimension(BaseModel):
    """Mean score of the selected responses mapped onto three labels.

    mean > ``high_above`` → ``high``; mean < ``low_below`` → ``low``;
    otherwise ``middle``.  ``default`` applies when nothing is selected.
    """

    name: str
    select: ResponseSelector
    high: str
    middle: str
    low: str
    default: str
    high_above: float = 3.5
    low_below: float = 2.5

    @model_validator(mode="after")
    def _chk(self):
        if self.low_below > self.high_above:
            raise ValueError(f"{self.name}: low_below must be <= high_above")
        return self


class DominantOption(BaseModel):
    label: str
    select: ResponseSelector


class DominantDimension(BaseModel):
    """Option with the most top-category answers among the selected responses.

    Ties go to the option declared first.  ``default`` applies when nothing
    is selected, ``mixed`` when no option has a top-category answer.
    """

    name: str
    select: ResponseSelector
    options: List[DominantOption]
    default: str = "undetermined"
    mixed: str = "multimodal"

    @model_validator(mode="after")
    def _chk(self):
        if not self.options:
            raise ValueError(f"{self.name}: at least one option is required")
        return self


class ResilienceFactorRule(BaseModel):
    """Reported when any selected response is in the top category."""

    factor: str
    select: ResponseSelector


class ProfileTable(BaseModel):
    """Ordered lookup tables used to label a scored session."""

    archetypes: List[ArchetypeRule] = Field(default_factory=list)
    default_archetype: Archetype
    primary_profiles: List[PrimaryProfileRule] = Field(default_factory=list)
    default_primary_profile: str = "Neurotypical with variations"
    hidden_patterns: List[HiddenPatternRule] = Field(default_factory=list)
    banded_dimensions: List[BandedDimension] = Field(default_factory=list)
    dominant_dimensions: List[DominantDimension] = Field(default_factory=list)
    resilience_factors: List[ResilienceFactorRule] = Field(default_factory=list)

    def selectors(self) -> list[ResponseSelector]:
        """Every response selector declared by the style and resilience rules."""
        found: list[ResponseSelector] = []
        for dim in self.banded_dimensions:
            found.append(dim.select)
        for dom in self.dominant_dimensions:
            found.append(dom.select)
            found.extend(opt.select for opt in dom.options)
        found.extend(rule.select for rule in self.resilience_factors)
        return found
