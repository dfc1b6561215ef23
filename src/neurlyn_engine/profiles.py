"""Profile labelling — ordered lookup tables over trait scores.

Labels produced from a scored session:

  - **archetype**: first rule in ``ProfileTable.archetypes`` whose
    predicates all hold over the trait *percentiles*
  - **primary profile**: first rule in ``ProfileTable.primary_profiles``
    whose predicates all hold over the raw trait *means*
  - **hidden patterns**: every ``HiddenPatternRule`` whose conditions hold
  - **styles**: one label per banded or dominant dimension, read from the
    scores of the responses each dimension selects
  - **resilience factors**: every factor with a top-category answer

When no archetype/profile rule matches, the table's declared default is
used.  Tables are plain data; pass a different ``ProfileTable`` to swap
the labelling scheme without code changes.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from neurlyn_engine.models.pattern import PatternSummary
from neurlyn_engine.models.profile import (
    BandedDimension,
    DominantDimension,
    HiddenPatternRule,
    ProfileTable,
    TraitPredicate,
)
from neurlyn_engine.models.report import Archetype, HiddenPattern
from neurlyn_engine.models.response import LIKERT, ResponseEvent, ResponseScale

logger = logging.getLogger(__name__)

# Percentile floors for the per-trait level label, highest first.
LEVELS: tuple[tuple[int, str], ...] = (
    (80, "Very High"),
    (65, "High"),
    (35, "Average"),
    (20, "Low"),
)
LOWEST_LEVEL = "Very Low"

# Big Five descriptions by raw mean: (> 4, > 3, otherwise).
BIG_FIVE_DESCRIPTIONS: dict[str, tuple[str, str, str]] = {
    "openness": (
        "Creative and curious",
        "Balanced",
        "Practical and conventional",
    ),
    "conscientiousness": (
        "Organized and disciplined",
        "Moderately organized",
        "Flexible and spontaneous",
    ),
    "extraversion": (
        "Outgoing and energetic",
        "Ambiverted",
        "Reserved and reflective",
    ),
    "agreeableness": (
        "Cooperative and trusting",
        "Balanced",
        "Competitive and skeptical",
    ),
    "neuroticism": (
        "Emotionally sensitive",
        "Moderately stable",
        "Emotionally stable",
    ),
}


def level_for(percentile: float) -> str:
    """Qualitative level for a percentile in [0, 100]."""
    for floor, label in LEVELS:
        if percentile >= floor:
            return label
    return LOWEST_LEVEL


def describe_trait(trait: str, raw_mean: float) -> Optional[str]:
    """Big Five description for ``trait``, or None for other traits."""
    tiers = BIG_FIVE_DESCRIPTIONS.get(trait)
    if tiers is None:
        return None
    if raw_mean > 4:
        return tiers[0]
    if raw_mean > 3:
        return tiers[1]
    return tiers[2]


class ProfileLabeler:
    """Evaluates a ``ProfileTable`` against a session's trait scores."""

    def __init__(self, table: ProfileTable) -> None:
        self._table = table

    @property
    def table(self) -> ProfileTable:
        return self._table

    # ------------------------------------------------------------------
    # Ordered lookups
    # ------------------------------------------------------------------

    def archetype(self, percentiles: Mapping[str, float]) -> Archetype:
        """First archetype whose predicates hold over trait percentiles."""
        for rule in self._table.archetypes:
            if self._all_hold(rule.when, percentiles):
                return rule.archetype
        return self._table.default_archetype

    def primary_profile(self, raw_means: Mapping[str, float]) -> str:
        """First primary-profile label whose predicates hold over raw trait means."""
        for rule in self._table.primary_profiles:
            if self._all_hold(rule.when, raw_means):
                return rule.label
        return self._table.default_primary_profile

    def hidden_patterns(
        self,
        responses: Sequence[ResponseEvent],
        pattern: PatternSummary,
        scale: ResponseScale = LIKERT,
    ) -> list[HiddenPattern]:
        """Every hidden-pattern rule that matches, in table order."""
        found: list[HiddenPattern] = []
        for rule in self._table.hidden_patterns:
            if self._hidden_rule_matches(rule, responses, pattern, scale):
                logger.debug("Hidden pattern %s detected", rule.type)
                found.append(
                    HiddenPattern(
                        type=rule.type,
                        confidence=rule.confidence,
                        description=rule.description,
                    )
                )
        return found

    # ------------------------------------------------------------------
    # Style dimensions
    # ------------------------------------------------------------------

    def styles(
        self,
        responses: Sequence[ResponseEvent],
        scale: ResponseScale = LIKERT,
    ) -> dict[str, str]:
        """Label for every banded and dominant dimension, keyed by name."""
        labels: dict[str, str] = {}
        for dim in self._table.banded_dimensions:
            labels[dim.name] = self._banded_label(dim, responses)
        for dom in self._table.dominant_dimensions:
            labels[dom.name] = self._dominant_label(dom, responses, scale)
        return labels

    def resilience_factors(
        self,
        responses: Sequence[ResponseEvent],
        scale: ResponseScale = LIKERT,
    ) -> list[str]:
        """Factors with at least one top-category answer, in table order."""
        return [
            rule.factor
            for rule in self._table.resilience_factors
            if any(rule.select.matches(r) and r.score >= scale.high for r in responses)
        ]

    @staticmethod
    def _banded_label(dim: BandedDimension, responses: Sequence[ResponseEvent]) -> str:
        scores = [r.score for r in responses if dim.select.matches(r)]
        if not scores:
            return dim.default
        mean = sum(scores) / len(scores)
        if mean > dim.high_above:
            return dim.high
        if mean < dim.low_below:
            return dim.low
        return dim.middle

    @staticmethod
    def _dominant_label(
        dom: DominantDimension,
        responses: Sequence[ResponseEvent],
        scale: ResponseScale,
    ) -> str:
        selected = [r for r in responses if dom.select.matches(r)]
        if not selected:
            return dom.default
        best_label, best_count = dom.mixed, 0
        for opt in dom.options:
            count = sum(1 for r in selected if opt.select.matches(r) and r.score >= scale.high)
            # strict > keeps the first declared option on ties
            if count > best_count:
                best_label, best_count = opt.label, count
        return best_label

    # ------------------------------------------------------------------
    # Rule checks
    # ------------------------------------------------------------------

    def _all_hold(self, predicates: Sequence[TraitPredicate], values: Mapping[str, float]) -> bool:
        for pred in predicates:
            if pred.trait not in values:
                return False
            if not self._compare(pred.op, values[pred.trait], pred.value):
                return False
        return True

    @staticmethod
    def _hidden_rule_matches(
        rule: HiddenPatternRule,
        responses: Sequence[ResponseEvent],
        pattern: PatternSummary,
        scale: ResponseScale,
    ) -> bool:
        if rule.high_in_category is not None:
            high = sum(
                1
                for r in responses
                if r.category == rule.high_in_category.category and r.score >= scale.high
            )
            if high < rule.high_in_category.min_count:
                return False
        if rule.any_indicators and not set(rule.any_indicators) & pattern.indicators:
            return False
        if rule.all_indicators and not set(rule.all_indicators) <= pattern.indicators:
            return False
        if rule.response_style is not None and pattern.response_style != rule.response_style:
            return False
        if rule.engagement is not None and pattern.engagement != rule.engagement:
            return False
        return True

    @staticmethod
    def _compare(op: str, actual: Any, value: Any) -> bool:
        """Apply an operator to a trait value and an expected value."""
        if op == "eq":
            return actual == value

        if op == "ne":
            return actual != value

        # --- Numeric comparisons ---
        try:
            num = float(actual)
        except (TypeError, ValueError):
            return False

        if op == "lt":
            return num < float(value)
        if op == "le":
            return num <= float(value)
        if op == "gt":
            return num > float(value)
        if op == "ge":
            return num >= float(value)
        if op == "between":
            # value is expected to be [min, max]
            lo, hi = float(value[0]), float(value[1])
            return lo <= num <= hi

        logger.warning("Unknown predicate operator: %s", op)
        return False
