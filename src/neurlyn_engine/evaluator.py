"""PathwayEvaluator — decides which branching pathways activate.

The evaluator is stateless: activation state lives in ``SessionState`` and
is passed in as ``already_active``.  Evaluation runs in two explicit passes:

  1. **indicator pathways**: fire when at least ``indicator_threshold`` of
     their trigger indicators are present in the pattern summary and, if a
     ``score_threshold`` is set, the pathway's score trait meets it
  2. **combined pathways**: re-checked until a fixed point; each fires when
     every pathway in ``combined_of`` is active or fired in this call

Pathways already active are skipped — a pathway fires at most once per
session and never deactivates.  The result follows declaration order in the
pathway table, not trigger strength.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from neurlyn_engine.errors import ValidationError
from neurlyn_engine.models.pathway import Pathway
from neurlyn_engine.models.pattern import PatternSummary

logger = logging.getLogger(__name__)


class PathwayEvaluator:
    """Evaluates the pathway table against a pattern summary."""

    def evaluate(
        self,
        pattern: PatternSummary,
        pathways: Sequence[Pathway],
        already_active: Iterable[str],
    ) -> list[Pathway]:
        """Return the pathways newly activated by ``pattern``.

        Args:
            pattern: analyzer output for the responses so far
            pathways: the pathway table in declaration order
            already_active: ids of pathways activated earlier in the session

        Returns:
            Newly activated pathways, in declaration order.
        """
        active = set(already_active)
        fired: set[str] = set()

        # Pass 1: indicator pathways depend only on the pattern
        for p in pathways:
            if p.is_combined or p.id in active:
                continue
            if self._indicator_pathway_fires(p, pattern):
                fired.add(p.id)

        # Pass 2: combined pathways, until nothing new fires
        changed = True
        while changed:
            changed = False
            for p in pathways:
                if not p.is_combined or p.id in active or p.id in fired:
                    continue
                if p.combined_of <= active | fired:
                    fired.add(p.id)
                    changed = True

        result = [p for p in pathways if p.id in fired]
        for p in result:
            logger.debug("Pathway %s fired (%s)", p.id, ", ".join(self.matched_triggers(p, pattern)))
        return result

    def matched_triggers(self, pathway: Pathway, pattern: PatternSummary) -> list[str]:
        """Indicators (or prerequisite pathway ids) that explain an activation."""
        if pathway.is_combined:
            return sorted(pathway.combined_of)
        return sorted(pathway.trigger_indicators & pattern.indicators)

    # ------------------------------------------------------------------
    # Rule checks
    # ------------------------------------------------------------------

    @staticmethod
    def _indicator_pathway_fires(p: Pathway, pattern: PatternSummary) -> bool:
        matches = len(p.trigger_indicators & pattern.indicators)
        if matches < p.indicator_threshold:
            return False
        if p.score_threshold is None:
            return True
        return pattern.trait(p.score_trait) >= p.score_threshold


def validate_pathway_table(
    pathways: Sequence[Pathway],
    indicators: frozenset[str],
    traits: frozenset[str],
) -> None:
    """Check a pathway table against the closed indicator/trait vocabularies.

    Raises:
        ValidationError: duplicate ids, unknown trigger indicators, unknown
            score traits, or ``combined_of`` references to undeclared pathways.
    """
    ids = [p.id for p in pathways]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        raise ValidationError(f"Duplicate pathway ids: {dupes}")

    known = set(ids)
    for p in pathways:
        unknown = sorted(p.trigger_indicators - indicators)
        if unknown:
            raise ValidationError(f"Pathway {p.id}: unknown indicators {unknown}")
        if p.score_trait is not None and p.score_trait not in traits:
            raise ValidationError(f"Pathway {p.id}: unknown score trait {p.score_trait!r}")
        if p.combined_of is not None:
            missing = sorted(p.combined_of - known)
            if missing:
                raise ValidationError(
                    f"Pathway {p.id}: combined_of references unknown pathways {missing}"
                )
            if p.id in p.combined_of:
                raise ValidationError(f"Pathway {p.id}: combined_of references itself")
