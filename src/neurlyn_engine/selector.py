"""AdaptiveSelector — ranks unused catalog questions and returns the next batch.

Selection for one call:

  1. build a ``CatalogFilter`` from the session: asked ids are excluded,
     the session tier restricts question tiers, and the current phase plus
     the active pathways add narrowing filters
  2. query the catalog; if fewer than ``batch_size`` candidates match,
     drop the narrowing filters once and query again
  3. score every candidate with :meth:`AdaptiveSelector.priority`
  4. stable sort by descending priority (catalog order breaks ties) and
     take the first ``batch_size``

Ranking has no randomness: the same (state, pattern, pathways, catalog)
always yields the same ordered batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from neurlyn_engine.config import EngineSettings
from neurlyn_engine.constants import (
    CORE_PHASE_IMPORTANCE,
    REFINEMENT_RESPONSE_TYPES,
    TIER_QUESTION_TIERS,
)
from neurlyn_engine.errors import ExhaustedCatalog
from neurlyn_engine.interfaces import QuestionCatalog
from neurlyn_engine.models.pathway import Pathway
from neurlyn_engine.models.pattern import PatternSummary
from neurlyn_engine.models.question import CatalogFilter, Question
from neurlyn_engine.models.session import SessionState
from neurlyn_engine.planner import phase_for
from neurlyn_engine.ruleset import RulesetStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Result of one ``select_next`` call."""

    questions: list[Question] = field(default_factory=list)
    # True when the narrowing filters had to be dropped
    broadened: bool = False
    # True when fewer than the requested number of questions were available
    exhausted: bool = False


class AdaptiveSelector:
    """Priority-based next-batch selection over a question catalog."""

    def __init__(
        self,
        catalog: QuestionCatalog,
        store: RulesetStore,
        settings: EngineSettings | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._settings = settings or EngineSettings()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def select_next(
        self,
        state: SessionState,
        pattern: PatternSummary,
        fired: Sequence[Pathway] = (),
        batch_size: int | None = None,
    ) -> Selection:
        """Return the next batch of questions for ``state``.

        Args:
            state: current session state (asked ids, tier, active pathways)
            pattern: analyzer output over ``state.responses``
            fired: pathways activated by the current call, not yet recorded
                in ``state.active_pathways``
            batch_size: questions wanted (defaults to the configured size)

        Raises:
            ExhaustedCatalog: no unused candidate remains after broadening.
        """
        if batch_size is None:
            batch_size = self._settings.batch_size
        if batch_size <= 0:
            return Selection()

        pathways = self._combined_pathways(state, fired)
        query = self.build_filter(state, pathways)
        candidates = self._catalog.find(query)
        broadened = False

        if len(candidates) < batch_size:
            wide = query.broadened()
            logger.warning(
                "Session %s: only %d candidates for batch of %d; broadening query",
                state.session_id,
                len(candidates),
                batch_size,
            )
            candidates = self._catalog.find(wide)
            broadened = True

        # The catalog already excludes asked ids; guard against accessors that don't
        asked = set(state.asked_question_ids)
        candidates = [q for q in candidates if q.id not in asked]

        if not candidates:
            logger.warning("Session %s: question catalog exhausted", state.session_id)
            raise ExhaustedCatalog(batch_size)

        ranked = self.rank(candidates, pattern, pathways)
        batch = ranked[:batch_size]
        exhausted = len(batch) < batch_size
        if exhausted:
            logger.warning(
                "Session %s: partial batch of %d (requested %d)",
                state.session_id,
                len(batch),
                batch_size,
            )
        logger.debug(
            "Session %s: selected %s", state.session_id, [q.id for q in batch]
        )
        return Selection(questions=batch, broadened=broadened, exhausted=exhausted)

    def build_filter(self, state: SessionState, pathways: Iterable[Pathway]) -> CatalogFilter:
        """Catalog query for the session's tier, phase and active pathways."""
        phase = phase_for(state)
        added: set[str] = set()
        for p in pathways:
            added |= p.added_subcategories

        return CatalogFilter(
            excluded_ids=frozenset(state.asked_question_ids),
            tier_in=TIER_QUESTION_TIERS[state.tier],
            subcategory_in=frozenset(added) if added else None,
            importance_in=CORE_PHASE_IMPORTANCE if phase == "core" else None,
            response_type_in=REFINEMENT_RESPONSE_TYPES if phase == "refinement" else None,
        )

    def rank(
        self,
        candidates: Sequence[Question],
        pattern: PatternSummary,
        pathways: Sequence[Pathway],
    ) -> list[Question]:
        """Stable sort by descending priority; input order breaks ties."""
        scored = [(self.priority(q, pattern, pathways), q) for q in candidates]
        # sorted() is stable, so equal priorities keep catalog order
        scored = sorted(scored, key=lambda pair: -pair[0])
        return [q for _, q in scored]

    def priority(
        self,
        question: Question,
        pattern: PatternSummary,
        pathways: Sequence[Pathway],
    ) -> float:
        """Priority of one candidate under the current pattern and pathways."""
        w = self._settings.weights
        score = question.base_priority

        boost_subcats: set[str] = set()
        added_subcats: set[str] = set()
        for p in pathways:
            boost_subcats |= p.priority_boost_subcategories
            added_subcats |= p.added_subcategories

        if question.subcategory is not None:
            if question.subcategory in boost_subcats:
                score += w.priority_boost
            if question.subcategory in added_subcats:
                score += w.added_boost

        for trait in question.trait_weights:
            total = pattern.trait(trait)
            if total > w.trait_threshold:
                score += w.trait_multiplier * total

        if self.is_redundant(question, pattern):
            score -= w.redundancy_penalty

        if pattern.response_style == "extreme" and question.response_type == "forced-choice":
            score += w.forced_choice_boost
        if pattern.response_style == "central" and question.response_type == "slider":
            score += w.slider_boost

        return score

    def is_redundant(self, question: Question, pattern: PatternSummary) -> bool:
        """Primary trait already saturated, or the category cap is reached."""
        w = self._settings.weights
        primary = question.primary_trait
        if primary is not None and pattern.trait(primary) > w.redundancy_trait_threshold:
            return True
        answered = pattern.category_counts.get(question.category, 0)
        return answered >= w.cap_for(question.category)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _combined_pathways(
        self, state: SessionState, fired: Sequence[Pathway]
    ) -> list[Pathway]:
        """Active pathways plus those fired this call, without duplicates."""
        result = self._store.pathways_for(state.active_pathways)
        seen = {p.id for p in result}
        for p in fired:
            if p.id not in seen:
                result.append(p)
                seen.add(p.id)
        return result
