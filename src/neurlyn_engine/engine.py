"""AssessmentEngine — the orchestrator behind the three session entry points.

Stateless engine pattern: every call receives the caller-owned
``SessionState``, updates it in place, and returns the result.  The engine
instance keeps no per-session fields, so one engine serves any number of
sessions; the caller persists the state between calls (see
:mod:`neurlyn_engine.service` for the database-backed flow).

Per call to :meth:`AssessmentEngine.advance`, the steps run strictly in
this order:

    validate answers → append responses → analyze → evaluate pathways
        → record activations → update phase → select next batch

Entry points:
    start_session(tier)          → SessionState with the initial batch pending
    advance(state, answers)      → AdvanceResult (next batch, phase, pathways)
    finalize(state)              → Report
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Sequence

from neurlyn_engine.analyzer import analyze
from neurlyn_engine.config import EngineSettings
from neurlyn_engine.errors import EmptyResponseSet, ExhaustedCatalog, ValidationError
from neurlyn_engine.evaluator import PathwayEvaluator
from neurlyn_engine.interfaces import QuestionCatalog
from neurlyn_engine.models.pathway import BranchingDecision, Pathway
from neurlyn_engine.models.question import Question
from neurlyn_engine.models.report import Report
from neurlyn_engine.models.response import LIKERT, ResponseEvent
from neurlyn_engine.models.session import AdvanceResult, SessionState
from neurlyn_engine.planner import initial_batch, phase_for, plan
from neurlyn_engine.ruleset import RulesetStore
from neurlyn_engine.scoring import ScoringEngine
from neurlyn_engine.selector import AdaptiveSelector

logger = logging.getLogger(__name__)


class AssessmentEngine:
    """Runs adaptive questionnaire sessions against a ruleset and a catalog.

    Args:
        store: a loaded :class:`RulesetStore` instance
        catalog: any :class:`QuestionCatalog` implementation
        settings: selection weights and batch size (defaults if omitted)
        rng: random source for initial personality sampling; seeded from
            ``settings.sampling_seed`` when omitted
    """

    def __init__(
        self,
        store: RulesetStore,
        catalog: QuestionCatalog,
        settings: EngineSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._settings = settings or EngineSettings()
        self._rng = rng or random.Random(self._settings.sampling_seed)
        self._evaluator = PathwayEvaluator()
        self._selector = AdaptiveSelector(catalog, store, self._settings)
        self._scoring = ScoringEngine(store)

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    def start_session(self, tier: str, *, session_id: str | None = None) -> SessionState:
        """Create a session and issue its initial batch.

        Raises:
            ValidationError: if ``tier`` is not quick, standard or deep.
        """
        budget = plan(tier, self._settings.core_allocation_ratio)
        batch = initial_batch(
            tier, self._catalog, self._rng, self._settings.core_allocation_ratio
        )
        ids = [q.id for q in batch]

        state = SessionState(
            session_id=session_id or uuid.uuid4().hex,
            tier=tier,
            total_budget=budget.total_budget,
            asked_question_ids=ids,
            pending_question_ids=list(ids),
            phase="core",
            exhausted=not batch,
        )
        if len(batch) < budget.core_budget:
            logger.warning(
                "Session %s: initial batch has %d of %d core questions",
                state.session_id,
                len(batch),
                budget.core_budget,
            )
        logger.info(
            "Session %s started: tier=%s budget=%d initial=%d",
            state.session_id,
            tier,
            budget.total_budget,
            len(batch),
        )
        return state

    def current_batch(self, state: SessionState) -> list[Question]:
        """Questions issued to the caller and not yet answered."""
        batch = []
        for qid in state.pending_question_ids:
            q = self._catalog.get(qid)
            if q is None:
                logger.warning("Session %s: pending question %s not in catalog", state.session_id, qid)
                continue
            batch.append(q)
        return batch

    def build_response(
        self,
        question_id: str,
        raw_value,
        response_time_ms: int | None = None,
    ) -> ResponseEvent:
        """Build a ``ResponseEvent`` for a catalog question from a raw answer.

        Raises:
            ValidationError: if the question is not in the catalog.
        """
        q = self._catalog.get(question_id)
        if q is None:
            raise ValidationError(f"Unknown question id: {question_id!r}")
        return ResponseEvent.from_question(q, raw_value, response_time_ms)

    # ==================================================================
    # Advance
    # ==================================================================

    def advance(
        self, state: SessionState, answered_batch: Sequence[ResponseEvent]
    ) -> AdvanceResult:
        """Record a batch of answers and choose the next questions.

        Raises:
            ValidationError: the session is completed, a question is answered
                twice, or the answers would exceed the session budget.
        """
        answers = [self._with_question_metadata(r) for r in answered_batch]
        self._validate_answers(state, answers)

        # --- Record responses (append-only) ---
        asked = set(state.asked_question_ids)
        for r in answers:
            if r.question_id not in asked:
                logger.warning(
                    "Session %s: answer for %s which was never issued",
                    state.session_id,
                    r.question_id,
                )
                state.asked_question_ids.append(r.question_id)
                asked.add(r.question_id)
            state.responses.append(r)
        answered = {r.question_id for r in answers}
        state.pending_question_ids = [
            qid for qid in state.pending_question_ids if qid not in answered
        ]

        # --- Analyze → evaluate ---
        pattern = analyze(state.responses, trait_vocabulary=self._store.traits)
        fired = self._evaluator.evaluate(pattern, self._store.pathways, state.active_pathways)
        self._record_activations(state, fired, pattern)
        state.phase = phase_for(state)

        # --- Select ---
        next_batch: list[Question] = []
        broadened = False
        wanted = min(self._settings.batch_size, state.remaining)
        if wanted > 0 and not state.is_complete:
            try:
                selection = self._selector.select_next(state, pattern, fired, wanted)
                next_batch = selection.questions
                broadened = selection.broadened
                state.exhausted = selection.exhausted
            except ExhaustedCatalog:
                state.exhausted = True

        for q in next_batch:
            state.asked_question_ids.append(q.id)
            state.pending_question_ids.append(q.id)

        is_complete = state.is_complete or not state.pending_question_ids
        return AdvanceResult(
            next_batch=next_batch,
            phase=state.phase,
            activated_pathways=[p.id for p in fired],
            active_pathways=list(state.active_pathways),
            percent_complete=state.percent_complete,
            is_complete=is_complete,
            exhausted=state.exhausted,
            broadened=broadened,
        )

    # ==================================================================
    # Finalize
    # ==================================================================

    def finalize(self, state: SessionState) -> Report:
        """Mark the session completed and score it.

        Raises:
            EmptyResponseSet: if the session has no responses.
        """
        if not state.responses:
            raise EmptyResponseSet(f"Session {state.session_id} has no responses")
        state.completed = True
        report = self._scoring.score(
            state.responses,
            active_pathways=state.active_pathways,
            expected_total=state.total_budget,
        )
        logger.info(
            "Session %s finalized: %d responses, %d pathways, confidence=%.2f",
            state.session_id,
            report.response_count,
            len(report.pathways),
            report.confidence,
        )
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _with_question_metadata(self, response: ResponseEvent) -> ResponseEvent:
        """Fill category, traits and markers from the catalog when the caller omitted them.

        A bare response carries the respondent's raw score, so reverse
        scoring is applied here exactly as :meth:`build_response` would.
        """
        if response.category or response.trait_weights:
            return response
        q = self._catalog.get(response.question_id)
        if q is None:
            return response
        score = response.score
        if q.reverse_scored and not response.coerced:
            score = LIKERT.reverse(score)
        return response.model_copy(
            update={
                "score": score,
                "category": q.category,
                "subcategory": q.subcategory,
                "trait_weights": dict(q.trait_weights),
                "personalization_markers": list(q.personalization_markers),
            }
        )

    @staticmethod
    def _validate_answers(state: SessionState, answers: Sequence[ResponseEvent]) -> None:
        if state.completed:
            raise ValidationError(f"Session {state.session_id} is already completed")

        seen = state.answered_ids
        for r in answers:
            if r.question_id in seen:
                raise ValidationError(
                    f"Session {state.session_id}: question {r.question_id} answered twice"
                )
            seen.add(r.question_id)

        if len(state.responses) + len(answers) > state.total_budget:
            raise ValidationError(
                f"Session {state.session_id}: {len(answers)} answers would exceed "
                f"the budget of {state.total_budget} "
                f"({len(state.responses)} already answered)"
            )

    def _record_activations(self, state: SessionState, fired: Sequence[Pathway], pattern) -> None:
        for p in fired:
            state.active_pathways.append(p.id)
            triggers = self._evaluator.matched_triggers(p, pattern)
            state.branching_log.append(
                BranchingDecision(
                    pathway_id=p.id,
                    fired_at_index=len(state.responses),
                    triggers=triggers,
                )
            )
            logger.info(
                "Session %s: pathway %s activated at response %d (%s)",
                state.session_id,
                p.id,
                len(state.responses),
                ", ".join(triggers),
            )
