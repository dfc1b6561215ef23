"""PathwayEvaluator unit tests — firing rules, combined pathways, table validation.

Pathway shapes:
    indicator pathways — fire on >= indicator_threshold trigger matches
                         (and an optional score threshold on one trait)
    combined pathways  — fire when every prerequisite is active or fired
                         in the same call, regardless of declaration order
"""

import pytest

from neurlyn_engine.analyzer import analyze
from neurlyn_engine.errors import ValidationError
from neurlyn_engine.evaluator import PathwayEvaluator, validate_pathway_table
from neurlyn_engine.models import Pathway, PatternSummary

from helpers.factories import make_pathway, make_response


@pytest.fixture
def evaluator():
    """Fresh PathwayEvaluator for each test."""
    return PathwayEvaluator()


def _pattern(indicators=(), **trait_sums):
    return PatternSummary(indicators=frozenset(indicators), trait_sums=trait_sums)


def _ids(pathways):
    return [p.id for p in pathways]


# =====================================================================
# Indicator pathways
# =====================================================================


class TestIndicatorPathways:
    def test_below_threshold_does_not_fire(self, evaluator):
        p = make_pathway("p", {"a", "b", "c"}, threshold=2)
        assert evaluator.evaluate(_pattern({"a"}), [p], set()) == []

    def test_threshold_reached_fires(self, evaluator):
        p = make_pathway("p", {"a", "b", "c"}, threshold=2)
        assert _ids(evaluator.evaluate(_pattern({"a", "c"}), [p], set())) == ["p"]

    def test_score_threshold_gates_firing(self, evaluator):
        """With a score threshold, the trait sum must also reach it (>=)."""
        p = make_pathway("p", {"a"}, score_threshold=3.5, score_trait="adhd")
        assert evaluator.evaluate(_pattern({"a"}, adhd=3.0), [p], set()) == []
        assert _ids(evaluator.evaluate(_pattern({"a"}, adhd=3.5), [p], set())) == ["p"]

    def test_already_active_is_skipped(self, evaluator):
        """A pathway fires at most once per session."""
        p = make_pathway("p", {"a"})
        assert evaluator.evaluate(_pattern({"a"}), [p], {"p"}) == []

    def test_result_follows_declaration_order(self, evaluator):
        """Two pathways firing together come back in table order."""
        strong = make_pathway("strong", {"a", "b", "c"}, threshold=1)
        weak = make_pathway("weak", {"a"}, threshold=1)
        table = [weak, strong]
        assert _ids(evaluator.evaluate(_pattern({"a", "b", "c"}), table, set())) == ["weak", "strong"]

    def test_fires_after_second_matching_response(self, evaluator, store):
        """ADHD pathway (threshold 2) fires on the second matching answer, not the first."""
        responses = [
            make_response("q1", 4, traits={"adhd": 1.0}, markers=["time_blindness"]),
            make_response("q2", 5, traits={"adhd": 1.0}, markers=["attention_difficulty"]),
            make_response("q3", 4, traits={"adhd": 1.0}, markers=["impulsivity"]),
        ]
        active: list[str] = []
        fired_at = {}
        for n in range(1, len(responses) + 1):
            pattern = analyze(responses[:n], trait_vocabulary=store.traits)
            for p in evaluator.evaluate(pattern, store.pathways, active):
                active.append(p.id)
                fired_at[p.id] = n
        assert fired_at == {"adhd_pathway": 2}


# =====================================================================
# Combined pathways
# =====================================================================


class TestCombinedPathways:
    def test_prerequisites_in_same_call(self, evaluator):
        """Combined pathway declared first still sees prerequisites fired later in the table."""
        combo = Pathway(id="combo", combined_of={"p1", "p2"})
        p1 = make_pathway("p1", {"a"})
        p2 = make_pathway("p2", {"b"})
        fired = evaluator.evaluate(_pattern({"a", "b"}), [combo, p1, p2], set())
        assert _ids(fired) == ["combo", "p1", "p2"]

    def test_prerequisite_already_active(self, evaluator):
        combo = Pathway(id="combo", combined_of={"p1", "p2"})
        p1 = make_pathway("p1", {"a"})
        p2 = make_pathway("p2", {"b"})
        fired = evaluator.evaluate(_pattern({"b"}), [combo, p1, p2], {"p1"})
        assert _ids(fired) == ["combo", "p2"]

    def test_missing_prerequisite(self, evaluator):
        combo = Pathway(id="combo", combined_of={"p1", "p2"})
        p1 = make_pathway("p1", {"a"})
        p2 = make_pathway("p2", {"b"})
        assert _ids(evaluator.evaluate(_pattern({"a"}), [combo, p1, p2], set())) == ["p1"]

    def test_combined_of_combined_reaches_fixed_point(self, evaluator):
        """A combined pathway depending on another combined pathway fires in one call."""
        outer = Pathway(id="outer", combined_of={"inner"})
        inner = Pathway(id="inner", combined_of={"p1"})
        p1 = make_pathway("p1", {"a"})
        fired = evaluator.evaluate(_pattern({"a"}), [outer, inner, p1], set())
        assert _ids(fired) == ["outer", "inner", "p1"]

    def test_audhd_fires_with_both_prerequisites(self, evaluator, store):
        pattern = _pattern(
            {"attention_difficulty", "impulsivity", "social_difficulty", "routine_need"},
            adhd=8.0,
            autism=8.0,
        )
        fired = evaluator.evaluate(pattern, store.pathways, set())
        assert _ids(fired) == ["adhd_pathway", "autism_pathway", "audhd_pathway"]


class TestMatchedTriggers:
    def test_sorted_intersection(self, evaluator):
        p = make_pathway("p", {"c", "a", "b"})
        assert evaluator.matched_triggers(p, _pattern({"c", "a", "z"})) == ["a", "c"]

    def test_combined_reports_prerequisites(self, evaluator):
        combo = Pathway(id="combo", combined_of={"y", "x"})
        assert evaluator.matched_triggers(combo, _pattern()) == ["x", "y"]


# =====================================================================
# Table validation
# =====================================================================


class TestValidatePathwayTable:
    INDICATORS = frozenset({"a", "b"})
    TRAITS = frozenset({"adhd"})

    def test_valid_table(self):
        table = [
            make_pathway("p1", {"a"}, score_threshold=1.0, score_trait="adhd"),
            Pathway(id="combo", combined_of={"p1"}),
        ]
        validate_pathway_table(table, self.INDICATORS, self.TRAITS)

    def test_unknown_indicator(self):
        with pytest.raises(ValidationError, match="unknown indicators"):
            validate_pathway_table([make_pathway("p1", {"zzz"})], self.INDICATORS, self.TRAITS)

    def test_unknown_score_trait(self):
        p = make_pathway("p1", {"a"}, score_threshold=1.0, score_trait="nope")
        with pytest.raises(ValidationError, match="unknown score trait"):
            validate_pathway_table([p], self.INDICATORS, self.TRAITS)

    def test_duplicate_ids(self):
        table = [make_pathway("p1", {"a"}), make_pathway("p1", {"b"})]
        with pytest.raises(ValidationError, match="Duplicate"):
            validate_pathway_table(table, self.INDICATORS, self.TRAITS)

    def test_combined_of_unknown_pathway(self):
        with pytest.raises(ValidationError, match="unknown pathways"):
            validate_pathway_table(
                [Pathway(id="combo", combined_of={"ghost"})], self.INDICATORS, self.TRAITS
            )
