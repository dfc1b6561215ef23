"""Question catalog tests — sample catalog integrity, filtering, snapshot refresh."""

import pytest
import yaml

from neurlyn_engine.catalog import InMemoryCatalog
from neurlyn_engine.errors import ValidationError
from neurlyn_engine.models import CatalogFilter

from helpers.factories import make_question


# =====================================================================
# Sample catalog integrity: v1/questions.yaml against the vocabularies
# =====================================================================


def test_sample_catalog_file_parses(v1_dir):
    """questions.yaml is valid YAML and every text survives verbatim."""
    path = v1_dir / "questions.yaml"
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert len(raw) == 61
    texts = {entry["id"]: entry["text"] for entry in raw}
    assert texts["RF_SL1"] == "How much energy do social events cost you?"
    assert texts["BF_A2"] == "I trust people's intentions."
    assert texts["GF_1"] == 'I was told I was "too much" as a child.'

    loaded = InMemoryCatalog.from_yaml(path)
    assert loaded.get("RF_SL3").response_type == "slider"


def test_sample_catalog_loads(catalog):
    """All 61 sample questions load with unique ids."""
    assert len(catalog) == 61, f"Expected 61 questions, got {len(catalog)}"


def test_sample_catalog_traits_in_vocabulary(catalog, store):
    """Every trait_weights key is a declared trait."""
    for q in catalog:
        unknown = set(q.trait_weights) - store.traits
        assert not unknown, f"{q.id} uses unknown traits {sorted(unknown)}"


def test_sample_catalog_markers_in_vocabulary(catalog, store):
    """Every personalization marker is a declared indicator."""
    for q in catalog:
        unknown = set(q.personalization_markers) - store.indicators
        assert not unknown, f"{q.id} uses unknown markers {sorted(unknown)}"


def test_every_pathway_trigger_is_reachable(catalog, store):
    """Each indicator pathway has at least one question carrying its triggers."""
    markers = {m for q in catalog for m in q.personalization_markers}
    for p in store.pathways:
        if p.is_combined:
            continue
        assert p.trigger_indicators & markers, f"{p.id} can never fire on the sample catalog"


def test_refinement_formats_present(catalog):
    types = {q.response_type for q in catalog}
    assert {"forced-choice", "slider"} <= types


# =====================================================================
# find / get
# =====================================================================


class TestFind:
    @pytest.fixture
    def small(self):
        return InMemoryCatalog(
            [
                make_question("a", tier="core"),
                make_question("b", category="neurodiversity", subcategory="masking", tier="screening"),
                make_question("c", category="neurodiversity", subcategory="sensory", importance="low"),
                make_question("d", response_type="slider", tier="deep"),
            ]
        )

    def test_category(self, small):
        found = small.find(CatalogFilter(category="neurodiversity"))
        assert [q.id for q in found] == ["b", "c"]

    def test_subcategory_in(self, small):
        found = small.find(CatalogFilter(subcategory_in=frozenset({"masking"})))
        assert [q.id for q in found] == ["b"]

    def test_filters_are_anded(self, small):
        query = CatalogFilter(category="neurodiversity", importance_in=frozenset({"high"}))
        assert [q.id for q in small.find(query)] == ["b"]

    def test_excluded_ids(self, small):
        found = small.find(CatalogFilter(excluded_ids=frozenset({"a", "c"})))
        assert [q.id for q in found] == ["b", "d"]

    def test_limit(self, small):
        assert [q.id for q in small.find(CatalogFilter(limit=2))] == ["a", "b"]

    def test_tier_and_response_type(self, small):
        assert [q.id for q in small.find(CatalogFilter(tier_in=frozenset({"deep"})))] == ["d"]
        query = CatalogFilter(response_type_in=frozenset({"slider"}))
        assert [q.id for q in small.find(query)] == ["d"]

    def test_broadened_drops_narrowing_filters_only(self):
        query = CatalogFilter(
            subcategory_in=frozenset({"x"}),
            importance_in=frozenset({"core"}),
            response_type_in=frozenset({"slider"}),
            tier_in=frozenset({"core"}),
            excluded_ids=frozenset({"a"}),
        )
        wide = query.broadened()
        assert wide.subcategory_in is None
        assert wide.importance_in is None
        assert wide.response_type_in is None
        assert wide.tier_in == frozenset({"core"})
        assert wide.excluded_ids == frozenset({"a"})

    def test_get(self, small):
        assert small.get("c").subcategory == "sensory"
        assert small.get("zzz") is None


# =====================================================================
# Snapshot refresh
# =====================================================================


class TestRefresh:
    def test_duplicate_id_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate question id"):
            InMemoryCatalog([make_question("a"), make_question("a")])

    def test_refresh_swaps_pool(self):
        cat = InMemoryCatalog([make_question("a")])
        cat.refresh([make_question("b"), make_question("c")])
        assert [q.id for q in cat] == ["b", "c"]
        assert cat.get("a") is None

    def test_failed_refresh_keeps_old_pool(self):
        cat = InMemoryCatalog([make_question("a")])
        with pytest.raises(ValidationError):
            cat.refresh([make_question("b"), make_question("b")])
        assert [q.id for q in cat] == ["a"]

    def test_invalid_yaml_entry(self, tmp_path):
        path = tmp_path / "questions.yaml"
        path.write_text("- {id: q1, category: personality, tier: platinum}\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="q1"):
            InMemoryCatalog.from_yaml(path)
