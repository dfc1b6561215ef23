"""RulesetStore loading and lookup smoke tests.

Validates that RulesetStore loads all YAML rulesets from v1/ correctly,
that lookup methods return expected results, and that malformed tables
are rejected at load time.

Expected counts (from v1/):
    18 traits, 24 indicators, 6 pathways, 9 explicit norms
"""

import shutil

import pytest
import yaml

from neurlyn_engine.errors import ValidationError
from neurlyn_engine.ruleset import RulesetStore, find_repo_root


# =====================================================================
# Loading tests: verify all reference data loads with correct counts
# =====================================================================


def test_store_loads_vocabularies(store):
    """18 traits and 24 indicators load from vocabulary.yaml."""
    assert len(store.traits) == 18, f"Expected 18 traits, got {len(store.traits)}"
    assert len(store.indicators) == 24, (
        f"Expected 24 indicators, got {len(store.indicators)}"
    )
    assert {"openness", "adhd", "autism"} <= store.traits


def test_store_loads_pathways_in_declaration_order(store):
    """Pathways keep the order they are declared in."""
    ids = [p.id for p in store.pathways]
    assert ids == [
        "adhd_pathway",
        "autism_pathway",
        "audhd_pathway",
        "trauma_pathway",
        "high_masking",
        "gifted_pathway",
    ]


def test_combined_pathway_has_no_triggers(store):
    audhd = store.get_pathway("audhd_pathway")
    assert audhd.combined_of == {"adhd_pathway", "autism_pathway"}
    assert not audhd.trigger_indicators


def test_store_loads_norms(store):
    """9 explicit norms plus a default."""
    assert len(store.norms) == 9, f"Expected 9 norms, got {len(store.norms)}"
    assert store.norm_for("openness").mean == 3.4
    assert store.default_norm.mean == 3.0
    assert store.default_norm.std == 0.8


def test_store_loads_profile_table(store):
    table = store.profile_table
    assert table is not None
    assert table.default_archetype.name == "Steady Architect"
    assert table.default_primary_profile == "Neurotypical with variations"
    assert [hp.type for hp in store.hidden_patterns] == [
        "twice_exceptional",
        "compensation",
        "internalized_struggle",
    ]


def test_store_loads_style_rules(store):
    table = store.profile_table
    assert [d.name for d in table.banded_dimensions] == [
        "decision_style",
        "emotional_awareness",
        "regulation_capacity",
        "stress_response",
    ]
    assert [d.name for d in table.dominant_dimensions] == ["learning_style"]
    assert [r.factor for r in table.resilience_factors] == [
        "social_support",
        "self_compassion",
        "adaptability",
    ]


# =====================================================================
# Lookup tests
# =====================================================================


def test_get_pathway_unknown_id(store):
    with pytest.raises(ValidationError, match="Unknown pathway"):
        store.get_pathway("no_such_pathway")


def test_pathways_for_uses_declaration_order(store):
    """Resolution order follows the table, not the argument order."""
    resolved = store.pathways_for(["trauma_pathway", "adhd_pathway"])
    assert [p.id for p in resolved] == ["adhd_pathway", "trauma_pathway"]


def test_pathways_for_rejects_unknown(store):
    with pytest.raises(ValidationError):
        store.pathways_for(["adhd_pathway", "ghost"])


def test_norm_falls_back_to_default(store):
    """Traits without a norms.yaml entry use the default norm."""
    assert store.norm_for("masking") == store.default_norm


def test_default_ruleset_dir_is_repo_v1():
    assert RulesetStore().base_dir == find_repo_root() / "v1"


# =====================================================================
# Invalid tables: each malformed file is rejected at load time
# =====================================================================


@pytest.fixture
def ruleset_copy(tmp_path, v1_dir):
    """Writable copy of v1/ for corrupting one file at a time."""
    target = tmp_path / "v1"
    shutil.copytree(v1_dir, target)
    return target


def _rewrite(path, mutate):
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    mutate(data)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")


def test_copy_loads_cleanly(ruleset_copy):
    store = RulesetStore(ruleset_copy).load()
    assert len(store.pathways) == 6


def test_unknown_trigger_indicator_rejected(ruleset_copy):
    def mutate(pathways):
        pathways[0]["trigger_indicators"].append("not_an_indicator")

    _rewrite(ruleset_copy / "pathways.yaml", mutate)
    with pytest.raises(ValidationError, match="unknown indicators"):
        RulesetStore(ruleset_copy).load()


def test_combined_of_unknown_pathway_rejected(ruleset_copy):
    def mutate(pathways):
        pathways[2]["combined_of"] = ["adhd_pathway", "ghost_pathway"]

    _rewrite(ruleset_copy / "pathways.yaml", mutate)
    with pytest.raises(ValidationError):
        RulesetStore(ruleset_copy).load()


def test_norm_with_zero_std_rejected(ruleset_copy):
    def mutate(norms):
        norms["traits"]["openness"]["std"] = 0

    _rewrite(ruleset_copy / "norms.yaml", mutate)
    with pytest.raises(ValidationError):
        RulesetStore(ruleset_copy).load()


def test_norm_for_unknown_trait_rejected(ruleset_copy):
    def mutate(norms):
        norms["traits"]["charisma"] = {"mean": 3.0, "std": 1.0}

    _rewrite(ruleset_copy / "norms.yaml", mutate)
    with pytest.raises(ValidationError, match="unknown trait"):
        RulesetStore(ruleset_copy).load()


def test_profile_rule_with_unknown_trait_rejected(ruleset_copy):
    def mutate(profiles):
        profiles["archetypes"][0]["when"][0]["trait"] = "charisma"

    _rewrite(ruleset_copy / "profiles.yaml", mutate)
    with pytest.raises(ValidationError, match="unknown trait"):
        RulesetStore(ruleset_copy).load()


def test_hidden_pattern_with_unknown_indicator_rejected(ruleset_copy):
    def mutate(profiles):
        profiles["hidden_patterns"][0]["any_indicators"] = ["made_up"]

    _rewrite(ruleset_copy / "profiles.yaml", mutate)
    with pytest.raises(ValidationError, match="unknown indicators"):
        RulesetStore(ruleset_copy).load()


def test_style_selector_with_unknown_trait_rejected(ruleset_copy):
    def mutate(profiles):
        profiles["banded_dimensions"][1]["select"]["traits"] = ["charisma"]

    _rewrite(ruleset_copy / "profiles.yaml", mutate)
    with pytest.raises(ValidationError, match="unknown traits"):
        RulesetStore(ruleset_copy).load()


def test_empty_style_selector_rejected(ruleset_copy):
    def mutate(profiles):
        profiles["resilience_factors"][0]["select"] = {}

    _rewrite(ruleset_copy / "profiles.yaml", mutate)
    with pytest.raises(ValidationError, match="selector needs"):
        RulesetStore(ruleset_copy).load()


def test_missing_file_raises(ruleset_copy):
    (ruleset_copy / "norms.yaml").unlink()
    with pytest.raises(FileNotFoundError):
        RulesetStore(ruleset_copy).load()
