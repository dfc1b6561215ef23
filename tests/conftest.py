from pathlib import Path

import pytest

from neurlyn_engine.catalog import InMemoryCatalog
from neurlyn_engine.ruleset import RulesetStore

V1_DIR = Path(__file__).resolve().parent.parent / "v1"


@pytest.fixture(scope="session")
def v1_dir():
    return V1_DIR


@pytest.fixture(scope="session")
def store():
    """Load the full RulesetStore once for the entire test session."""
    s = RulesetStore(V1_DIR)
    s.load()
    return s


@pytest.fixture(scope="session")
def catalog():
    """Sample question catalog shipped in v1/questions.yaml."""
    return InMemoryCatalog.from_yaml(V1_DIR / "questions.yaml")
