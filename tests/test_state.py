"""
Tests for persisted label workflow state.
"""

import json

import pytest

from embedaxes.agents.state import (
    ADDITIONAL_LABELS_KEY,
    CANDIDATES_KEY,
    DIMENSION_INFO_KEY,
    LABELS_KEY,
    LabelStateRepository,
)
from embedaxes.core.schema import AdditionalLabels, AxisLabelResult, AxisLabels


@pytest.fixture
def repo(store):
    return LabelStateRepository(store)


@pytest.fixture
def result():
    return AxisLabelResult(
        labels=AxisLabels(x="fast", y="loud", z="furry", neg_x="slow", neg_y="quiet", neg_z="bald"),
        additional=AdditionalLabels(x=["quick"], neg_x=["sluggish"]),
        dimension_indices=(0, 2, 1),
        source="selector",
    )


def test_candidates_round_trip(repo):
    repo.save_candidates(["fast", "slow"])
    assert repo.load_candidates() == ["fast", "slow"]


def test_missing_candidates(repo):
    assert repo.load_candidates() == []


def test_malformed_candidates(store, repo):
    store.set(CANDIDATES_KEY, json.dumps(["fast", 3, "", None, "slow"]))
    assert repo.load_candidates() == ["fast", "slow"]

    store.set(CANDIDATES_KEY, "not json")
    assert repo.load_candidates() == []


def test_labels_round_trip(repo, result):
    repo.save_labels(result, {"algorithm": "Variance-ranked axes"})
    loaded = repo.load_labels()

    assert loaded == result


def test_labels_use_display_keys(store, repo, result):
    repo.save_labels(result, {"algorithm": "Variance-ranked axes"})

    labels = json.loads(store.get(LABELS_KEY))
    assert labels == {"x": "fast", "y": "loud", "z": "furry", "negX": "slow", "negY": "quiet", "negZ": "bald"}
    assert json.loads(store.get(ADDITIONAL_LABELS_KEY))["negX"] == ["sluggish"]

    info = json.loads(store.get(DIMENSION_INFO_KEY))
    assert info == {"algorithm": "Variance-ranked axes", "x": 0, "y": 2, "z": 1, "source": "selector"}


def test_labels_without_dimension_indices(repo):
    positional = AxisLabelResult(labels=AxisLabels(x="a", y="b", z="c"), source="positional")
    repo.save_labels(positional)

    loaded = repo.load_labels()
    assert loaded.dimension_indices is None
    assert loaded.source == "positional"
    assert loaded.labels.x == "a"


def test_missing_labels(repo):
    assert repo.load_labels() is None


def test_malformed_labels(store, repo):
    store.set(LABELS_KEY, json.dumps({"x": ["not", "a", "string"]}))
    assert repo.load_labels() is None


def test_clear(store, repo, result):
    repo.save_candidates(["fast"])
    repo.save_labels(result)

    repo.clear()

    assert store.keys() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
