"""
Tests for the text -> vector embedding cache.
"""

import json
import sqlite3

import pytest

from embedaxes.core import store as store_module
from embedaxes.core.schema import LabeledVector
from embedaxes.core.store import InMemoryKeyValueStore, SqliteKeyValueStore
from embedaxes.vector.cache import CANDIDATE_VECTORS_KEY, WORD_VECTORS_KEY, EmbeddingCache


@pytest.fixture
def cache(store):
    return EmbeddingCache(store)


def test_put_and_get(cache):
    cache.put("fast", [1.0, 2.0, 3.0])

    assert cache.get("fast") == (1.0, 2.0, 3.0)
    assert cache.get("slow") is None


def test_keys_are_case_sensitive(cache):
    cache.put("Fast", [1.0])
    assert cache.get("fast") is None


def test_put_overwrites(cache):
    cache.put("fast", [1.0, 2.0])
    cache.put("fast", [3.0, 4.0])

    assert cache.get("fast") == (3.0, 4.0)
    assert len(cache) == 1


def test_get_all_keeps_insertion_order(cache):
    cache.put("b", [2.0])
    cache.put("a", [1.0])
    cache.put("c", [3.0])

    assert cache.get_all() == [
        LabeledVector("b", (2.0,)),
        LabeledVector("a", (1.0,)),
        LabeledVector("c", (3.0,)),
    ]


def test_remove_and_contains(cache):
    cache.put("fast", [1.0])
    assert "fast" in cache

    cache.remove("fast")
    cache.remove("never-stored")

    assert "fast" not in cache
    assert len(cache) == 0


def test_clear(store, cache):
    cache.put("fast", [1.0])
    cache.clear()

    assert cache.get_all() == []
    assert store.get(CANDIDATE_VECTORS_KEY) is None


def test_persisted_layout(store, cache):
    cache.put("fast", [1.0, 2.0])
    assert json.loads(store.get(CANDIDATE_VECTORS_KEY)) == [{"text": "fast", "embedding": [1.0, 2.0]}]


def test_namespaces_are_separate(store):
    words = EmbeddingCache(store, WORD_VECTORS_KEY)
    candidates = EmbeddingCache(store, CANDIDATE_VECTORS_KEY)

    words.put("cat", [1.0])
    candidates.put("furry", [2.0])

    assert words.get("furry") is None
    assert [item.text for item in words.get_all()] == ["cat"]
    assert [item.text for item in candidates.get_all()] == ["furry"]


def test_malformed_entries_are_skipped():
    store = InMemoryKeyValueStore({
        CANDIDATE_VECTORS_KEY: json.dumps([
            {"text": "fast", "embedding": [1.0, 2.0]},
            {"text": "", "embedding": [1.0]},
            {"text": "slow"},
            {"text": "loud", "embedding": []},
            "junk",
        ])
    })
    cache = EmbeddingCache(store)

    assert cache.get_all() == [LabeledVector("fast", (1.0, 2.0))]


def test_unparseable_store_value_reads_as_empty():
    store = InMemoryKeyValueStore({CANDIDATE_VECTORS_KEY: "{not json"})
    cache = EmbeddingCache(store)

    assert len(cache) == 0
    cache.put("fast", [1.0])
    assert cache.get("fast") == (1.0,)


def test_non_list_document_reads_as_empty():
    store = InMemoryKeyValueStore({CANDIDATE_VECTORS_KEY: json.dumps({"fast": [1.0]})})
    assert EmbeddingCache(store).get_all() == []


def test_failed_read_keeps_existing_entries(tmp_path, monkeypatch):
    cache = EmbeddingCache(SqliteKeyValueStore(str(tmp_path / "cache.db")))
    for text in ("a", "b", "c", "d"):
        cache.put(text, [1.0, 2.0])

    real_get_db = store_module.get_db
    attempts = []

    def flaky_get_db(db_path):
        attempts.append(db_path)
        if len(attempts) == 1:
            raise sqlite3.OperationalError("database is locked")
        return real_get_db(db_path)

    monkeypatch.setattr(store_module, "get_db", flaky_get_db)

    with pytest.raises(sqlite3.OperationalError):
        cache.put("e", [3.0, 4.0])
    assert len(cache) == 4

    cache.put("e", [3.0, 4.0])
    assert [item.text for item in cache.get_all()] == ["a", "b", "c", "d", "e"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
