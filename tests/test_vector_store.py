"""Tests for the in-memory vector store."""

import logging
import math

import pytest

from monoindex.models import EmbeddedEntry
from monoindex.vector_store import InMemoryVectorStore, cosine_similarity


def _entry(entry_id: str, embedding, kind: str = "function") -> EmbeddedEntry:
    return EmbeddedEntry(
        id=entry_id,
        embedding=list(embedding),
        display_name=entry_id.upper(),
        kind=kind,
        file_path=f"/ws/{entry_id}.py",
        relative_file_path=f"{entry_id}.py",
    )


class TestCosineSimilarity:
    """Similarity edge cases."""

    def test_self_similarity_is_one(self):
        assert math.isclose(cosine_similarity([3.0, 4.0], [3.0, 4.0]), 1.0)

    def test_symmetric(self):
        a, b = [1.0, 2.0, 3.0], [-2.0, 0.5, 1.0]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_orthogonal_and_opposite(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0
        assert math.isclose(cosine_similarity([1.0, 0.0], [-1.0, 0.0]), -1.0)

    @pytest.mark.parametrize(
        "a, b",
        [([], []), ([1.0], []), ([1.0, 2.0], [1.0]), ([0.0, 0.0], [1.0, 1.0])],
    )
    def test_degenerate_inputs_score_zero(self, a, b):
        assert cosine_similarity(a, b) == 0.0


class TestInMemoryVectorStore:
    """Store behaviour."""

    def test_threshold_and_exclusion_scenario(self):
        store = InMemoryVectorStore()
        store.add_entries([_entry("a", [1, 0]), _entry("b", [1, 0]), _entry("c", [0, 1])])

        results = store.find_related([1.0, 0.0], min_score=0.5, max_results=10, exclude_id="a")

        assert [r.id for r in results] == ["b"]
        assert math.isclose(results[0].relationship_score, 1.0)
        assert results[0].name == "B"
        assert results[0].relative_file_path == "b.py"

    def test_results_sorted_and_truncated(self):
        store = InMemoryVectorStore()
        store.add_entries([
            _entry("far", [0.1, 1.0]),
            _entry("near", [1.0, 0.1]),
            _entry("mid", [1.0, 1.0]),
            _entry("twin", [1.0, 0.1]),
        ])
        results = store.find_related([1.0, 0.0], min_score=-1.0, max_results=3)
        assert [r.id for r in results] == ["near", "twin", "mid"]
        scores = [r.relationship_score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_non_positive_max_results_means_unlimited(self):
        store = InMemoryVectorStore()
        store.add_entries([_entry(str(i), [1.0, float(i)]) for i in range(20)])
        assert len(store.find_related([1.0, 1.0], min_score=-1.0, max_results=0)) == 20
        assert len(store.find_related([1.0, 1.0], min_score=-1.0, max_results=-5)) == 20

    def test_empty_embeddings_are_skipped(self):
        store = InMemoryVectorStore()
        store.add_entries([_entry("empty", []), _entry("full", [1.0])])
        assert [r.id for r in store.find_related([1.0], min_score=-1.0)] == ["full"]

    def test_add_nothing_is_a_noop(self):
        store = InMemoryVectorStore()
        store.add_entries([])
        assert store.count() == 0
        assert len(store) == 0

    def test_dimension_mismatch_is_kept_with_warning(self, caplog):
        store = InMemoryVectorStore()
        with caplog.at_level(logging.WARNING, logger="monoindex.vector_store"):
            store.add_entries([_entry("two", [1.0, 0.0]), _entry("three", [1.0, 0.0, 0.0])])
        assert store.count() == 2
        assert store.dimension == 2
        assert any("three" in r.getMessage() for r in caplog.records)
        assert [r.id for r in store.find_related([1.0, 0.0], min_score=0.5)] == ["two"]

    def test_append_only_and_get(self):
        store = InMemoryVectorStore()
        store.add_entries([_entry("a", [1.0])])
        store.add_entries([_entry("b", [1.0])])
        assert store.count() == 2
        assert store.get("b").display_name == "B"
        assert store.get("zzz") is None

    def test_exclude_id_never_returned(self):
        store = InMemoryVectorStore()
        store.add_entries([_entry(name, [1.0, 1.0]) for name in "abcde"])
        for name in "abcde":
            ids = [r.id for r in store.find_related([1.0, 1.0], min_score=0.0, exclude_id=name)]
            assert name not in ids
            assert len(ids) == 4
