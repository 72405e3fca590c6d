"""Tests for the similarity search engine."""

import numpy as np
import pytest

from conftest import QUERY, FakeEmbedder, unit_vector
from docrecall.embedders import EmbeddingClient
from docrecall.errors import EmbeddingProviderError, ValidationError
from docrecall.models import SearchResult
from docrecall.search import SearchEngine


def scores(results):
    return [round(r.similarity_score, 3) for r in results]


class TestThresholdAfterLimit:
    def test_limit_two_keeps_top_two(self, engine, seed_scores):
        seed_scores("d1", [0.9, 0.85, 0.3, 0.2])

        results = engine.search(QUERY, "alice", limit=2, similarity_threshold=0.5)

        assert scores(results) == [0.9, 0.85]

    def test_threshold_prunes_within_limited_set(self, engine, seed_scores):
        seed_scores("d1", [0.9, 0.85, 0.6, 0.4, 0.3])

        results = engine.search(QUERY, "alice", limit=4, similarity_threshold=0.5)

        assert scores(results) == [0.9, 0.85, 0.6]

    def test_fewer_than_limit_even_if_more_clear_threshold_elsewhere(
        self, engine, seed_scores
    ):
        seed_scores("d1", [0.95, 0.3, 0.25])
        seed_scores("d2", [0.9, 0.8, 0.7], owner_id="bob")

        results = engine.search(QUERY, "alice", limit=2, similarity_threshold=0.5)

        assert scores(results) == [0.95]

    def test_never_more_than_limit(self, engine, seed_scores):
        seed_scores("d1", [0.6 + i * 0.015 for i in range(20)])

        results = engine.search(QUERY, "alice", limit=10, similarity_threshold=0.5)

        assert len(results) == 10
        assert scores(results) == sorted(scores(results), reverse=True)

    def test_threshold_is_strict(self, engine, seed_scores):
        seed_scores("d1", [1.0, 0.0])

        results = engine.search(QUERY, "alice", limit=10, similarity_threshold=0.0)

        assert scores(results) == [1.0]

    def test_negative_similarity_reported(self, engine, seed_scores):
        seed_scores("d1", [-0.8])

        [result] = engine.search(QUERY, "alice", limit=1, similarity_threshold=-1.0)

        assert result.similarity_score == pytest.approx(-0.8, abs=1e-5)


class TestOwnerIsolation:
    def test_foreign_perfect_match_excluded(self, engine, seed_scores):
        seed_scores("mine", [0.6])
        seed_scores("theirs", [1.0], owner_id="bob")

        results = engine.search(QUERY, "alice", limit=10, similarity_threshold=0.0)

        assert [r.document_id for r in results] == ["mine"]

    def test_owner_with_no_documents_gets_empty_list(self, engine, seed_scores):
        seed_scores("theirs", [1.0], owner_id="bob")

        assert engine.search(QUERY, "alice") == []


class TestResults:
    def test_results_carry_provenance(self, engine, store, add_document):
        add_document("d1", title="Travel policy")
        chunk_id = store.create_chunk("d1", "Book trains early.", unit_vector(0.9), 0)

        [result] = engine.search(QUERY, "alice")

        assert result == SearchResult(
            chunk_id=chunk_id,
            content="Book trains early.",
            document_id="d1",
            document_title="Travel policy",
            similarity_score=result.similarity_score,
        )
        assert result.similarity_score == pytest.approx(0.9, abs=1e-5)

    def test_rejects_non_positive_limit(self, engine):
        with pytest.raises(ValidationError):
            engine.search(QUERY, "alice", limit=0)

    @pytest.mark.parametrize(
        "query",
        [
            np.ones(5, dtype=np.float32),
            QUERY.reshape(1, -1),
            np.float32(1.0),
            np.where(QUERY == 1.0, np.nan, QUERY),
        ],
        ids=["wrong-length", "row-matrix", "scalar", "nan"],
    )
    def test_malformed_query_rejected(self, engine, seed_scores, query):
        seed_scores("d1", [0.9])

        with pytest.raises(ValidationError):
            engine.search(query, "alice", similarity_threshold=-1.0)

    def test_provider_and_store_dimensions_must_agree(self, engine, store, seed_scores):
        seed_scores("d1", [0.9])
        store.set_metadata("embedding_dimension", "384")

        with pytest.raises(ValidationError):
            engine.search(QUERY, "alice")

    def test_deleted_document_chunks_disappear(self, engine, store, seed_scores):
        seed_scores("d1", [0.9, 0.8])
        seed_scores("d2", [0.7])

        store.delete_chunks_for_document("d1")

        results = engine.search(QUERY, "alice", limit=10, similarity_threshold=0.0)
        assert {r.document_id for r in results} == {"d2"}


class TestSearchResultFromRow:
    ROW = {
        "chunk_id": "c1",
        "content": "text",
        "document_id": "d1",
        "document_title": "Title",
        "similarity_score": 0.7,
    }

    def test_builds_from_complete_row(self):
        assert SearchResult.from_row(self.ROW).similarity_score == 0.7

    @pytest.mark.parametrize("field", ["chunk_id", "document_title", "similarity_score"])
    def test_missing_field_rejected(self, field):
        row = {k: v for k, v in self.ROW.items() if k != field}

        with pytest.raises(ValidationError):
            SearchResult.from_row(row)

    def test_non_numeric_score_rejected(self):
        with pytest.raises(ValidationError):
            SearchResult.from_row({**self.ROW, "similarity_score": "high"})


class TestSemanticSearch:
    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    def test_blank_query_short_circuits(self, store, query):
        embedder = FakeEmbedder()
        engine = SearchEngine(store, EmbeddingClient(embedder))

        assert engine.semantic_search(query, "alice") == []
        assert embedder.calls == []

    def test_query_is_stripped_before_embedding(self, store):
        embedder = FakeEmbedder()
        engine = SearchEngine(store, EmbeddingClient(embedder))

        engine.semantic_search("  travel policy  ", "alice")

        assert embedder.calls == ["travel policy"]

    def test_finds_matching_document(self, lifecycle, engine):
        lifecycle.create_document("alice", "Pets", "Cats purr and dogs bark loudly.")
        lifecycle.create_document("alice", "Finance", "Quarterly revenue grew fast.")

        results = engine.semantic_search(
            "cats purr and dogs bark loudly.", "alice", similarity_threshold=0.5
        )

        assert results[0].document_title == "Pets"
        assert results[0].similarity_score == pytest.approx(1.0, abs=1e-5)

    def test_provider_failure_propagates(self, store):
        engine = SearchEngine(store, EmbeddingClient(FakeEmbedder(fail_on={"boom"})))

        with pytest.raises(EmbeddingProviderError):
            engine.semantic_search("boom", "alice")
