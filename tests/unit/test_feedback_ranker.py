"""Tests for the feedback-aware reranker."""

import pytest

from src.models.chunk import ChunkMetadata, CodeChunk
from src.models.search import SearchResult
from src.retrieval.feedback_ranker import (
    FeedbackReranker,
    blended_score,
    normalize_feedback,
)


def _result(chunk_id: str, similarity: float, feedback: int = 0) -> SearchResult:
    chunk = CodeChunk(
        file_path=chunk_id,
        content=f"content of {chunk_id}",
        chunk_index=0,
        start_line=0,
        end_line=0,
        metadata=ChunkMetadata(feedback_score=feedback),
    )
    return SearchResult(chunk=chunk, similarity=similarity)


class TestNormalizeFeedback:

    def test_zero_is_neutral(self):
        assert normalize_feedback(0) == 0

    def test_bounded(self):
        for score in (1, 10, 1000, 10**9):
            assert 0 < normalize_feedback(score) < 1
            assert -1 < normalize_feedback(-score) < 0

    def test_monotonic(self):
        values = [normalize_feedback(s) for s in range(-50, 51)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_one_vote_is_half(self):
        assert normalize_feedback(1) == pytest.approx(0.5)


class TestBlendedScore:

    def test_feedback_shift_never_exceeds_weight(self):
        assert blended_score(0.5, 10**6, 0.2) < 0.7
        assert blended_score(0.5, -10**6, 0.2) > 0.3

    def test_no_feedback_is_similarity(self):
        assert blended_score(0.42, 0, 0.2) == pytest.approx(0.42)


class TestFeedbackReranker:

    def test_rerank_sorts_by_blended_score(self):
        reranker = FeedbackReranker(weight=0.2)
        results = [
            _result("a", 0.80),
            _result("b", 0.78, feedback=5),
            _result("c", 0.79, feedback=-5),
        ]

        ranked = reranker.rerank(results)

        assert [r.chunk.id for r in ranked] == ["b", "a", "c"]
        assert ranked[0].score == pytest.approx(0.78 + 0.2 * 5 / 6)

    def test_rerank_top_k(self):
        reranker = FeedbackReranker()
        results = [_result(str(i), 0.5 + i / 100) for i in range(10)]
        ranked = reranker.rerank(results, top_k=3)
        assert [r.chunk.id for r in ranked] == ["9", "8", "7"]

    def test_rerank_empty(self):
        assert FeedbackReranker().rerank([]) == []

    def test_input_left_untouched(self):
        results = [_result("a", 0.6, feedback=3), _result("b", 0.7)]
        FeedbackReranker().rerank(results)
        assert [r.chunk.id for r in results] == ["a", "b"]
        assert all(r.score is None for r in results)

    def test_large_similarity_gap_not_overturned(self):
        reranker = FeedbackReranker(weight=0.2)
        ranked = reranker.rerank([_result("loved", 0.3, feedback=1000), _result("close", 0.9)])
        assert ranked[0].chunk.id == "close"

    def test_zero_weight_is_similarity_order(self):
        reranker = FeedbackReranker(weight=0)
        ranked = reranker.rerank([_result("a", 0.5, feedback=9), _result("b", 0.6)])
        assert [r.chunk.id for r in ranked] == ["b", "a"]

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            FeedbackReranker(weight=-0.1)
