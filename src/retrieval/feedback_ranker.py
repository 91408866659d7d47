"""Feedback-aware reranker for learn-mode retrieval.

Blends raw cosine similarity with the votes a chunk has collected on past
answers. Feedback is unbounded when written and saturated here when read, so
a handful of strong votes can nudge the order but never outweigh similarity.
"""

import logging
from dataclasses import replace

from src.models.search import SearchResult

logger = logging.getLogger(__name__)

DEFAULT_FEEDBACK_WEIGHT = 0.2


def normalize_feedback(feedback_score: float) -> float:
    """Map an unbounded feedback score into (-1, 1), monotonically."""
    return feedback_score / (1 + abs(feedback_score))


def blended_score(similarity: float, feedback_score: float, weight: float) -> float:
    return similarity + weight * normalize_feedback(feedback_score)


class FeedbackReranker:
    """Reranks retrieved chunks by similarity plus saturated feedback."""

    def __init__(self, weight: float = DEFAULT_FEEDBACK_WEIGHT):
        if weight < 0:
            raise ValueError("weight must be >= 0")
        self._weight = weight

    @property
    def weight(self) -> float:
        return self._weight

    def rerank(
        self,
        results: list[SearchResult],
        top_k: int | None = None,
    ) -> list[SearchResult]:
        """Rerank results by blended score.

        Args:
            results: Candidates from similarity search.
            top_k: If set, return only the top-k reranked results.

        Returns:
            New SearchResult objects sorted by ``score`` (highest first);
            the input list and its items are left untouched.
        """
        if not results:
            return []

        scored = [
            replace(
                r,
                score=blended_score(r.similarity, r.chunk.metadata.feedback_score, self._weight),
            )
            for r in results
        ]
        scored.sort(key=lambda r: r.score, reverse=True)

        if top_k is not None:
            return scored[:top_k]
        return scored
