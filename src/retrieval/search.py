"""Semantic search over the chunk index."""

import logging

from src.embedding.provider import EmbeddingProvider
from src.models.chunk import CodeChunk
from src.models.enums import ChunkSource
from src.models.search import SearchResult
from src.retrieval.feedback_ranker import FeedbackReranker
from src.vectorstore.chroma_store import ChromaStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
DEFAULT_THRESHOLD = 0.1
EXEMPLAR_THRESHOLD = 0.1

# Learn mode widens the candidate pool before reranking
LEARN_POOL_FACTOR = 5
LEARN_POOL_MIN = 20


def learn_pool_size(limit: int) -> int:
    if limit <= LEARN_POOL_MIN:
        return max(limit * LEARN_POOL_FACTOR, LEARN_POOL_MIN)
    return limit


class SearchEngine:
    """Retrieval and ranking over a ChromaStore.

    The embedding provider must be the one the index was built with.
    """

    def __init__(
        self,
        store: ChromaStore,
        embedding_provider: EmbeddingProvider,
        reranker: FeedbackReranker | None = None,
    ):
        self._store = store
        self._embedding_provider = embedding_provider
        self._reranker = reranker or FeedbackReranker()

    @property
    def store(self) -> ChromaStore:
        return self._store

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._embedding_provider

    def search(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        threshold: float = DEFAULT_THRESHOLD,
        learn: bool = False,
    ) -> list[SearchResult]:
        """Find chunks semantically similar to ``query``.

        Only results with similarity strictly above ``threshold`` are kept.
        Without ``learn`` the order is raw similarity. With ``learn`` a wider
        candidate pool is reranked by similarity blended with feedback and
        cut back to ``limit``.
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        if limit <= 0:
            return []

        query_embedding = self._embedding_provider.embed_one(query)
        fetch_k = learn_pool_size(limit) if learn else limit
        results = self._store.query_nearest(query_embedding, threshold=threshold, top_k=fetch_k)
        logger.debug("Search %r: %d candidates (learn=%s)", query[:80], len(results), learn)

        if learn:
            return self._reranker.rerank(results, top_k=limit)
        return results[:limit]

    def top_answer_exemplars(self, query: str, limit: int = 2) -> list[SearchResult]:
        """Past assistant answers close to ``query``, best received first among equals.

        Ordered by similarity, ties broken by feedback score. A wider pool is
        fetched so equally similar answers beyond ``limit`` still compete.
        """
        if limit <= 0:
            return []
        query_embedding = self._embedding_provider.embed_one(query)
        results = self._store.query_nearest(
            query_embedding,
            threshold=EXEMPLAR_THRESHOLD,
            top_k=learn_pool_size(limit),
            where={"source": ChunkSource.AI_RESPONSE.value},
        )
        results.sort(
            key=lambda r: (r.similarity, r.chunk.metadata.feedback_score),
            reverse=True,
        )
        return results[:limit]

    def by_file_path(self, path_fragment: str, limit: int = 10) -> list[CodeChunk]:
        """Chunks of files whose path contains ``path_fragment``, in file order."""
        if not path_fragment:
            return []
        return self._store.get_by_file_path(path_fragment, limit=limit)
