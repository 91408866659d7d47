"""Construction of the engine services shared by CLI commands and the MCP server."""

import logging

from config.settings import Settings
from src.embedding.config import get_embedding_provider
from src.embedding.provider import EmbeddingProvider
from src.history.store import ConversationHistory
from src.retrieval.feedback_ranker import FeedbackReranker
from src.retrieval.search import SearchEngine
from src.vectorstore.chroma_store import ChromaStore

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)


def open_store(settings: Settings, embedding_provider: EmbeddingProvider) -> ChromaStore:
    """Open the chunk collection, checking it matches the provider's dimension."""
    return ChromaStore(
        path=str(settings.chroma_path),
        collection_name=settings.repochat_collection,
        dimension=embedding_provider.dimension,
    )


def build_search_engine(settings: Settings) -> SearchEngine:
    embedding_provider = get_embedding_provider(settings)
    store = open_store(settings, embedding_provider)
    logger.info("Opened %s with %d chunks", settings.repochat_collection, store.count)
    return SearchEngine(
        store,
        embedding_provider,
        reranker=FeedbackReranker(settings.repochat_feedback_weight),
    )


def open_history(settings: Settings) -> ConversationHistory:
    return ConversationHistory(
        settings.repochat_history_url,
        max_messages=settings.repochat_history_size,
    ).open()
