"""Embedding provider selection from settings."""

from config.settings import Settings
from src.embedding.provider import EmbeddingConfigurationError, EmbeddingProvider


def get_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Create the configured embedding provider.

    The provider must stay the same between ingestion and querying.
    """
    provider = settings.repochat_embedding_provider.lower()

    if provider in ("sentence-transformers", "local"):
        from src.embedding.sentence_transformer import SentenceTransformerEmbeddingProvider

        embedder = SentenceTransformerEmbeddingProvider(settings.repochat_embedding_model)
    elif provider == "openai":
        from src.embedding.openai_provider import OpenAIEmbeddingProvider

        embedder = OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key,
            model_name=settings.repochat_embedding_model,
            dimension=settings.repochat_embedding_dimension,
        )
    else:
        raise EmbeddingConfigurationError(
            f"Unsupported embedding provider: {provider}. "
            "Supported: 'sentence-transformers', 'openai'"
        )

    expected = settings.repochat_embedding_dimension
    if expected is not None and embedder.dimension != expected:
        raise EmbeddingConfigurationError(
            f"{settings.repochat_embedding_model} produces {embedder.dimension}-dim "
            f"vectors, configured dimension is {expected}"
        )
    return embedder
